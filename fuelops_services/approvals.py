"""
fuelops_services.approvals -- One approval service for price changes, supplies and utility bills.

Responsibility:
    Drives the plain-record workflows (no derived fields) through a single
    generic ``RecordApprovalService``.  Each record kind is described by a
    ``RecordWorkflow``: its transition table and role map from
    ``fuelops_kernel.domain.records``, its stamping function, its list and
    action endpoints, its request payloads and its mock data.

Architecture position:
    Services -- same shape as ``fuelops_services.entry_lifecycle``: pure
    guard, stamp, resilient send, then the mock-fallback decision.

Invariants enforced:
    - Guards run before any network call; a failed guard leaves the record
      untouched.
    - A rejection needs a reason.
    - Confirming a supply is restricted to the receiving station's manager.
    - ``applied_locally_only`` has the same meaning as for entries.

Usage:
    from fuelops_services.approvals import PRICE_CHANGE_WORKFLOW, RecordApprovalService

    prices = RecordApprovalService(PRICE_CHANGE_WORKFLOW, fetcher, session, clock)
    pending = prices.list("pending").records
    outcome = prices.approve(pending[0], reason="Market adjustment")
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.domain.records import (
    PRICE_CHANGE_ROLES,
    PRICE_CHANGE_TRANSITIONS,
    SUPPLY_ROLES,
    SUPPLY_TRANSITIONS,
    UTILITY_BILL_ROLES,
    UTILITY_BILL_TRANSITIONS,
    PriceChange,
    ProductSharingSupply,
    RecordAction,
    UtilityBill,
    check_record_transition,
    stamp_price_change,
    stamp_supply,
    stamp_utility_bill,
)
from fuelops_kernel.domain.session import Role, UserSession
from fuelops_kernel.exceptions import (
    ApiResponseError,
    BackendUnavailableError,
    RetriesExhaustedError,
    UnauthorizedTransitionError,
)
from fuelops_kernel.logging_config import LogContext, get_logger
from fuelops_services import mock_data
from fuelops_services.entry_lifecycle import MOCK_MODE_SUFFIX, TransitionOutcome
from fuelops_services.resilient_fetch import FetchSource, ResilientFetcher

logger = get_logger("services.approvals")

PayloadBuilder = Callable[[RecordAction, Any, str, Mapping[str, Any]], dict[str, Any]]
MockProvider = Callable[[UserSession, str | None], list[dict[str, Any]]]


@dataclass(frozen=True)
class RecordWorkflow:
    """Everything the generic service needs to know about one record kind."""

    name: str
    record_type: type
    transitions: Mapping[RecordAction, tuple[frozenset[Enum], Enum]]
    roles: Mapping[RecordAction, frozenset[Role]]
    stamp: Callable[..., Any]
    list_paths: Mapping[str, str]
    action_routes: Mapping[RecordAction, tuple[str, str]]
    payload: PayloadBuilder
    messages: Mapping[RecordAction, str]
    mock_providers: Mapping[str, MockProvider] = field(default_factory=dict)
    # Actions only the manager of the record's own station may take.
    station_scoped_actions: frozenset[RecordAction] = frozenset()
    # Key under which the backend nests the updated record, if any.
    response_key: str | None = None

    @property
    def default_view(self) -> str:
        return next(iter(self.list_paths))


@dataclass(frozen=True)
class RecordList:
    records: tuple[Any, ...]
    source: FetchSource

    @property
    def is_authoritative(self) -> bool:
        return self.source is FetchSource.LIVE


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# =========================================================================
# Workflow definitions
# =========================================================================


def _price_change_payload(
    action: RecordAction, record: PriceChange, actor: str, details: Mapping[str, Any]
) -> dict[str, Any]:
    return {
        "action": action.value,
        "reason": details.get("reason") or "",
        "approvedBy": actor,
    }


def _supply_payload(
    action: RecordAction,
    record: ProductSharingSupply,
    actor: str,
    details: Mapping[str, Any],
) -> dict[str, Any]:
    if action is RecordAction.APPROVE:
        return {"id": record.id, "approvedBy": actor, "reason": details.get("reason") or ""}
    return {
        "id": record.id,
        "confirmedBy": record.confirmed_by,
        "confirmedAt": _iso(record.confirmed_at),
        "qtyR": record.qty_received,
        "overage": record.overage,
        "shortage": record.shortage,
        "notes": record.notes,
        "product": record.product,
        "station": record.station_name,
    }


def _utility_bill_payload(
    action: RecordAction, record: UtilityBill, actor: str, details: Mapping[str, Any]
) -> dict[str, Any]:
    payload = {
        "id": record.id,
        "paidBy": record.paid_by,
        "paidAt": _iso(record.paid_at),
        "paymentMethod": record.payment_method,
    }
    for key, wire in (("transaction_reference", "transactionReference"), ("notes", "notes")):
        if details.get(key):
            payload[wire] = details[key]
    return payload


def _station_filter(session: UserSession) -> str | None:
    return session.station_id if session.role is Role.STATION_MANAGER else None


PRICE_CHANGE_WORKFLOW = RecordWorkflow(
    name="price_change",
    record_type=PriceChange,
    transitions=PRICE_CHANGE_TRANSITIONS,
    roles=PRICE_CHANGE_ROLES,
    stamp=stamp_price_change,
    list_paths={
        "pending": "/price-updates/pending",
        "history": "/price-updates/history",
    },
    action_routes={
        RecordAction.APPROVE: ("PUT", "/price-updates/approve/{id}"),
        RecordAction.REJECT: ("PUT", "/price-updates/reject/{id}"),
    },
    payload=_price_change_payload,
    messages={
        RecordAction.APPROVE: "Price change approved successfully!",
        RecordAction.REJECT: "Price change rejected successfully!",
    },
    mock_providers={
        "pending": lambda session, station_id: mock_data.price_changes("PENDING"),
        "history": lambda session, station_id: mock_data.price_change_history(),
    },
)

SUPPLY_WORKFLOW = RecordWorkflow(
    name="product_sharing_supply",
    record_type=ProductSharingSupply,
    transitions=SUPPLY_TRANSITIONS,
    roles=SUPPLY_ROLES,
    stamp=stamp_supply,
    list_paths={"all": "/supply"},
    action_routes={
        RecordAction.APPROVE: ("PUT", "/supply/approve/{id}"),
        RecordAction.CONFIRM: ("PUT", "/supply/confirm/{id}"),
    },
    payload=_supply_payload,
    messages={
        RecordAction.APPROVE: "Supply request approved successfully!",
        RecordAction.CONFIRM: "Supply receipt confirmed successfully!",
    },
    mock_providers={
        "all": lambda session, station_id: mock_data.supplies(
            station_id or _station_filter(session)
        ),
    },
    station_scoped_actions=frozenset({RecordAction.CONFIRM}),
)

UTILITY_BILL_WORKFLOW = RecordWorkflow(
    name="utility_bill",
    record_type=UtilityBill,
    transitions=UTILITY_BILL_TRANSITIONS,
    roles=UTILITY_BILL_ROLES,
    stamp=stamp_utility_bill,
    list_paths={"station": "/utility/bills/{station_id}"},
    action_routes={RecordAction.PAY: ("POST", "/utility/bills/{id}/pay")},
    payload=_utility_bill_payload,
    messages={RecordAction.PAY: "Payment processed successfully!"},
    mock_providers={
        "station": lambda session, station_id: mock_data.utility_bills(station_id),
    },
    response_key="updatedBill",
)


# =========================================================================
# Service
# =========================================================================


class RecordApprovalService:
    """
    List and act on one kind of plain record for one signed-in user.

    Contract:
        ``act`` returns a ``TransitionOutcome`` whose ``entry`` (alias
        ``record``) is the record after the action, or raises.  The record
        passed in is never modified.
    """

    def __init__(
        self,
        workflow: RecordWorkflow,
        fetcher: ResilientFetcher,
        session: UserSession,
        clock: Clock | None = None,
        *,
        mock_fallback: bool = True,
    ):
        self.workflow = workflow
        self._fetcher = fetcher
        self._session = session
        self._clock = clock or SystemClock()
        self._mock_fallback = mock_fallback

    # -- reads ---------------------------------------------------------------

    def list(self, view: str | None = None, station_id: str | None = None) -> RecordList:
        wf = self.workflow
        view = view or wf.default_view
        station_id = station_id or self._session.station_id
        template = wf.list_paths[view]
        if "{station_id}" in template and station_id is None:
            raise ValueError(f"listing {wf.name} records needs a station")
        path = template.format(station_id=station_id)

        mock = None
        provider = wf.mock_providers.get(view)
        if provider is not None:
            mock = functools.partial(provider, self._session, station_id)

        result = self._fetcher.fetch(f"{wf.name}:{view}", path, mock_provider=mock)
        items = result.data
        if isinstance(items, dict):
            items = items.get("content") or items.get("data") or []
        records = tuple(wf.record_type.from_wire(item) for item in items or [])
        return RecordList(records, result.source)

    # -- actions -------------------------------------------------------------

    def act(self, record: Any, action: RecordAction, **details: Any) -> TransitionOutcome:
        """Guard, stamp and send one action.

        Raises:
            InvalidRecordTransitionError / UnauthorizedTransitionError /
            MissingRejectionReasonError: guard failures.
            ApiResponseError: the backend refused the action.
            BackendUnavailableError: unreachable and mock fallback disabled.
        """
        wf = self.workflow
        check_record_transition(
            wf.name,
            record,
            action,
            self._session.role,
            wf.transitions,
            wf.roles,
            reason=details.get("reason"),
        )
        if (
            action in wf.station_scoped_actions
            and self._session.station_id != getattr(record, "station_id", None)
        ):
            raise UnauthorizedTransitionError(
                action.value,
                self._session.role.value,
                tuple(sorted(r.value for r in wf.roles[action])),
            )

        stamped = wf.stamp(record, action, self._session.name, self._clock.now(), **details)
        method, template = wf.action_routes[action]
        path = template.format(id=record.id)
        payload = wf.payload(action, stamped, self._session.name, details)
        message = wf.messages[action]

        with LogContext.bind_user(self._session):
            try:
                response = self._fetcher.send(method, path, json=payload)
            except RetriesExhaustedError as exc:
                if not self._mock_fallback:
                    raise BackendUnavailableError(f"{wf.name}.{action.value}") from exc
                logger.warning(
                    "transition_applied_locally",
                    extra={
                        "record_type": wf.name,
                        "record_id": record.id,
                        "action": action.value,
                        "reason": exc.last_reason,
                    },
                )
                return TransitionOutcome(stamped, True, message + MOCK_MODE_SUFFIX)
            except ApiResponseError as exc:
                logger.warning(
                    "transition_rejected_by_backend",
                    extra={
                        "record_type": wf.name,
                        "record_id": record.id,
                        "action": action.value,
                        "status_code": exc.status_code,
                    },
                )
                raise

        logger.info(
            "record_transition_applied",
            extra={"record_type": wf.name, "record_id": record.id, "action": action.value},
        )
        return TransitionOutcome(self._record_from_response(response, stamped), False, message)

    def _record_from_response(self, response: Any, stamped: Any) -> Any:
        if isinstance(response, dict) and self.workflow.response_key:
            response = response.get(self.workflow.response_key)
        if isinstance(response, dict) and response.get("id") is not None:
            status_keys = self.workflow.record_type.STATUS_KEYS
            if any(response.get(k) is not None for k in status_keys):
                return self.workflow.record_type.from_wire(response)
        return stamped

    def approve(self, record: Any, reason: str | None = None) -> TransitionOutcome:
        return self.act(record, RecordAction.APPROVE, reason=reason)

    def reject(self, record: Any, reason: str | None) -> TransitionOutcome:
        return self.act(record, RecordAction.REJECT, reason=reason)

    def confirm(
        self,
        record: Any,
        qty_received: float,
        notes: str | None = None,
    ) -> TransitionOutcome:
        details: dict[str, Any] = {"qty_received": qty_received}
        if notes is not None:
            details["notes"] = notes
        return self.act(record, RecordAction.CONFIRM, **details)

    def pay(
        self,
        record: Any,
        payment_method: str,
        transaction_reference: str | None = None,
        notes: str | None = None,
    ) -> TransitionOutcome:
        return self.act(
            record,
            RecordAction.PAY,
            payment_method=payment_method,
            transaction_reference=transaction_reference,
            notes=notes,
        )
