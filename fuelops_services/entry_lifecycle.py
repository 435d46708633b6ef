"""
fuelops_services.entry_lifecycle -- Submit, validate, approve, reject and edit-request entries.

Responsibility:
    Orchestrates one lifecycle action end to end:

    1. prepare the entry (submit only: blank optional inputs become 0, the
       derived fields are recomputed and the validator runs);
    2. run the pure guards from ``fuelops_kernel.domain.lifecycle``;
    3. stamp the entry with the actor and the injected clock's time;
    4. send the action to the backend through ``ResilientFetcher.send``;
    5. decide what a failed send means (mock fallback or error).

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes the reconciliation and validation engines, the lifecycle
    rules, the resilient fetcher and (optionally) the local store.

Invariants enforced:
    - Guards run before any network call.  A guard failure raises and the
      caller's entry is unchanged (entries are immutable).
    - An explicit backend rejection (``ApiResponseError``) always
      propagates; it never falls back to local application.
    - ``applied_locally_only`` is True only when the backend could not be
      reached and mock fallback is enabled.

Failure modes:
    - Lifecycle guard errors (see ``fuelops_kernel.domain.lifecycle``).
    - ApiResponseError: the backend refused the action.
    - BackendUnavailableError: unreachable backend, mock fallback disabled.

Usage:
    from fuelops_services.entry_lifecycle import EntryLifecycleService

    lifecycle = EntryLifecycleService(fetcher, session, clock, store=store)
    outcome = lifecycle.submit(entry)
    if outcome.applied_locally_only:
        ...  # show the mock-mode banner
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from fuelops_engines.reconciliation import derive_entry
from fuelops_engines.validation import DEFAULT_RULES, ValidationRules, validate_entry
from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.domain.entry import OPTIONAL_ZERO_DEFAULT_FIELDS, Entry
from fuelops_kernel.domain.lifecycle import (
    EntryAction,
    apply_transition,
    check_transition,
)
from fuelops_kernel.domain.session import UserSession
from fuelops_kernel.exceptions import (
    ApiResponseError,
    BackendUnavailableError,
    RetriesExhaustedError,
)
from fuelops_kernel.logging_config import LogContext, get_logger
from fuelops_services.local_store import LocalStore, companion_cash_key
from fuelops_services.resilient_fetch import ResilientFetcher

logger = get_logger("services.entry_lifecycle")

MOCK_MODE_SUFFIX = " (Mock Mode)"

SUBMIT_PATH = "/dailysales"
VALIDATE_PATH = "/dailysales/{id}/validate"
APPROVE_PATH = "/dailysales/{id}/approve"
REQUEST_EDIT_PATH = "/sales-entries/{id}/request-edit"

_SUCCESS_MESSAGES: dict[EntryAction, str] = {
    EntryAction.SUBMIT: "Daily sales entry submitted successfully!",
    EntryAction.VALIDATE: "Entry validated successfully!",
    EntryAction.APPROVE: "Entry approved successfully!",
    EntryAction.REJECT: "Entry rejected successfully!",
    EntryAction.REQUEST_EDIT: "Edit request submitted successfully!",
}


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of one lifecycle action.

    ``entry`` is the entry (or plain record) after the action.  When
    ``applied_locally_only`` is True the backend never saw the change.
    """

    entry: Any
    applied_locally_only: bool
    message: str

    @property
    def record(self) -> Any:
        return self.entry


def fill_optional_zeros(entry: Entry) -> Entry:
    """Blank optional inputs become 0; mandatory inputs are left alone."""
    zeros = {
        name: 0.0
        for name in OPTIONAL_ZERO_DEFAULT_FIELDS
        if getattr(entry, name) is None
    }
    return replace(entry, **zeros) if zeros else entry


def stored_companion_cash(
    store: LocalStore | None,
    rules: ValidationRules,
    entry: Entry,
) -> float | None:
    """The companion product's cash-to-bank for the same station-day, if stored."""
    pair = rules.pair_for(entry.product)
    if pair is None or store is None:
        return None
    return store.get(companion_cash_key(entry.station_id, entry.date, pair.companion))


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


class EntryLifecycleService:
    """
    Lifecycle actions on daily sales entries for one signed-in user.

    Contract:
        Every public method returns a ``TransitionOutcome`` or raises.  The
        entry passed in is never modified.

    Non-goals:
        - Does NOT resolve concurrent edits.  The server's answer wins.
        - Does NOT queue local-only changes for later sync.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        session: UserSession,
        clock: Clock | None = None,
        *,
        rules: ValidationRules = DEFAULT_RULES,
        mock_fallback: bool = True,
        store: LocalStore | None = None,
    ):
        self._fetcher = fetcher
        self._session = session
        self._clock = clock or SystemClock()
        self._rules = rules
        self._mock_fallback = mock_fallback
        self._store = store

    # =========================================================================
    # Submit
    # =========================================================================

    def prepare_for_submit(
        self,
        entry: Entry,
        companion_cash_to_bank: float | None = None,
    ) -> tuple[Entry, list[str]]:
        """The entry as it would be submitted, and its violations."""
        prepared = derive_entry(fill_optional_zeros(entry))
        if companion_cash_to_bank is None:
            companion_cash_to_bank = self.companion_cash_to_bank(prepared)
        violations = validate_entry(
            prepared,
            companion_cash_to_bank=companion_cash_to_bank,
            rules=self._rules,
        )
        return prepared, violations

    def companion_cash_to_bank(self, entry: Entry) -> float | None:
        return stored_companion_cash(self._store, self._rules, entry)

    def submit(
        self,
        entry: Entry,
        companion_cash_to_bank: float | None = None,
    ) -> TransitionOutcome:
        """DRAFT -> SUBMITTED.

        Raises:
            EntryValidationError: the prepared entry has violations.
            InvalidEntryTransitionError / UnauthorizedTransitionError.
        """
        prepared, violations = self.prepare_for_submit(entry, companion_cash_to_bank)
        check_transition(prepared, EntryAction.SUBMIT, self._session, violations=violations)
        stamped = apply_transition(
            prepared, EntryAction.SUBMIT, self._session.name, self._clock.now()
        )

        payload = stamped.to_wire()
        payload["station"] = stamped.station_name
        outcome = self._send(EntryAction.SUBMIT, "POST", SUBMIT_PATH, payload, stamped)

        if self._store is not None and stamped.cash_to_bank is not None:
            self._store.set(
                companion_cash_key(stamped.station_id, stamped.date, stamped.product),
                stamped.cash_to_bank,
            )
        with LogContext.bind_user(self._session), LogContext.bind_entry(outcome.entry):
            logger.info(
                "entry_submitted",
                extra={"applied_locally_only": outcome.applied_locally_only},
            )
        return outcome

    # =========================================================================
    # Review actions
    # =========================================================================

    def validate(self, entry: Entry) -> TransitionOutcome:
        """SUBMITTED -> VALIDATED (admin)."""
        check_transition(entry, EntryAction.VALIDATE, self._session)
        stamped = apply_transition(
            entry, EntryAction.VALIDATE, self._session.name, self._clock.now()
        )
        payload = {
            "entryId": entry.id,
            "validatedBy": stamped.validated_by,
            "validatedAt": _iso(stamped.validated_at),
            "status": stamped.status.value,
        }
        return self._send(
            EntryAction.VALIDATE,
            "PUT",
            VALIDATE_PATH.format(id=entry.id),
            payload,
            stamped,
        )

    def approve(self, entry: Entry, notes: str | None = None) -> TransitionOutcome:
        """VALIDATED -> APPROVED (super admin)."""
        check_transition(entry, EntryAction.APPROVE, self._session)
        stamped = apply_transition(
            entry, EntryAction.APPROVE, self._session.name, self._clock.now()
        )
        payload = {
            "entryId": entry.id,
            "approvedBy": stamped.approved_by,
            "approvedAt": _iso(stamped.approved_at),
            "status": stamped.status.value,
        }
        if notes:
            payload["approvalNotes"] = notes
        return self._send(
            EntryAction.APPROVE,
            "PUT",
            APPROVE_PATH.format(id=entry.id),
            payload,
            stamped,
        )

    def reject(
        self,
        entry: Entry,
        reason: str | None,
        comments: str | None,
        required_actions: list[str] | None = None,
    ) -> TransitionOutcome:
        """SUBMITTED or VALIDATED -> REJECTED.  Reason and comments required."""
        check_transition(
            entry,
            EntryAction.REJECT,
            self._session,
            reason=reason,
            comments=comments,
        )
        stamped = apply_transition(
            entry,
            EntryAction.REJECT,
            self._session.name,
            self._clock.now(),
            reason=reason,
            comments=comments,
        )
        payload = {
            "entryId": entry.id,
            "rejectedBy": stamped.rejected_by,
            "rejectedAt": _iso(stamped.rejected_at),
            "status": stamped.status.value,
            "rejectionReason": reason,
            "rejectionComments": comments,
            "requiredActions": list(required_actions or []),
        }
        return self._send(
            EntryAction.REJECT,
            "PUT",
            VALIDATE_PATH.format(id=entry.id),
            payload,
            stamped,
        )

    def request_edit(self, entry: Entry, reason: str | None) -> TransitionOutcome:
        """Flag a submitted entry for editing.  Status is unchanged."""
        check_transition(entry, EntryAction.REQUEST_EDIT, self._session, reason=reason)
        stamped = apply_transition(
            entry,
            EntryAction.REQUEST_EDIT,
            self._session.name,
            self._clock.now(),
            reason=reason,
        )
        payload = {
            "entryId": entry.id,
            "requestedBy": stamped.edit_requested_by,
            "reason": reason,
        }
        return self._send(
            EntryAction.REQUEST_EDIT,
            "POST",
            REQUEST_EDIT_PATH.format(id=entry.id),
            payload,
            stamped,
        )

    # =========================================================================
    # Remote call
    # =========================================================================

    def _send(
        self,
        action: EntryAction,
        method: str,
        path: str,
        payload: dict[str, Any],
        stamped: Entry,
    ) -> TransitionOutcome:
        message = _SUCCESS_MESSAGES[action]
        with LogContext.bind_user(self._session), LogContext.bind_entry(stamped):
            try:
                response = self._fetcher.send(method, path, json=payload)
            except RetriesExhaustedError as exc:
                if not self._mock_fallback:
                    logger.error(
                        "transition_backend_unavailable",
                        extra={"action": action.value, "attempts": exc.attempts},
                    )
                    raise BackendUnavailableError(action.value) from exc
                logger.warning(
                    "transition_applied_locally",
                    extra={"action": action.value, "reason": exc.last_reason},
                )
                return TransitionOutcome(stamped, True, message + MOCK_MODE_SUFFIX)
            except ApiResponseError as exc:
                logger.warning(
                    "transition_rejected_by_backend",
                    extra={
                        "action": action.value,
                        "status_code": exc.status_code,
                        "server_message": exc.server_message,
                    },
                )
                raise

        return TransitionOutcome(_entry_from_response(response, stamped), False, message)


def _entry_from_response(response: Any, stamped: Entry) -> Entry:
    """The server's copy when it returned a full entry, else ``stamped``."""
    if isinstance(response, dict) and response.get("id") and response.get("status"):
        return Entry.from_wire(response)
    return stamped
