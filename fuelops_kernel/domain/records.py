"""
Plain approval records (``fuelops_kernel.domain.records``).

Responsibility
--------------
Value objects and state machines for the three record kinds that go
through an approve/confirm/pay step but carry no derived fields:
price change requests, product-sharing supplies and utility bills.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  The generic
service that drives these tables lives in
``fuelops_services.approvals``.

Invariants enforced
-------------------
* Each ``*_TRANSITIONS`` table defines the only valid status changes for
  its record kind; terminal statuses have no outgoing edges.
* ``check_record_transition`` raises before anything is stamped.
* Supply variance is ``qty_received - qty``: positive is overage,
  negative is shortage, never both.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from fuelops_kernel.domain.session import Role
from fuelops_kernel.exceptions import (
    InvalidFieldValueError,
    InvalidRecordTransitionError,
    MissingRejectionReasonError,
    UnauthorizedTransitionError,
)


class RecordAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CONFIRM = "confirm"
    PAY = "pay"


def _parse_status(enum_type: type[Enum], raw: Any) -> Enum:
    text = str(raw).strip().upper()
    for member in enum_type:
        if member.value.upper() == text:
            return member
    raise InvalidFieldValueError("status", raw, f"not a {enum_type.__name__}")


def _parse_timestamp(name: str, raw: Any) -> datetime | None:
    if raw is None or raw == "" or isinstance(raw, datetime):
        return raw or None
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError:
        raise InvalidFieldValueError(name, raw, "not an ISO timestamp") from None


class _WireRecord:
    """Camel-case wire mapping shared by the record dataclasses."""

    WIRE_NAMES: ClassVar[dict[str, str]] = {}
    STATUS_KEYS: ClassVar[tuple[str, ...]] = ("status",)
    STATUS_TYPE: ClassVar[type[Enum]]
    TIMESTAMP_FIELDS: ClassVar[frozenset[str]] = frozenset()
    NUMBER_FIELDS: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def from_wire(cls, data: dict[str, Any]):
        values: dict[str, Any] = {}
        by_wire = {wire: attr for attr, wire in cls.WIRE_NAMES.items()}
        for key, raw in data.items():
            attr = by_wire.get(key)
            if attr is None or raw is None:
                continue
            if attr in cls.TIMESTAMP_FIELDS:
                values[attr] = _parse_timestamp(attr, raw)
            elif attr in cls.NUMBER_FIELDS:
                values[attr] = float(raw)
            else:
                values[attr] = str(raw)
        for key in cls.STATUS_KEYS:
            if data.get(key) is not None:
                values["status"] = _parse_status(cls.STATUS_TYPE, data[key])
                break
        return cls(**values)

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for f in fields(self):
            val = getattr(self, f.name)
            if val is None:
                continue
            if isinstance(val, Enum):
                val = val.value
            elif isinstance(val, datetime):
                val = val.isoformat()
            payload[self.WIRE_NAMES.get(f.name, f.name)] = val
        return payload


# =========================================================================
# Price change requests
# =========================================================================


class PriceChangeStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class PriceChange(_WireRecord):
    """A requested pump price change awaiting super-admin decision."""

    id: str | None = None
    tank_id: str | None = None
    tank_name: str | None = None
    station: str | None = None
    fuel_type: str | None = None
    current_price: float | None = None
    new_price: float | None = None
    price_difference: float | None = None
    percentage_change: float | None = None
    effective_date: datetime | None = None
    reason: str | None = None
    priority: str | None = None
    category: str | None = None
    requested_by: str | None = None
    requested_at: datetime | None = None
    status: PriceChangeStatus = PriceChangeStatus.PENDING
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    approval_reason: str | None = None

    WIRE_NAMES: ClassVar[dict[str, str]] = {
        "id": "id",
        "tank_id": "tankId",
        "tank_name": "tankName",
        "station": "station",
        "fuel_type": "fuelType",
        "current_price": "currentPrice",
        "new_price": "newPrice",
        "price_difference": "priceDifference",
        "percentage_change": "percentageChange",
        "effective_date": "effectiveDate",
        "reason": "reason",
        "priority": "priority",
        "category": "category",
        "requested_by": "requestedBy",
        "requested_at": "requestedAt",
        "status": "status",
        "approved_by": "approvedBy",
        "approved_at": "approvedAt",
        "rejected_by": "rejectedBy",
        "rejected_at": "rejectedAt",
        "approval_reason": "approvalReason",
    }
    STATUS_TYPE: ClassVar[type[Enum]] = PriceChangeStatus
    TIMESTAMP_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "effective_date", "requested_at", "approved_at", "rejected_at",
    })
    NUMBER_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "current_price", "new_price", "price_difference", "percentage_change",
    })


PRICE_CHANGE_TRANSITIONS: dict[RecordAction, tuple[frozenset[Enum], Enum]] = {
    RecordAction.APPROVE: (
        frozenset({PriceChangeStatus.PENDING}),
        PriceChangeStatus.APPROVED,
    ),
    RecordAction.REJECT: (
        frozenset({PriceChangeStatus.PENDING}),
        PriceChangeStatus.REJECTED,
    ),
}

PRICE_CHANGE_ROLES: dict[RecordAction, frozenset[Role]] = {
    RecordAction.APPROVE: frozenset({Role.SUPER_ADMIN}),
    RecordAction.REJECT: frozenset({Role.SUPER_ADMIN}),
}


def stamp_price_change(
    record: PriceChange,
    action: RecordAction,
    actor: str,
    at: datetime,
    **details: Any,
) -> PriceChange:
    target = PRICE_CHANGE_TRANSITIONS[action][1]
    reason = details.get("reason")
    if action is RecordAction.APPROVE:
        return replace(
            record,
            status=target,
            approved_by=actor,
            approved_at=at,
            approval_reason=reason,
        )
    return replace(
        record,
        status=target,
        rejected_by=actor,
        rejected_at=at,
        approval_reason=reason,
    )


# =========================================================================
# Product-sharing supplies
# =========================================================================


class SupplyStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CONFIRMED = "CONFIRMED"
    RECEIVED = "RECEIVED"


@dataclass(frozen=True)
class ProductSharingSupply(_WireRecord):
    """Fuel moved from one station to another."""

    id: str | None = None
    date: str | None = None
    product: str | None = None
    qty: float | None = None
    qty_received: float | None = None
    rate: float | None = None
    overage: float | None = None
    shortage: float | None = None
    station_id: str | None = None
    station_name: str | None = None
    from_station_id: str | None = None
    from_station_name: str | None = None
    priority: str | None = None
    created_by: str | None = None
    notes: str | None = None
    status: SupplyStatus = SupplyStatus.PENDING
    approved_by: str | None = None
    approved_at: datetime | None = None
    confirmed_by: str | None = None
    confirmed_at: datetime | None = None
    received_at: datetime | None = None

    WIRE_NAMES: ClassVar[dict[str, str]] = {
        "id": "id",
        "date": "date",
        "product": "product",
        "qty": "qty",
        "qty_received": "qtyR",
        "rate": "rate",
        "overage": "overage",
        "shortage": "shortage",
        "station_id": "stationId",
        "station_name": "stationName",
        "from_station_id": "fromStationId",
        "from_station_name": "fromStationName",
        "priority": "priority",
        "created_by": "createdBy",
        "notes": "notes",
        "status": "mstatus",
        "approved_by": "approvedBy",
        "approved_at": "approvedAt",
        "confirmed_by": "confirmedBy",
        "confirmed_at": "confirmedAt",
        "received_at": "receivedAt",
    }
    # Receiving-side status is ``mstatus``; some endpoints send ``status``.
    STATUS_KEYS: ClassVar[tuple[str, ...]] = ("mstatus", "status")
    STATUS_TYPE: ClassVar[type[Enum]] = SupplyStatus
    TIMESTAMP_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "approved_at", "confirmed_at", "received_at",
    })
    NUMBER_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "qty", "qty_received", "rate", "overage", "shortage",
    })


SUPPLY_TRANSITIONS: dict[RecordAction, tuple[frozenset[Enum], Enum]] = {
    RecordAction.APPROVE: (
        frozenset({SupplyStatus.PENDING}),
        SupplyStatus.APPROVED,
    ),
    RecordAction.CONFIRM: (
        frozenset({SupplyStatus.APPROVED}),
        SupplyStatus.CONFIRMED,
    ),
}

SUPPLY_ROLES: dict[RecordAction, frozenset[Role]] = {
    RecordAction.APPROVE: frozenset({Role.SUPER_ADMIN}),
    RecordAction.CONFIRM: frozenset({Role.STATION_MANAGER}),
}


def supply_variance(qty: float, qty_received: float) -> tuple[float | None, float | None]:
    """Return ``(overage, shortage)`` for a received quantity."""
    variance = qty_received - qty
    if variance > 0:
        return variance, None
    if variance < 0:
        return None, abs(variance)
    return None, None


def stamp_supply(
    record: ProductSharingSupply,
    action: RecordAction,
    actor: str,
    at: datetime,
    **details: Any,
) -> ProductSharingSupply:
    target = SUPPLY_TRANSITIONS[action][1]
    if action is RecordAction.APPROVE:
        return replace(record, status=target, approved_by=actor, approved_at=at)

    qty_received = details.get("qty_received")
    if qty_received is None or qty_received <= 0:
        raise InvalidFieldValueError("qty_received", qty_received, "must be positive")
    overage, shortage = supply_variance(record.qty or 0.0, qty_received)
    return replace(
        record,
        status=target,
        qty_received=float(qty_received),
        overage=overage,
        shortage=shortage,
        confirmed_by=actor,
        confirmed_at=at,
        notes=details.get("notes", record.notes),
    )


# =========================================================================
# Utility bills
# =========================================================================


class UtilityBillStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    OVERDUE = "Overdue"
    PAID = "Paid"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "Bank Transfer"
    CASH = "Cash"
    CHEQUE = "Cheque"
    MOBILE_MONEY = "Mobile Money"

    @classmethod
    def parse(cls, value: "str | PaymentMethod") -> "PaymentMethod":
        if isinstance(value, PaymentMethod):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        raise InvalidFieldValueError("payment_method", value, "unknown payment method")


@dataclass(frozen=True)
class UtilityBill(_WireRecord):
    """A station utility bill."""

    id: str | None = None
    due_date: str | None = None
    utility: str | None = None
    provider: str | None = None
    bill_number: str | None = None
    period: str | None = None
    amount: float | None = None
    priority: str | None = None
    station_id: str | None = None
    station_name: str | None = None
    created_by: str | None = None
    status: UtilityBillStatus = UtilityBillStatus.PENDING
    payment_method: str | None = None
    paid_by: str | None = None
    paid_at: datetime | None = None

    WIRE_NAMES: ClassVar[dict[str, str]] = {
        "id": "id",
        "due_date": "dueDate",
        "utility": "utility",
        "provider": "provider",
        "bill_number": "billNumber",
        "period": "period",
        "amount": "amount",
        "priority": "priority",
        "station_id": "stationId",
        "station_name": "stationName",
        "created_by": "createdBy",
        "status": "status",
        "payment_method": "paymentMethod",
        "paid_by": "paidBy",
        "paid_at": "paidAt",
    }
    STATUS_TYPE: ClassVar[type[Enum]] = UtilityBillStatus
    TIMESTAMP_FIELDS: ClassVar[frozenset[str]] = frozenset({"paid_at"})
    NUMBER_FIELDS: ClassVar[frozenset[str]] = frozenset({"amount"})


UTILITY_BILL_TRANSITIONS: dict[RecordAction, tuple[frozenset[Enum], Enum]] = {
    RecordAction.PAY: (
        frozenset({
            UtilityBillStatus.PENDING,
            UtilityBillStatus.PROCESSING,
            UtilityBillStatus.OVERDUE,
        }),
        UtilityBillStatus.PAID,
    ),
}

UTILITY_BILL_ROLES: dict[RecordAction, frozenset[Role]] = {
    RecordAction.PAY: frozenset({Role.ADMIN, Role.STATION_MANAGER}),
}


def stamp_utility_bill(
    record: UtilityBill,
    action: RecordAction,
    actor: str,
    at: datetime,
    **details: Any,
) -> UtilityBill:
    method = PaymentMethod.parse(details.get("payment_method") or "")
    return replace(
        record,
        status=UTILITY_BILL_TRANSITIONS[action][1],
        payment_method=method.value,
        paid_by=actor,
        paid_at=at,
    )


# =========================================================================
# Shared guard
# =========================================================================


def check_record_transition(
    record_type: str,
    record: Any,
    action: RecordAction,
    role: Role,
    transitions: dict[RecordAction, tuple[frozenset[Enum], Enum]],
    roles: dict[RecordAction, frozenset[Role]],
    *,
    reason: str | None = None,
) -> None:
    """Raise for an undefined action, a wrong status, a wrong role, or a
    rejection without a reason."""
    if action not in transitions or record.status not in transitions[action][0]:
        raise InvalidRecordTransitionError(
            record_type, record.id, action.value, record.status.value
        )
    allowed = roles[action]
    if role not in allowed:
        raise UnauthorizedTransitionError(
            action.value, role.value, tuple(sorted(r.value for r in allowed))
        )
    if action is RecordAction.REJECT and (reason is None or not reason.strip()):
        raise MissingRejectionReasonError(("reason",))
