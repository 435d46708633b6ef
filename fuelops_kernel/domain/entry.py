"""
Daily sales entry domain types (``fuelops_kernel.domain.entry``).

Responsibility
--------------
Immutable value object for one product's reconciliation record at one
station on one date, together with the product and status enumerations,
the field catalogue (inputs, derived, lifecycle), the camelCase wire
mapping used by the backend, and a builder for field-by-field editing.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, services, or configuration.

Invariants enforced
-------------------
* Derived fields are never settable through ``with_fields`` or the
  builder; only the reconciliation engine fills them.
* ``status`` and the lifecycle stamps are never settable through
  ``with_fields`` or the builder; only lifecycle transitions change them.
* Unknown field names are rejected at the boundary
  (``UnknownEntryFieldError``).
* Numeric inputs are floats; absent is ``None``; zero is present.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any

from fuelops_kernel.exceptions import (
    InvalidFieldValueError,
    ReadOnlyFieldError,
    UnknownEntryFieldError,
    UnknownProductError,
)


# =========================================================================
# Enumerations
# =========================================================================


class Product(str, Enum):
    """Fuel products sold at a station."""

    SUPER = "Super"
    REGULAR = "Regular"
    DIESEL = "Diesel"
    GAS = "Gas"
    KEROSENE = "Kerosene"

    @classmethod
    def parse(cls, value: "str | Product") -> "Product":
        """Accept canonical names and legacy codes, case-insensitively."""
        if isinstance(value, Product):
            return value
        text = str(value).strip()
        upper = text.upper()
        if upper in _LEGACY_ALIASES:
            return _LEGACY_ALIASES[upper]
        for member in cls:
            if member.value.upper() == upper:
                return member
        raise UnknownProductError(text)

    @property
    def legacy_code(self) -> str | None:
        for code, member in _LEGACY_ALIASES.items():
            if member is self:
                return code
        return None


_LEGACY_ALIASES: dict[str, Product] = {
    "PMS": Product.SUPER,
    "AGO": Product.DIESEL,
    "LPG": Product.GAS,
}


class EntryStatus(str, Enum):
    """Entry lifecycle states."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    VALIDATED = "VALIDATED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Published reference rates (GH₵ per litre), December 2024.
REFERENCE_RATES: dict[Product, float] = {
    Product.SUPER: 15.85,
    Product.REGULAR: 15.45,
    Product.DIESEL: 17.20,
    Product.GAS: 13.90,
    Product.KEROSENE: 14.30,
}


# =========================================================================
# Field catalogue
# =========================================================================

IDENTITY_FIELDS: tuple[str, ...] = (
    "id",
    "date",
    "product",
    "station_id",
    "station_name",
)

INPUT_FIELDS: tuple[str, ...] = (
    "open_sl",
    "supply",
    "overage_shortage_l",
    "closing_sl",
    "open_sr",
    "closing_sr",
    "return_tt",
    "rate",
    "credit_sales",
    "advances",
    "shortage_momo",
    "repayment_shortage_momo",
    "repayment_advances",
    "received_from_debtors",
    "bank_lodgement",
)

# Inputs that may legitimately be negative.
SIGNED_INPUT_FIELDS: frozenset[str] = frozenset({"overage_shortage_l"})

# Inputs sent as 0 when left blank on submission.
OPTIONAL_ZERO_DEFAULT_FIELDS: tuple[str, ...] = (
    "supply",
    "overage_shortage_l",
    "return_tt",
    "credit_sales",
    "advances",
    "shortage_momo",
    "repayment_shortage_momo",
    "repayment_advances",
    "received_from_debtors",
)

DERIVED_FIELDS: tuple[str, ...] = (
    "available_l",
    "check_l",
    "sales_l",
    "difference_l",
    "value",
    "cash_sales",
    "cash_available",
    "cash_to_bank",
)

LIFECYCLE_FIELDS: tuple[str, ...] = (
    "status",
    "entered_by",
    "entered_at",
    "submitted_at",
    "validated_by",
    "validated_at",
    "approved_by",
    "approved_at",
    "rejected_by",
    "rejected_at",
    "rejection_reason",
    "rejection_comments",
    "edit_requested",
    "edit_requested_by",
    "edit_requested_at",
    "edit_request_reason",
)

EDITABLE_FIELDS: frozenset[str] = frozenset(
    IDENTITY_FIELDS + INPUT_FIELDS + ("notes",)
)

_TIMESTAMP_FIELDS: frozenset[str] = frozenset(
    name for name in LIFECYCLE_FIELDS if name.endswith("_at")
)

# snake_case attribute -> backend camelCase key
WIRE_NAMES: dict[str, str] = {
    "id": "id",
    "date": "date",
    "product": "product",
    "station_id": "stationId",
    "station_name": "stationName",
    "open_sl": "openSL",
    "supply": "supply",
    "overage_shortage_l": "overageShortageL",
    "closing_sl": "closingSL",
    "open_sr": "openSR",
    "closing_sr": "closingSR",
    "return_tt": "returnTT",
    "rate": "rate",
    "credit_sales": "creditSales",
    "advances": "advances",
    "shortage_momo": "shortageMomo",
    "repayment_shortage_momo": "repaymentShortageMomo",
    "repayment_advances": "repaymentAdvances",
    "received_from_debtors": "receivedFromDebtors",
    "bank_lodgement": "bankLodgement",
    "notes": "notes",
    "available_l": "availableL",
    "check_l": "checkL",
    "sales_l": "salesL",
    "difference_l": "differenceL",
    "value": "value",
    "cash_sales": "cashSales",
    "cash_available": "cashAvailable",
    "cash_to_bank": "cashToBank",
    "status": "status",
    "entered_by": "enteredBy",
    "entered_at": "enteredAt",
    "submitted_at": "submittedAt",
    "validated_by": "validatedBy",
    "validated_at": "validatedAt",
    "approved_by": "approvedBy",
    "approved_at": "approvedAt",
    "rejected_by": "rejectedBy",
    "rejected_at": "rejectedAt",
    "rejection_reason": "rejectionReason",
    "rejection_comments": "rejectionComments",
    "edit_requested": "editRequested",
    "edit_requested_by": "editRequestedBy",
    "edit_requested_at": "editRequestedAt",
    "edit_request_reason": "editRequestReason",
}

_ATTRIBUTE_BY_WIRE_NAME: dict[str, str] = {v: k for k, v in WIRE_NAMES.items()}


def wire_name(field_name: str) -> str:
    """Backend key for an attribute name."""
    try:
        return WIRE_NAMES[field_name]
    except KeyError:
        raise UnknownEntryFieldError(field_name) from None


def attribute_name(name: str) -> str:
    """Resolve either a snake_case attribute or a camelCase wire key."""
    if name in WIRE_NAMES:
        return name
    if name in _ATTRIBUTE_BY_WIRE_NAME:
        return _ATTRIBUTE_BY_WIRE_NAME[name]
    raise UnknownEntryFieldError(name)


# =========================================================================
# Coercion helpers
# =========================================================================


def coerce_number(field_name: str, value: Any) -> float | None:
    """Convert a form value to ``float``; blank clears the field.

    Raises:
        InvalidFieldValueError: non-numeric text, booleans, NaN/inf, or a
            negative value for an unsigned input.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidFieldValueError(field_name, value)
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise InvalidFieldValueError(field_name, value) from None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise InvalidFieldValueError(field_name, value)

    if math.isnan(number) or math.isinf(number):
        raise InvalidFieldValueError(field_name, value, "not a finite number")
    if number < 0 and field_name not in SIGNED_INPUT_FIELDS:
        raise InvalidFieldValueError(field_name, value, "must not be negative")
    return number


def _coerce_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidFieldValueError("date", value, "not an ISO date") from None


def _coerce_timestamp(field_name: str, value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise InvalidFieldValueError(field_name, value, "not an ISO timestamp") from None


def _coerce_wire_number(field_name: str, value: Any) -> float | None:
    # Server data is trusted for sign; only shape is checked.
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidFieldValueError(field_name, value)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidFieldValueError(field_name, value) from None


# =========================================================================
# Entry
# =========================================================================


@dataclass(frozen=True)
class Entry:
    """One product's daily reconciliation record.  Immutable.

    Every attribute is optional; ``None`` means "absent".  Use
    ``with_fields`` or ``EntryBuilder`` for user edits and
    ``fuelops_engines.reconciliation.derive_entry`` for derived values.
    """

    # Identity
    id: str | None = None
    date: date | None = None
    product: Product | None = None
    station_id: str | None = None
    station_name: str | None = None

    # Inputs
    open_sl: float | None = None
    supply: float | None = None
    overage_shortage_l: float | None = None
    closing_sl: float | None = None
    open_sr: float | None = None
    closing_sr: float | None = None
    return_tt: float | None = None
    rate: float | None = None
    credit_sales: float | None = None
    advances: float | None = None
    shortage_momo: float | None = None
    repayment_shortage_momo: float | None = None
    repayment_advances: float | None = None
    received_from_debtors: float | None = None
    bank_lodgement: float | None = None
    notes: str | None = None

    # Derived
    available_l: float | None = None
    check_l: float | None = None
    sales_l: float | None = None
    difference_l: float | None = None
    value: float | None = None
    cash_sales: float | None = None
    cash_available: float | None = None
    cash_to_bank: float | None = None

    # Lifecycle
    status: EntryStatus = EntryStatus.DRAFT
    entered_by: str | None = None
    entered_at: datetime | None = None
    submitted_at: datetime | None = None
    validated_by: str | None = None
    validated_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    rejection_comments: str | None = None
    edit_requested: bool = False
    edit_requested_by: str | None = None
    edit_requested_at: datetime | None = None
    edit_request_reason: str | None = None

    def with_fields(self, **changes: Any) -> "Entry":
        """Return a copy with user-editable fields changed.

        Keys may be snake_case attributes or camelCase wire keys.  Values
        are coerced the same way the builder coerces them.

        Raises:
            UnknownEntryFieldError: unknown field name.
            ReadOnlyFieldError: derived or lifecycle field.
            InvalidFieldValueError: value cannot be coerced.
        """
        normalized = {
            name: _coerce_editable(name, value)
            for name, value in (
                (_editable_name(raw), value) for raw, value in changes.items()
            )
        }
        return replace(self, **normalized)

    def get(self, name: str) -> Any:
        return getattr(self, attribute_name(name))

    def is_set(self, name: str) -> bool:
        return self.get(name) is not None

    def input_values(self) -> dict[str, float | None]:
        return {name: getattr(self, name) for name in INPUT_FIELDS}

    def derived_values(self) -> dict[str, float | None]:
        return {name: getattr(self, name) for name in DERIVED_FIELDS}

    # -- wire mapping --------------------------------------------------------

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Entry":
        """Build from a backend JSON object.  Unknown keys are ignored."""
        values: dict[str, Any] = {}
        for key, raw in data.items():
            name = _ATTRIBUTE_BY_WIRE_NAME.get(key)
            if name is None or raw is None:
                continue
            if name == "date":
                values[name] = _coerce_date(raw)
            elif name == "product":
                values[name] = Product.parse(raw)
            elif name == "status":
                values[name] = EntryStatus(str(raw).upper())
            elif name == "edit_requested":
                values[name] = bool(raw)
            elif name in _TIMESTAMP_FIELDS:
                values[name] = _coerce_timestamp(name, raw)
            elif name in INPUT_FIELDS or name in DERIVED_FIELDS:
                values[name] = _coerce_wire_number(name, raw)
            else:
                values[name] = str(raw)
        return cls(**values)

    def to_wire(self, *, include_absent: bool = False) -> dict[str, Any]:
        """Serialize to the backend's camelCase JSON shape."""
        payload: dict[str, Any] = {}
        for f in fields(self):
            val = getattr(self, f.name)
            if val is None and not include_absent:
                continue
            if isinstance(val, Enum):
                val = val.value
            elif isinstance(val, (datetime, date)):
                val = val.isoformat()
            payload[WIRE_NAMES[f.name]] = val
        return payload


def _editable_name(raw: str) -> str:
    name = attribute_name(raw)
    if name in DERIVED_FIELDS:
        raise ReadOnlyFieldError(name, "derived")
    if name in LIFECYCLE_FIELDS:
        raise ReadOnlyFieldError(name, "lifecycle")
    return name


def _coerce_editable(name: str, value: Any) -> Any:
    if name in INPUT_FIELDS:
        return coerce_number(name, value)
    if name == "date":
        return _coerce_date(value)
    if name == "product":
        if value is None or value == "":
            return None
        return Product.parse(value)
    if value is None:
        return None
    return str(value)


# =========================================================================
# Builder
# =========================================================================


class EntryBuilder:
    """Field-by-field builder for a form session.

    Holds only editable values; ``build()`` produces an ``Entry`` carrying
    the lifecycle fields of the entry it was seeded from.
    """

    def __init__(self, seed: Entry | None = None):
        self._seed = seed or Entry()
        self._values: dict[str, Any] = {
            name: getattr(self._seed, name) for name in EDITABLE_FIELDS
        }

    def set(self, name: str, value: Any) -> "EntryBuilder":
        attr = _editable_name(name)
        self._values[attr] = _coerce_editable(attr, value)
        return self

    def unset(self, name: str) -> "EntryBuilder":
        attr = _editable_name(name)
        self._values[attr] = None
        return self

    def update(self, **changes: Any) -> "EntryBuilder":
        for name, value in changes.items():
            self.set(name, value)
        return self

    def get(self, name: str) -> Any:
        return self._values[_editable_name(name)]

    def build(self) -> Entry:
        return replace(self._seed, **self._values)
