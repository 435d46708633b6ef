"""
fuelops_engines.formatting -- Display formatting for money, volumes and dates.

Display-time rounding only.  Nothing in the derivation chain or the
validator calls these functions.
"""

from __future__ import annotations

import math
from datetime import date, datetime

from fuelops_kernel.domain.entry import EntryStatus

CURRENCY_SYMBOL = "₵"

_STATUS_PRIORITY: dict[EntryStatus, int] = {
    EntryStatus.DRAFT: 1,
    EntryStatus.SUBMITTED: 2,
    EntryStatus.VALIDATED: 3,
    EntryStatus.APPROVED: 4,
    EntryStatus.REJECTED: 5,
}


def _absent(value: float | None) -> bool:
    return value is None or math.isnan(value)


def format_currency(amount: float | None) -> str:
    """``1234.5`` -> ``"₵1,234.50"``; absent -> ``"₵0.00"``."""
    if _absent(amount):
        return f"{CURRENCY_SYMBOL}0.00"
    sign = "-" if amount < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(amount):,.2f}"


def format_liters(volume: float | None) -> str:
    """``17300`` -> ``"17,300L"``; up to three decimals, no trailing zeros."""
    if _absent(volume):
        return "0L"
    text = f"{volume:,.3f}".rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return f"{text}L"


def format_date(value: date | str | None) -> str:
    """``2025-09-05`` -> ``"5 Sep 2025"``; absent -> ``"N/A"``."""
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return "Invalid Date"
    return f"{value.day} {value.strftime('%b')} {value.year}"


def format_datetime(value: datetime | str | None) -> str:
    """``2024-12-15T18:30`` -> ``"15 Dec 2024, 18:30"``."""
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return "Invalid Date"
    return f"{format_date(value)}, {value.strftime('%H:%M')}"


def status_priority(status: EntryStatus | str) -> int:
    """Sort key for statuses in workflow order; unknown -> 0."""
    try:
        return _STATUS_PRIORITY[EntryStatus(status)]
    except ValueError:
        return 0
