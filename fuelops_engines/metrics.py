"""
fuelops_engines.metrics -- Summary figures over lists of entries.

Responsibility:
    Percentage variance between an expected and an actual figure, and the
    financial summary shown above an entry list.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Absent values count as zero in sums; an entry missing
      ``cash_to_bank`` or ``bank_lodgement`` contributes zero variance.
    - ``calculate_variance_percent`` returns 0.0 instead of dividing by
      zero or propagating NaN.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from fuelops_kernel.domain.entry import Entry
from fuelops_engines.tracer import traced_engine


def _missing(value: float | None) -> bool:
    return value is None or math.isnan(value)


def calculate_variance_percent(expected: float | None, actual: float | None) -> float:
    """``(actual - expected) / expected * 100``; 0.0 when undefined."""
    if _missing(expected) or _missing(actual) or expected == 0:
        return 0.0
    return (actual - expected) / expected * 100


@dataclass(frozen=True)
class FinancialMetrics:
    total_value: float
    total_cash: float
    total_credit: float
    total_variance: float
    average_variance: float
    entry_count: int


@traced_engine("financial_metrics", "1.0")
def financial_metrics(entries: Iterable[Entry]) -> FinancialMetrics:
    """Totals over ``entries``; variance is ``|cash_to_bank - bank_lodgement|``."""
    items = list(entries)
    total_value = sum(e.value or 0.0 for e in items)
    total_cash = sum(e.cash_sales or 0.0 for e in items)
    total_credit = sum(e.credit_sales or 0.0 for e in items)
    total_variance = sum(
        abs(e.cash_to_bank - e.bank_lodgement)
        for e in items
        if e.cash_to_bank is not None and e.bank_lodgement is not None
    )
    return FinancialMetrics(
        total_value=total_value,
        total_cash=total_cash,
        total_credit=total_credit,
        total_variance=total_variance,
        average_variance=total_variance / len(items) if items else 0.0,
        entry_count=len(items),
    )
