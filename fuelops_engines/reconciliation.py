"""
fuelops_engines.reconciliation -- Daily sales derivation chain.

Responsibility:
    Fill the eight derived fields of an ``Entry`` from its inputs, in a
    fixed order, computing each one opportunistically: a field is set only
    when every field it depends on is set, and is cleared otherwise.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only ``fuelops_kernel.domain.entry`` and the tracer.

Invariants enforced:
    - Idempotence: ``derive_entry(derive_entry(e)) == derive_entry(e)``.
    - Derived values depend only on inputs present at call time; a value
      left over from an earlier derivation never survives the removal of
      one of its inputs.
    - No rounding inside the chain and no clamping of negatives (a
      negative ``difference_l`` or ``cash_to_bank`` is a shortage).
    - Status and lifecycle fields are never read or written.

Failure modes:
    None.  Missing inputs are not errors.

Usage:
    from fuelops_engines.reconciliation import derive_entry

    derived = derive_entry(entry)
    derived.cash_to_bank
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

from fuelops_kernel.domain.entry import Entry
from fuelops_engines.tracer import traced_engine


@dataclass(frozen=True)
class DerivationStep:
    """One row of the derivation table: ``target = formula(*requires)``."""

    target: str
    requires: tuple[str, ...]
    formula: Callable[..., float]
    expression: str


DERIVATION_STEPS: tuple[DerivationStep, ...] = (
    DerivationStep(
        "available_l",
        ("open_sl", "supply", "overage_shortage_l"),
        lambda open_sl, supply, overage: open_sl + supply + overage,
        "open_sl + supply + overage_shortage_l",
    ),
    DerivationStep(
        "check_l",
        ("available_l", "closing_sl"),
        lambda available, closing: available - closing,
        "available_l - closing_sl",
    ),
    DerivationStep(
        "sales_l",
        ("closing_sr", "open_sr", "return_tt"),
        lambda closing_sr, open_sr, return_tt: closing_sr - open_sr - return_tt,
        "closing_sr - open_sr - return_tt",
    ),
    DerivationStep(
        "difference_l",
        ("sales_l", "check_l"),
        lambda sales, check: sales - check,
        "sales_l - check_l",
    ),
    DerivationStep(
        "value",
        ("rate", "sales_l"),
        lambda rate, sales: rate * sales,
        "rate * sales_l",
    ),
    DerivationStep(
        "cash_sales",
        ("value", "credit_sales"),
        lambda value, credit: value - credit,
        "value - credit_sales",
    ),
    DerivationStep(
        "cash_available",
        ("cash_sales", "advances", "shortage_momo"),
        lambda cash_sales, advances, momo: cash_sales - advances - momo,
        "cash_sales - advances - shortage_momo",
    ),
    DerivationStep(
        "cash_to_bank",
        (
            "cash_available",
            "repayment_shortage_momo",
            "repayment_advances",
            "received_from_debtors",
        ),
        lambda available, repaid_momo, repaid_adv, debtors: (
            available + repaid_momo + repaid_adv + debtors
        ),
        "cash_available + repayment_shortage_momo + repayment_advances"
        " + received_from_debtors",
    ),
)


def derived_field_names() -> tuple[str, ...]:
    """Derived fields in derivation order."""
    return tuple(step.target for step in DERIVATION_STEPS)


@traced_engine("reconciliation", "1.0", fingerprint_fields=("entry",))
def derive_entry(entry: Entry) -> Entry:
    """Return ``entry`` with every derived field recomputed from its inputs.

    Each step reads the values produced by earlier steps in the same call,
    never the derived values the entry arrived with.
    """
    values: dict[str, float | None] = {}

    def lookup(name: str) -> float | None:
        if name in values:
            return values[name]
        return getattr(entry, name)

    for step in DERIVATION_STEPS:
        args = [lookup(name) for name in step.requires]
        if any(arg is None for arg in args):
            values[step.target] = None
        else:
            values[step.target] = step.formula(*args)

    return replace(entry, **values)
