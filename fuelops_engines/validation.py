"""
fuelops_engines.validation -- Business-rule validator for daily sales entries.

Responsibility:
    Evaluate every rule against an entry and return the human-readable
    violations.  Being invalid is not exceptional; the validator returns
    messages and never raises.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The companion product's cash-to-bank figure is an argument; the
    validator never reads storage or the network to find it.

Invariants enforced:
    - Rules are independent: all are evaluated and all violations are
      reported, in a stable order (mandatory, stock, rate, readings, cash).
    - Zero is a present value for the mandatory check.
    - Range and reading rules are skipped when their inputs are absent
      (the mandatory rule already reports those).

Usage:
    from fuelops_engines.validation import validate_entry

    errors = validate_entry(entry, companion_cash_to_bank=12_000.0)
"""

from __future__ import annotations

from dataclasses import dataclass

from fuelops_kernel.domain.entry import Entry, Product, wire_name
from fuelops_engines.tracer import traced_engine


@dataclass(frozen=True)
class ProductPair:
    """Cash variance for ``designated`` is checked against the combined
    cash-to-bank of ``designated`` and ``companion``."""

    designated: Product
    companion: Product


@dataclass(frozen=True)
class ValidationRules:
    mandatory_fields: tuple[str, ...] = (
        "date",
        "product",
        "open_sl",
        "closing_sl",
        "open_sr",
        "closing_sr",
        "rate",
        "bank_lodgement",
    )
    min_stock_level: float = 0.0
    max_stock_level: float = 70000.0
    min_rate: float = 1.0
    max_rate: float = 50.0
    max_cash_variance: float = 100.0
    product_pairs: tuple[ProductPair, ...] = (
        ProductPair(designated=Product.DIESEL, companion=Product.SUPER),
    )

    def pair_for(self, product: Product | None) -> ProductPair | None:
        """The pair in which ``product`` is the designated product, if any."""
        for pair in self.product_pairs:
            if pair.designated is product:
                return pair
        return None


DEFAULT_RULES = ValidationRules()


@dataclass(frozen=True)
class ValidationReport:
    errors: tuple[str, ...]

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _num(value: float) -> str:
    # 70000.0 -> "70000", 1.5 -> "1.5"
    return f"{value:g}" if value != int(value) else str(int(value))


def _within(value: float, low: float, high: float) -> bool:
    return low <= value <= high


@traced_engine("validation", "1.0", fingerprint_fields=("entry", "companion_cash_to_bank"))
def validate_entry(
    entry: Entry,
    *,
    companion_cash_to_bank: float | None = None,
    rules: ValidationRules = DEFAULT_RULES,
) -> list[str]:
    """Return every violation for ``entry``; an empty list means valid."""
    errors: list[str] = []

    for name in rules.mandatory_fields:
        if getattr(entry, name) is None:
            errors.append(f"{wire_name(name)} is required")

    if entry.open_sl is not None and not _within(
        entry.open_sl, rules.min_stock_level, rules.max_stock_level
    ):
        errors.append(
            f"Opening stock must be between {_num(rules.min_stock_level)} "
            f"and {_num(rules.max_stock_level)} liters"
        )

    if entry.rate is not None and not _within(entry.rate, rules.min_rate, rules.max_rate):
        errors.append(
            f"Rate must be between ₵{_num(rules.min_rate)} and ₵{_num(rules.max_rate)}"
        )

    if (
        entry.open_sr is not None
        and entry.closing_sr is not None
        and entry.closing_sr <= entry.open_sr
    ):
        errors.append("Closing reading must be greater than opening reading")

    pair = rules.pair_for(entry.product)
    if (
        pair is not None
        and entry.cash_to_bank is not None
        and entry.bank_lodgement is not None
    ):
        expected = entry.cash_to_bank + (companion_cash_to_bank or 0.0)
        if abs(expected - entry.bank_lodgement) > rules.max_cash_variance:
            errors.append(
                f"Cash variance exceeds ₵{_num(rules.max_cash_variance)} limit "
                f"(Expected: ₵{expected:.2f})"
            )

    return errors


def check_entry(
    entry: Entry,
    *,
    companion_cash_to_bank: float | None = None,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationReport:
    """``validate_entry`` wrapped in a report object."""
    return ValidationReport(
        tuple(
            validate_entry(
                entry, companion_cash_to_bank=companion_cash_to_bank, rules=rules
            )
        )
    )
