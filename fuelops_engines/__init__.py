"""
Module: fuelops_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for
    ``fuelops_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ``fuelops_kernel.domain`` and sibling engine modules.
    MUST NOT import ``fuelops_services`` or ``fuelops_config``.

Invariants enforced:
    - Purity: engines never read the clock, the network or the store.
      The companion cash-to-bank figure and the rules are arguments.
    - Float arithmetic with no rounding inside the chain; rounding happens
      only in ``formatting`` at display time.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``fuelops_engines.tracer``), emitting FUELOPS_ENGINE_TRACE records.
"""

from fuelops_engines.formatting import (
    format_currency,
    format_date,
    format_datetime,
    format_liters,
    status_priority,
)
from fuelops_engines.metrics import (
    FinancialMetrics,
    calculate_variance_percent,
    financial_metrics,
)
from fuelops_engines.reconciliation import (
    DERIVATION_STEPS,
    DerivationStep,
    derive_entry,
    derived_field_names,
)
from fuelops_engines.validation import (
    DEFAULT_RULES,
    ProductPair,
    ValidationReport,
    ValidationRules,
    check_entry,
    validate_entry,
)

__all__ = [
    "DERIVATION_STEPS",
    "DerivationStep",
    "derive_entry",
    "derived_field_names",
    "DEFAULT_RULES",
    "ProductPair",
    "ValidationReport",
    "ValidationRules",
    "check_entry",
    "validate_entry",
    "FinancialMetrics",
    "calculate_variance_percent",
    "financial_metrics",
    "format_currency",
    "format_liters",
    "format_date",
    "format_datetime",
    "status_priority",
]
