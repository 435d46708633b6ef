"""
Pure domain layer.

Value objects and rules with NO dependencies on:
- ORM (SQLAlchemy)
- HTTP
- Configuration
- I/O (apart from SystemClock)

All domain objects are immutable.
"""

from fuelops_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fuelops_kernel.domain.entry import (
    DERIVED_FIELDS,
    INPUT_FIELDS,
    REFERENCE_RATES,
    Entry,
    EntryBuilder,
    EntryStatus,
    Product,
)
from fuelops_kernel.domain.lifecycle import (
    ENTRY_TRANSITIONS,
    TRANSITION_ROLES,
    EntryAction,
    apply_transition,
    check_transition,
)
from fuelops_kernel.domain.session import Role, UserSession

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Entry",
    "EntryBuilder",
    "EntryStatus",
    "Product",
    "INPUT_FIELDS",
    "DERIVED_FIELDS",
    "REFERENCE_RATES",
    "EntryAction",
    "ENTRY_TRANSITIONS",
    "TRANSITION_ROLES",
    "check_transition",
    "apply_transition",
    "Role",
    "UserSession",
]
