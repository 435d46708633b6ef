"""
Property-based tests for the derivation engine.

Covers:
- Idempotence: deriving a derived entry changes nothing
- Derived values stored on the entry never feed the next derivation
- A derived field is absent exactly when one of its inputs is absent
- Cash-to-bank equals the closed-form reconciliation of the inputs
"""

from dataclasses import replace

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from fuelops_engines.reconciliation import DERIVATION_STEPS, derive_entry
from fuelops_kernel.domain.entry import DERIVED_FIELDS, INPUT_FIELDS, Entry

amounts = st.floats(min_value=0, max_value=1_000_000, allow_nan=False, allow_infinity=False)
signed_amounts = st.floats(
    min_value=-10_000, max_value=10_000, allow_nan=False, allow_infinity=False
)


def _input_strategy(name):
    base = signed_amounts if name == "overage_shortage_l" else amounts
    return st.one_of(st.none(), base)


entries = st.builds(
    Entry,
    **{name: _input_strategy(name) for name in INPUT_FIELDS},
)

complete_entries = st.builds(
    Entry,
    **{
        name: (signed_amounts if name == "overage_shortage_l" else amounts)
        for name in INPUT_FIELDS
    },
)


def _input_closure() -> dict[str, frozenset[str]]:
    """Map each derived field to the raw inputs it ultimately depends on."""
    closure: dict[str, frozenset[str]] = {}
    for step in DERIVATION_STEPS:
        inputs: set[str] = set()
        for name in step.requires:
            inputs |= closure.get(name, {name})
        closure[step.target] = frozenset(inputs)
    return closure


INPUT_CLOSURE = _input_closure()


class TestDerivationProperties:
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    @given(entry=entries)
    def test_idempotent(self, entry):
        once = derive_entry(entry)
        assert derive_entry(once) == once

    @settings(max_examples=200)
    @given(entry=entries, stale=amounts)
    def test_stale_derived_values_ignored(self, entry, stale):
        polluted = replace(entry, **{name: stale for name in DERIVED_FIELDS})
        assert derive_entry(polluted) == derive_entry(entry)

    @settings(max_examples=200)
    @given(entry=entries)
    def test_absent_exactly_when_an_input_is_absent(self, entry):
        derived = derive_entry(entry)
        for target, inputs in INPUT_CLOSURE.items():
            missing = any(getattr(entry, name) is None for name in inputs)
            assert (getattr(derived, target) is None) == missing, target

    @settings(max_examples=200)
    @given(entry=complete_entries)
    def test_cash_to_bank_closed_form(self, entry):
        derived = derive_entry(entry)
        sales = entry.closing_sr - entry.open_sr - entry.return_tt
        expected = (
            entry.rate * sales
            - entry.credit_sales
            - entry.advances
            - entry.shortage_momo
            + entry.repayment_shortage_momo
            + entry.repayment_advances
            + entry.received_from_debtors
        )
        assert derived.cash_to_bank == pytest.approx(expected, rel=1e-9, abs=1e-3)

    def test_closure_covers_every_derived_field(self):
        assert set(INPUT_CLOSURE) == set(DERIVED_FIELDS)
        assert INPUT_CLOSURE["sales_l"] == {"closing_sr", "open_sr", "return_tt"}
        assert "bank_lodgement" not in INPUT_CLOSURE["cash_to_bank"]
