"""
Tests for the daily sales derivation chain.

Covers:
- The worked Super example (every derived field)
- Opportunistic derivation with missing inputs
- Stale derived values are cleared when an input is removed
- Idempotence
- Negative results are kept (shortages)
- Lifecycle fields are untouched
"""

from dataclasses import replace
from datetime import date

import pytest

from fuelops_engines.reconciliation import (
    DERIVATION_STEPS,
    derive_entry,
    derived_field_names,
)
from fuelops_kernel.domain.entry import DERIVED_FIELDS, Entry, EntryStatus, Product


class TestReferenceExample:
    """The Super entry used throughout the operations manual."""

    def test_all_derived_fields(self, reference_entry):
        """Every derived field matches the worked example."""
        derived = derive_entry(reference_entry)

        assert derived.available_l == 23500
        assert derived.check_l == 17300
        assert derived.sales_l == 17300
        assert derived.difference_l == 0
        assert derived.value == pytest.approx(274205.0)
        assert derived.cash_sales == pytest.approx(260205.0)
        assert derived.cash_available == pytest.approx(253205.0)
        assert derived.cash_to_bank == pytest.approx(265705.0)

    def test_inputs_unchanged(self, reference_entry):
        """Derivation never changes an input."""
        derived = derive_entry(reference_entry)
        assert derived.input_values() == reference_entry.input_values()

    def test_input_entry_not_mutated(self, reference_entry):
        """The argument is a frozen value; a new entry is returned."""
        derived = derive_entry(reference_entry)
        assert derived is not reference_entry
        assert reference_entry.cash_to_bank is None


class TestPartialInputs:
    """A derived field is set only when all of its inputs are present."""

    def test_empty_entry_derives_nothing(self):
        derived = derive_entry(Entry())
        assert all(value is None for value in derived.derived_values().values())

    def test_stock_only(self):
        """Stock inputs alone give available and check, nothing downstream."""
        entry = Entry(open_sl=1000.0, supply=500.0, overage_shortage_l=0.0, closing_sl=300.0)
        derived = derive_entry(entry)

        assert derived.available_l == 1500
        assert derived.check_l == 1200
        assert derived.sales_l is None
        assert derived.difference_l is None
        assert derived.value is None

    def test_missing_rate_stops_at_sales(self, reference_entry):
        """Without a rate, the money half of the chain stays empty."""
        derived = derive_entry(replace(reference_entry, rate=None))

        assert derived.sales_l == 17300
        assert derived.difference_l == 0
        assert derived.value is None
        assert derived.cash_sales is None
        assert derived.cash_available is None
        assert derived.cash_to_bank is None

    def test_missing_opening_meter_skips_meter_side(self, reference_entry):
        """Stock side still derives; everything that needs sales_l stays empty."""
        derived = derive_entry(replace(reference_entry, open_sr=None))

        assert derived.available_l == 23500
        assert derived.check_l == 17300
        for name in (
            "sales_l",
            "difference_l",
            "value",
            "cash_sales",
            "cash_available",
            "cash_to_bank",
        ):
            assert getattr(derived, name) is None, name

    def test_missing_supply_blocks_available(self, reference_entry):
        derived = derive_entry(replace(reference_entry, supply=None))

        assert derived.available_l is None
        assert derived.check_l is None
        assert derived.difference_l is None
        # Meter side is independent of stock
        assert derived.sales_l == 17300

    def test_zero_is_present(self):
        """Zero counts as a value, not as absent."""
        entry = Entry(open_sl=0.0, supply=0.0, overage_shortage_l=0.0, closing_sl=0.0)
        derived = derive_entry(entry)
        assert derived.available_l == 0
        assert derived.check_l == 0


class TestStaleValues:
    """Derived values never outlive their inputs."""

    def test_removed_input_clears_downstream(self, reference_entry):
        derived = derive_entry(reference_entry)
        assert derived.cash_to_bank is not None

        rederived = derive_entry(replace(derived, credit_sales=None))

        assert rederived.value == pytest.approx(274205.0)
        assert rederived.cash_sales is None
        assert rederived.cash_available is None
        assert rederived.cash_to_bank is None

    def test_incoming_derived_values_are_ignored(self, reference_entry):
        """Bogus derived values on the input entry are recomputed."""
        tampered = replace(reference_entry, available_l=1.0, sales_l=2.0, cash_to_bank=3.0)
        derived = derive_entry(tampered)

        assert derived.available_l == 23500
        assert derived.sales_l == 17300
        assert derived.cash_to_bank == pytest.approx(265705.0)


class TestIdempotence:
    def test_derive_twice_equals_once(self, reference_entry):
        once = derive_entry(reference_entry)
        assert derive_entry(once) == once

    def test_partial_entry_idempotent(self):
        entry = Entry(open_sr=100.0, closing_sr=250.0, return_tt=10.0, rate=15.0)
        once = derive_entry(entry)
        assert derive_entry(once) == once


class TestSignsAndLifecycle:
    def test_negative_cash_to_bank_kept(self):
        """A shortage shows as a negative cash-to-bank, not clamped."""
        entry = Entry(
            open_sr=0.0,
            closing_sr=100.0,
            return_tt=0.0,
            rate=10.0,
            credit_sales=2000.0,
            advances=0.0,
            shortage_momo=0.0,
            repayment_shortage_momo=0.0,
            repayment_advances=0.0,
            received_from_debtors=0.0,
        )
        derived = derive_entry(entry)

        assert derived.value == 1000
        assert derived.cash_sales == -1000
        assert derived.cash_to_bank == -1000

    def test_negative_difference_kept(self, reference_entry):
        """Meter sales below stock movement give a negative difference."""
        derived = derive_entry(replace(reference_entry, closing_sr=143000.0))
        assert derived.difference_l == pytest.approx(-280.0)

    def test_overage_shortage_signed(self, reference_entry):
        derived = derive_entry(replace(reference_entry, overage_shortage_l=-200.0))
        assert derived.available_l == 23300

    def test_lifecycle_fields_untouched(self, submitted_entry):
        derived = derive_entry(submitted_entry)
        assert derived.status is EntryStatus.SUBMITTED
        assert derived.id == "DS-001"
        assert derived.entered_by == "Samuel Osei"


class TestDerivationTable:
    def test_derived_names_match_catalogue(self):
        assert derived_field_names() == DERIVED_FIELDS

    def test_steps_only_depend_on_earlier_steps_or_inputs(self):
        """Each step reads inputs or targets of earlier steps."""
        seen: set[str] = set()
        derived = set(DERIVED_FIELDS)
        for step in DERIVATION_STEPS:
            for name in step.requires:
                assert name not in derived or name in seen, step.target
            seen.add(step.target)

    def test_other_products_use_same_chain(self):
        entry = Entry(
            date=date(2024, 12, 15),
            product=Product.DIESEL,
            open_sr=500.0,
            closing_sr=700.0,
            return_tt=0.0,
            rate=17.2,
        )
        derived = derive_entry(entry)
        assert derived.sales_l == 200
        assert derived.value == pytest.approx(3440.0)
