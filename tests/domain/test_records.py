"""
Tests for price change, supply and utility bill records.

Covers:
- Wire mapping (including the supply ``mstatus`` key)
- Transition guards per record kind
- Stamping, supply variance, payment methods
"""

from datetime import datetime, timezone

import pytest

from fuelops_kernel.domain.records import (
    PRICE_CHANGE_ROLES,
    PRICE_CHANGE_TRANSITIONS,
    SUPPLY_ROLES,
    SUPPLY_TRANSITIONS,
    UTILITY_BILL_ROLES,
    UTILITY_BILL_TRANSITIONS,
    PaymentMethod,
    PriceChange,
    PriceChangeStatus,
    ProductSharingSupply,
    RecordAction,
    SupplyStatus,
    UtilityBill,
    UtilityBillStatus,
    check_record_transition,
    stamp_price_change,
    stamp_supply,
    stamp_utility_bill,
    supply_variance,
)
from fuelops_kernel.domain.session import Role
from fuelops_kernel.exceptions import (
    InvalidFieldValueError,
    InvalidRecordTransitionError,
    MissingRejectionReasonError,
    UnauthorizedTransitionError,
)

AT = datetime(2024, 12, 15, 18, 30, tzinfo=timezone.utc)


class TestPriceChange:
    def setup_method(self):
        self.record = PriceChange.from_wire(
            {
                "id": "PC-001",
                "fuelType": "Super",
                "currentPrice": "15.85",
                "newPrice": 16.10,
                "status": "pending",
                "requestedAt": "2024-12-14T09:00:00",
            }
        )

    def test_from_wire(self):
        assert self.record.id == "PC-001"
        assert self.record.current_price == 15.85
        assert self.record.status is PriceChangeStatus.PENDING
        assert self.record.requested_at == datetime(2024, 12, 14, 9, 0)

    def test_to_wire(self):
        payload = self.record.to_wire()
        assert payload["fuelType"] == "Super"
        assert payload["status"] == "PENDING"
        assert payload["requestedAt"] == "2024-12-14T09:00:00"
        assert "approvedBy" not in payload

    def test_approve_by_super_admin(self):
        check_record_transition(
            "price_change",
            self.record,
            RecordAction.APPROVE,
            Role.SUPER_ADMIN,
            PRICE_CHANGE_TRANSITIONS,
            PRICE_CHANGE_ROLES,
        )
        result = stamp_price_change(
            self.record, RecordAction.APPROVE, "Dr. Emmanuel Asante", AT, reason="ok"
        )
        assert result.status is PriceChangeStatus.APPROVED
        assert result.approved_at == AT
        assert result.approval_reason == "ok"

    def test_admin_cannot_approve(self):
        with pytest.raises(UnauthorizedTransitionError):
            check_record_transition(
                "price_change",
                self.record,
                RecordAction.APPROVE,
                Role.ADMIN,
                PRICE_CHANGE_TRANSITIONS,
                PRICE_CHANGE_ROLES,
            )

    def test_reject_needs_reason(self):
        with pytest.raises(MissingRejectionReasonError):
            check_record_transition(
                "price_change",
                self.record,
                RecordAction.REJECT,
                Role.SUPER_ADMIN,
                PRICE_CHANGE_TRANSITIONS,
                PRICE_CHANGE_ROLES,
                reason=" ",
            )

    def test_reject_stamps(self):
        result = stamp_price_change(
            self.record, RecordAction.REJECT, "Dr. Emmanuel Asante", AT, reason="Too high"
        )
        assert result.status is PriceChangeStatus.REJECTED
        assert result.rejected_by == "Dr. Emmanuel Asante"

    def test_terminal_status(self):
        approved = stamp_price_change(self.record, RecordAction.APPROVE, "x", AT)
        with pytest.raises(InvalidRecordTransitionError) as exc_info:
            check_record_transition(
                "price_change",
                approved,
                RecordAction.REJECT,
                Role.SUPER_ADMIN,
                PRICE_CHANGE_TRANSITIONS,
                PRICE_CHANGE_ROLES,
                reason="late",
            )
        assert exc_info.value.current_status == "APPROVED"

    def test_undefined_action(self):
        with pytest.raises(InvalidRecordTransitionError):
            check_record_transition(
                "price_change",
                self.record,
                RecordAction.PAY,
                Role.SUPER_ADMIN,
                PRICE_CHANGE_TRANSITIONS,
                PRICE_CHANGE_ROLES,
            )


class TestSupply:
    def setup_method(self):
        self.record = ProductSharingSupply(
            id="SUP-001",
            product="Diesel",
            qty=5000.0,
            station_id="accra-central",
            status=SupplyStatus.APPROVED,
        )

    def test_mstatus_preferred(self):
        record = ProductSharingSupply.from_wire(
            {"id": "S1", "mstatus": "RECEIVED", "status": "APPROVED", "qtyR": 4950}
        )
        assert record.status is SupplyStatus.RECEIVED
        assert record.qty_received == 4950.0

    def test_status_fallback(self):
        record = ProductSharingSupply.from_wire({"id": "S1", "status": "pending"})
        assert record.status is SupplyStatus.PENDING

    def test_unknown_status(self):
        with pytest.raises(InvalidFieldValueError):
            ProductSharingSupply.from_wire({"id": "S1", "mstatus": "LOST"})

    @pytest.mark.parametrize(
        "received, expected",
        [(5050.0, (50.0, None)), (4900.0, (None, 100.0)), (5000.0, (None, None))],
    )
    def test_variance(self, received, expected):
        assert supply_variance(5000.0, received) == expected

    def test_confirm_stamps_shortage(self):
        result = stamp_supply(
            self.record, RecordAction.CONFIRM, "Samuel Osei", AT, qty_received=4950, notes="leak"
        )
        assert result.status is SupplyStatus.CONFIRMED
        assert result.qty_received == 4950.0
        assert result.shortage == 50.0
        assert result.overage is None
        assert result.confirmed_by == "Samuel Osei"
        assert result.notes == "leak"

    @pytest.mark.parametrize("qty", [None, 0, -10])
    def test_confirm_requires_positive_quantity(self, qty):
        with pytest.raises(InvalidFieldValueError):
            stamp_supply(self.record, RecordAction.CONFIRM, "Samuel Osei", AT, qty_received=qty)

    def test_confirm_only_after_approval(self):
        pending = ProductSharingSupply(id="S2", status=SupplyStatus.PENDING)
        with pytest.raises(InvalidRecordTransitionError):
            check_record_transition(
                "product_sharing_supply",
                pending,
                RecordAction.CONFIRM,
                Role.STATION_MANAGER,
                SUPPLY_TRANSITIONS,
                SUPPLY_ROLES,
            )

    def test_manager_cannot_approve(self):
        pending = ProductSharingSupply(id="S2", status=SupplyStatus.PENDING)
        with pytest.raises(UnauthorizedTransitionError):
            check_record_transition(
                "product_sharing_supply",
                pending,
                RecordAction.APPROVE,
                Role.STATION_MANAGER,
                SUPPLY_TRANSITIONS,
                SUPPLY_ROLES,
            )

    def test_to_wire_uses_mstatus(self):
        assert self.record.to_wire()["mstatus"] == "APPROVED"


class TestUtilityBill:
    def setup_method(self):
        self.record = UtilityBill.from_wire(
            {"id": "UB-1", "utility": "Electricity", "amount": "1250.50", "status": "Overdue"}
        )

    def test_from_wire(self):
        assert self.record.amount == 1250.50
        assert self.record.status is UtilityBillStatus.OVERDUE

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.STATION_MANAGER])
    def test_pay_allowed(self, role):
        check_record_transition(
            "utility_bill",
            self.record,
            RecordAction.PAY,
            role,
            UTILITY_BILL_TRANSITIONS,
            UTILITY_BILL_ROLES,
        )

    def test_super_admin_cannot_pay(self):
        with pytest.raises(UnauthorizedTransitionError):
            check_record_transition(
                "utility_bill",
                self.record,
                RecordAction.PAY,
                Role.SUPER_ADMIN,
                UTILITY_BILL_TRANSITIONS,
                UTILITY_BILL_ROLES,
            )

    def test_pay_stamps(self):
        result = stamp_utility_bill(
            self.record, RecordAction.PAY, "Mary Asante", AT, payment_method="mobile_money"
        )
        assert result.status is UtilityBillStatus.PAID
        assert result.payment_method == "Mobile Money"
        assert result.paid_at == AT

    def test_paid_is_terminal(self):
        paid = stamp_utility_bill(
            self.record, RecordAction.PAY, "Mary Asante", AT, payment_method="Cash"
        )
        with pytest.raises(InvalidRecordTransitionError):
            check_record_transition(
                "utility_bill",
                paid,
                RecordAction.PAY,
                Role.ADMIN,
                UTILITY_BILL_TRANSITIONS,
                UTILITY_BILL_ROLES,
            )

    def test_unknown_payment_method(self):
        with pytest.raises(InvalidFieldValueError):
            PaymentMethod.parse("Bitcoin")
