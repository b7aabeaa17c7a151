"""Unit tests for domain error messages."""

from datetime import date
from decimal import Decimal

from rentledger.services.errors import (
    ExcessPayment,
    InvalidContractState,
    InvalidDate,
    LedgerError,
    MissingMethod,
    NotFound,
    OwnerResolutionWarning,
    RegenerationFailed,
    ScheduleWarning,
    ShareTotalWarning,
)


class TestLedgerErrors:
    """Messages name the rule and the values involved."""

    def test_excess_payment_message(self):
        error = ExcessPayment(Decimal("500"), Decimal("320"), scheduled_item_id=9)

        assert error.message == "payment amount 500.00 exceeds pending balance 320.00"
        assert error.code == "excess_payment"
        assert error.details["scheduled_item_id"] == 9
        assert isinstance(error, LedgerError)

    def test_invalid_date_message(self):
        error = InvalidDate(date(2025, 3, 2), date(2025, 3, 1))

        assert "2025-03-02" in str(error)
        assert "2025-03-01" in str(error)

    def test_missing_method_reason(self):
        error = MissingMethod("other", "payment method 'other' requires a detail")

        assert error.message == "payment method 'other' requires a detail (got 'other')"

    def test_not_found_names_tenant(self):
        assert NotFound("contract", 7, 2).message == "contract 7 not found for tenant 2"

    def test_invalid_contract_state(self):
        error = InvalidContractState(7, "active", "activate")

        assert error.message == "cannot activate contract 7 in status 'active'"

    def test_regeneration_failed_reports_rollback(self):
        error = RegenerationFailed(7, "boom")

        assert "rolled back" in error.message
        assert error.details == {"contract_id": 7, "reason": "boom"}


class TestScheduleWarnings:
    def test_warnings_are_user_warnings(self):
        warning = ShareTotalWarning(3, date(2025, 1, 1), Decimal("90"))

        assert isinstance(warning, ScheduleWarning)
        assert isinstance(warning, UserWarning)
        assert "90%" in warning.message

    def test_owner_resolution_warning_attributes(self):
        warning = OwnerResolutionWarning(owner_id=5, share_id=8, period_date=date(2025, 2, 1))

        assert warning.owner_id == 5
        assert "skipped lines for period 2025-02-01" in warning.message
