"""Tests for form entry validation."""

import pytest

from movemaster.models import Store, normalize_driver, normalize_job
from movemaster.validation import EntryValidator


@pytest.fixture
def validator():
    return EntryValidator()


def fields_with_errors(result):
    return {issue.field for issue in result.issues if issue.severity == "error"}


class TestJobValidation:
    """Job form rules."""

    def test_valid_job(self, validator):
        result = validator.validate_job({"date": "2025-06-10", "customer": "Acme", "amount": "500"})
        assert result.is_valid
        assert result.issues == []

    def test_customer_and_date_required(self, validator):
        result = validator.validate_job({})
        assert fields_with_errors(result) == {"customer", "date"}
        assert "Customer is required." in result.messages_by_field()["customer"]

    def test_malformed_date(self, validator):
        result = validator.validate_job({"date": "2025-02-30", "customer": "Acme"})
        assert fields_with_errors(result) == {"date"}

    def test_unknown_status(self, validator):
        result = validator.validate_job({"date": "2025-06-10", "customer": "Acme", "status": "on hold"})
        assert fields_with_errors(result) == {"status"}

    def test_negative_amount(self, validator):
        result = validator.validate_job({"date": "2025-06-10", "customer": "Acme", "amount": -1})
        assert fields_with_errors(result) == {"amount"}


class TestReceiptValidation:
    """Receipt form rules."""

    def test_valid_receipt(self, validator):
        assert validator.validate_receipt({"vendor": "Shell", "date": "2025-06-10", "amount": 40}).is_valid

    @pytest.mark.parametrize("amount", [0, "0", -5, None, ""])
    def test_amount_must_be_positive(self, validator, amount):
        result = validator.validate_receipt({"vendor": "Shell", "date": "2025-06-10", "amount": amount})
        assert fields_with_errors(result) == {"amount"}
        assert result.messages_by_field()["amount"] == ["Amount must be greater than 0."]

    def test_non_numeric_amount(self, validator):
        result = validator.validate_receipt({"vendor": "Shell", "date": "2025-06-10", "amount": "forty"})
        assert result.issues[0].issue_type == "invalid_format"

    def test_vendor_required(self, validator):
        result = validator.validate_receipt({"vendor": "  ", "date": "2025-06-10", "amount": 5})
        assert fields_with_errors(result) == {"vendor"}


class TestRosterValidation:
    """Driver and truck form rules."""

    def test_driver_name_required(self, validator):
        result = validator.validate_driver({"phone": "555-0101"})
        assert result.messages_by_field() == {"name": ["Driver name is required."]}

    def test_truck_label_required(self, validator):
        result = validator.validate_truck({"plate": "ABC-123"})
        assert result.messages_by_field() == {"label": ["Truck label is required."]}


class TestReferenceChecks:
    """Checks that need a store."""

    @pytest.fixture
    def store(self):
        return Store(
            jobs=[normalize_job({"id": "job_1", "date": "2025-06-10"})],
            drivers=[normalize_driver({"id": "drv_off", "name": "Off Duty", "active": False})],
        )

    def test_unknown_job_reference(self, store):
        result = EntryValidator(store).validate_receipt(
            {"vendor": "Shell", "date": "2025-06-10", "amount": 5, "jobId": "job_missing"}
        )
        assert fields_with_errors(result) == {"jobId"}

    def test_inactive_driver_is_a_warning(self, store):
        result = EntryValidator(store).validate_job(
            {"date": "2025-06-10", "customer": "Acme", "driverId": "drv_off"}
        )
        assert result.is_valid
        assert result.issues[0].severity == "warning"

    def test_references_skipped_without_store(self, validator):
        result = validator.validate_receipt(
            {"vendor": "Shell", "date": "2025-06-10", "amount": 5, "jobId": "job_missing"}
        )
        assert result.is_valid


class TestDispatchValidation:
    """Dispatch row form rules."""

    def test_time_format(self, validator):
        result = validator.validate_dispatch(
            {"date": "2025-06-10", "jobId": "job_1", "startTime": "9am", "endTime": "12:00"}
        )
        assert fields_with_errors(result) == {"startTime"}

    def test_end_before_start_is_a_warning(self, validator):
        result = validator.validate_dispatch(
            {"date": "2025-06-10", "jobId": "job_1", "startTime": "14:00", "endTime": "09:00"}
        )
        assert result.is_valid
        assert result.issues[0].field == "endTime"

    def test_job_required(self, validator):
        result = validator.validate_dispatch({"date": "2025-06-10"})
        assert fields_with_errors(result) == {"jobId"}


class TestSummary:
    """User-facing summary text."""

    def test_errors_listed_first(self, validator):
        result = validator.validate_dispatch(
            {"date": "2025-06-10", "startTime": "14:00", "endTime": "09:00"}
        )
        lines = validator.get_user_friendly_summary(result).splitlines()
        assert lines[0] == "Error: Job is required."
        assert lines[1].startswith("Check: End time is not after start time")

    def test_empty_when_valid(self, validator):
        result = validator.validate_driver({"name": "Sam"})
        assert validator.get_user_friendly_summary(result) == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
