"""
Form Entry Validation

The entity normalizers never reject anything: they coerce. Forms need the
opposite, so this validator reports what is wrong with a submission,
field by field, before the submission is handed to the ledger.

Checks happen in two groups:

REQUIRED FIELDS AND FORMATS:
- Required text present (customer, vendor, name, label, item name)
- Dates are real ``YYYY-MM-DD`` calendar dates
- Amounts are numbers; receipts must be greater than zero
- Status is one of the known values

REFERENCES (only when a store is supplied):
- Linked job, driver and truck IDs exist
- Assigned drivers and trucks are active

IMPORTANT: Validation never fixes the submission. It reports issues and
the caller decides what to show.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from movemaster.models.entities import JobStatus
from movemaster.models.store import Store
from movemaster.models.validation import ValidationIssue, ValidationResult
from movemaster.utils.dates import split_date_key

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _field(form: Mapping[str, Any], *names: str) -> Any:
    """First non-None value among ``names`` (snake or camel spelling)."""
    for name in names:
        if form.get(name) is not None:
            return form[name]
    return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _number(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if "_" in text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


class EntryValidator:
    """
    Validates form submissions for every entity kind.

    Without a store only the submission itself is checked; with one,
    referenced IDs are checked too.
    """

    def __init__(self, store: Optional[Store] = None):
        """
        Initialize validator.

        Args:
            store: Store used for reference checks.
                   If None, reference checks are skipped.
        """
        self._store = store

    # -------------------------------------------------------------------------
    # Shared checks
    # -------------------------------------------------------------------------

    def _require_text(
        self,
        issues: list[ValidationIssue],
        field: str,
        value: Any,
        label: str,
    ) -> None:
        if not _text(value):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required.",
            ))

    def _check_date(self, issues: list[ValidationIssue], value: Any) -> None:
        text = _text(value)
        if not text:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required.",
            ))
        elif split_date_key(text) is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date ({text}) is not a valid calendar date",
                suggested_fix="Use the YYYY-MM-DD format",
            ))

    def _check_amount(
        self,
        issues: list[ValidationIssue],
        value: Any,
        positive: bool,
    ) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            if positive:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount must be greater than 0.",
                ))
            return

        number = _number(value)
        if number is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount ({value}) is not a number",
                suggested_fix="Enter digits only, e.g. 125.50",
            ))
        elif positive and number <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than 0.",
            ))
        elif number < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount cannot be negative.",
            ))

    def _check_reference(
        self,
        issues: list[ValidationIssue],
        field: str,
        collection: str,
        value: Any,
        require_active: bool = False,
    ) -> None:
        entity_id = _text(value)
        if self._store is None or not entity_id:
            return

        entity = self._store.find(collection, entity_id)
        if entity is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="unknown_reference",
                message=f"No record with id {entity_id} in {collection}",
                suggested_fix="Pick an existing entry or leave it blank",
            ))
        elif require_active and not getattr(entity, "active", True):
            # Warning only: assignment stays permitted
            issues.append(ValidationIssue(
                field=field,
                issue_type="inactive_reference",
                message=f"{collection[:-1].capitalize()} {entity_id} is marked inactive",
                severity="warning",
            ))

    # -------------------------------------------------------------------------
    # Per entity
    # -------------------------------------------------------------------------

    def validate_job(self, form: Mapping[str, Any]) -> ValidationResult:
        issues: list[ValidationIssue] = []

        self._check_date(issues, form.get("date"))
        self._require_text(issues, "customer", form.get("customer"), "Customer")
        self._check_amount(issues, form.get("amount"), positive=False)

        status = form.get("status")
        if status is not None and _text(status).lower() not in {s.value for s in JobStatus}:
            issues.append(ValidationIssue(
                field="status",
                issue_type="invalid_value",
                message=f"Unknown status: {status}",
                suggested_fix="Use scheduled, completed or cancelled",
            ))

        self._check_reference(
            issues, "driverId", "drivers",
            _field(form, "driverId", "driver_id"), require_active=True,
        )
        self._check_reference(
            issues, "truckId", "trucks",
            _field(form, "truckId", "truck_id"), require_active=True,
        )

        return ValidationResult(entity_type="job", issues=issues)

    def validate_receipt(self, form: Mapping[str, Any]) -> ValidationResult:
        issues: list[ValidationIssue] = []

        self._require_text(issues, "vendor", form.get("vendor"), "Vendor")
        self._check_date(issues, form.get("date"))
        self._check_amount(issues, form.get("amount"), positive=True)
        self._check_reference(issues, "jobId", "jobs", _field(form, "jobId", "job_id"))

        return ValidationResult(entity_type="receipt", issues=issues)

    def validate_driver(self, form: Mapping[str, Any]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_text(issues, "name", form.get("name"), "Driver name")
        return ValidationResult(entity_type="driver", issues=issues)

    def validate_truck(self, form: Mapping[str, Any]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_text(issues, "label", form.get("label"), "Truck label")
        return ValidationResult(entity_type="truck", issues=issues)

    def validate_dispatch(self, form: Mapping[str, Any]) -> ValidationResult:
        """Dispatch rows need a date and a job; times must be ``HH:MM``."""
        issues: list[ValidationIssue] = []

        self._check_date(issues, form.get("date"))
        job_id = _field(form, "jobId", "job_id")
        self._require_text(issues, "jobId", job_id, "Job")
        self._check_reference(issues, "jobId", "jobs", job_id)
        self._check_reference(
            issues, "driverId", "drivers",
            _field(form, "driverId", "driver_id"), require_active=True,
        )
        self._check_reference(
            issues, "truckId", "trucks",
            _field(form, "truckId", "truck_id"), require_active=True,
        )

        times = {}
        for field, names in (
            ("startTime", ("startTime", "start_time")),
            ("endTime", ("endTime", "end_time")),
        ):
            text = _text(_field(form, *names))
            if text and not _TIME_PATTERN.match(text):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_format",
                    message=f"Time ({text}) must be HH:MM",
                ))
            elif text:
                times[field] = text

        if len(times) == 2 and times["endTime"] <= times["startTime"]:
            issues.append(ValidationIssue(
                field="endTime",
                issue_type="inconsistent",
                message="End time is not after start time",
                severity="warning",
                suggested_fix="Please verify both times",
            ))

        return ValidationResult(entity_type="dispatch", issues=issues)

    def validate_inventory_item(self, form: Mapping[str, Any]) -> ValidationResult:
        """Items need a name; quantities must be non-negative numbers."""
        issues: list[ValidationIssue] = []

        self._require_text(issues, "name", form.get("name"), "Item name")

        for field, names, label in (
            ("qty", ("qty",), "Quantity"),
            ("lowStockAt", ("lowStockAt", "low_stock_at"), "Low-stock level"),
        ):
            value = _field(form, *names)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            number = _number(value)
            if number is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_format",
                    message=f"{label} ({value}) is not a number",
                ))
            elif number < 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=f"{label} cannot be negative.",
                ))

        if _text(form.get("date")):
            self._check_date(issues, form.get("date"))

        return ValidationResult(entity_type="inventory_item", issues=issues)

    # -------------------------------------------------------------------------

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per issue, errors first. Empty when there is nothing to say."""
        errors = [issue for issue in result.issues if issue.severity == "error"]
        others = [issue for issue in result.issues if issue.severity != "error"]

        lines = []
        for issue in errors + others:
            prefix = "Error" if issue.severity == "error" else "Check"
            line = f"{prefix}: {issue.message}"
            if issue.suggested_fix:
                line += f" ({issue.suggested_fix})"
            lines.append(line)
        return "\n".join(lines)
