"""
Data Models Package

This package contains all Pydantic models used by Move-Master.
Every record entering the system passes through one of these models.
"""

from movemaster.models.entities import (
    DispatchAssignment,
    Driver,
    InventoryItem,
    Job,
    JobStatus,
    LedgerEntity,
    Receipt,
    ReceiptCategory,
    Truck,
    normalize_dispatch,
    normalize_driver,
    normalize_inventory_item,
    normalize_job,
    normalize_receipt,
    normalize_truck,
    utc_now,
)
from movemaster.models.store import (
    CalendarDay,
    CalendarMarkers,
    DaySummary,
    DoubleBooking,
    MonthTotals,
    Store,
)
from movemaster.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from movemaster.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Entities
    "DispatchAssignment",
    "Driver",
    "InventoryItem",
    "Job",
    "JobStatus",
    "LedgerEntity",
    "Receipt",
    "ReceiptCategory",
    "Truck",
    "normalize_dispatch",
    "normalize_driver",
    "normalize_inventory_item",
    "normalize_job",
    "normalize_receipt",
    "normalize_truck",
    "utc_now",
    # Store and results
    "CalendarDay",
    "CalendarMarkers",
    "DaySummary",
    "DoubleBooking",
    "MonthTotals",
    "Store",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
