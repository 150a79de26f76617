"""
Month export.

The core only filters a month's Jobs and Receipts and flattens them into
rows with a fixed column order. Turning rows into a download is the
caller's business; ``rows_to_csv`` is provided for callers that want CSV
text.
"""

import csv
import io
from typing import Any

from movemaster.models.entities import Job, Receipt
from movemaster.models.store import Store
from movemaster.queries.aggregation import in_month, month_number

JOB_COLUMNS = (
    "id", "date", "customer", "pickup", "dropoff",
    "status", "amount", "driverId", "truckId", "notes",
)
RECEIPT_COLUMNS = ("id", "date", "vendor", "category", "amount", "jobId", "notes")

EXPORT_KINDS = ("jobs", "receipts")


def month_jobs(store: Store, year: int, month_index: int) -> list[Job]:
    """
    Jobs dated in the month, in stored order.

    Raises:
        ValueError: If the zero-based ``month_index`` is outside 0-11
    """
    month = month_number(month_index)
    return [job for job in store.jobs if in_month(job.date, year, month)]


def month_receipts(store: Store, year: int, month_index: int) -> list[Receipt]:
    month = month_number(month_index)
    return [receipt for receipt in store.receipts if in_month(receipt.date, year, month)]


def job_export_rows(jobs: list[Job]) -> list[dict[str, str]]:
    return [_row(job.to_record(), JOB_COLUMNS, amount=f"{job.amount:.2f}") for job in jobs]


def receipt_export_rows(receipts: list[Receipt]) -> list[dict[str, str]]:
    return [
        _row(receipt.to_record(), RECEIPT_COLUMNS, amount=f"{receipt.amount:.2f}")
        for receipt in receipts
    ]


def _row(record: dict[str, Any], columns: tuple[str, ...], **overrides: str) -> dict[str, str]:
    record.update(overrides)
    return {column: str(record.get(column, "")) for column in columns}


def rows_to_csv(rows: list[dict[str, str]]) -> str:
    """
    Render rows as CSV text with a header line.

    Columns come from the first row. Returns an empty string when there is
    nothing to export.
    """
    if not rows:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0]), lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def export_filename(kind: str, year: int, month_index: int) -> str:
    """``jobs_2025_06.csv`` style name. ``month_index`` is 0-based."""
    if kind not in EXPORT_KINDS:
        raise ValueError(f"Unknown export kind: {kind}")
    return f"{kind}_{year:04d}_{month_number(month_index):02d}.csv"
