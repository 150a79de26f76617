"""Read-side queries: aggregation, inventory rollups and month export."""

from movemaster.queries.aggregation import (
    active_drivers,
    active_trucks,
    calendar_markers,
    daily_expense,
    daily_net,
    daily_revenue,
    day_summary,
    dispatch_on_date,
    double_bookings,
    in_month,
    jobs_on_date,
    month_calendar,
    month_number,
    month_to_date_totals,
    month_totals,
    receipts_on_date,
)
from movemaster.queries.export import (
    export_filename,
    job_export_rows,
    month_jobs,
    month_receipts,
    receipt_export_rows,
    rows_to_csv,
)
from movemaster.queries.inventory import (
    inventory_by_category,
    inventory_items,
    inventory_on_date,
    low_stock_items,
)

__all__ = [
    # Aggregation
    "active_drivers",
    "active_trucks",
    "calendar_markers",
    "daily_expense",
    "daily_net",
    "daily_revenue",
    "day_summary",
    "dispatch_on_date",
    "double_bookings",
    "in_month",
    "jobs_on_date",
    "month_calendar",
    "month_number",
    "month_to_date_totals",
    "month_totals",
    "receipts_on_date",
    # Export
    "export_filename",
    "job_export_rows",
    "month_jobs",
    "month_receipts",
    "receipt_export_rows",
    "rows_to_csv",
    # Inventory
    "inventory_by_category",
    "inventory_items",
    "inventory_on_date",
    "low_stock_items",
]
