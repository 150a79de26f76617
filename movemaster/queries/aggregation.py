"""
Aggregation Engine

Pure, read-only functions over a ``Store`` snapshot. None of them mutate
the store, and calling any of them twice gives the same answer.

Revenue counts every Job on a date except cancelled ones. Expenses count
every Receipt. Net is revenue minus expenses and may be negative.
Month membership is decided by parsing each record's date key and
comparing year and month; malformed keys are skipped.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Optional

from movemaster.models.entities import (
    DispatchAssignment,
    Driver,
    Job,
    Receipt,
    Truck,
)
from movemaster.models.store import (
    CalendarDay,
    CalendarMarkers,
    DaySummary,
    DoubleBooking,
    MonthTotals,
    Store,
)
from movemaster.utils.dates import month_grid, split_date_key
from movemaster.utils.money import ZERO, to_money


def _by_creation(entities):
    # sorted() is stable, so ties keep their stored order
    return sorted(entities, key=lambda entity: entity.created_at)


def _sum_amounts(entities: Iterable) -> Decimal:
    total = sum((entity.amount for entity in entities), ZERO)
    return to_money(total)


# =============================================================================
# PER-DAY
# =============================================================================

def jobs_on_date(store: Store, key: str) -> list[Job]:
    """Jobs whose date equals ``key``, oldest first."""
    return _by_creation(job for job in store.jobs if job.date == key)


def receipts_on_date(store: Store, key: str) -> list[Receipt]:
    """Receipts whose date equals ``key``, oldest first."""
    return _by_creation(receipt for receipt in store.receipts if receipt.date == key)


def dispatch_on_date(store: Store, key: str) -> list[DispatchAssignment]:
    """Dispatch rows for ``key`` ordered by start time."""
    rows = _by_creation(row for row in store.dispatch if row.date == key)
    return sorted(rows, key=lambda row: row.start_time)


def daily_revenue(store: Store, key: str) -> Decimal:
    """Sum of Job amounts on ``key``, cancelled Jobs excluded."""
    return _sum_amounts(
        job for job in store.jobs
        if job.date == key and job.counts_toward_revenue
    )


def daily_expense(store: Store, key: str) -> Decimal:
    return _sum_amounts(receipt for receipt in store.receipts if receipt.date == key)


def daily_net(store: Store, key: str) -> Decimal:
    return to_money(daily_revenue(store, key) - daily_expense(store, key))


def calendar_markers(store: Store, key: str) -> CalendarMarkers:
    """Badge counts for one day. Cancelled Jobs still count in ``job_count``."""
    jobs = [job for job in store.jobs if job.date == key]
    return CalendarMarkers(
        job_count=len(jobs),
        cancelled_excluded_job_count=sum(1 for job in jobs if job.counts_toward_revenue),
        receipt_count=sum(1 for receipt in store.receipts if receipt.date == key),
    )


def day_summary(store: Store, key: str) -> DaySummary:
    revenue = daily_revenue(store, key)
    expenses = daily_expense(store, key)
    return DaySummary(
        date=key,
        markers=calendar_markers(store, key),
        revenue=revenue,
        expenses=expenses,
        net=to_money(revenue - expenses),
    )


# =============================================================================
# PER-MONTH
# =============================================================================

def in_month(key: str, year: int, month: int, last_day: Optional[int] = None) -> bool:
    parts = split_date_key(key)
    if parts is None:
        return False
    entry_year, entry_month, entry_day = parts
    if (entry_year, entry_month) != (year, month):
        return False
    return last_day is None or entry_day <= last_day


def month_number(month_index: int) -> int:
    """Calendar month (1-12) for a zero-based ``month_index``."""
    if not 0 <= month_index <= 11:
        raise ValueError(f"month_index must be 0-11, got {month_index}")
    return month_index + 1


def _totals(store: Store, year: int, month: int, last_day: Optional[int] = None) -> MonthTotals:
    revenue = _sum_amounts(
        job for job in store.jobs
        if job.counts_toward_revenue and in_month(job.date, year, month, last_day)
    )
    expenses = _sum_amounts(
        receipt for receipt in store.receipts
        if in_month(receipt.date, year, month, last_day)
    )
    return MonthTotals(
        year=year,
        month=month,
        revenue=revenue,
        expenses=expenses,
        net=to_money(revenue - expenses),
    )


def month_totals(store: Store, year: int, month_index: int) -> MonthTotals:
    """
    Revenue, expenses and net for a calendar month.

    Args:
        store: Snapshot to aggregate
        year: Four-digit year
        month_index: Zero-based month (0 = January)

    Raises:
        ValueError: If ``month_index`` is outside 0-11
    """
    return _totals(store, year, month_number(month_index))


def month_to_date_totals(store: Store, as_of: date) -> MonthTotals:
    """Totals for ``as_of``'s month, counting only dates up to ``as_of``."""
    return _totals(store, as_of.year, as_of.month, last_day=as_of.day)


def month_calendar(store: Store, year: int, month_index: int) -> list[Optional[CalendarDay]]:
    """
    Sunday-first grid for a month.

    Leading ``None`` cells pad the first week; every other cell carries
    the day's markers.
    """
    month = month_number(month_index)
    cells: list[Optional[CalendarDay]] = []
    for key in month_grid(year, month):
        if key is None:
            cells.append(None)
            continue
        cells.append(CalendarDay(
            date=key,
            day=int(key[-2:]),
            markers=calendar_markers(store, key),
        ))
    return cells


# =============================================================================
# DISPATCH
# =============================================================================

def active_drivers(store: Store) -> list[Driver]:
    return [driver for driver in store.drivers if driver.active]


def active_trucks(store: Store) -> list[Truck]:
    return [truck for truck in store.trucks if truck.active]


def double_bookings(store: Store, key: str) -> list[DoubleBooking]:
    """
    Drivers and trucks assigned to more than one live Job on ``key``.

    Cancelled Jobs are ignored. Nothing prevents double-booking; this only
    reports it.
    """
    drivers: dict[str, list[str]] = {}
    trucks: dict[str, list[str]] = {}
    for job in jobs_on_date(store, key):
        if not job.counts_toward_revenue:
            continue
        if job.driver_id:
            drivers.setdefault(job.driver_id, []).append(job.id)
        if job.truck_id:
            trucks.setdefault(job.truck_id, []).append(job.id)

    bookings = []
    for resource_type, assigned in (("driver", drivers), ("truck", trucks)):
        for resource_id, job_ids in assigned.items():
            if len(job_ids) > 1:
                bookings.append(DoubleBooking(
                    date=key,
                    resource_type=resource_type,
                    resource_id=resource_id,
                    job_ids=job_ids,
                ))
    return bookings
