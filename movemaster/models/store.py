"""
Store snapshot and read-side result models.

``Store`` holds the six entity lists. It is passed explicitly to every
query and mutation; there is no module-level store.
"""

from decimal import Decimal
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

from movemaster.models.entities import (
    DispatchAssignment,
    Driver,
    InventoryItem,
    Job,
    LedgerEntity,
    Receipt,
    Truck,
)
from movemaster.utils.money import ZERO


class Store(BaseModel):
    """The entity collections, in persisted order."""

    COLLECTIONS: ClassVar[tuple[str, ...]] = (
        "jobs",
        "receipts",
        "drivers",
        "trucks",
        "dispatch",
        "inventory",
    )

    jobs: list[Job] = Field(default_factory=list)
    receipts: list[Receipt] = Field(default_factory=list)
    drivers: list[Driver] = Field(default_factory=list)
    trucks: list[Truck] = Field(default_factory=list)
    dispatch: list[DispatchAssignment] = Field(default_factory=list)
    inventory: list[InventoryItem] = Field(default_factory=list)

    def collection(self, name: str) -> list[LedgerEntity]:
        if name not in self.COLLECTIONS:
            raise KeyError(f"Unknown collection: {name}")
        return getattr(self, name)

    def is_empty(self) -> bool:
        return all(not self.collection(name) for name in self.COLLECTIONS)

    def counts(self) -> dict[str, int]:
        return {name: len(self.collection(name)) for name in self.COLLECTIONS}

    def find(self, name: str, entity_id: str) -> Optional[LedgerEntity]:
        """Entity with ``entity_id`` in collection ``name``, or None."""
        if not entity_id:
            return None
        for entity in self.collection(name):
            if entity.id == entity_id:
                return entity
        return None


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class MonthTotals(BaseModel):
    """Revenue, expenses and net for one calendar month."""
    year: int
    month: int = Field(..., ge=1, le=12, description="Calendar month, 1-12")
    revenue: Decimal = ZERO
    expenses: Decimal = ZERO
    net: Decimal = ZERO


class CalendarMarkers(BaseModel):
    """
    Badge counts for one calendar day.

    ``job_count`` includes cancelled jobs; ``cancelled_excluded_job_count``
    does not.
    """
    job_count: int = 0
    cancelled_excluded_job_count: int = 0
    receipt_count: int = 0

    @property
    def has_jobs(self) -> bool:
        return self.cancelled_excluded_job_count > 0

    @property
    def has_receipts(self) -> bool:
        return self.receipt_count > 0


class DaySummary(BaseModel):
    """Everything the day workspace header shows for one date key."""
    date: str
    markers: CalendarMarkers
    revenue: Decimal = ZERO
    expenses: Decimal = ZERO
    net: Decimal = ZERO


class CalendarDay(BaseModel):
    """One filled cell of a month grid."""
    date: str
    day: int = Field(..., ge=1, le=31)
    markers: CalendarMarkers


class DoubleBooking(BaseModel):
    """A driver or truck referenced by more than one live job on a date."""
    date: str
    resource_type: str = Field(..., pattern="^(driver|truck)$")
    resource_id: str
    job_ids: list[str] = Field(default_factory=list)
