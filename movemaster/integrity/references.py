"""
Referential-Integrity Manager

Runs when a Driver, Truck or Job is deleted and scrubs the weak
references other records hold to it. Never deletes anything: dependents
are unassigned or unlinked, their ``updated_at`` is bumped, and they
stay in the store.

Each function returns the IDs it touched, keyed by collection name.
"""

from datetime import datetime
from typing import Optional

from movemaster.models.entities import utc_now
from movemaster.models.store import Store

Affected = dict[str, list[str]]


def _clear(entities, field: str, target_id: str, now: datetime) -> list[str]:
    touched = []
    for entity in entities:
        if getattr(entity, field) == target_id:
            setattr(entity, field, "")
            entity.touch(now)
            touched.append(entity.id)
    return touched


def unassign_driver(store: Store, driver_id: str, now: Optional[datetime] = None) -> Affected:
    """Clear ``driver_id`` on every Job and dispatch row that names it."""
    if not driver_id:
        return {"jobs": [], "dispatch": []}
    stamp = now or utc_now()
    return {
        "jobs": _clear(store.jobs, "driver_id", driver_id, stamp),
        "dispatch": _clear(store.dispatch, "driver_id", driver_id, stamp),
    }


def unassign_truck(store: Store, truck_id: str, now: Optional[datetime] = None) -> Affected:
    """Clear ``truck_id`` on every Job and dispatch row that names it."""
    if not truck_id:
        return {"jobs": [], "dispatch": []}
    stamp = now or utc_now()
    return {
        "jobs": _clear(store.jobs, "truck_id", truck_id, stamp),
        "dispatch": _clear(store.dispatch, "truck_id", truck_id, stamp),
    }


def unlink_job(store: Store, job_id: str, now: Optional[datetime] = None) -> Affected:
    """Clear ``job_id`` on every Receipt and dispatch row linked to the Job."""
    if not job_id:
        return {"receipts": [], "dispatch": []}
    stamp = now or utc_now()
    return {
        "receipts": _clear(store.receipts, "job_id", job_id, stamp),
        "dispatch": _clear(store.dispatch, "job_id", job_id, stamp),
    }
