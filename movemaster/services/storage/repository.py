"""
Persistent Store

Loads and saves the entity collections through a ``StorageBackend``.

Failure policy:
- Reading: a missing key, unreadable storage, invalid JSON or a payload
  that is not a JSON array all yield an empty collection. Elements that
  are not JSON objects are dropped. Everything else goes through the
  entity normalizer. Loading never raises.
- Writing: every collection is attempted independently. Failures are
  logged as ``save_failed`` audit events and reported through the
  return value, never raised. The in-memory store stays authoritative.
"""

import json
from typing import Any, Callable, Optional

import structlog

from movemaster.audit import AuditLogger
from movemaster.config import StorageSettings, get_settings
from movemaster.models.audit import AuditEventBuilder
from movemaster.models.entities import (
    LedgerEntity,
    normalize_dispatch,
    normalize_driver,
    normalize_inventory_item,
    normalize_job,
    normalize_receipt,
    normalize_truck,
)
from movemaster.models.store import Store
from movemaster.services.storage.interface import StorageBackend, StorageError
from movemaster.utils.dates import today_key

logger = structlog.get_logger(__name__)

NORMALIZERS: dict[str, Callable[[Any], LedgerEntity]] = {
    "jobs": normalize_job,
    "receipts": normalize_receipt,
    "drivers": normalize_driver,
    "trucks": normalize_truck,
    "dispatch": normalize_dispatch,
    "inventory": normalize_inventory_item,
}


class StoreRepository:
    """
    Reads and writes a ``Store`` through a storage backend.

    Each collection lives under its own key (see ``StorageSettings.key_for``).
    """

    def __init__(
        self,
        backend: StorageBackend,
        settings: Optional[StorageSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._backend = backend
        self._settings = settings or get_settings().storage
        self._audit_logger = audit_logger

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def key_for(self, collection: str) -> str:
        return self._settings.key_for(collection)

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load_all(self) -> Store:
        """Load every collection. Corrupt or missing data loads as empty."""
        store = Store(**{
            collection: self._load_collection(collection)
            for collection in Store.COLLECTIONS
        })
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.store_loaded(store.counts()))
        return store

    def _load_collection(self, collection: str) -> list[LedgerEntity]:
        key = self.key_for(collection)
        try:
            raw = self._backend.read(key)
        except StorageError as e:
            self._report_load_failure(collection, key, str(e))
            return []

        if raw is None or not raw.strip():
            return []

        try:
            payload = json.loads(raw)
        except ValueError as e:
            self._report_load_failure(collection, key, f"Invalid JSON: {e}")
            return []

        if not isinstance(payload, list):
            self._report_load_failure(
                collection, key, f"Expected a JSON array, got {type(payload).__name__}"
            )
            return []

        normalize = NORMALIZERS[collection]
        records = [item for item in payload if isinstance(item, dict)]
        if len(records) != len(payload):
            logger.warning(
                "skipped_non_object_records",
                collection=collection,
                skipped=len(payload) - len(records),
            )
        return [normalize(item) for item in records]

    def _report_load_failure(self, collection: str, key: str, message: str) -> None:
        if self._audit_logger:
            self._audit_logger.log_load_failed(collection, key, message)
        else:
            logger.warning("load_failed", collection=collection, key=key, error=message)

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save_all(self, store: Store) -> bool:
        """
        Serialize and write every collection.

        Returns:
            True if every collection was written
        """
        failed: list[str] = []
        errors: list[str] = []

        for collection in Store.COLLECTIONS:
            key = self.key_for(collection)
            records = [entity.to_record() for entity in store.collection(collection)]
            try:
                self._backend.write(key, json.dumps(records, ensure_ascii=False))
            except StorageError as e:
                failed.append(collection)
                errors.append(str(e))

        if failed:
            message = "; ".join(errors)
            if self._audit_logger:
                self._audit_logger.log_save_failed(failed, message)
            else:
                logger.error("save_failed", collections=failed, error=message)
            return False

        return True

    # -------------------------------------------------------------------------
    # Seed
    # -------------------------------------------------------------------------

    def seed_if_empty(self, store: Store, today: Optional[str] = None) -> bool:
        """
        Populate sample records when every collection is empty.

        Adds one driver, one truck, one assigned job, one receipt linked to
        it, a dispatch row and two inventory items, then saves.

        Returns:
            True if the store was seeded
        """
        if not store.is_empty():
            return False

        day = today or today_key()

        driver = normalize_driver({
            "name": "Sample Driver",
            "phone": "555-0101",
            "role": "Driver",
            "active": True,
        })
        truck = normalize_truck({
            "label": "Truck 12",
            "plate": "ABC-123",
            "capacity": "26ft",
            "active": True,
        })
        job = normalize_job({
            "date": day,
            "customer": "Sample Customer",
            "jobNumber": "J-1001",
            "pickup": "Pickup",
            "dropoff": "Dropoff",
            "amount": 1100,
            "status": "scheduled",
            "driverId": driver.id,
            "truckId": truck.id,
        })
        receipt = normalize_receipt({
            "date": day,
            "vendor": "Shell",
            "category": "Fuel",
            "amount": 68.42,
            "notes": "Fuel for job",
            "jobId": job.id,
        })
        dispatch = normalize_dispatch({
            "date": day,
            "jobId": job.id,
            "driverId": driver.id,
            "truckId": truck.id,
            "notes": "Morning move",
        })
        supplies = [
            normalize_inventory_item({
                "name": "Stretch wrap",
                "category": "Supplies",
                "qty": 12,
                "unit": "rolls",
                "location": "Warehouse",
                "condition": "New",
                "lowStockAt": 5,
                "notes": "For packing",
            }),
            normalize_inventory_item({
                "name": "Dolly straps",
                "category": "Equipment",
                "qty": 4,
                "unit": "sets",
                "location": "Truck 12",
                "condition": "Good",
                "lowStockAt": 2,
                "notes": "Check wear monthly",
            }),
        ]

        store.drivers.append(driver)
        store.trucks.append(truck)
        store.jobs.append(job)
        store.receipts.append(receipt)
        store.dispatch.append(dispatch)
        store.inventory.extend(supplies)

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.store_seeded(store.counts()))

        self.save_all(store)
        return True
