"""
Ledger: the mutation API for Move-Master.

Every create, update and delete goes through ``Ledger``:
1. The change is applied to the in-memory ``Store``
2. Deletes run the referential-integrity scrub (never a cascade)
3. The change is audited
4. The whole store is saved

A failed save never undoes step 1 and never raises. The outcome is kept
in ``last_save_ok`` and logged as a ``save_failed`` audit event.

Not-found is a sentinel, not an exception: updates return None and
deletes return False.
"""

from typing import Any, Callable, Optional, Union

from movemaster.audit import AuditLogger, configure_logging
from movemaster.config import Settings, get_settings
from movemaster.integrity import unassign_driver, unassign_truck, unlink_job
from movemaster.models.audit import AuditEventBuilder
from movemaster.models.entities import (
    DispatchAssignment,
    Driver,
    InventoryItem,
    Job,
    JobStatus,
    LedgerEntity,
    Receipt,
    Truck,
    normalize_dispatch,
    normalize_driver,
    normalize_inventory_item,
    normalize_job,
    normalize_receipt,
    normalize_truck,
    utc_now,
)
from movemaster.models.store import Store
from movemaster.services.storage import (
    JsonFileStorage,
    StorageBackend,
    StoreRepository,
)
from movemaster.utils.ids import new_id

# entity type -> (collection, normalizer)
ENTITY_KINDS: dict[str, tuple[str, Callable[[Any], LedgerEntity]]] = {
    "job": ("jobs", normalize_job),
    "receipt": ("receipts", normalize_receipt),
    "driver": ("drivers", normalize_driver),
    "truck": ("trucks", normalize_truck),
    "dispatch": ("dispatch", normalize_dispatch),
    "inventory_item": ("inventory", normalize_inventory_item),
}


class Ledger:
    """
    Owns one ``Store`` and is the only thing that mutates it.

    Args:
        store: The store to manage
        repository: Where to persist after each mutation.
                    If None, changes live in memory only.
        audit_logger: Audit sink. A local-only logger is created if omitted.
    """

    def __init__(
        self,
        store: Optional[Store] = None,
        repository: Optional[StoreRepository] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store if store is not None else Store()
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()
        self._last_save_ok = True

    @property
    def store(self) -> Store:
        return self._store

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def last_save_ok(self) -> bool:
        """Whether the most recent save reached durable storage."""
        return self._last_save_ok

    # -------------------------------------------------------------------------
    # Generic operations
    # -------------------------------------------------------------------------

    def _persist(self) -> bool:
        if self._repository is None:
            return True
        self._last_save_ok = self._repository.save_all(self._store)
        return self._last_save_ok

    def get(self, entity_type: str, entity_id: str) -> Optional[LedgerEntity]:
        collection, _ = ENTITY_KINDS[entity_type]
        return self._store.find(collection, entity_id)

    def create(self, entity_type: str, partial: Optional[dict[str, Any]] = None) -> LedgerEntity:
        """
        Normalize ``partial`` and add it to the store.

        A supplied ID is kept unless another record in the collection
        already uses it, in which case a fresh one is assigned.
        """
        collection, normalize = ENTITY_KINDS[entity_type]
        entity = normalize(partial)
        if self._store.find(collection, entity.id) is not None:
            entity.id = new_id(type(entity).id_kind)

        self._store.collection(collection).append(entity)
        details = {"date": entity.date} if hasattr(entity, "date") else None
        self._audit_logger.log_created(entity_type, entity.id, details)
        self._persist()
        return entity

    def update(
        self,
        entity_type: str,
        entity_id: str,
        patch: Optional[dict[str, Any]] = None,
    ) -> Optional[LedgerEntity]:
        """
        Apply ``patch`` in place and bump ``updated_at``.

        Returns:
            The updated entity, or None if no entity has ``entity_id``
        """
        entity = self.get(entity_type, entity_id)
        if entity is None:
            return None

        revised = entity.with_changes(patch)
        changed = [
            name for name in type(entity).model_fields
            if name != "updated_at" and getattr(entity, name) != getattr(revised, name)
        ]
        entity.apply(revised)
        entity.touch()

        self._audit_logger.log_updated(entity_type, entity.id, changed)
        self._persist()
        return entity

    def delete(self, entity_type: str, entity_id: str) -> bool:
        """
        Remove an entity and unlink everything that referenced it.

        Returns:
            True if something was deleted
        """
        collection, _ = ENTITY_KINDS[entity_type]
        entity = self._store.find(collection, entity_id)
        if entity is None:
            return False

        items = self._store.collection(collection)
        items[:] = [item for item in items if item.id != entity_id]

        now = utc_now()
        if entity_type == "driver":
            affected = unassign_driver(self._store, entity_id, now)
        elif entity_type == "truck":
            affected = unassign_truck(self._store, entity_id, now)
        elif entity_type == "job":
            affected = unlink_job(self._store, entity_id, now)
        else:
            affected = {}

        self._audit_logger.log_deleted(entity_type, entity_id)
        self._audit_logger.log_unlinked(entity_type, entity_id, affected)
        self._persist()
        return True

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.get("job", job_id)

    def create_job(self, partial: Optional[dict[str, Any]] = None) -> Job:
        return self.create("job", partial)

    def update_job(self, job_id: str, patch: Optional[dict[str, Any]] = None) -> Optional[Job]:
        return self.update("job", job_id, patch)

    def delete_job(self, job_id: str) -> bool:
        """Delete a Job. Linked receipts and dispatch rows are unlinked, not deleted."""
        return self.delete("job", job_id)

    def set_job_status(self, job_id: str, status: Union[JobStatus, str]) -> Optional[Job]:
        """Any status may move to any other; there is no workflow."""
        value = status.value if isinstance(status, JobStatus) else status
        return self.update_job(job_id, {"status": value})

    def assign_job(
        self,
        job_id: str,
        driver_id: Optional[str] = None,
        truck_id: Optional[str] = None,
    ) -> Optional[Job]:
        """
        Set who and what serves a Job.

        ``None`` leaves a side unchanged; an empty string unassigns it.
        Double-booking is allowed.

        Returns:
            The Job, or None if the Job or a named driver/truck is missing
        """
        job = self.get_job(job_id)
        if job is None:
            return None
        if driver_id and self._store.find("drivers", driver_id) is None:
            return None
        if truck_id and self._store.find("trucks", truck_id) is None:
            return None

        patch = {}
        if driver_id is not None:
            patch["driver_id"] = driver_id
        if truck_id is not None:
            patch["truck_id"] = truck_id

        job.apply(job.with_changes(patch))
        job.touch()

        self._audit_logger.log(
            AuditEventBuilder.job_assigned(job.id, job.driver_id, job.truck_id)
        )
        self._persist()
        return job

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        return self.get("receipt", receipt_id)

    def create_receipt(self, partial: Optional[dict[str, Any]] = None) -> Receipt:
        return self.create("receipt", partial)

    def update_receipt(
        self, receipt_id: str, patch: Optional[dict[str, Any]] = None
    ) -> Optional[Receipt]:
        return self.update("receipt", receipt_id, patch)

    def delete_receipt(self, receipt_id: str) -> bool:
        return self.delete("receipt", receipt_id)

    # -------------------------------------------------------------------------
    # Drivers
    # -------------------------------------------------------------------------

    def get_driver(self, driver_id: str) -> Optional[Driver]:
        return self.get("driver", driver_id)

    def create_driver(self, partial: Optional[dict[str, Any]] = None) -> Driver:
        return self.create("driver", partial)

    def update_driver(
        self, driver_id: str, patch: Optional[dict[str, Any]] = None
    ) -> Optional[Driver]:
        return self.update("driver", driver_id, patch)

    def delete_driver(self, driver_id: str) -> bool:
        """Delete a Driver and unassign it from every Job and dispatch row."""
        return self.delete("driver", driver_id)

    # -------------------------------------------------------------------------
    # Trucks
    # -------------------------------------------------------------------------

    def get_truck(self, truck_id: str) -> Optional[Truck]:
        return self.get("truck", truck_id)

    def create_truck(self, partial: Optional[dict[str, Any]] = None) -> Truck:
        return self.create("truck", partial)

    def update_truck(
        self, truck_id: str, patch: Optional[dict[str, Any]] = None
    ) -> Optional[Truck]:
        return self.update("truck", truck_id, patch)

    def delete_truck(self, truck_id: str) -> bool:
        """Delete a Truck and unassign it from every Job and dispatch row."""
        return self.delete("truck", truck_id)

    # -------------------------------------------------------------------------
    # Dispatch rows
    # -------------------------------------------------------------------------

    def get_dispatch(self, dispatch_id: str) -> Optional[DispatchAssignment]:
        return self.get("dispatch", dispatch_id)

    def create_dispatch(
        self, partial: Optional[dict[str, Any]] = None
    ) -> DispatchAssignment:
        return self.create("dispatch", partial)

    def update_dispatch(
        self, dispatch_id: str, patch: Optional[dict[str, Any]] = None
    ) -> Optional[DispatchAssignment]:
        return self.update("dispatch", dispatch_id, patch)

    def delete_dispatch(self, dispatch_id: str) -> bool:
        return self.delete("dispatch", dispatch_id)

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def get_inventory_item(self, item_id: str) -> Optional[InventoryItem]:
        return self.get("inventory_item", item_id)

    def create_inventory_item(
        self, partial: Optional[dict[str, Any]] = None
    ) -> InventoryItem:
        return self.create("inventory_item", partial)

    def update_inventory_item(
        self, item_id: str, patch: Optional[dict[str, Any]] = None
    ) -> Optional[InventoryItem]:
        return self.update("inventory_item", item_id, patch)

    def delete_inventory_item(self, item_id: str) -> bool:
        return self.delete("inventory_item", item_id)

    def adjust_inventory_qty(self, item_id: str, delta: float) -> Optional[InventoryItem]:
        """Add ``delta`` to an item's quantity. Stock never goes below zero."""
        item = self.get_inventory_item(item_id)
        if item is None:
            return None
        return self.update_inventory_item(item_id, {"qty": max(0.0, item.qty + delta)})


def create_ledger(
    settings: Optional[Settings] = None,
    backend: Optional[StorageBackend] = None,
    audit_logger: Optional[AuditLogger] = None,
    seed: Optional[bool] = None,
) -> Ledger:
    """
    Factory function to build a ready-to-use ledger.

    Loads the store from ``backend`` (a ``JsonFileStorage`` under the
    configured data directory by default) and seeds it on first run.

    Args:
        settings: Settings to use; ``get_settings()`` if omitted
        backend: Storage backend to load from and save to
        audit_logger: Audit sink shared by the repository and ledger
        seed: Override ``seed_on_first_run``
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    audit_logger = audit_logger or AuditLogger()
    backend = backend or JsonFileStorage(settings.storage.data_dir)
    repository = StoreRepository(backend, settings.storage, audit_logger)

    store = repository.load_all()
    if settings.app.seed_on_first_run if seed is None else seed:
        repository.seed_if_empty(store)

    return Ledger(store, repository, audit_logger)
