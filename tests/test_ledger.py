"""
Tests for the Ledger mutation API

Covers referential integrity on delete, the end-to-end day scenarios,
not-found sentinels and persistence after every mutation.
"""

import json

import pytest
from decimal import Decimal

from movemaster.config import Settings
from movemaster.ledger import Ledger, create_ledger
from movemaster.models import AuditEventType, JobStatus
from movemaster.queries import daily_expense, daily_net, daily_revenue
from movemaster.services.storage import InMemoryStorage, StorageWriteError, StoreRepository

DAY = "2025-06-10"


class FullDiskStorage(InMemoryStorage):
    def write(self, key, payload):
        raise StorageWriteError("quota exceeded")


def last_event(ledger):
    return ledger.audit_logger.recent_events(limit=1)[0]


class TestReferentialIntegrity:
    """Deletes unlink dependents and never cascade."""

    def test_delete_driver_unassigns_jobs(self, ledger):
        driver = ledger.create_driver({"name": "Sam"})
        job = ledger.create_job({"date": DAY, "driverId": driver.id})
        stamp = job.updated_at

        assert ledger.delete_driver(driver.id) is True

        assert ledger.get_driver(driver.id) is None
        assert ledger.get_job(job.id) is job
        assert job.driver_id == ""
        assert job.updated_at >= stamp

    def test_delete_truck_unassigns_jobs(self, ledger):
        truck = ledger.create_truck({"label": "Truck 12"})
        kept = ledger.create_job({"date": DAY, "truckId": "trk_other"})
        job = ledger.create_job({"date": DAY, "truckId": truck.id})

        ledger.delete_truck(truck.id)

        assert job.truck_id == ""
        assert kept.truck_id == "trk_other"
        assert len(ledger.store.jobs) == 2

    def test_delete_job_unlinks_receipts(self, ledger):
        job = ledger.create_job({"date": DAY})
        receipt = ledger.create_receipt({"date": DAY, "vendor": "Shell", "amount": 40, "jobId": job.id})

        ledger.delete_job(job.id)

        assert ledger.get_receipt(receipt.id) is receipt
        assert receipt.job_id == ""
        assert receipt.amount == Decimal("40.00")

    def test_delete_clears_dispatch_rows(self, ledger):
        driver = ledger.create_driver({"name": "Sam"})
        truck = ledger.create_truck({"label": "T1"})
        job = ledger.create_job({"date": DAY})
        row = ledger.create_dispatch({
            "date": DAY, "jobId": job.id, "driverId": driver.id, "truckId": truck.id,
        })

        ledger.delete_driver(driver.id)
        ledger.delete_truck(truck.id)
        ledger.delete_job(job.id)

        assert ledger.get_dispatch(row.id) is row
        assert (row.job_id, row.driver_id, row.truck_id) == ("", "", "")

    def test_delete_receipt_is_simple_removal(self, ledger):
        job = ledger.create_job({"date": DAY})
        receipt = ledger.create_receipt({"jobId": job.id})
        assert ledger.delete_receipt(receipt.id) is True
        assert ledger.store.receipts == []
        assert ledger.get_job(job.id) is job

    def test_unlink_is_audited(self, ledger):
        driver = ledger.create_driver({"name": "Sam"})
        job = ledger.create_job({"driverId": driver.id})
        ledger.delete_driver(driver.id)

        event = last_event(ledger)
        assert event.event_type == AuditEventType.REFERENCES_UNLINKED
        assert event.details["affected"]["jobs"] == [job.id]


class TestEndToEnd:
    """Seed, record a job and a receipt, then cancel the job."""

    def test_scenarios(self, ledger, repository):
        repository.seed_if_empty(ledger.store, today="2025-01-15")

        job = ledger.create_job({"date": DAY, "customer": "Acme", "amount": 500})
        ledger.create_receipt({"date": DAY, "vendor": "Shell", "amount": 40, "jobId": job.id})

        assert daily_revenue(ledger.store, DAY) == Decimal("500.00")
        assert daily_expense(ledger.store, DAY) == Decimal("40.00")
        assert daily_net(ledger.store, DAY) == Decimal("460.00")

        ledger.update_job(job.id, {"status": "cancelled"})

        assert daily_revenue(ledger.store, DAY) == Decimal("0.00")
        assert daily_net(ledger.store, DAY) == Decimal("-40.00")

    def test_changes_survive_reload(self, ledger, repository):
        job = ledger.create_job({"date": DAY, "customer": "Acme", "amount": 500})
        ledger.set_job_status(job.id, JobStatus.COMPLETED)

        reloaded = repository.load_all()
        assert reloaded.model_dump() == ledger.store.model_dump()
        assert reloaded.jobs[0].status == JobStatus.COMPLETED


class TestUpdates:
    """In-place updates."""

    def test_update_keeps_identity(self, ledger):
        job = ledger.create_job({"date": DAY, "customer": "Acme"})
        created_at = job.created_at

        updated = ledger.update_job(job.id, {"customer": " Beta ", "id": "hijack", "createdAt": 1})

        assert updated is job
        assert job.customer == "Beta"
        assert job.id != "hijack"
        assert job.created_at == created_at
        assert job.updated_at >= created_at

    def test_update_normalizes_patch(self, ledger):
        job = ledger.create_job({"date": DAY})
        ledger.update_job(job.id, {"status": "on hold", "amount": "12.345", "date": "2025-7-4"})
        assert job.status == JobStatus.SCHEDULED
        assert job.amount == Decimal("12.35")
        assert job.date == "2025-07-04"

    def test_update_records_changed_fields(self, ledger):
        receipt = ledger.create_receipt({"vendor": "Shell", "amount": 10})
        ledger.update_receipt(receipt.id, {"amount": 12, "vendor": "Shell"})
        assert last_event(ledger).details["changed_fields"] == ["amount"]

    def test_any_status_to_any_status(self, ledger):
        job = ledger.create_job({"date": DAY})
        for status in ("cancelled", "completed", "scheduled", "cancelled"):
            assert ledger.set_job_status(job.id, status).status.value == status

    def test_roster_updates(self, ledger):
        driver = ledger.create_driver({"name": "Sam"})
        truck = ledger.create_truck({"label": "T1"})
        assert ledger.update_driver(driver.id, {"active": False}).active is False
        assert ledger.update_truck(truck.id, {"plate": "XYZ-9"}).plate == "XYZ-9"

    def test_legacy_unit_patch_sets_label(self, ledger):
        truck = ledger.create_truck({"label": "T9"})
        ledger.update_truck(truck.id, {"unit": "T10"})
        assert truck.label == "T10"
        assert last_event(ledger).details["changed_fields"] == ["label"]

    def test_dispatch_update(self, ledger):
        row = ledger.create_dispatch({"date": DAY})
        ledger.update_dispatch(row.id, {"startTime": "09:30"})
        assert row.start_time == "09:30"
        assert row.end_time == "12:00"


class TestNotFound:
    """Unknown IDs are sentinels, never errors."""

    @pytest.mark.parametrize("kind", ["job", "receipt", "driver", "truck", "dispatch", "inventory_item"])
    def test_update_missing_returns_none(self, ledger, kind):
        assert getattr(ledger, f"update_{kind}")("missing", {"notes": "x"}) is None

    @pytest.mark.parametrize("kind", ["job", "receipt", "driver", "truck", "dispatch", "inventory_item"])
    def test_delete_missing_returns_false(self, ledger, kind):
        assert getattr(ledger, f"delete_{kind}")("missing") is False

    def test_empty_id(self, ledger):
        ledger.create_job({})
        assert ledger.get_job("") is None
        assert ledger.delete_job("") is False


class TestCreate:
    """Creation through the normalizers."""

    def test_create_persists(self, ledger, backend):
        job = ledger.create_job({"date": DAY, "customer": "Acme"})
        persisted = json.loads(backend.read("mm_jobs_v6"))
        assert [record["id"] for record in persisted] == [job.id]
        assert ledger.last_save_ok is True

    def test_colliding_id_is_replaced(self, ledger):
        first = ledger.create_job({"id": "job_1"})
        second = ledger.create_job({"id": "job_1"})
        assert first.id == "job_1"
        assert second.id != "job_1"
        assert second.id.startswith("job_")

    def test_existing_entity_becomes_a_new_record(self, ledger):
        """Creating from a stored entity copies it and leaves the original alone."""
        job = ledger.create_job({"date": DAY, "customer": "Acme"})
        receipt = ledger.create_receipt({"vendor": "Shell", "amount": 40, "jobId": job.id})
        original_id = job.id

        duplicate = ledger.create_job(job)

        assert duplicate is not job
        assert job.id == original_id
        assert duplicate.id != original_id
        assert duplicate.customer == "Acme"
        assert [j.id for j in ledger.store.jobs] == [original_id, duplicate.id]
        assert ledger.get_job(receipt.job_id) is job

    def test_create_is_audited(self, ledger):
        job = ledger.create_job({"date": DAY})
        event = last_event(ledger)
        assert event.event_type == AuditEventType.ENTITY_CREATED
        assert event.entity_id == job.id
        assert event.details == {"date": DAY}


class TestAssignJob:
    """Dispatch assignment on a Job."""

    def test_assign_and_unassign(self, ledger):
        driver = ledger.create_driver({"name": "Sam"})
        truck = ledger.create_truck({"label": "T1"})
        job = ledger.create_job({"date": DAY})

        assert ledger.assign_job(job.id, driver_id=driver.id, truck_id=truck.id) is job
        assert (job.driver_id, job.truck_id) == (driver.id, truck.id)
        assert last_event(ledger).event_type == AuditEventType.JOB_ASSIGNED

        ledger.assign_job(job.id, driver_id="")
        assert job.driver_id == ""
        assert job.truck_id == truck.id

    def test_unknown_references_rejected(self, ledger):
        job = ledger.create_job({"date": DAY})
        assert ledger.assign_job(job.id, driver_id="drv_missing") is None
        assert ledger.assign_job("job_missing") is None
        assert job.driver_id == ""

    def test_double_booking_allowed(self, ledger):
        driver = ledger.create_driver({"name": "Sam"})
        first = ledger.create_job({"date": DAY})
        second = ledger.create_job({"date": DAY})
        ledger.assign_job(first.id, driver_id=driver.id)
        assert ledger.assign_job(second.id, driver_id=driver.id) is second


class TestPersistenceFailure:
    """A failed save keeps the in-memory change and reports it."""

    def test_mutation_survives_failed_save(self, storage_settings, audit_logger):
        repository = StoreRepository(FullDiskStorage(), storage_settings, audit_logger)
        ledger = Ledger(repository=repository, audit_logger=audit_logger)

        job = ledger.create_job({"date": DAY, "amount": 100})

        assert ledger.get_job(job.id) is job
        assert ledger.last_save_ok is False
        assert AuditEventType.SAVE_FAILED in [e.event_type for e in audit_logger.recent_events()]

    def test_memory_only_ledger(self):
        ledger = Ledger()
        ledger.create_job({"date": DAY})
        assert ledger.last_save_ok is True


class TestCreateLedger:
    """Factory wiring."""

    def test_first_run_is_seeded(self):
        backend = InMemoryStorage()
        ledger = create_ledger(settings=Settings(_env_file=None), backend=backend, seed=True)
        assert ledger.store.counts() == {
            "jobs": 1, "receipts": 1, "drivers": 1, "trucks": 1, "dispatch": 1,
            "inventory": 2,
        }
        assert backend.read("mm_jobs_v6") is not None

    def test_existing_data_is_not_seeded(self):
        backend = InMemoryStorage({"mm_drivers_v6": json.dumps([{"name": "Sam"}])})
        ledger = create_ledger(settings=Settings(_env_file=None), backend=backend, seed=True)
        assert ledger.store.jobs == []
        assert ledger.store.drivers[0].name == "Sam"

    def test_seed_can_be_disabled(self):
        ledger = create_ledger(settings=Settings(_env_file=None), backend=InMemoryStorage(), seed=False)
        assert ledger.store.is_empty()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
