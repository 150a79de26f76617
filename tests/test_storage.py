"""
Tests for the Persistent Store

Covers the repository (load/save/seed) over the in-memory backend and
the JSON file backend on a temporary directory.
"""

import json
import os

import pytest

from movemaster.models import AuditEventType, Store, normalize_job, normalize_receipt
from movemaster.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    StorageReadError,
    StorageWriteError,
    StoreRepository,
)


class UnreadableStorage(InMemoryStorage):
    def read(self, key):
        raise StorageReadError(f"cannot read {key}")


class FullDiskStorage(InMemoryStorage):
    def write(self, key, payload):
        raise StorageWriteError("quota exceeded")


def event_types(audit_logger):
    return [event.event_type for event in audit_logger.recent_events()]


class TestLoadAll:
    """Loading never fails; bad collections load empty."""

    def test_missing_keys_load_empty(self, repository):
        store = repository.load_all()
        assert store.is_empty()

    def test_corrupt_json_loads_empty(self, storage_settings, audit_logger):
        backend = InMemoryStorage({"mm_jobs_v6": "{not json"})
        store = StoreRepository(backend, storage_settings, audit_logger).load_all()
        assert store.jobs == []
        assert AuditEventType.LOAD_FAILED in event_types(audit_logger)

    def test_non_array_payload_loads_empty(self, storage_settings, audit_logger):
        backend = InMemoryStorage({"mm_receipts_v6": json.dumps({"id": "r1"})})
        store = StoreRepository(backend, storage_settings, audit_logger).load_all()
        assert store.receipts == []

    def test_non_object_elements_skipped(self, storage_settings):
        backend = InMemoryStorage({"mm_jobs_v6": json.dumps([1, "x", None, {"customer": "A"}])})
        store = StoreRepository(backend, storage_settings).load_all()
        assert [job.customer for job in store.jobs] == ["A"]

    def test_legacy_records_are_normalized(self, storage_settings):
        backend = InMemoryStorage({
            "mm_jobs_v6": json.dumps([{"id": "j1", "date": "2025-06-01", "amount": "100"}]),
            "mm_receipts_v6": json.dumps([{"id": "r1", "linkedJobId": "j1", "amount": 5}]),
            "mm_trucks_v6": json.dumps([{"id": "t1", "unit": "Truck 12", "status": "Ready"}]),
        })
        store = StoreRepository(backend, storage_settings).load_all()
        assert store.jobs[0].driver_id == ""
        assert str(store.jobs[0].amount) == "100.00"
        assert store.receipts[0].job_id == "j1"
        assert store.trucks[0].label == "Truck 12"

    def test_unreadable_storage_loads_empty(self, storage_settings, audit_logger):
        repository = StoreRepository(UnreadableStorage(), storage_settings, audit_logger)
        assert repository.load_all().is_empty()
        assert event_types(audit_logger).count(AuditEventType.LOAD_FAILED) == len(Store.COLLECTIONS)

    def test_one_bad_collection_does_not_affect_others(self, storage_settings):
        backend = InMemoryStorage({
            "mm_jobs_v6": "garbage",
            "mm_receipts_v6": json.dumps([{"vendor": "Shell"}]),
        })
        store = StoreRepository(backend, storage_settings).load_all()
        assert store.jobs == []
        assert store.receipts[0].vendor == "Shell"


class TestSaveAll:
    """Saving writes every collection under its own key."""

    def test_round_trip(self, repository):
        store = Store(
            jobs=[normalize_job({"date": "2025-06-10", "customer": "Acme", "amount": 500})],
            receipts=[normalize_receipt({"date": "2025-06-10", "vendor": "Shell", "amount": 40})],
        )
        assert repository.save_all(store) is True
        loaded = repository.load_all()
        assert loaded.model_dump() == store.model_dump()

    def test_each_collection_has_its_own_key(self, repository, backend):
        repository.save_all(Store())
        assert backend.keys() == sorted(
            ["mm_jobs_v6", "mm_receipts_v6", "mm_drivers_v6", "mm_trucks_v6",
             "mm_dispatch_v6", "mm_inventory_v6"]
        )
        assert json.loads(backend.read("mm_jobs_v6")) == []

    def test_persisted_records_are_camel_case(self, repository, backend):
        store = Store(receipts=[normalize_receipt({"jobId": "job_1", "amount": 3})])
        repository.save_all(store)
        record = json.loads(backend.read("mm_receipts_v6"))[0]
        assert record["jobId"] == "job_1"
        assert isinstance(record["createdAt"], int)
        assert record["amount"] == 3.0

    def test_write_failure_is_reported_not_raised(self, storage_settings, audit_logger):
        repository = StoreRepository(FullDiskStorage(), storage_settings, audit_logger)
        assert repository.save_all(Store()) is False
        failures = [
            e for e in audit_logger.recent_events()
            if e.event_type == AuditEventType.SAVE_FAILED
        ]
        assert len(failures) == 1
        assert failures[0].details["collections"] == list(Store.COLLECTIONS)

    def test_custom_key_version(self, backend):
        from movemaster.config import StorageSettings

        settings = StorageSettings(key_version="v7", _env_file=None)
        StoreRepository(backend, settings).save_all(Store())
        assert "mm_jobs_v7" in backend.keys()


class TestSeedIfEmpty:
    """First-run sample data."""

    def test_seeds_linked_sample_records(self, repository, backend, audit_logger):
        store = Store()
        assert repository.seed_if_empty(store, today="2025-06-10") is True

        assert store.counts() == {
            "jobs": 1, "receipts": 1, "drivers": 1, "trucks": 1, "dispatch": 1,
            "inventory": 2,
        }
        job, receipt = store.jobs[0], store.receipts[0]
        assert job.date == "2025-06-10"
        assert job.driver_id == store.drivers[0].id
        assert job.truck_id == store.trucks[0].id
        assert receipt.job_id == job.id
        assert store.dispatch[0].job_id == job.id
        assert len(json.loads(backend.read("mm_jobs_v6"))) == 1
        assert AuditEventType.STORE_SEEDED in event_types(audit_logger)

    def test_seed_only_once(self, repository):
        store = Store()
        repository.seed_if_empty(store)
        assert repository.seed_if_empty(store) is False
        assert len(store.jobs) == 1

    def test_any_record_prevents_seeding(self, repository):
        store = Store(receipts=[normalize_receipt({"vendor": "Shell"})])
        assert repository.seed_if_empty(store) is False
        assert store.jobs == []


class TestJsonFileStorage:
    """Directory-of-JSON-files backend."""

    def test_write_read_delete(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data")
        storage.write("mm_jobs_v6", "[]")
        assert storage.read("mm_jobs_v6") == "[]"
        assert (tmp_path / "data" / "mm_jobs_v6.json").exists()
        assert storage.delete("mm_jobs_v6") is True
        assert storage.delete("mm_jobs_v6") is False

    def test_missing_key_reads_none(self, tmp_path):
        assert JsonFileStorage(tmp_path).read("mm_jobs_v6") is None

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.write("k", "first")
        storage.write("k", "second")
        assert storage.read("k") == "second"
        assert os.listdir(tmp_path) == ["k.json"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        with pytest.raises(StorageError):
            JsonFileStorage(tmp_path).path_for(key)

    def test_failed_write_is_retried_then_raised(self, tmp_path, monkeypatch):
        storage = JsonFileStorage(tmp_path)
        calls = []

        def failing_replace(src, dst):
            calls.append(dst)
            raise OSError("device busy")

        monkeypatch.setattr(os, "replace", failing_replace)
        with pytest.raises(StorageWriteError):
            storage.write("mm_jobs_v6", "[]")

        assert len(calls) == 3
        assert os.listdir(tmp_path) == []

    def test_repository_round_trip_on_disk(self, tmp_path, storage_settings):
        repository = StoreRepository(JsonFileStorage(tmp_path), storage_settings)
        store = Store(jobs=[normalize_job({"customer": "Acme", "amount": "1100"})])
        repository.save_all(store)

        reloaded = StoreRepository(JsonFileStorage(tmp_path), storage_settings).load_all()
        assert reloaded.model_dump() == store.model_dump()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
