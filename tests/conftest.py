"""Shared fixtures: in-memory storage, repository and ledger."""

import pytest

from movemaster.audit import AuditLogger
from movemaster.config import StorageSettings
from movemaster.ledger import Ledger
from movemaster.services.storage import InMemoryStorage, StoreRepository


@pytest.fixture
def storage_settings():
    """Default key layout (mm_<collection>_v6), ignoring any local .env."""
    return StorageSettings(_env_file=None)


@pytest.fixture
def backend():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def repository(backend, storage_settings, audit_logger):
    return StoreRepository(backend, storage_settings, audit_logger)


@pytest.fixture
def ledger(repository, audit_logger):
    """Empty ledger persisting to the in-memory backend."""
    return Ledger(repository.load_all(), repository, audit_logger)
