"""Shared fixtures: throwaway in-memory stores and a controllable clock."""
from datetime import datetime, timedelta, timezone

import pytest

from mediqr.services.api import ClinicAPI
from mediqr.services.database import ClinicDatabase
from mediqr.services.storage import BlobStore

IST = timezone(timedelta(hours=5, minutes=30))


class FixedClock:
    """Callable clock frozen at ``now`` until advanced."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock():
    return FixedClock(datetime(2024, 3, 15, 10, 30, tzinfo=IST))


@pytest.fixture()
def store():
    blob_store = BlobStore("sqlite:///:memory:")
    yield blob_store
    blob_store.dispose()


@pytest.fixture()
def database(store, clock):
    """Database seeded with the demo dataset."""
    return ClinicDatabase(store, clock=clock)


@pytest.fixture()
def empty_database(store, clock):
    """Database whose collections start empty instead of seeded."""
    for key in ("hospital_erp_patients", "hospital_erp_records", "hospital_erp_appointments"):
        store.save(key, "[]")
    return ClinicDatabase(store, clock=clock)


@pytest.fixture()
def api(database):
    return ClinicAPI(database, delay=0)


def ann_fields(**overrides):
    fields = {
        "name": "Ann",
        "dob": "1990-01-01",
        "gender": "Female",
        "contact": "555",
        "address": "x",
        "status": "Active",
    }
    fields.update(overrides)
    return fields
