import sys
from pathlib import Path

import pytest

# Ensure the `locator` package is importable when running pytest from the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from locator.core.store import StoreError  # noqa: E402
from locator.models import GeoPoint, PointOfInterest, PostalCode, RecordKind  # noqa: E402


class FakeStore:
    """In-memory stand-in for PostgresStore that records every call."""

    def __init__(self, postal_codes=(), points=()):
        self.postal_codes = list(postal_codes)
        self.points = list(points)
        self.calls = []
        self.failing_insert_calls = set()
        self.error = None
        self._next_id = 1

    def _record(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    def _rows(self, kind):
        return self.postal_codes if kind is RecordKind.POSTAL_CODE else self.points

    def get_postal_code(self, code):
        self._record("get_postal_code")
        return next((pc for pc in self.postal_codes if pc.code == code), None)

    def list_active_points_of_interest(self):
        self._record("list_active_points_of_interest")
        return [poi for poi in self.points if poi.active]

    def list_points_of_interest(self):
        self._record("list_points_of_interest")
        return list(self.points)

    def list_postal_codes(self):
        self._record("list_postal_codes")
        return list(self.postal_codes)

    def existing_keys(self, kind, keys):
        self._record("existing_keys")
        stored = {record.natural_key for record in self._rows(kind)}
        return {key for key in keys if key in stored}

    def bulk_insert(self, kind, records):
        self._record("bulk_insert")
        call_number = self.calls.count("bulk_insert")
        if call_number in self.failing_insert_calls:
            raise StoreError(f"insert {call_number} rejected")
        for record in records:
            record.id = self._next_id
            self._next_id += 1
            self._rows(kind).append(record)

    def delete_all(self, kind):
        self._record("delete_all")
        rows = self._rows(kind)
        deleted = len(rows)
        rows.clear()
        return deleted

    def count(self, kind):
        self._record("count")
        return len(self._rows(kind))

    def count_active(self):
        self._record("count_active")
        return sum(1 for poi in self.points if poi.active)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def make_poi():
    def _make(name="Downtown Office", address="123 Main St", latitude=40.7505, longitude=-73.9965, **kwargs):
        kwargs.setdefault("city", "New York")
        kwargs.setdefault("region", "NY")
        kwargs.setdefault("postal_code", "10001")
        return PointOfInterest(name=name, address=address, point=GeoPoint(latitude, longitude), **kwargs)

    return _make


@pytest.fixture
def make_postal_code():
    def _make(code="10001", latitude=40.7505, longitude=-73.9965, city="New York", region="NY", **kwargs):
        return PostalCode(code=code, point=GeoPoint(latitude, longitude), city=city, region=region, **kwargs)

    return _make
