import json

import pytest

from locator.etl import transform
from locator.models import GeoPoint, RecordKind


def test_to_postal_code_accepts_aliases():
    record = transform.to_postal_code(
        {"ZipCode": " 10001 ", "lat": "40.7505", "Longitude": -73.9965, "City": "New York", "State": "NY"}
    )

    assert record.code == "10001"
    assert record.point == GeoPoint(40.7505, -73.9965)
    assert record.city == "New York"
    assert record.region == "NY"
    assert record.id is None


def test_to_point_of_interest_maps_every_field():
    record = transform.to_point_of_interest(
        {
            "name": "Downtown Office",
            "address": "123 Main St",
            "city": "New York",
            "state": "NY",
            "zip_code": "10001",
            "phone": "(212) 555-0101",
            "latitude": 40.7505,
            "longitude": -73.9965,
            "business_hours": "Mon-Fri 9AM-5PM",
            "is_active": "false",
        }
    )

    assert record.name == "Downtown Office"
    assert record.region == "NY"
    assert record.postal_code == "10001"
    assert record.hours == "Mon-Fri 9AM-5PM"
    assert record.active is False
    assert record.natural_key == "Downtown Office\x1f123 Main St"


def test_to_point_of_interest_defaults_to_active():
    record = transform.to_point_of_interest({"name": "A", "address": "B", "lat": 1, "lng": 2})

    assert record.active is True
    assert record.city is None
    assert record.phone is None


@pytest.mark.parametrize(
    "raw",
    [
        {"address": "B", "lat": 1, "lng": 2},
        {"name": "  ", "address": "B", "lat": 1, "lng": 2},
        {"name": "A", "address": "B", "lat": "north", "lng": 2},
        {"name": "A", "address": "B", "lat": 1},
        {"name": "A", "address": "B", "lat": True, "lng": 2},
        "not an object",
    ],
)
def test_to_point_of_interest_rejects_malformed(raw):
    with pytest.raises(ValueError):
        transform.to_point_of_interest(raw)


def test_to_postal_code_requires_code():
    with pytest.raises(ValueError):
        transform.to_postal_code({"lat": 1, "lng": 2})


def test_parse_records_collects_errors_by_position():
    items = [
        {"zipcode": "10001", "lat": 40.75, "lng": -73.99},
        {"zipcode": "60601", "lat": "bad", "lng": -87.62},
        {"zipcode": "94105", "lat": 37.79, "lng": -122.39},
    ]

    records, errors = transform.parse_records(items, RecordKind.POSTAL_CODE)

    assert [r.code for r in records] == ["10001", "94105"]
    assert errors == ["Record 2: latitude and longitude must be numeric"]


def test_load_json_records_reads_array(tmp_path):
    path = tmp_path / "zipcodes.json"
    path.write_text(json.dumps([{"zipcode": "10001"}]), encoding="utf-8")

    assert transform.load_json_records(str(path)) == [{"zipcode": "10001"}]


def test_load_json_records_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        transform.load_json_records(str(tmp_path / "missing.json"))

    broken = tmp_path / "broken.json"
    broken.write_text("[{", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        transform.load_json_records(str(broken))

    wrong_shape = tmp_path / "object.json"
    wrong_shape.write_text('{"zipcode": "10001"}', encoding="utf-8")
    with pytest.raises(ValueError, match="JSON array"):
        transform.load_json_records(str(wrong_shape))


def test_to_point_of_interest_rejects_key_separator():
    with pytest.raises(ValueError, match="control characters"):
        transform.to_point_of_interest({"name": "A\x1fB", "address": "1 St", "lat": 1, "lng": 2})
