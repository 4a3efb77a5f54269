import pytest

from locator.core.store import StoreError
from locator.validation.dataset import DatasetValidator


def test_duplicate_postal_codes_form_one_group(make_postal_code):
    records = [make_postal_code(), make_postal_code(), make_postal_code(code="60601", city="Chicago", region="IL")]

    outcome = DatasetValidator().validate(records)

    assert not outcome.is_valid
    assert outcome.duplicate_groups == [("10001", 2)]
    assert outcome.errors == [
        "Found 1 duplicate postal code(s)",
        "  - Postal code 10001 (appears 2 times)",
    ]


def test_duplicate_locations_match_on_name_and_address(make_poi):
    records = [make_poi(), make_poi(phone="2125550101"), make_poi(address="1 Other St")]

    outcome = DatasetValidator().validate(records)

    assert len(outcome.duplicate_groups) == 1
    assert outcome.duplicate_groups[0][1] == 2
    assert "Found 1 duplicate location(s) (same name and address)" in outcome.errors
    assert "  - Downtown Office at 123 Main St (appears 2 times)" in outcome.errors


def test_clean_locations_are_valid(make_poi):
    outcome = DatasetValidator().validate([make_poi(phone="(212) 555-0101", hours="Mon-Fri 9AM-5PM")])

    assert outcome.is_valid
    assert outcome.warnings == []


def test_empty_input_is_an_error():
    outcome = DatasetValidator().validate([])

    assert outcome.errors == ["No records provided for validation"]


def test_mixed_kinds_are_rejected(make_poi, make_postal_code):
    with pytest.raises(ValueError):
        DatasetValidator().validate([make_poi(), make_postal_code()])


def test_bad_phone_is_only_a_warning(make_poi):
    outcome = DatasetValidator().validate([make_poi(phone="555-01")])

    assert outcome.is_valid
    assert outcome.warnings == [
        "Record 1: Phone number format may be invalid '555-01' for location 'Downtown Office'"
    ]


def test_out_of_range_coordinates_are_errors(make_postal_code):
    outcome = DatasetValidator().validate([make_postal_code(latitude=91.0, longitude=-181.0)])

    assert "Record 1: Invalid latitude 91.0 for postal code '10001'" in outcome.errors
    assert "Record 1: Invalid longitude -181.0 for postal code '10001'" in outcome.errors


def test_malformed_postal_code_is_an_error(make_postal_code):
    outcome = DatasetValidator().validate([make_postal_code(code="1000A")])

    assert outcome.errors == ["Record 1: Invalid postal code format '1000A'"]


def test_zero_coordinates_warn_per_record_and_overall(make_postal_code):
    records = [make_postal_code(latitude=0.0, longitude=0.0), make_postal_code(code="60601")]

    outcome = DatasetValidator().validate(records)

    assert outcome.is_valid
    assert "1 postal codes have missing coordinates (0,0)" in outcome.warnings
    assert any(w.startswith("Record 1:") and "(0,0)" in w for w in outcome.warnings)


def test_unusual_average_coordinates_warn(make_postal_code):
    outcome = DatasetValidator().validate([make_postal_code(latitude=-70.0, longitude=170.0)])

    assert "Average latitude (-70.00) seems unusual - check data source" in outcome.warnings
    assert "Average longitude (170.00) seems unusual - check data source" in outcome.warnings


def test_length_limits(make_poi):
    outcome = DatasetValidator().validate([make_poi(name="N" * 256, hours="H" * 501, city="C" * 101)])

    assert any("Location name is too long (256 characters, max 255)" in e for e in outcome.errors)
    assert any("City name is too long (101 characters, max 100)" in e for e in outcome.errors)
    assert any("Business hours is too long (501 characters, max 500)" in w for w in outcome.warnings)


def test_missing_optional_fields_warn(make_poi):
    outcome = DatasetValidator().validate([make_poi(city=None, region="New York", postal_code=None)])

    assert outcome.is_valid
    assert len(outcome.warnings) == 3


def test_inactive_locations_are_counted(make_poi):
    outcome = DatasetValidator().validate([make_poi(active=False), make_poi(address="2 Main St")])

    assert "1 locations are marked as inactive" in outcome.warnings


def test_validate_stored_reports_counts_orphans_and_unused(fake_store, make_poi, make_postal_code):
    fake_store.postal_codes = [make_postal_code(id=1), make_postal_code(code="94105", city="SF", region="CA", id=2)]
    fake_store.points = [
        make_poi(id=1, postal_code="10001-2222"),
        make_poi(name="Lakeside", address="5 Lake Rd", postal_code="60601", id=2, active=False),
        make_poi(name="Loop", address="6 State St", postal_code="60601", id=3),
    ]

    outcome = DatasetValidator(fake_store).validate_stored()

    assert outcome.postal_code_count == 2
    assert outcome.point_of_interest_count == 3
    assert outcome.active_point_of_interest_count == 2
    assert outcome.orphaned_postal_codes == ["60601"]
    assert outcome.unused_postal_codes == ["94105"]
    assert "Found 2 location(s) with postal codes not in the postal codes table" in outcome.errors
    assert "  - Orphaned postal code 60601 on location ID 2 ('Lakeside')" in outcome.errors
    assert "Found 1 postal code(s) not referenced by any location" in outcome.warnings
    assert "  - Unused postal code: 94105" in outcome.warnings


def test_validate_stored_flags_stored_duplicates(fake_store, make_poi, make_postal_code):
    fake_store.postal_codes = [make_postal_code(id=1)]
    fake_store.points = [make_poi(id=1), make_poi(id=2)]

    outcome = DatasetValidator(fake_store).validate_stored()

    assert outcome.duplicate_groups == [("Downtown Office\x1f123 Main St", 2)]


def test_validate_stored_labels_rows_by_id(fake_store, make_postal_code):
    fake_store.postal_codes = [make_postal_code(code="ABCDE", id=42)]

    outcome = DatasetValidator(fake_store).validate_stored()

    assert "Postal code ID 42: Invalid postal code format 'ABCDE'" in outcome.errors


def test_validate_stored_turns_store_failure_into_error(fake_store):
    fake_store.error = StoreError("relation does not exist")

    outcome = DatasetValidator(fake_store).validate_stored()

    assert outcome.errors == ["Validation failed: relation does not exist"]


def test_validate_stored_requires_a_store():
    with pytest.raises(ValueError):
        DatasetValidator().validate_stored()


def test_postal_code_average_includes_zero_coordinates(make_postal_code):
    records = [make_postal_code(code=f"{i:05d}", latitude=0.0, longitude=0.0) for i in range(1, 4)]
    records.append(make_postal_code(code="99501", latitude=70.0, longitude=-160.0))

    outcome = DatasetValidator().validate(records)

    # (0,0) rows pull the averages down to 17.50 and -40.00.
    assert not any(w.startswith("Average") for w in outcome.warnings)


def test_location_average_skips_zero_coordinates(make_poi):
    records = [make_poi(name=f"Missing {i}", latitude=0.0, longitude=0.0) for i in range(3)]
    records.append(make_poi(name="Far North", latitude=70.0, longitude=-160.0))

    outcome = DatasetValidator().validate(records)

    assert "Average latitude (70.00) seems unusual - check data source" in outcome.warnings
    assert "Average longitude (-160.00) seems unusual - check data source" in outcome.warnings


def test_duplicate_report_survives_separator_in_name(make_poi):
    records = [make_poi(name="Odd\x1fName"), make_poi(name="Odd\x1fName")]

    outcome = DatasetValidator().validate(records)

    assert outcome.duplicate_groups == [("Odd\x1fName\x1f123 Main St", 2)]
