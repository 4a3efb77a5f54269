"""Whole-dataset validation run before ingestion (on parsed input) and after it (on the store).

Findings are advisory: they are returned as errors and warnings, never raised,
and the caller decides whether to proceed.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from locator.core.store import StoreError
from locator.models import (
    GeoPoint,
    PointOfInterest,
    PostalCode,
    Record,
    RecordKind,
    StoredValidationOutcome,
    ValidationOutcome,
    kind_of,
    split_natural_key,
)
from locator.validation import rules

AVERAGE_LATITUDE_LIMIT = 60.0
AVERAGE_LONGITUDE_LIMIT = 150.0


def _postal_code_subject(record: PostalCode) -> str:
    return f"postal code '{record.code}'"


def _poi_subject(record: PointOfInterest) -> str:
    return f"location '{record.name}'"


def _lookup_code(code: Optional[str]) -> Optional[str]:
    if rules.is_blank(code):
        return None
    return rules.base_postal_code(code) if rules.is_valid_postal_code(code) else code.strip()


class DatasetValidator:
    def __init__(self, store=None, logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    # ---------- Pre-ingestion ----------

    def validate(self, records: Sequence[Record]) -> ValidationOutcome:
        """Validate freshly parsed records of a single kind."""
        records = list(records)
        if not records:
            return ValidationOutcome(errors=["No records provided for validation"])

        kinds = {kind_of(record) for record in records}
        if len(kinds) > 1:
            raise ValueError("Cannot validate a mix of postal codes and points-of-interest together")
        if kinds.pop() is RecordKind.POSTAL_CODE:
            return self.validate_postal_codes(records)
        return self.validate_points_of_interest(records)

    def validate_postal_codes(self, records: Sequence[PostalCode]) -> ValidationOutcome:
        outcome = ValidationOutcome()
        for number, record in enumerate(records, start=1):
            self._check_postal_code(record, f"Record {number}", outcome)
        self._check_duplicates(RecordKind.POSTAL_CODE, [r.code for r in records], outcome)
        self._check_coordinates_overall("postal codes", [r.point for r in records], outcome, skip_zero=False)
        self._log_summary("postal code", len(records), outcome)
        return outcome

    def validate_points_of_interest(self, records: Sequence[PointOfInterest]) -> ValidationOutcome:
        outcome = ValidationOutcome()
        for number, record in enumerate(records, start=1):
            self._check_point_of_interest(record, f"Record {number}", outcome)
        self._check_duplicates(RecordKind.POINT_OF_INTEREST, [r.natural_key for r in records], outcome)
        self._check_coordinates_overall("locations", [r.point for r in records], outcome)

        inactive = sum(1 for record in records if not record.active)
        if inactive:
            outcome.warnings.append(f"{inactive} locations are marked as inactive")
        self._log_summary("location", len(records), outcome)
        return outcome

    # ---------- Post-ingestion ----------

    def validate_stored(self) -> StoredValidationOutcome:
        """Scan the store: per-row checks, duplicates, orphans and unused postal codes."""
        if self.store is None:
            raise ValueError("validate_stored requires a store")

        self.logger.info("Starting stored data validation")
        outcome = StoredValidationOutcome()
        try:
            outcome.postal_code_count = self.store.count(RecordKind.POSTAL_CODE)
            outcome.point_of_interest_count = self.store.count(RecordKind.POINT_OF_INTEREST)
            outcome.active_point_of_interest_count = self.store.count_active()
            postal_codes = self.store.list_postal_codes()
            points = self.store.list_points_of_interest()
        except StoreError as exc:
            self.logger.error("Error during stored data validation: %s", exc)
            outcome.errors.append(f"Validation failed: {exc}")
            return outcome

        self.logger.info(
            "Store contains %d postal codes, %d locations (%d active)",
            outcome.postal_code_count,
            outcome.point_of_interest_count,
            outcome.active_point_of_interest_count,
        )

        for record in postal_codes:
            self._check_postal_code(record, f"Postal code ID {record.id}", outcome)
        for record in points:
            self._check_point_of_interest(record, f"Location ID {record.id}", outcome)

        self._check_orphans(postal_codes, points, outcome)
        self._check_unused(postal_codes, points, outcome)
        self._check_duplicates(RecordKind.POSTAL_CODE, [r.code for r in postal_codes], outcome)
        self._check_duplicates(RecordKind.POINT_OF_INTEREST, [r.natural_key for r in points], outcome)
        self._check_zero_coordinates("postal codes", [r.point for r in postal_codes], outcome)
        self._check_zero_coordinates("locations", [r.point for r in points], outcome)

        self.logger.info(
            "Stored data validation completed: %d errors, %d warnings",
            len(outcome.errors),
            len(outcome.warnings),
        )
        return outcome

    # ---------- Per-record checks ----------

    def _check_postal_code(self, record: PostalCode, label: str, outcome: ValidationOutcome) -> None:
        if rules.is_blank(record.code):
            outcome.errors.append(f"{label}: Postal code is null or empty")
            return

        subject = _postal_code_subject(record)
        if not rules.is_valid_postal_code(record.code):
            outcome.errors.append(f"{label}: Invalid postal code format '{record.code}'")
        if rules.is_blank(record.city):
            outcome.warnings.append(f"{label}: City is null or empty for {subject}")

        region_warning = rules.region_warning(record.region, subject)
        if region_warning:
            outcome.warnings.append(f"{label}: {region_warning}")
        self._check_point(record.point, subject, label, outcome)

    def _check_point_of_interest(self, record: PointOfInterest, label: str, outcome: ValidationOutcome) -> None:
        if rules.is_blank(record.name):
            outcome.errors.append(f"{label}: Location name is null or empty")
        if rules.is_blank(record.address):
            outcome.errors.append(f"{label}: Address is null or empty")

        subject = _poi_subject(record)
        if rules.is_blank(record.city):
            outcome.warnings.append(f"{label}: City is null or empty for {subject}")
        region_warning = rules.region_warning(record.region, subject)
        if region_warning:
            outcome.warnings.append(f"{label}: {region_warning}")

        if rules.is_blank(record.postal_code):
            outcome.warnings.append(f"{label}: Postal code is null or empty for {subject}")
        elif not rules.is_valid_postal_code(record.postal_code):
            outcome.warnings.append(f"{label}: Invalid postal code format '{record.postal_code}' for {subject}")

        phone_warning = rules.phone_warning(record.phone, subject)
        if phone_warning:
            outcome.warnings.append(f"{label}: {phone_warning}")

        self._check_point(record.point, subject, label, outcome)

        hours_warning = rules.length_error("Business hours", record.hours, rules.HOURS_MAX_LENGTH, subject)
        if hours_warning:
            outcome.warnings.append(f"{label}: {hours_warning}")

        for field_label, value, ceiling in (
            ("Location name", record.name, rules.NAME_MAX_LENGTH),
            ("Address", record.address, rules.ADDRESS_MAX_LENGTH),
            ("City name", record.city, rules.CITY_MAX_LENGTH),
        ):
            error = rules.length_error(field_label, value, ceiling, subject)
            if error:
                outcome.errors.append(f"{label}: {error}")

    def _check_point(self, point: GeoPoint, subject: str, label: str, outcome: ValidationOutcome) -> None:
        outcome.errors.extend(f"{label}: {error}" for error in rules.coordinate_errors(point, subject))
        zero_warning = rules.zero_coordinate_warning(point, subject)
        if zero_warning:
            outcome.warnings.append(f"{label}: {zero_warning}")

    # ---------- Cross-record checks ----------

    def _check_duplicates(self, kind: RecordKind, keys: Iterable[Optional[str]], outcome: ValidationOutcome) -> None:
        counts = Counter(key for key in keys if not rules.is_blank(key))
        groups = [(key, count) for key, count in counts.items() if count > 1]
        if not groups:
            return

        outcome.duplicate_groups.extend(groups)
        if kind is RecordKind.POSTAL_CODE:
            outcome.errors.append(f"Found {len(groups)} duplicate postal code(s)")
            for code, count in groups:
                outcome.errors.append(f"  - Postal code {code} (appears {count} times)")
            return

        outcome.errors.append(f"Found {len(groups)} duplicate location(s) (same name and address)")
        for key, count in groups:
            name, address = split_natural_key(key)
            outcome.errors.append(f"  - {name} at {address} (appears {count} times)")

    def _check_zero_coordinates(self, noun: str, points: List[GeoPoint], outcome: ValidationOutcome) -> None:
        zero = sum(1 for point in points if rules.is_zero_coordinate(point))
        if zero:
            outcome.warnings.append(f"{zero} {noun} have missing coordinates (0,0)")

    def _check_coordinates_overall(
        self, noun: str, points: List[GeoPoint], outcome: ValidationOutcome, skip_zero: bool = True
    ) -> None:
        """Zero-coordinate count plus a sanity check on the average position.

        With ``skip_zero`` the average only covers points away from (0,0).
        """
        self._check_zero_coordinates(noun, points, outcome)

        located = [point for point in points if not (skip_zero and rules.is_zero_coordinate(point))]
        if not located:
            return
        avg_latitude = sum(point.latitude for point in located) / len(located)
        avg_longitude = sum(point.longitude for point in located) / len(located)
        if abs(avg_latitude) > AVERAGE_LATITUDE_LIMIT:
            outcome.warnings.append(f"Average latitude ({avg_latitude:.2f}) seems unusual - check data source")
        if abs(avg_longitude) > AVERAGE_LONGITUDE_LIMIT:
            outcome.warnings.append(f"Average longitude ({avg_longitude:.2f}) seems unusual - check data source")

    def _check_orphans(
        self,
        postal_codes: Sequence[PostalCode],
        points: Sequence[PointOfInterest],
        outcome: StoredValidationOutcome,
    ) -> None:
        known = {record.code for record in postal_codes}
        orphans = [
            record
            for record in points
            if _lookup_code(record.postal_code) is not None and _lookup_code(record.postal_code) not in known
        ]
        if not orphans:
            return

        outcome.orphaned_postal_codes = list(dict.fromkeys(_lookup_code(r.postal_code) for r in orphans))
        outcome.errors.append(
            f"Found {len(orphans)} location(s) with postal codes not in the postal codes table"
        )
        for record in orphans:
            outcome.errors.append(
                f"  - Orphaned postal code {record.postal_code} on location ID {record.id} ('{record.name}')"
            )

    def _check_unused(
        self,
        postal_codes: Sequence[PostalCode],
        points: Sequence[PointOfInterest],
        outcome: StoredValidationOutcome,
    ) -> None:
        referenced = {_lookup_code(record.postal_code) for record in points}
        unused = [record.code for record in postal_codes if record.code not in referenced]
        if not unused:
            return

        outcome.unused_postal_codes = unused
        outcome.warnings.append(f"Found {len(unused)} postal code(s) not referenced by any location")
        outcome.warnings.extend(f"  - Unused postal code: {code}" for code in unused)

    def _log_summary(self, noun: str, count: int, outcome: ValidationOutcome) -> None:
        self.logger.info(
            "Validated %d %s records: %d errors, %d warnings",
            count,
            noun,
            len(outcome.errors),
            len(outcome.warnings),
        )
