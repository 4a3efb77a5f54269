"""Format and range predicates for postal codes, coordinates and contact data.

The predicates never raise; callers compose them with the message helpers
below when building validation reports.
"""

import re
from typing import List, Optional

from locator.models import GeoPoint

NAME_MAX_LENGTH = 255
ADDRESS_MAX_LENGTH = 255
CITY_MAX_LENGTH = 100
HOURS_MAX_LENGTH = 500
REGION_CODE_LENGTH = 2

_POSTAL_CODE_RE = re.compile(r"[0-9]{5}(-[0-9]{4})?")
_PHONE_STRIP_CHARS = str.maketrans("", "", "()-. ")


def is_valid_postal_code(value: Optional[str]) -> bool:
    if not value:
        return False
    return _POSTAL_CODE_RE.fullmatch(value.strip()) is not None


def base_postal_code(value: str) -> str:
    """5-digit prefix of a valid postal code (drops the ZIP+4 suffix)."""
    return value.strip()[:5]


def is_valid_phone(value: Optional[str]) -> bool:
    if not value:
        return False
    cleaned = value.translate(_PHONE_STRIP_CHARS)
    if not cleaned.isascii() or not cleaned.isdigit():
        return False
    if len(cleaned) == 10:
        return True
    return len(cleaned) == 11 and cleaned.startswith("1")


def is_latitude_in_range(value: float) -> bool:
    return -90.0 <= value <= 90.0


def is_longitude_in_range(value: float) -> bool:
    return -180.0 <= value <= 180.0


def is_zero_coordinate(point: GeoPoint) -> bool:
    return point.latitude == 0 and point.longitude == 0


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


# ---------- Message helpers ----------


def coordinate_errors(point: GeoPoint, subject: str) -> List[str]:
    errors = []
    if not is_latitude_in_range(point.latitude):
        errors.append(f"Invalid latitude {point.latitude} for {subject}")
    if not is_longitude_in_range(point.longitude):
        errors.append(f"Invalid longitude {point.longitude} for {subject}")
    return errors


def zero_coordinate_warning(point: GeoPoint, subject: str) -> Optional[str]:
    if is_zero_coordinate(point):
        return f"{subject} has coordinates (0,0) which may indicate missing data"
    return None


def length_error(field_label: str, value: Optional[str], ceiling: int, subject: str) -> Optional[str]:
    if value is not None and len(value) > ceiling:
        return f"{field_label} is too long ({len(value)} characters, max {ceiling}) for {subject}"
    return None


def region_warning(region: Optional[str], subject: str) -> Optional[str]:
    if is_blank(region):
        return f"Region is null or empty for {subject}"
    if len(region.strip()) != REGION_CODE_LENGTH:
        return f"Region should be {REGION_CODE_LENGTH} characters, found '{region}' for {subject}"
    return None


def phone_warning(phone: Optional[str], subject: str) -> Optional[str]:
    if not is_blank(phone) and not is_valid_phone(phone):
        return f"Phone number format may be invalid '{phone}' for {subject}"
    return None
