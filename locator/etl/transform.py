"""Utilities for turning raw JSON import files into typed records."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from locator.models import NATURAL_KEY_SEPARATOR, GeoPoint, PointOfInterest, PostalCode, Record, RecordKind

logger = logging.getLogger(__name__)

_ALIASES = {
    "code": ("code", "zipcode", "postalcode", "zip"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lon", "lng"),
    "city": ("city",),
    "region": ("region", "state"),
    "name": ("name",),
    "address": ("address",),
    "postal_code": ("zipcode", "postalcode", "zip"),
    "phone": ("phone",),
    "hours": ("hours", "businesshours"),
    "active": ("active", "isactive"),
}


def load_json_records(path: str) -> List[Dict[str, Any]]:
    """Read a JSON array of objects from ``path``."""
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Import file not found: {path}")

    logger.info("Reading records from %s", file_path)
    try:
        with file_path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON format in file: {path}") from exc

    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array of records in file: {path}")
    logger.info("Read %d raw records from file", len(payload))
    return payload


def _normalize_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key).replace("_", "").replace("-", "").lower(): value for key, value in raw.items()}


def _pick(raw: Dict[str, Any], field: str) -> Any:
    for alias in _ALIASES[field]:
        if alias in raw:
            return raw[alias]
    return None


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None or isinstance(value, bool):
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() in {"1", "true", "yes", "y"}


def _parse_point(raw: Dict[str, Any]) -> GeoPoint:
    latitude = _safe_float(_pick(raw, "latitude"))
    longitude = _safe_float(_pick(raw, "longitude"))
    if latitude is None or longitude is None:
        raise ValueError("latitude and longitude must be numeric")
    return GeoPoint(latitude, longitude)


def to_postal_code(raw: Dict[str, Any]) -> PostalCode:
    if not isinstance(raw, dict):
        raise ValueError("record is not a JSON object")
    fields = _normalize_keys(raw)
    code = _strip_or_none(_pick(fields, "code"))
    if code is None:
        raise ValueError("postal code is null or empty")

    return PostalCode(
        code=code,
        point=_parse_point(fields),
        city=_strip_or_none(_pick(fields, "city")),
        region=_strip_or_none(_pick(fields, "region")),
    )


def to_point_of_interest(raw: Dict[str, Any]) -> PointOfInterest:
    if not isinstance(raw, dict):
        raise ValueError("record is not a JSON object")
    fields = _normalize_keys(raw)
    name = _strip_or_none(_pick(fields, "name"))
    address = _strip_or_none(_pick(fields, "address"))
    if name is None or address is None:
        raise ValueError("name and address are required")
    if NATURAL_KEY_SEPARATOR in name or NATURAL_KEY_SEPARATOR in address:
        raise ValueError("name and address must not contain control characters")

    return PointOfInterest(
        name=name,
        address=address,
        point=_parse_point(fields),
        city=_strip_or_none(_pick(fields, "city")),
        region=_strip_or_none(_pick(fields, "region")),
        postal_code=_strip_or_none(_pick(fields, "postal_code")),
        phone=_strip_or_none(_pick(fields, "phone")),
        hours=_strip_or_none(_pick(fields, "hours")),
        active=_parse_bool(_pick(fields, "active")),
    )


_CONVERTERS = {
    RecordKind.POSTAL_CODE: to_postal_code,
    RecordKind.POINT_OF_INTEREST: to_point_of_interest,
}


def parse_records(items: Iterable[Any], kind: RecordKind) -> Tuple[List[Record], List[str]]:
    """Convert raw items into records, collecting one error per malformed item."""
    convert = _CONVERTERS[kind]
    records: List[Record] = []
    errors: List[str] = []
    for index, raw in enumerate(items, start=1):
        try:
            records.append(convert(raw))
        except ValueError as exc:
            errors.append(f"Record {index}: {exc}")
    if errors:
        logger.warning("Skipped %d malformed %s records", len(errors), kind.value)
    return records, errors
