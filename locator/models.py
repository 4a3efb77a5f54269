"""Core data models shared by the search service and the import pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

NATURAL_KEY_SEPARATOR = "\x1f"


class RecordKind(str, Enum):
    POSTAL_CODE = "postal_code"
    POINT_OF_INTEREST = "point_of_interest"


class ErrorKind(str, Enum):
    """Failure classes a search can end in; the HTTP layer maps each to a status."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORE = "store"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(slots=True)
class PostalCode:
    """A geocoded postal code. ``code`` is unique across the store."""

    code: str
    point: GeoPoint
    city: Optional[str] = None
    region: Optional[str] = None
    id: Optional[int] = None

    @property
    def natural_key(self) -> str:
        return self.code


@dataclass(slots=True)
class PointOfInterest:
    """A searchable location.

    ``id`` is assigned by the store on insert; ingestion deduplicates on the
    ``(name, address)`` pair instead.
    """

    name: str
    address: str
    point: GeoPoint
    city: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    hours: Optional[str] = None
    active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def natural_key(self) -> str:
        return join_natural_key(self.name, self.address)


Record = Union[PostalCode, PointOfInterest]


def join_natural_key(*parts: str) -> str:
    return NATURAL_KEY_SEPARATOR.join(parts)


def split_natural_key(key: str) -> Tuple[str, ...]:
    return tuple(key.split(NATURAL_KEY_SEPARATOR, 1))


def kind_of(record: Record) -> RecordKind:
    if isinstance(record, PostalCode):
        return RecordKind.POSTAL_CODE
    if isinstance(record, PointOfInterest):
        return RecordKind.POINT_OF_INTEREST
    raise ValueError(f"Unsupported record type: {type(record).__name__}")


@dataclass(slots=True)
class SearchResult:
    id: Optional[int]
    name: str
    address: str
    city: Optional[str]
    region: Optional[str]
    postal_code: Optional[str]
    phone: Optional[str]
    hours: Optional[str]
    distance_miles: float

    @classmethod
    def from_point_of_interest(cls, poi: PointOfInterest, distance_miles: float) -> "SearchResult":
        return cls(
            id=poi.id,
            name=poi.name,
            address=poi.address,
            city=poi.city,
            region=poi.region,
            postal_code=poi.postal_code,
            phone=poi.phone,
            hours=poi.hours,
            distance_miles=distance_miles,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchResponse:
    """Outcome of a search: either ranked data or a classified failure."""

    success: bool
    message: str
    data: Optional[List[SearchResult]] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: List[SearchResult], message: str) -> "SearchResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> "SearchResponse":
        return cls(success=False, message=message, error_kind=kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": None if self.data is None else [result.to_dict() for result in self.data],
            "message": self.message,
        }


@dataclass(slots=True)
class IngestionProgress:
    total_records: int
    total_batches: int
    current_batch: int = 0
    current_record: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0

    @property
    def progress_percentage(self) -> float:
        if not self.total_records:
            return 0.0
        return self.current_record / self.total_records * 100

    @property
    def success_rate(self) -> float:
        if not self.current_record:
            return 0.0
        return self.success_count / self.current_record * 100


@dataclass(slots=True)
class IngestionOutcome:
    total_processed: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    duration: timedelta = field(default_factory=timedelta)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def success_rate(self) -> float:
        if not self.total_processed:
            return 0.0
        return self.success_count / self.total_processed * 100


@dataclass(slots=True)
class ValidationOutcome:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    duplicate_groups: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def extend(self, other: "ValidationOutcome") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.duplicate_groups.extend(other.duplicate_groups)


@dataclass(slots=True)
class StoredValidationOutcome(ValidationOutcome):
    postal_code_count: int = 0
    point_of_interest_count: int = 0
    active_point_of_interest_count: int = 0
    orphaned_postal_codes: List[str] = field(default_factory=list)
    unused_postal_codes: List[str] = field(default_factory=list)
