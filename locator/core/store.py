"""PostgreSQL-backed store for postal codes and points-of-interest."""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

import psycopg2
from psycopg2 import extras

from locator.core.db import get_connection
from locator.models import (
    GeoPoint,
    PointOfInterest,
    PostalCode,
    Record,
    RecordKind,
    join_natural_key,
    split_natural_key,
)

logger = logging.getLogger(__name__)

_TABLES = {
    RecordKind.POSTAL_CODE: "postal_codes",
    RecordKind.POINT_OF_INTEREST: "points_of_interest",
}

_POSTAL_CODE_COLUMNS = "id, code, latitude, longitude, city, region"
_POI_COLUMNS = (
    "id, name, address, city, region, postal_code, phone, latitude, longitude, hours, active, created_at"
)

_INSERT_POSTAL_CODES = """
INSERT INTO postal_codes (code, latitude, longitude, city, region)
VALUES %s
"""

_INSERT_POINTS_OF_INTEREST = """
INSERT INTO points_of_interest (
    name, address, city, region, postal_code, phone, latitude, longitude, hours, active
) VALUES %s
"""


class StoreError(RuntimeError):
    """Raised when a store call fails (connectivity, constraint violation, ...)."""


def _postal_code_from_row(row: Dict[str, Any]) -> PostalCode:
    return PostalCode(
        id=row["id"],
        code=row["code"],
        point=GeoPoint(float(row["latitude"]), float(row["longitude"])),
        city=row.get("city"),
        region=row.get("region"),
    )


def _poi_from_row(row: Dict[str, Any]) -> PointOfInterest:
    return PointOfInterest(
        id=row["id"],
        name=row["name"],
        address=row["address"],
        city=row.get("city"),
        region=row.get("region"),
        postal_code=row.get("postal_code"),
        phone=row.get("phone"),
        point=GeoPoint(float(row["latitude"]), float(row["longitude"])),
        hours=row.get("hours"),
        active=bool(row.get("active", True)),
        created_at=row.get("created_at"),
    )


def _postal_code_params(record: PostalCode) -> tuple:
    return (record.code, record.point.latitude, record.point.longitude, record.city, record.region)


def _poi_params(record: PointOfInterest) -> tuple:
    return (
        record.name,
        record.address,
        record.city,
        record.region,
        record.postal_code,
        record.phone,
        record.point.latitude,
        record.point.longitude,
        record.hours,
        record.active,
    )


class PostgresStore:
    """Store operations used by search, ingestion and validation.

    Every call borrows one pooled connection, commits or rolls back, and
    returns it. psycopg2 errors surface as :class:`StoreError`.
    """

    def __init__(self, connection_factory: Optional[Callable] = None) -> None:
        self._connection_factory = connection_factory or get_connection

    @contextmanager
    def _cursor(self, commit: bool = False):
        with self._connection_factory() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    yield cur
                if commit:
                    conn.commit()
                else:
                    conn.rollback()
            except psycopg2.Error as exc:
                conn.rollback()
                logger.error("Store call failed: %s", exc)
                raise StoreError(str(exc).strip() or type(exc).__name__) from exc

    # ---------- Reads ----------

    def get_postal_code(self, code: str) -> Optional[PostalCode]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_POSTAL_CODE_COLUMNS} FROM postal_codes WHERE code = %s", (code,))
            row = cur.fetchone()
        return _postal_code_from_row(row) if row else None

    def list_active_points_of_interest(self) -> List[PointOfInterest]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_POI_COLUMNS} FROM points_of_interest WHERE active ORDER BY id")
            rows = cur.fetchall()
        return [_poi_from_row(row) for row in rows]

    def list_points_of_interest(self) -> List[PointOfInterest]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_POI_COLUMNS} FROM points_of_interest ORDER BY id")
            rows = cur.fetchall()
        return [_poi_from_row(row) for row in rows]

    def list_postal_codes(self) -> List[PostalCode]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_POSTAL_CODE_COLUMNS} FROM postal_codes ORDER BY id")
            rows = cur.fetchall()
        return [_postal_code_from_row(row) for row in rows]

    def existing_keys(self, kind: RecordKind, keys: Iterable[str]) -> Set[str]:
        """Subset of ``keys`` (serialized natural keys) already present in the store."""
        keys = list(dict.fromkeys(keys))
        if not keys:
            return set()

        with self._cursor() as cur:
            if kind is RecordKind.POSTAL_CODE:
                cur.execute("SELECT code FROM postal_codes WHERE code = ANY(%s)", (keys,))
                return {row["code"] for row in cur.fetchall()}

            pairs = tuple(split_natural_key(key) for key in keys)
            cur.execute(
                "SELECT name, address FROM points_of_interest WHERE (name, address) IN %s",
                (pairs,),
            )
            return {join_natural_key(row["name"], row["address"]) for row in cur.fetchall()}

    def count(self, kind: RecordKind) -> int:
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS total FROM {_TABLES[kind]}")
            return int(cur.fetchone()["total"])

    def count_active(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS total FROM points_of_interest WHERE active")
            return int(cur.fetchone()["total"])

    # ---------- Writes ----------

    def bulk_insert(self, kind: RecordKind, records: Sequence[Record]) -> None:
        if not records:
            return
        if kind is RecordKind.POSTAL_CODE:
            sql, rows = _INSERT_POSTAL_CODES, [_postal_code_params(r) for r in records]
        else:
            sql, rows = _INSERT_POINTS_OF_INTEREST, [_poi_params(r) for r in records]

        with self._cursor(commit=True) as cur:
            extras.execute_values(cur, sql, rows, page_size=len(rows))
        logger.debug("Inserted %d %s rows", len(rows), kind.value)

    def delete_all(self, kind: RecordKind) -> int:
        with self._cursor(commit=True) as cur:
            cur.execute(f"DELETE FROM {_TABLES[kind]}")
            deleted = cur.rowcount
        logger.info("Deleted %d rows from %s", deleted, _TABLES[kind])
        return deleted
