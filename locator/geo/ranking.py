"""Distance ranking of candidate points-of-interest."""

from typing import Iterable, List

from locator.geo.distance import distance_miles
from locator.models import GeoPoint, PointOfInterest, SearchResult

MAX_RESULT_LIMIT = 100


def rank(
    origin: GeoPoint,
    candidates: Iterable[PointOfInterest],
    limit: int,
    ceiling: int = MAX_RESULT_LIMIT,
) -> List[SearchResult]:
    """Return the ``limit`` candidates closest to ``origin``, nearest first.

    ``limit`` is clamped to ``ceiling`` instead of being rejected. Candidates at
    equal distance keep their input order.
    """
    limit = min(limit, ceiling)
    if limit <= 0:
        return []

    results = [
        SearchResult.from_point_of_interest(candidate, distance_miles(origin, candidate.point))
        for candidate in candidates
    ]
    # sorted() is stable, so ties stay in input order.
    results = sorted(results, key=lambda result: result.distance_miles)
    return results[:limit]
