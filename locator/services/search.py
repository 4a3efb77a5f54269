"""Nearest-location search by postal code."""

import logging
from typing import Any, Optional

from locator.core.store import StoreError
from locator.geo.ranking import MAX_RESULT_LIMIT, rank
from locator.models import ErrorKind, SearchResponse
from locator.validation import rules

DEFAULT_RESULT_LIMIT = 10

GENERIC_FAILURE_MESSAGE = "An error occurred while searching for locations. Please try again."


class ProximitySearchService:
    """Resolve a postal code to coordinates and rank active locations by distance.

    The service keeps no per-request state, so one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        store,
        *,
        default_limit: int = DEFAULT_RESULT_LIMIT,
        max_limit: int = MAX_RESULT_LIMIT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not 1 <= default_limit <= max_limit:
            raise ValueError("default_limit must be between 1 and max_limit")
        self.store = store
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.logger = logger or logging.getLogger(__name__)

    def search(self, postal_code: Optional[str], limit: Any = None) -> SearchResponse:
        """Return up to ``limit`` active locations nearest to ``postal_code``.

        Invalid input is rejected before the store is touched. Failures come
        back as a ``SearchResponse`` carrying an ``ErrorKind``; nothing is raised.
        """
        if rules.is_blank(postal_code):
            self.logger.warning("Search attempted with null or empty postal code")
            return SearchResponse.error(ErrorKind.VALIDATION, "Postal code is required")

        if not rules.is_valid_postal_code(postal_code):
            self.logger.warning("Search attempted with invalid postal code format: %s", postal_code)
            return SearchResponse.error(ErrorKind.VALIDATION, "Please enter a valid 5-digit postal code")

        if limit is None:
            limit = self.default_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= self.max_limit:
            self.logger.warning("Invalid limit parameter: %s", limit)
            return SearchResponse.error(ErrorKind.VALIDATION, f"Limit must be between 1 and {self.max_limit}")

        code = postal_code.strip()
        self.logger.info("Searching for locations near postal code %s, limit %d", code, limit)

        try:
            origin = self.store.get_postal_code(code)
            base_code = rules.base_postal_code(code)
            if origin is None and base_code != code:
                origin = self.store.get_postal_code(base_code)
            if origin is None:
                self.logger.warning("Postal code not found in store: %s", code)
                return SearchResponse.error(ErrorKind.NOT_FOUND, "Postal code not found")

            candidates = self.store.list_active_points_of_interest()
        except StoreError as exc:
            self.logger.error("Store error while searching near postal code %s: %s", code, exc)
            return SearchResponse.error(ErrorKind.STORE, GENERIC_FAILURE_MESSAGE)

        if not candidates:
            self.logger.info("No active locations found in store")
            return SearchResponse.ok([], "No locations found")

        results = rank(origin.point, candidates, limit, ceiling=self.max_limit)
        self.logger.info("Found %d locations near postal code %s", len(results), code)
        return SearchResponse.ok(results, f"Found {len(results)} location(s) near {_place_name(origin)}")


def _place_name(origin) -> str:
    parts = [part for part in (origin.city, origin.region) if part]
    return ", ".join(parts) if parts else origin.code
