"""HTTP entrypoint for nearest-location searches."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from locator.core.config import get_settings
from locator.core.db import init_pool
from locator.core.store import PostgresStore
from locator.models import ErrorKind, SearchResponse
from locator.services.search import GENERIC_FAILURE_MESSAGE, ProximitySearchService

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
}


def _search_params() -> Dict[str, Any]:
    """Merge query-string and JSON body parameters; the body wins."""
    params: Dict[str, Any] = dict(request.args.items())
    if request.method == "POST":
        payload = request.get_json(silent=True) or {}
        if isinstance(payload, dict):
            params.update(payload)
    return params


def create_app(search_service: ProximitySearchService) -> Flask:
    app = Flask(__name__)

    @app.get("/")
    def root() -> Any:
        """Simple root to avoid 404 on GET /"""
        return "ok", 200

    @app.get("/healthz")
    def healthcheck() -> Any:
        """Lightweight health endpoint; does not touch the database."""
        return (
            jsonify(
                {
                    "status": "ok",
                    "max_search_limit": search_service.max_limit,
                    "revision": os.getenv("K_REVISION", "unknown"),
                }
            ),
            200,
        )

    @app.route("/api/locations/search", methods=["GET", "POST"])
    def search_locations() -> Any:
        """
        Search for active locations nearest to a postal code.
        Required: zipcode (or postalCode). Optional: limit (int).
        """
        params = _search_params()
        postal_code = params.get("zipcode") or params.get("postalCode")

        limit_raw = params.get("limit")
        limit: Optional[int] = None
        if limit_raw is not None and limit_raw != "":
            try:
                if isinstance(limit_raw, float) and not limit_raw.is_integer():
                    raise ValueError(limit_raw)
                limit = int(limit_raw)
            except (TypeError, ValueError):
                response = SearchResponse.error(ErrorKind.VALIDATION, "limit must be numeric")
                return jsonify(response.to_dict()), 400

        logger.info("Location search requested for postal code=%s limit=%s", postal_code, limit)
        try:
            response = search_service.search(postal_code if postal_code is None else str(postal_code), limit)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while searching near %s: %s", postal_code, exc)
            response = SearchResponse.error(ErrorKind.STORE, GENERIC_FAILURE_MESSAGE)

        if response.success:
            return jsonify(response.to_dict()), 200
        return jsonify(response.to_dict()), _STATUS_BY_KIND.get(response.error_kind, 500)

    return app


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    init_pool()
    service = ProximitySearchService(
        PostgresStore(),
        default_limit=settings.default_search_limit,
        max_limit=settings.max_search_limit,
    )
    app = create_app(service)

    logger.info("[BOOT] Binding on 0.0.0.0:%d", settings.server_port)
    app.run(host="0.0.0.0", port=settings.server_port)


if __name__ == "__main__":
    main()
