"""HTTP entrypoint serving destination explore results (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from flask import Flask, jsonify, request

from destination_explorer.core import db
from destination_explorer.core.config import get_settings
from destination_explorer.core.errors import BuildError, ValidationError
from destination_explorer.etl.transform import row_to_place
from destination_explorer.jobs.explore import GENERIC_FAILURE_MESSAGE, build_destination_result

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": getattr(settings, "worker_port", None),
                "cache_enabled": getattr(settings, "use_cache", None),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/api/buildExploreDestinationResult")
def build_explore_destination_result() -> Any:
    """
    Build (or serve from cache) the ranked places list for a destination.
    Required JSON fields: destinationKey (alias: placeId), cityName
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    destination_key = payload.get("destinationKey") or payload.get("placeId")
    city_name = payload.get("cityName")
    logger.info("Build request: destinationKey=%s cityName=%s", destination_key, city_name)

    try:
        result = build_destination_result(destination_key, city_name)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except BuildError:
        return jsonify({"error": GENERIC_FAILURE_MESSAGE}), 500

    return jsonify(result.to_payload()), 200


@app.get("/api/getPlaceDetails/<spot_id>")
def get_place_details(spot_id: str) -> Any:
    """Read-only lookup of a single stored place."""
    try:
        row = db.get_place(spot_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error fetching place details for %s: %s", spot_id, exc)
        return jsonify({"error": "Failed to fetch place details"}), 500

    if row is None:
        logger.info("Place details not found for %s", spot_id)
        return jsonify({"error": "Place details not found"}), 404

    return jsonify({"data": row_to_place(row).to_dict()}), 200


def main() -> None:
    """Bind on PORT when the platform injects it, else on the configured worker port."""
    env_port = os.getenv("PORT")
    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)

    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
