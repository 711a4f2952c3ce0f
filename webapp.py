"""Flask based HTTP interface for the hotel and flight search backend."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request

from search_core import (
    ClientError,
    ConfigurationError,
    SearchKind,
    SearchOrchestrator,
    Settings,
    create_request,
    load_settings,
)
from search_core.provider import open_session

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

app = Flask(__name__)


def _load_settings() -> Tuple[Optional[Settings], Optional[str]]:
    try:
        return load_settings(), None
    except ConfigurationError as exc:
        LOGGER.error("Search provider is not configured: %s", exc)
        return None, str(exc)


app.config["SEARCH_SETTINGS"], app.config["SEARCH_SETTINGS_ERROR"] = _load_settings()


@app.after_request
def add_cors_headers(response: Response) -> Response:
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "authorization, x-client-info, apikey, content-type"
    response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    return response


def _error(message: str, status: int, kind: SearchKind):
    return jsonify({"success": False, "error": message, kind.result_key: []}), status


def _request_payload() -> Any:
    if request.is_json:
        return request.get_json(silent=True)
    form_data = request.form.to_dict(flat=False)
    return {key: values if len(values) > 1 else values[0] for key, values in form_data.items()}


async def _handle_search(kind: SearchKind):
    try:
        search_request = create_request(kind, _request_payload())
    except ClientError as exc:
        LOGGER.info("Rejected %s search: %s", kind.value, exc)
        return _error(str(exc), 400, kind)

    settings: Optional[Settings] = app.config.get("SEARCH_SETTINGS")
    if settings is None:
        message = app.config.get("SEARCH_SETTINGS_ERROR") or "Search provider is not configured"
        return _error(f"API configuration error - {message}", 500, kind)

    orchestrator = SearchOrchestrator(settings, session_factory=open_session)
    try:
        response = await orchestrator.search(search_request)
    except Exception:  # pragma: no cover - runtime safeguard
        LOGGER.exception("%s search for %s failed", kind.value, search_request.destination)
        return _error("Internal server error", 500, kind)
    payload: Dict[str, Any] = response.to_dict()
    return jsonify(payload), 200


@app.route("/api/search/hotels", methods=["POST"])
async def search_hotels():
    return await _handle_search(SearchKind.HOTEL)


@app.route("/api/search/flights", methods=["POST"])
async def search_flights():
    return await _handle_search(SearchKind.FLIGHT)


@app.route("/api/health")
def health():
    return jsonify({"status": "ok", "configured": app.config.get("SEARCH_SETTINGS") is not None})


if __name__ == "__main__":
    app.run(debug=True)
