"""
HTTP surface used by the browser front end (and by `LibraryAPIClient`).

POST /api/resolve-identity   {name}          -> {success, canonicalId | error}
POST /api/fetch-library      {canonicalId}   -> {success, items, count, identity | error}
POST /api/fetch-metadata     {itemIds}       -> {success, data | error}
GET  /api/health                             -> {status: "ok"}
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request

from .errors import ErrorCode
from .parser import is_valid_steam_id, is_valid_vanity_name
from .pipelines.library_service import LibraryService
from .pipelines.metadata_pipeline import MetadataFetcher, unique_app_ids

_STATUS_BY_ERROR = {
    ErrorCode.INVALID_INPUT_FORMAT: 400,
    ErrorCode.VANITY_NOT_FOUND: 404,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.STEAM_API_ERROR: 502,
    # The request worked; the library just cannot be listed.
    ErrorCode.PROFILE_PRIVATE: 200,
    ErrorCode.EMPTY_LIBRARY: 200,
}


def error_response(error: str, status_code: int | None = None):
    status = status_code if status_code is not None else _STATUS_BY_ERROR.get(error, 502)
    return jsonify({"success": False, "error": error}), status


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_app(service: LibraryService, fetcher: MetadataFetcher | None = None) -> Flask:
    app = Flask(__name__)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response(ErrorCode.STEAM_API_ERROR, 405)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/resolve-identity")
    def resolve_identity():
        name = _json_body().get("name")
        if not is_valid_vanity_name(name):
            return error_response(ErrorCode.INVALID_INPUT_FORMAT)
        if not service.configured:
            logging.error("[HTTP] /api/resolve-identity: STEAM_API_KEY not configured")
            return error_response(ErrorCode.STEAM_API_ERROR, 500)

        result = service.resolve_identity(name)
        if not result.ok:
            return error_response(result.error or ErrorCode.STEAM_API_ERROR)
        return jsonify({"success": True, "canonicalId": result.steam_id})

    @app.post("/api/fetch-library")
    def fetch_library():
        steam_id = _json_body().get("canonicalId")
        if not is_valid_steam_id(steam_id):
            return error_response(ErrorCode.INVALID_INPUT_FORMAT)
        if not service.configured:
            logging.error("[HTTP] /api/fetch-library: STEAM_API_KEY not configured")
            return error_response(ErrorCode.STEAM_API_ERROR, 500)

        result = service.fetch_library(steam_id)
        if not result.ok:
            return error_response(result.error or ErrorCode.STEAM_API_ERROR)
        return jsonify(
            {
                "success": True,
                "items": [it.to_dict() for it in result.items],
                "count": result.count,
                "identity": result.profile.to_dict() if result.profile else None,
            }
        )

    @app.post("/api/fetch-metadata")
    def fetch_metadata():
        item_ids = _json_body().get("itemIds")
        if not isinstance(item_ids, list):
            return jsonify({"success": False, "error": "Invalid input"}), 400
        if fetcher is None:
            logging.error("[HTTP] /api/fetch-metadata: metadata fetcher not configured")
            return jsonify({"success": False, "error": "Metadata lookup is not configured"}), 500
        try:
            result = fetcher.ensure_metadata(unique_app_ids(item_ids))
        except Exception as e:
            logging.error(f"[HTTP] /api/fetch-metadata: {type(e).__name__}: {e}", exc_info=True)
            return jsonify({"success": False, "error": "Metadata lookup failed"}), 500
        return jsonify({"success": True, "data": [r.to_dict() for r in result.records]})

    return app
