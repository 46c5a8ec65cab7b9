from __future__ import annotations

import logging
from typing import Any

import requests

from ..errors import ErrorCode, coerce_error_code
from ..models import LibraryItem, LibraryResult, MetadataRecord, MetadataResult, ResolveResult, SteamProfile
from .http_client import ConfiguredHTTPJSONClient, HTTPJSONClient, HTTPRequestDefaults, HTTPResult
from .parse import as_int, as_str, get_list_of_dicts


def _error_code(res: HTTPResult) -> str:
    """
    Error code carried by a failed response: the server's own code when it sent one, else one
    derived from the transport outcome.
    """
    body = res.data if isinstance(res.data, dict) else {}
    if body.get("error"):
        return coerce_error_code(body.get("error"))
    if res.rate_limited:
        return ErrorCode.RATE_LIMITED
    return ErrorCode.STEAM_API_ERROR


class LibraryAPIClient:
    """
    Client of the browser's own HTTP surface (`steam-library serve`).

    Exposes the same `resolve_identity` / `fetch_library` / `ensure_metadata` methods as the
    in-process services, so the workflow can run against either.
    """

    def __init__(self, base_url: str, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        base_http = HTTPJSONClient(self._session, stats=None)
        self.stats: dict[str, int] = {
            "http_resolve_identity": 0,
            "http_fetch_library": 0,
            "http_fetch_metadata": 0,
        }
        base_http.stats = self.stats
        self._http = ConfiguredHTTPJSONClient(
            base_http,
            HTTPRequestDefaults(context_prefix="Library API"),
        )

    def _post(self, route: str, body: dict[str, Any], counter_key: str) -> HTTPResult:
        return self._http.post_json(
            f"{self.base_url}{route}",
            json_body=body,
            counter_key=counter_key,
            context=route,
        )

    def resolve_identity(self, name: str) -> ResolveResult:
        res = self._post("/api/resolve-identity", {"name": name}, "http_resolve_identity")
        body = res.data if isinstance(res.data, dict) else {}
        if not res.ok or body.get("success") is not True:
            return ResolveResult(error=_error_code(res))
        steam_id = as_str(body.get("canonicalId"))
        if not steam_id:
            logging.error("[DECODE] Library API: /api/resolve-identity: missing canonicalId")
            return ResolveResult(error=ErrorCode.STEAM_API_ERROR)
        return ResolveResult(steam_id=steam_id)

    def fetch_library(self, steam_id: str) -> LibraryResult:
        res = self._post("/api/fetch-library", {"canonicalId": steam_id}, "http_fetch_library")
        body = res.data if isinstance(res.data, dict) else {}
        if body.get("success") is not True:
            return LibraryResult(error=_error_code(res))
        try:
            items = [LibraryItem.from_dict(it) for it in get_list_of_dicts(body.get("items"))]
        except ValueError as e:
            logging.error(f"[DECODE] Library API: /api/fetch-library: {e}")
            return LibraryResult(error=ErrorCode.STEAM_API_ERROR)
        identity = body.get("identity")
        count = as_int(body.get("count"))
        return LibraryResult(
            items=items,
            count=len(items) if count is None else count,
            profile=SteamProfile.from_dict(identity) if isinstance(identity, dict) else None,
        )

    def ensure_metadata(self, app_ids: list[int]) -> MetadataResult:
        res = self._post("/api/fetch-metadata", {"itemIds": list(app_ids)}, "http_fetch_metadata")
        body = res.data if isinstance(res.data, dict) else {}
        if not res.ok or body.get("success") is not True:
            logging.error(f"[IGDB] Remote metadata lookup failed: {body.get('error') or res.error}")
            return MetadataResult(failed_batches=1)
        records = [MetadataRecord.from_dict(d) for d in get_list_of_dicts(body.get("data"))]
        return MetadataResult(records=[r for r in records if r is not None])
