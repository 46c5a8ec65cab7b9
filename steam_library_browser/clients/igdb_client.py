from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import requests

from ..config import IGDB
from ..models import MetadataRecord
from .http_client import ConfiguredHTTPJSONClient, HTTPJSONClient, HTTPRequestDefaults
from .parse import as_float, as_int, as_str, earliest_year, get_list_of_dicts, names_list, parse_int_text

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
IGDB_API_URL = "https://api.igdb.com/v4"
IGDB_IMAGE_URL = "https://images.igdb.com/igdb/image/upload"

EXTERNAL_GAMES_FIELDS = (
    "game.name, game.genres.name, game.total_rating, game.summary, game.release_dates.y, "
    "game.platforms.name, game.cover.image_id, uid, external_game_source"
)


class TwitchTokenProvider:
    """
    Client-credentials bearer token for IGDB, shared by every batch and request.

    The token is cached until `expires_in` (minus a safety margin) elapses, or until a caller
    reports it as rejected via `invalidate()`. Access is serialized so concurrent requests never
    fetch two tokens at once.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        session: requests.Session | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self._clock = clock
        self.stats: dict[str, int] = {"http_oauth_token": 0}
        self._http = HTTPJSONClient(session or requests.Session(), stats=self.stats)
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at = 0.0

    def get_token(self) -> str | None:
        with self._lock:
            if self._token and self._clock() < self._expires_at:
                return self._token
            self._token = None
            # Form-encoded body (not URL params) keeps the secret out of logged URLs.
            res = self._http.post_json(
                TWITCH_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "grant_type": "client_credentials",
                },
                counter_key="http_oauth_token",
                context="Twitch OAuth token",
            )
            if not res.ok:
                logging.error(f"[IGDB] Could not obtain an access token ({res.error})")
                return None
            data = res.data if isinstance(res.data, dict) else {}
            token = as_str(data.get("access_token"))
            if not token:
                logging.error("[DECODE] Twitch OAuth token: response has no access_token")
                return None
            expires_in = as_float(data.get("expires_in"))
            ttl = IGDB.default_token_ttl_s if expires_in is None else expires_in
            self._token = token
            self._expires_at = self._clock() + max(ttl - IGDB.token_expiry_margin_s, 0.0)
            return token

    def invalidate(self, token: str | None = None) -> None:
        """
        Drop the cached token. When `token` is given, only drop it if it is still the current one.
        """
        with self._lock:
            if token is not None and token != self._token:
                return
            self._token = None
            self._expires_at = 0.0


def build_external_games_query(app_ids: list[int]) -> str:
    uids = ", ".join(f'"{int(a)}"' for a in app_ids)
    return (
        f"fields {EXTERNAL_GAMES_FIELDS};\n"
        f"where uid = ({uids}) & external_game_source = {IGDB.steam_source};\n"
        f"limit {IGDB.batch_size};\n"
    )


def cover_url(image_id: str | None, size: str = IGDB.cover_size) -> str | None:
    image_id = as_str(image_id)
    if not image_id:
        return None
    return f"{IGDB_IMAGE_URL}/{size}/{image_id}.jpg"


def record_from_external_game(item: dict[str, Any], *, updated_at: str | None = None) -> MetadataRecord | None:
    """
    Map one `external_games` row (with its expanded `game`) to a MetadataRecord.

    Rows without a numeric `uid` cannot be keyed by Steam appid and are skipped.
    """
    app_id = parse_int_text(item.get("uid"))
    if app_id is None:
        return None
    game = item.get("game")
    if not isinstance(game, dict):
        game = {}
    cover = game.get("cover")
    return MetadataRecord(
        app_id=app_id,
        igdb_id=as_int(game.get("id")),
        name=as_str(game.get("name")),
        genres=names_list(game.get("genres")),
        year=earliest_year(game.get("release_dates")),
        platforms=names_list(game.get("platforms")),
        external_game_source=as_int(item.get("external_game_source")),
        rating=as_float(game.get("total_rating")),
        summary=as_str(game.get("summary")) or None,
        cover_url=cover_url(cover.get("image_id")) if isinstance(cover, dict) else None,
        updated_at=updated_at,
    )


class IGDBClient:
    def __init__(
        self,
        client_id: str,
        token_provider: TwitchTokenProvider,
        session: requests.Session | None = None,
    ):
        self.client_id = client_id
        self.tokens = token_provider
        self._session = session or requests.Session()
        base_http = HTTPJSONClient(self._session, stats=None)
        self.stats: dict[str, int] = {
            # HTTP request counters (attempts).
            "http_external_games": 0,
            "token_unavailable": 0,
            "token_rejected": 0,
        }
        base_http.stats = self.stats
        self._post_http = ConfiguredHTTPJSONClient(
            base_http,
            HTTPRequestDefaults(counter_key="http_external_games", context_prefix="IGDB POST"),
        )

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {token}",
            "Content-Type": "text/plain",
        }

    def lookup_steam_apps(self, app_ids: list[int]) -> list[dict[str, Any]] | None:
        """
        Look up one batch of Steam appids on IGDB's `external_games` endpoint.

        Returns the raw rows, or None when the batch failed (no token, transport error, non-2xx,
        non-list body). A 401 drops the cached token so the next batch requests a fresh one.
        """
        if not app_ids:
            return []
        if len(app_ids) > IGDB.batch_size:
            raise ValueError(f"batch of {len(app_ids)} exceeds IGDB limit {IGDB.batch_size}")

        token = self.tokens.get_token()
        if not token:
            self.stats["token_unavailable"] += 1
            return None

        res = self._post_http.post_json(
            f"{IGDB_API_URL}/external_games",
            headers=self._headers(token),
            data=build_external_games_query(app_ids),
            context=f"/external_games ({len(app_ids)} ids)",
        )
        if res.status == 401:
            self.stats["token_rejected"] += 1
            logging.warning("[IGDB] Access token rejected; it will be renewed on the next request")
            self.tokens.invalidate(token)
            return None
        if not res.ok:
            return None
        if not isinstance(res.data, list):
            logging.error("[DECODE] IGDB POST: /external_games: expected a JSON array")
            return None
        return get_list_of_dicts(res.data)

    def format_stats(self) -> str:
        s = self.stats
        return (
            f"external_games={s['http_external_games']} "
            f"token_requests={self.tokens.stats['http_oauth_token']} "
            f"token_rejected={s['token_rejected']} "
            f"failures net={int(s.get('network_failures', 0) or 0)} "
            f"http={int(s.get('http_failures', 0) or 0)}"
        )
