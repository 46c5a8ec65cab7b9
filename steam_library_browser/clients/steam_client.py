from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from ..config import STEAM
from ..errors import ErrorCode
from .http_client import ConfiguredHTTPJSONClient, HTTPJSONClient, HTTPRequestDefaults, HTTPResult
from .parse import as_int, as_str, get_list_of_dicts

STEAM_RESOLVE_VANITY_URL = f"{STEAM.api_base}/ISteamUser/ResolveVanityURL/v1/"
STEAM_OWNED_GAMES_URL = f"{STEAM.api_base}/IPlayerService/GetOwnedGames/v1/"
STEAM_PLAYER_SUMMARIES_URL = f"{STEAM.api_base}/ISteamUser/GetPlayerSummaries/v2/"

# ResolveVanityURL: 1 = match, 42 = no match.
_VANITY_MATCH = 1


@dataclass(frozen=True)
class SteamResult:
    """
    Tagged result of a Steam Web API call after the decode step.

    Either `value` is set (decoded payload) or `error` holds an ErrorCode.
    """

    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failure_code(res: HTTPResult) -> str:
    return ErrorCode.RATE_LIMITED if res.rate_limited else ErrorCode.STEAM_API_ERROR


# -------------------------------------------------
# Decoding (upstream payload -> validated shape)
# -------------------------------------------------
def decode_vanity_response(data: Any) -> SteamResult:
    response = data.get("response") if isinstance(data, dict) else None
    if not isinstance(response, dict):
        logging.error("[DECODE] ResolveVanityURL: payload has no 'response' object")
        return SteamResult(error=ErrorCode.STEAM_API_ERROR)
    steam_id = as_str(response.get("steamid"))
    if as_int(response.get("success")) != _VANITY_MATCH or not steam_id:
        return SteamResult(error=ErrorCode.VANITY_NOT_FOUND)
    return SteamResult(value=steam_id)


def decode_owned_games(data: Any) -> SteamResult:
    """
    Validate a GetOwnedGames payload.

    Returns `{"response": {...}}` where `games`, when present, is a list of dicts that all carry
    an integer `appid`. A missing `response`/`games` is kept as-is (private library); only a
    structurally broken payload is an error.
    """
    if not isinstance(data, dict):
        logging.error("[DECODE] GetOwnedGames: payload is not a JSON object")
        return SteamResult(error=ErrorCode.STEAM_API_ERROR)
    response = data.get("response")
    if not isinstance(response, dict):
        return SteamResult(value={"response": {}})

    out: dict[str, Any] = {}
    game_count = as_int(response.get("game_count"))
    if game_count is not None:
        out["game_count"] = game_count
    games = response.get("games")
    if games is not None:
        if not isinstance(games, list):
            logging.error("[DECODE] GetOwnedGames: 'games' is not a list")
            return SteamResult(error=ErrorCode.STEAM_API_ERROR)
        valid = [g for g in get_list_of_dicts(games) if as_int(g.get("appid")) is not None]
        dropped = len(games) - len(valid)
        if dropped:
            logging.warning(f"[DECODE] GetOwnedGames: dropped {dropped} entries without an appid")
        out["games"] = valid
    return SteamResult(value={"response": out})


def decode_player_summaries(data: Any, steam_id: str) -> SteamResult:
    """
    Pick the player matching `steam_id` from a GetPlayerSummaries payload.
    """
    response = data.get("response") if isinstance(data, dict) else None
    players = get_list_of_dicts(response.get("players")) if isinstance(response, dict) else []
    if not players:
        logging.error(f"[DECODE] GetPlayerSummaries: no player returned for {steam_id}")
        return SteamResult(error=ErrorCode.STEAM_API_ERROR)
    for player in players:
        if as_str(player.get("steamid")) == steam_id:
            return SteamResult(value=player)
    return SteamResult(value=players[0])


class SteamWebClient:
    def __init__(self, api_key: str, session: requests.Session | None = None):
        self.api_key = (api_key or "").strip()
        self._session = session or requests.Session()
        base_http = HTTPJSONClient(self._session, stats=None)
        self.stats: dict[str, int] = {
            # HTTP request counters (attempts).
            "http_resolve_vanity": 0,
            "http_owned_games": 0,
            "http_player_summaries": 0,
        }
        base_http.stats = self.stats
        self._http = ConfiguredHTTPJSONClient(
            base_http,
            HTTPRequestDefaults(context_prefix="Steam Web API"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def resolve_vanity(self, vanity_name: str) -> SteamResult:
        res = self._http.get_json(
            STEAM_RESOLVE_VANITY_URL,
            params={"key": self.api_key, "vanityurl": vanity_name},
            counter_key="http_resolve_vanity",
            context=f"ResolveVanityURL vanity={vanity_name}",
        )
        if not res.ok:
            return SteamResult(error=_failure_code(res))
        return decode_vanity_response(res.data)

    def get_owned_games(self, steam_id: str) -> SteamResult:
        res = self._http.get_json(
            STEAM_OWNED_GAMES_URL,
            params={
                "key": self.api_key,
                "steamid": steam_id,
                # Names and image hashes, plus free games that were played.
                "include_appinfo": 1,
                "include_played_free_games": 1,
                "format": "json",
            },
            counter_key="http_owned_games",
            context=f"GetOwnedGames steamid={steam_id}",
        )
        if not res.ok:
            return SteamResult(error=_failure_code(res))
        return decode_owned_games(res.data)

    def get_player_summary(self, steam_id: str) -> SteamResult:
        res = self._http.get_json(
            STEAM_PLAYER_SUMMARIES_URL,
            params={"key": self.api_key, "steamids": steam_id},
            counter_key="http_player_summaries",
            context=f"GetPlayerSummaries steamid={steam_id}",
        )
        if not res.ok:
            return SteamResult(error=_failure_code(res))
        return decode_player_summaries(res.data, steam_id)

    def format_stats(self) -> str:
        s = self.stats
        return (
            f"resolve_vanity={s['http_resolve_vanity']} "
            f"owned_games={s['http_owned_games']} "
            f"player_summaries={s['http_player_summaries']} "
            f"failures net={int(s.get('network_failures', 0) or 0)} "
            f"http={int(s.get('http_failures', 0) or 0)} "
            f"429={int(s.get('http_429', 0) or 0)}"
        )
