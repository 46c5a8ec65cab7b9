from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from ..clients.steam_client import SteamResult, SteamWebClient
from ..config import STEAM
from ..errors import ErrorCode
from ..models import LibraryResult, ResolveResult
from ..normalizer import normalize_owned_games, normalize_profile
from ..parser import is_valid_steam_id, is_valid_vanity_name


class LibraryService:
    """
    Server side of `resolve-identity` and `fetch-library`, talking to the Steam Web API directly.
    """

    def __init__(self, steam: SteamWebClient | None, *, workers: int = STEAM.library_workers):
        self.steam = steam
        self.workers = max(2, int(workers))

    @property
    def configured(self) -> bool:
        return self.steam is not None and self.steam.configured

    def _require_key(self, operation: str) -> bool:
        if self.configured:
            return True
        logging.error(f"[STEAM] {operation}: STEAM_API_KEY not configured")
        return False

    def resolve_identity(self, name: str) -> ResolveResult:
        if not is_valid_vanity_name(name):
            return ResolveResult(error=ErrorCode.INVALID_INPUT_FORMAT)
        if not self._require_key("resolve_identity"):
            return ResolveResult(error=ErrorCode.STEAM_API_ERROR)
        assert self.steam is not None

        res = self.steam.resolve_vanity(name)
        if not res.ok:
            return ResolveResult(error=res.error)
        return ResolveResult(steam_id=str(res.value))

    def fetch_library(self, steam_id: str) -> LibraryResult:
        """
        Fetch owned games and the player summary concurrently; both must succeed.

        - either request failing -> STEAM_API_ERROR (RATE_LIMITED on HTTP 429)
        - games payload without `games` -> PROFILE_PRIVATE
        - `games == []` -> EMPTY_LIBRARY
        """
        if not is_valid_steam_id(steam_id):
            return LibraryResult(error=ErrorCode.INVALID_INPUT_FORMAT)
        if not self._require_key("fetch_library"):
            return LibraryResult(error=ErrorCode.STEAM_API_ERROR)
        steam = self.steam
        assert steam is not None

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            f_games = executor.submit(steam.get_owned_games, steam_id)
            f_profile = executor.submit(steam.get_player_summary, steam_id)
            games: SteamResult = f_games.result()
            profile: SteamResult = f_profile.result()

        for label, res in (("owned games", games), ("player summary", profile)):
            if not res.ok:
                logging.warning(f"[STEAM] fetch_library {steam_id}: {label} failed ({res.error})")
                return LibraryResult(error=res.error)

        response = games.value.get("response", {})
        if response.get("games") is None:
            return LibraryResult(error=ErrorCode.PROFILE_PRIVATE)
        if not response["games"]:
            return LibraryResult(error=ErrorCode.EMPTY_LIBRARY)

        library = normalize_owned_games(games.value)
        logging.info(f"[STEAM] Library {steam_id}: {library.count} games")
        return LibraryResult(
            items=library.items,
            count=library.count,
            profile=normalize_profile(profile.value),
        )
