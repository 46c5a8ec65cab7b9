"""
API clients for Steam, IGDB and the library browser's own HTTP surface.

Attributes are loaded lazily so that `models` can import `clients.parse` without pulling in
the clients (which import `models` themselves).
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "HTTPJSONClient",
    "HTTPResult",
    "IGDBClient",
    "LibraryAPIClient",
    "SteamWebClient",
    "TwitchTokenProvider",
]


def __getattr__(name: str) -> Any:  # pragma: no cover
    if name in {"HTTPJSONClient", "HTTPResult"}:
        from . import http_client as _h

        return getattr(_h, name)

    if name in {"IGDBClient", "TwitchTokenProvider"}:
        from . import igdb_client as _i

        return getattr(_i, name)

    if name == "SteamWebClient":
        from .steam_client import SteamWebClient

        return SteamWebClient

    if name == "LibraryAPIClient":
        from .library_api_client import LibraryAPIClient

        return LibraryAPIClient

    raise AttributeError(name)
