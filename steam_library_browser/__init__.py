"""Steam Library Browser - Resolve Steam profiles, list owned games and enrich them with IGDB metadata."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("steam-library-browser")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"
