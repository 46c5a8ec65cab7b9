"""
Utility functions and helpers.

This module uses lazy attribute loading to avoid importing heavier dependencies (e.g., pandas)
unless they are needed.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "Credentials",
    "ProjectPaths",
    "fold_search_text",
    "fuzzy_score",
    "iter_chunks",
    "load_credentials",
    "normalize_game_name",
    "read_json_file",
    "resolve_credentials",
    "save_json_cache",
    "write_csv",
]


def __getattr__(name: str) -> Any:  # pragma: no cover
    if name in __all__:
        from . import utilities as _u

        return getattr(_u, name)

    raise AttributeError(name)
