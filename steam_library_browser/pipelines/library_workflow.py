from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from ..errors import ErrorCode, message_for
from ..models import LibraryItem, MetadataResult, SavedIdentity, SteamProfile
from ..normalizer import apply_metadata
from ..parser import needs_vanity_resolution, parse_steam_input


class WorkflowState:
    IDLE = "idle"
    RESOLVING = "resolving"
    VANITY_LOOKUP = "vanity_lookup"
    FETCHING_LIBRARY = "fetching_library"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CurrentIdentity:
    steam_id: str
    vanity_name: str | None = None


class LibraryWorkflow:
    """
    Request lifecycle for "show me this profile's library".

    idle -> resolving -> [vanity_lookup] -> fetching_library -> succeeded | failed

    `backend` provides `resolve_identity(name) -> ResolveResult` and
    `fetch_library(steam_id) -> LibraryResult` (LibraryService or LibraryAPIClient).
    `fetcher`, when given, provides `ensure_metadata(app_ids) -> MetadataResult` and is only
    used by `enrich()`.
    """

    def __init__(self, backend: Any, fetcher: Any | None = None, *, enrich: bool = False):
        self.backend = backend
        self.fetcher = fetcher
        self.auto_enrich = enrich
        self.state = WorkflowState.IDLE
        self.transitions: list[tuple[str, str]] = []
        self.error: str | None = None
        self.items: list[LibraryItem] = []
        self.count = 0
        self.profile: SteamProfile | None = None
        self.current: CurrentIdentity | None = None
        self.last_failed_input: str | None = None
        self.metadata: MetadataResult | None = None

    @property
    def error_message(self) -> str:
        return message_for(self.error)

    def _transition(self, state: str) -> None:
        logging.debug(f"[WORKFLOW] {self.state} -> {state}")
        self.transitions.append((self.state, state))
        self.state = state

    def _reset_result(self) -> None:
        self.error = None
        self.items = []
        self.count = 0
        self.profile = None
        self.current = None
        self.metadata = None

    def _fail(self, code: str | None, raw_input: str) -> str:
        self._reset_result()
        self.error = code or ErrorCode.STEAM_API_ERROR
        self.last_failed_input = raw_input
        self._transition(WorkflowState.FAILED)
        logging.info(f"[WORKFLOW] Failed for {raw_input.strip()!r}: {self.error}")
        return self.state

    def can_submit(self, raw_input: str | None) -> bool:
        """False for blank input or an unchanged input that already failed."""
        s = (raw_input or "").strip()
        if not s:
            return False
        return self.last_failed_input is None or s != self.last_failed_input.strip()

    def fetch_library(self, raw_input: str) -> str:
        """Run the whole lifecycle for `raw_input`; returns the final state."""
        raw_input = raw_input or ""
        self._reset_result()
        self._transition(WorkflowState.RESOLVING)

        parsed = parse_steam_input(raw_input)
        if parsed is None:
            return self._fail(ErrorCode.INVALID_INPUT_FORMAT, raw_input)

        vanity_name: str | None = None
        steam_id = parsed.steam_id
        if needs_vanity_resolution(parsed):
            vanity_name = parsed.value
            self._transition(WorkflowState.VANITY_LOOKUP)
            resolved = self.backend.resolve_identity(vanity_name)
            if not resolved.ok:
                return self._fail(resolved.error, raw_input)
            steam_id = resolved.steam_id
        assert steam_id is not None

        self._transition(WorkflowState.FETCHING_LIBRARY)
        library = self.backend.fetch_library(steam_id)
        if not library.ok:
            return self._fail(library.error, raw_input)

        self.items = list(library.items)
        self.count = library.count
        self.profile = library.profile
        self.current = CurrentIdentity(steam_id=steam_id, vanity_name=vanity_name)
        self.last_failed_input = None
        self._transition(WorkflowState.SUCCEEDED)

        if self.auto_enrich:
            self.enrich()
        return self.state

    def load_saved(self, saved: SavedIdentity) -> str:
        return self.fetch_library(saved.steam_id)

    def enrich(self) -> MetadataResult | None:
        """
        Merge metadata into the current items. Leaves the workflow state untouched; items without
        metadata keep their plain library values.
        """
        if self.state != WorkflowState.SUCCEEDED or self.fetcher is None or not self.items:
            return None
        result = self.fetcher.ensure_metadata([it.app_id for it in self.items])
        self.items = apply_metadata(self.items, result.records)
        self.metadata = result
        logging.info(
            f"[WORKFLOW] Enriched {len(result.records)}/{len(self.items)} items"
            + (f" ({result.failed_batches} failed batches)" if result.failed_batches else "")
        )
        return result

    def to_saved_identity(self, now_ms: int | None = None) -> SavedIdentity | None:
        if self.state != WorkflowState.SUCCEEDED or self.current is None:
            return None
        profile = self.profile
        return SavedIdentity(
            steam_id=self.current.steam_id,
            display_name=(profile.persona_name or None) if profile else None,
            vanity_name=self.current.vanity_name,
            saved_at_ms=int(time.time() * 1000) if now_ms is None else now_ms,
            avatar_url=(profile.avatar_medium or None) if profile else None,
        )

    def clear(self) -> None:
        self._reset_result()
        self.last_failed_input = None
        if self.state != WorkflowState.IDLE:
            self._transition(WorkflowState.IDLE)
