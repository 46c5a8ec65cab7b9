from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from ..errors import StoreError
from ..models import MetadataRecord
from ..utils.utilities import read_json_file, save_json_cache


class MetadataStore:
    """
    Persistent metadata keyed by Steam appid.

    `query()` returns the stored records for the ids that exist; `upsert()` inserts or replaces
    by appid. Both raise StoreError on failure.
    """

    def query(self, app_ids: Iterable[int]) -> list[MetadataRecord]:
        raise NotImplementedError

    def upsert(self, records: Iterable[MetadataRecord]) -> None:
        raise NotImplementedError


class InMemoryMetadataStore(MetadataStore):
    def __init__(self, records: Iterable[MetadataRecord] = ()):
        self._lock = threading.Lock()
        self._rows: dict[int, MetadataRecord] = {r.app_id: r for r in records}
        self.stats: dict[str, int] = {"query_calls": 0, "upsert_calls": 0}

    def __len__(self) -> int:
        return len(self._rows)

    def query(self, app_ids: Iterable[int]) -> list[MetadataRecord]:
        with self._lock:
            self.stats["query_calls"] += 1
            return [self._rows[a] for a in app_ids if a in self._rows]

    def upsert(self, records: Iterable[MetadataRecord]) -> None:
        with self._lock:
            self.stats["upsert_calls"] += 1
            for r in records:
                self._rows[r.app_id] = r


class JSONMetadataStore(MetadataStore):
    """
    One JSON object on disk: `{"<appid>": <row>, ...}`.

    The file is read on first use and rewritten on every upsert. A corrupt file is reported as
    StoreError for both reads and writes, so it is never silently overwritten.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._rows: dict[int, MetadataRecord] | None = None

    def _load_locked(self) -> dict[int, MetadataRecord]:
        if self._rows is not None:
            return self._rows
        try:
            raw = read_json_file(self.path)
        except (OSError, ValueError) as e:
            raise StoreError(f"cannot read metadata store '{self.path.name}': {e}") from e
        rows: dict[int, MetadataRecord] = {}
        for row in raw.values():
            rec = MetadataRecord.from_row(row) if isinstance(row, dict) else None
            if rec is not None:
                rows[rec.app_id] = rec
        skipped = len(raw) - len(rows)
        if skipped:
            logging.warning(f"[STORE] Ignored {skipped} malformed rows in '{self.path.name}'")
        self._rows = rows
        return rows

    def query(self, app_ids: Iterable[int]) -> list[MetadataRecord]:
        with self._lock:
            rows = self._load_locked()
            return [rows[a] for a in app_ids if a in rows]

    def upsert(self, records: Iterable[MetadataRecord]) -> None:
        with self._lock:
            rows = dict(self._load_locked())
            for r in records:
                rows[r.app_id] = r
            payload = {str(a): r.to_row() for a, r in sorted(rows.items())}
            try:
                save_json_cache(payload, self.path)
            except OSError as e:
                raise StoreError(f"cannot write metadata store '{self.path.name}': {e}") from e
            self._rows = rows
