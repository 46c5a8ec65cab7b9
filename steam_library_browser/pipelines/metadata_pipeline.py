from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from ..clients.igdb_client import IGDBClient, record_from_external_game
from ..config import IGDB
from ..errors import StoreError
from ..models import MetadataRecord, MetadataResult
from ..stores.metadata_store import MetadataStore
from ..utils.utilities import iter_chunks


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def unique_app_ids(values: Iterable[Any]) -> list[int]:
    """De-duplicate in first-seen order, dropping anything that is not a plain int."""
    seen: set[int] = set()
    out: list[int] = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            continue
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


class MetadataCache:
    """
    Session-wide appid -> MetadataRecord map shared by every request.

    Writes are serialized so overlapping requests never lose updates.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[int, MetadataRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get_many(self, app_ids: Iterable[int]) -> dict[int, MetadataRecord]:
        with self._lock:
            return {a: self._records[a] for a in app_ids if a in self._records}

    def put_many(self, records: Iterable[MetadataRecord]) -> None:
        with self._lock:
            for r in records:
                self._records[r.app_id] = r

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class MetadataFetcher:
    """
    Cache-aside metadata lookup: session cache, then the persistent store, then IGDB.

    Ids missing from both caches are fetched in sequential batches; fresh records are upserted
    back to the store on a best-effort basis. Failed batches and ids IGDB does not know are
    left out of the result. Nothing is retried.
    """

    def __init__(
        self,
        igdb: IGDBClient | None,
        store: MetadataStore | None = None,
        cache: MetadataCache | None = None,
        *,
        batch_size: int = IGDB.batch_size,
        now: Callable[[], str] = _utc_now_iso,
    ):
        self.igdb = igdb
        self.store = store
        self.cache = cache if cache is not None else MetadataCache()
        self.batch_size = batch_size
        self._now = now
        self.stats: dict[str, int] = {
            "cache_hit": 0,
            "store_hit": 0,
            "fetched": 0,
            "batches": 0,
            "batch_failures": 0,
            "store_errors": 0,
        }

    def _query_store(self, app_ids: list[int]) -> tuple[dict[int, MetadataRecord], str | None]:
        if self.store is None or not app_ids:
            return {}, None
        try:
            rows = self.store.query(app_ids)
        except StoreError as e:
            self.stats["store_errors"] += 1
            logging.error(f"[CACHE] Metadata store query failed; fetching everything: {e}")
            return {}, str(e)
        wanted = set(app_ids)
        return {r.app_id: r for r in rows if r.app_id in wanted}, None

    def _fetch_batch(self, batch: list[int], updated_at: str) -> list[MetadataRecord] | None:
        assert self.igdb is not None
        self.stats["batches"] += 1
        rows = self.igdb.lookup_steam_apps(batch)
        if rows is None:
            self.stats["batch_failures"] += 1
            logging.error(f"[IGDB] Batch of {len(batch)} ids failed; skipping it")
            return None
        wanted = set(batch)
        out: dict[int, MetadataRecord] = {}
        for row in rows:
            rec = record_from_external_game(row, updated_at=updated_at)
            if rec is None or rec.app_id not in wanted or rec.app_id in out:
                continue
            out[rec.app_id] = rec
        return list(out.values())

    def _persist(self, records: list[MetadataRecord]) -> str | None:
        if self.store is None or not records:
            return None
        try:
            self.store.upsert(records)
        except StoreError as e:
            self.stats["store_errors"] += 1
            logging.error(f"[CACHE] Failed to persist {len(records)} metadata records: {e}")
            return str(e)
        return None

    def ensure_metadata(self, app_ids: Iterable[Any]) -> MetadataResult:
        ids = unique_app_ids(app_ids)
        if not ids:
            return MetadataResult()

        session_hits = self.cache.get_many(ids)
        self.stats["cache_hit"] += len(session_hits)
        remaining = [a for a in ids if a not in session_hits]

        store_hits, cache_error = self._query_store(remaining)
        self.stats["store_hit"] += len(store_hits)
        missing = [a for a in remaining if a not in store_hits]

        hits = {**store_hits, **session_hits}
        cached = [hits[a] for a in ids if a in hits]

        fresh: list[MetadataRecord] = []
        failed_batches = 0
        if missing and self.igdb is None:
            logging.warning(f"[IGDB] Credentials not configured; {len(missing)} ids left without metadata")
        elif missing:
            logging.info(f"[IGDB] Fetching {len(missing)} games from IGDB")
            updated_at = self._now()
            for batch in iter_chunks(missing, self.batch_size):
                got = self._fetch_batch(batch, updated_at)
                if got is None:
                    failed_batches += 1
                    continue
                fresh.extend(got)
            self.stats["fetched"] += len(fresh)

        persist_error = self._persist(fresh)
        self.cache.put_many(cached)
        self.cache.put_many(fresh)
        return MetadataResult(
            records=cached + fresh,
            cache_error=cache_error,
            persist_error=persist_error,
            failed_batches=failed_batches,
        )

    def format_stats(self) -> str:
        s = self.stats
        return (
            f"cache_hit={s['cache_hit']} store_hit={s['store_hit']} fetched={s['fetched']} "
            f"batches={s['batches']} batch_failures={s['batch_failures']} store_errors={s['store_errors']}"
        )
