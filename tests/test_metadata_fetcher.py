from __future__ import annotations


class FakeIGDB:
    """Stands in for IGDBClient: knows every id unless listed in `unknown`."""

    def __init__(self, unknown=(), failing=()):
        self.unknown = set(unknown)
        self.failing = set(failing)
        self.calls: list[list[int]] = []

    def lookup_steam_apps(self, batch):
        self.calls.append(list(batch))
        if self.failing & set(batch):
            return None
        return [
            {
                "uid": str(a),
                "external_game_source": 1,
                "game": {"id": a + 1000, "name": f"Game {a}", "genres": [{"name": "RPG"}]},
            }
            for a in batch
            if a not in self.unknown
        ]


def _record(app_id: int, name: str = "Cached"):
    from steam_library_browser.models import MetadataRecord

    return MetadataRecord(app_id=app_id, name=name, genres=["Puzzle"])


def test_all_ids_in_store_means_zero_remote_calls():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    store = InMemoryMetadataStore([_record(1), _record(2)])
    igdb = FakeIGDB()
    result = MetadataFetcher(igdb, store).ensure_metadata([1, 2])
    assert igdb.calls == []
    assert sorted(r.app_id for r in result.records) == [1, 2]


def test_second_call_with_same_ids_is_served_from_cache():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    igdb = FakeIGDB()
    fetcher = MetadataFetcher(igdb, InMemoryMetadataStore())
    first = fetcher.ensure_metadata([5, 6])
    assert len(igdb.calls) == 1
    second = fetcher.ensure_metadata([6, 5])
    assert len(igdb.calls) == 1
    assert {r.app_id for r in second.records} == {r.app_id for r in first.records} == {5, 6}
    assert fetcher.stats["cache_hit"] == 2


def test_batches_are_ceil_n_over_500():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher

    igdb = FakeIGDB()
    result = MetadataFetcher(igdb, None).ensure_metadata(list(range(1, 1202)))
    assert [len(c) for c in igdb.calls] == [500, 500, 201]
    assert len(result.records) == 1201
    assert len({r.app_id for r in result.records}) == 1201


def test_only_missing_ids_are_fetched():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    igdb = FakeIGDB()
    store = InMemoryMetadataStore([_record(2)])
    result = MetadataFetcher(igdb, store).ensure_metadata([1, 2, 3])
    assert igdb.calls == [[1, 3]]
    by_id = result.by_app_id()
    assert sorted(by_id) == [1, 2, 3]
    assert by_id[2].name == "Cached"
    assert by_id[1].name == "Game 1"
    assert by_id[1].igdb_id == 1001
    assert by_id[1].updated_at


def test_fresh_records_are_upserted():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    store = InMemoryMetadataStore()
    MetadataFetcher(FakeIGDB(), store, now=lambda: "2024-01-01T00:00:00+00:00").ensure_metadata([7])
    stored = store.query([7])
    assert len(stored) == 1
    assert stored[0].updated_at == "2024-01-01T00:00:00+00:00"


def test_store_query_failure_fetches_everything():
    from steam_library_browser.errors import StoreError
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    class BrokenQueryStore(InMemoryMetadataStore):
        def query(self, app_ids):
            raise StoreError("connection refused")

    igdb = FakeIGDB()
    result = MetadataFetcher(igdb, BrokenQueryStore([_record(2)])).ensure_metadata([1, 2])
    assert igdb.calls == [[1, 2]]
    assert result.cache_error == "connection refused"
    assert len(result.records) == 2


def test_store_write_failure_still_returns_data():
    from steam_library_browser.errors import StoreError
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    class ReadOnlyStore(InMemoryMetadataStore):
        def upsert(self, records):
            raise StoreError("read-only")

    result = MetadataFetcher(FakeIGDB(), ReadOnlyStore()).ensure_metadata([1, 2])
    assert result.persist_error == "read-only"
    assert sorted(r.app_id for r in result.records) == [1, 2]


def test_failed_batch_is_omitted_and_others_proceed():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher

    igdb = FakeIGDB(failing={1})
    result = MetadataFetcher(igdb, None, batch_size=2).ensure_metadata([1, 2, 3, 4])
    assert igdb.calls == [[1, 2], [3, 4]]
    assert sorted(r.app_id for r in result.records) == [3, 4]
    assert result.failed_batches == 1


def test_unknown_ids_are_absent_and_not_negative_cached():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher

    igdb = FakeIGDB(unknown={2})
    fetcher = MetadataFetcher(igdb, None)
    result = fetcher.ensure_metadata([1, 2])
    assert [r.app_id for r in result.records] == [1]
    fetcher.ensure_metadata([1, 2])
    assert igdb.calls == [[1, 2], [2]]


def test_input_is_deduplicated_and_non_integers_dropped():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher

    igdb = FakeIGDB()
    result = MetadataFetcher(igdb, None).ensure_metadata([3, 3, "4", True, None, 1.5, 5])
    assert igdb.calls == [[3, 5]]
    assert len(result.records) == 2


def test_empty_input_makes_no_calls():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher

    igdb = FakeIGDB()
    result = MetadataFetcher(igdb, None).ensure_metadata([])
    assert result.records == []
    assert igdb.calls == []


def test_without_igdb_credentials_only_cached_records_are_returned():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataFetcher
    from steam_library_browser.stores.metadata_store import InMemoryMetadataStore

    result = MetadataFetcher(None, InMemoryMetadataStore([_record(1)])).ensure_metadata([1, 2])
    assert [r.app_id for r in result.records] == [1]


def test_shared_session_cache_between_fetchers():
    from steam_library_browser.pipelines.metadata_pipeline import MetadataCache, MetadataFetcher

    cache = MetadataCache()
    igdb = FakeIGDB()
    MetadataFetcher(igdb, None, cache).ensure_metadata([1])
    MetadataFetcher(igdb, None, cache).ensure_metadata([1])
    assert igdb.calls == [[1]]
    assert len(cache) == 1
