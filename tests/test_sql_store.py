"""Tests for the SQLAlchemy stat store and the stat projection reader on top of it."""

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.services.stats import (
    KindConflict,
    NumericFamily,
    PartialFailure,
    RollingAverage,
    StatKey,
    StatProjectionReader,
    StorageUnavailable,
    Total,
    UploadMergeEngine,
    UploadType,
    merge_upload,
)
from app.services.stats.sql_store import SqlStatRecordStore
from app.services.stats.store import KeyLocks
from database.connection import create_app_engine, init_db
from database.models import GlobalStat, PlayerStat
from sqlalchemy.orm import sessionmaker

NAMESPACE = "sky-wars"


def add(upload_type, value):
    return lambda existing: merge_upload(existing, upload_type, value)


class TestSqlStatRecordStore:
    def test_get_missing(self, sql_store, player_id):
        assert sql_store.get(StatKey(NAMESPACE, "wins", player_id)) is None

    def test_merge_creates_then_accumulates(self, sql_store, player_id):
        key = StatKey(NAMESPACE, "wins", player_id)
        assert sql_store.merge_upsert(key, add(UploadType.INT_TOTAL, 3)) == Total(NumericFamily.INT, 3)
        assert sql_store.merge_upsert(key, add(UploadType.INT_TOTAL, 4)) == Total(NumericFamily.INT, 7)
        assert sql_store.get(key) == Total(NumericFamily.INT, 7)

    def test_round_trips_each_variant(self, sql_store, player_id):
        cases = {
            "int_total": (UploadType.INT_TOTAL, 9, Total(NumericFamily.INT, 9)),
            "float_total": (UploadType.FLOAT_TOTAL, 1.25, Total(NumericFamily.FLOAT, 1.25)),
            "int_avg": (UploadType.INT_ROLLING_AVERAGE, 4, RollingAverage(NumericFamily.INT, 4, 1)),
            "float_avg": (UploadType.FLOAT_ROLLING_AVERAGE, 0.5, RollingAverage(NumericFamily.FLOAT, 0.5, 1)),
        }
        for stat_id, (upload_type, value, expected) in cases.items():
            sql_store.merge_upsert(StatKey(NAMESPACE, stat_id, player_id), add(upload_type, value))
        for stat_id, (_, _, expected) in cases.items():
            assert sql_store.get(StatKey(NAMESPACE, stat_id, player_id)) == expected

    def test_int_family_keeps_integer_column(self, sql_store, session_factory, player_id):
        sql_store.merge_upsert(StatKey(NAMESPACE, "wins", player_id), add(UploadType.INT_TOTAL, 2 ** 40))
        with session_factory() as session:
            row = session.query(PlayerStat).one()
            assert row.int_value == 2 ** 40
            assert row.float_value is None
            assert row.kind == "total"
            assert row.family == "int"

    def test_failed_merge_leaves_record_untouched(self, sql_store, player_id):
        key = StatKey(NAMESPACE, "wins", player_id)
        sql_store.merge_upsert(key, add(UploadType.INT_TOTAL, 3))
        with pytest.raises(KindConflict):
            sql_store.merge_upsert(key, add(UploadType.INT_ROLLING_AVERAGE, 3))
        assert sql_store.get(key) == Total(NumericFamily.INT, 3)

    def test_global_stats_live_in_their_own_table(self, sql_store, session_factory, player_id):
        sql_store.merge_upsert(StatKey(NAMESPACE, "games"), add(UploadType.INT_TOTAL, 1))
        sql_store.merge_upsert(StatKey(NAMESPACE, "games", player_id), add(UploadType.INT_TOTAL, 5))
        with session_factory() as session:
            assert session.query(GlobalStat).count() == 1
            assert session.query(PlayerStat).count() == 1
        assert sql_store.get(StatKey(NAMESPACE, "games")) == Total(NumericFamily.INT, 1)

    def test_list_by_namespace_is_scoped(self, sql_store, player_id):
        other = uuid.uuid4()
        sql_store.merge_upsert(StatKey(NAMESPACE, "wins", player_id), add(UploadType.INT_TOTAL, 1))
        sql_store.merge_upsert(StatKey("bed-wars", "wins", player_id), add(UploadType.INT_TOTAL, 2))
        sql_store.merge_upsert(StatKey(NAMESPACE, "wins", other), add(UploadType.INT_TOTAL, 3))

        records = sql_store.list_by_namespace(player_id, NAMESPACE)
        assert [(r.key, r.value) for r in records] == [
            (StatKey(NAMESPACE, "wins", player_id), Total(NumericFamily.INT, 1))
        ]
        assert {r.key.namespace for r in sql_store.list_by_player(player_id)} == {NAMESPACE, "bed-wars"}

    def test_concurrent_merges_lose_nothing(self, sql_store, player_id):
        key = StatKey(NAMESPACE, "example-1", player_id)
        start = threading.Barrier(4)

        def merge(value):
            start.wait()
            for _ in range(10):
                sql_store.merge_upsert(key, add(UploadType.INT_TOTAL, value))

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(merge, [5, 7, 5, 7]))

        assert sql_store.get(key) == Total(NumericFamily.INT, 240)

    def test_concurrent_first_inserts_from_separate_stores(self, session_factory, player_id):
        """Two stores share no locks; the loser of the insert race retries as an update."""
        stores = [SqlStatRecordStore(session_factory), SqlStatRecordStore(session_factory)]
        key = StatKey(NAMESPACE, "example-1", player_id)
        start = threading.Barrier(2)

        def merge(args):
            store, value = args
            start.wait()
            store.merge_upsert(key, add(UploadType.INT_TOTAL, value))

        with ThreadPoolExecutor(max_workers=2) as pool:
            list(pool.map(merge, [(stores[0], 5), (stores[1], 7)]))

        assert stores[0].get(key) == Total(NumericFamily.INT, 12)

    def test_overflow_is_reported_and_siblings_persist(self, sql_store, player_id):
        engine = UploadMergeEngine(sql_store)
        engine.handle_upload(NAMESPACE, {str(player_id): {"coins": {"type": "int_total", "value": 2 ** 63 - 1}}})

        with pytest.raises(PartialFailure) as excinfo:
            engine.handle_upload(
                NAMESPACE,
                {
                    str(player_id): {
                        "coins": {"type": "int_total", "value": 2 ** 63 - 1},
                        "wins": {"type": "int_total", "value": 1},
                    }
                },
            )

        assert [(f.stat_id, f.reason) for f in excinfo.value.failures] == [("coins", "overflow")]
        assert sql_store.get(StatKey(NAMESPACE, "coins", player_id)) == Total(NumericFamily.INT, 2 ** 63 - 1)
        assert sql_store.get(StatKey(NAMESPACE, "wins", player_id)) == Total(NumericFamily.INT, 1)

    def test_in_memory_database(self, player_id):
        """The shared in-memory connection handles sequential merges of several keys."""
        engine = create_app_engine("sqlite://")
        init_db(engine)
        store = SqlStatRecordStore(sessionmaker(bind=engine))
        for stat_id in ("wins", "kills", "wins"):
            store.merge_upsert(StatKey(NAMESPACE, stat_id, player_id), add(UploadType.INT_TOTAL, 2))

        assert store.get(StatKey(NAMESPACE, "wins", player_id)) == Total(NumericFamily.INT, 4)
        assert store.get(StatKey(NAMESPACE, "kills", player_id)) == Total(NumericFamily.INT, 2)
        engine.dispose()

    def test_unreachable_database(self, tmp_path, player_id):
        engine = create_app_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'stats.db'}")
        store = SqlStatRecordStore(sessionmaker(bind=engine))
        key = StatKey(NAMESPACE, "wins", player_id)

        with pytest.raises(StorageUnavailable):
            store.get(key)
        with pytest.raises(StorageUnavailable):
            store.merge_upsert(key, add(UploadType.INT_TOTAL, 1))
        with pytest.raises(StorageUnavailable):
            store.list_by_namespace(player_id, NAMESPACE)
        engine.dispose()


class TestStatProjectionReader:
    @pytest.fixture
    def reader(self, sql_store):
        return StatProjectionReader(sql_store)

    def test_unknown_player_reads_empty(self, reader):
        assert reader.read(uuid.uuid4(), NAMESPACE) == {}
        assert reader.read_all(uuid.uuid4()) == {}

    def test_projects_totals_and_averages(self, reader, sql_store, player_id):
        engine = UploadMergeEngine(sql_store)
        for kd in (1.0, 2.0, 4.5):
            engine.handle_upload(
                NAMESPACE,
                {str(player_id): {"kills": {"type": "int_total", "value": 2}, "kd": {"type": "float_rolling_average", "value": kd}}},
            )
        assert reader.read(player_id, NAMESPACE) == {"kills": 6.0, "kd": pytest.approx(2.5)}

    def test_zero_count_average_reads_zero(self, reader, sql_store, player_id):
        sql_store.merge_upsert(
            StatKey(NAMESPACE, "kd", player_id), lambda existing: RollingAverage(NumericFamily.FLOAT, 0.0, 0)
        )
        assert reader.read(player_id, NAMESPACE) == {"kd": 0.0}

    def test_read_all_groups_by_namespace(self, reader, sql_store, player_id):
        sql_store.merge_upsert(StatKey(NAMESPACE, "wins", player_id), add(UploadType.INT_TOTAL, 1))
        sql_store.merge_upsert(StatKey("bed-wars", "beds", player_id), add(UploadType.INT_TOTAL, 3))
        assert reader.read_all(player_id) == {NAMESPACE: {"wins": 1.0}, "bed-wars": {"beds": 3.0}}


class TestKeyLocks:
    def test_same_key_shares_a_lock(self, player_id):
        locks = KeyLocks()
        assert locks.for_key(StatKey(NAMESPACE, "wins", player_id)) is locks.for_key(StatKey(NAMESPACE, "wins", player_id))

    def test_lock_count_does_not_grow_with_keys(self):
        locks = KeyLocks(stripes=16)
        seen = {id(locks.for_key(StatKey(NAMESPACE, f"stat-{i}", uuid.uuid4()))) for i in range(1000)}
        assert len(locks) == 16
        assert len(seen) <= 16
