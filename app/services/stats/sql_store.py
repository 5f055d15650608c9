import logging
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, TimeoutError as PoolTimeout
from sqlalchemy.orm import Session

from app.services.stats.errors import StorageUnavailable
from app.services.stats.model import (
    NumericFamily,
    RollingAverage,
    StatKey,
    StatKind,
    StatRecord,
    StatValue,
    Total,
)
from app.services.stats.store import KeyLocks, MergeFn, StatRecordStore
from database.models import GlobalStat, PlayerStat

logger = logging.getLogger(__name__)

# A first insert can lose the unique-key race against another process;
# it is then retried as an update of the row that won.
INSERT_RACE_ATTEMPTS = 3

# Connection failures, lock timeouts and an exhausted pool all mean the same
# thing to callers: the store is unavailable right now.
STORAGE_ERRORS = (DBAPIError, PoolTimeout)


def row_to_value(row) -> StatValue:
    family = NumericFamily(row.family)
    number = row.int_value if family == NumericFamily.INT else row.float_value
    if StatKind(row.kind) == StatKind.TOTAL:
        return Total(family, number)
    return RollingAverage(family, number, row.count or 0)


def apply_value(row, value: StatValue):
    row.kind = value.kind.value
    row.family = value.family.value
    number = value.total if isinstance(value, Total) else value.sum
    if value.family == NumericFamily.INT:
        row.int_value, row.float_value = int(number), None
    else:
        row.int_value, row.float_value = None, float(number)
    row.count = value.count if isinstance(value, RollingAverage) else 0


class SqlStatRecordStore(StatRecordStore):
    """
    Stat records persisted through SQLAlchemy, one row per key.

    Each merge runs in its own short transaction. The row is read with
    SELECT ... FOR UPDATE, which PostgreSQL and MySQL honour across processes;
    the per-key lock serializes merges within this process, which is what
    keeps SQLite (no row locks) free of lost updates.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self._locks = KeyLocks()

    def _query(self, key: StatKey):
        if key.player_id is None:
            return select(GlobalStat).where(
                GlobalStat.namespace == key.namespace,
                GlobalStat.stat_id == key.stat_id,
            )
        return select(PlayerStat).where(
            PlayerStat.player_uuid == str(key.player_id),
            PlayerStat.namespace == key.namespace,
            PlayerStat.stat_id == key.stat_id,
        )

    def _new_row(self, key: StatKey):
        if key.player_id is None:
            return GlobalStat(namespace=key.namespace, stat_id=key.stat_id)
        return PlayerStat(player_uuid=str(key.player_id), namespace=key.namespace, stat_id=key.stat_id)

    def get(self, key: StatKey) -> Optional[StatValue]:
        try:
            with self.session_factory() as session:
                row = session.execute(self._query(key)).scalar_one_or_none()
                return row_to_value(row) if row is not None else None
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to read stat {key}: {e}")
            raise StorageUnavailable(str(e)) from e

    def merge_upsert(self, key: StatKey, merge_fn: MergeFn) -> StatValue:
        with self._locks.for_key(key):
            for attempt in range(1, INSERT_RACE_ATTEMPTS + 1):
                try:
                    return self._merge_once(key, merge_fn)
                except IntegrityError:
                    logger.debug(f"Insert race on {key}, retrying ({attempt}/{INSERT_RACE_ATTEMPTS})")
                except STORAGE_ERRORS as e:
                    logger.error(f"Failed to merge stat {key}: {e}")
                    raise StorageUnavailable(str(e)) from e
            raise StorageUnavailable(f"could not insert stat {key} after {INSERT_RACE_ATTEMPTS} attempts")

    @staticmethod
    def _begin_write(session: Session):
        # SQLite ignores FOR UPDATE; taking its write lock before the read makes
        # concurrent writers queue on the busy timeout instead of failing a lock upgrade.
        if session.get_bind().dialect.name == "sqlite":
            session.execute(text("BEGIN IMMEDIATE"))

    def _merge_once(self, key: StatKey, merge_fn: MergeFn) -> StatValue:
        # Leaving the block without commit (merge_fn raised, or the flush
        # failed) rolls the transaction back when the session closes.
        with self.session_factory() as session:
            self._begin_write(session)
            row = session.execute(self._query(key).with_for_update()).scalar_one_or_none()
            merged = merge_fn(row_to_value(row) if row is not None else None)
            if row is None:
                row = self._new_row(key)
                session.add(row)
            apply_value(row, merged)
            session.commit()
            return merged

    def list_by_namespace(self, player_id: Optional[UUID], namespace: str) -> List[StatRecord]:
        if player_id is None:
            query = select(GlobalStat).where(GlobalStat.namespace == namespace)
        else:
            query = select(PlayerStat).where(
                PlayerStat.player_uuid == str(player_id),
                PlayerStat.namespace == namespace,
            )
        return self._list(query, player_id)

    def list_by_player(self, player_id: UUID) -> List[StatRecord]:
        return self._list(select(PlayerStat).where(PlayerStat.player_uuid == str(player_id)), player_id)

    def _list(self, query, player_id: Optional[UUID]) -> List[StatRecord]:
        try:
            with self.session_factory() as session:
                return [
                    StatRecord(StatKey(row.namespace, row.stat_id, player_id), row_to_value(row))
                    for row in session.execute(query).scalars()
                ]
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to list stats for {player_id}: {e}")
            raise StorageUnavailable(str(e)) from e
