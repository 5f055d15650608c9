"""
Upload merge engine.

An upload is validated as a whole before anything is written: one bad stat
id, type or value rejects the batch. Once valid, every stat is merged into
its own record independently, so a conflict on one stat never undoes or
blocks the others.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Set
from uuid import UUID

from app.services.stats.errors import (
    FailedStat,
    InvalidNamespace,
    InvalidPlayerId,
    InvalidStatId,
    InvalidValue,
    MergeError,
    PartialFailure,
    StorageUnavailable,
    UnknownStatType,
    ValidationError,
)
from app.services.stats.model import INT_MAX, INT_MIN, Number, NumericFamily, StatKey, UploadType, merge_upload
from app.services.stats.store import StatRecordStore

logger = logging.getLogger(__name__)

# Reserved for nesting stat ids inside storage keys
STAT_ID_DELIMITER = "."


@dataclass(frozen=True)
class StatUpload:
    player_id: Optional[UUID]  # None for a namespace-wide stat
    stat_id: str
    upload_type: UploadType
    value: Number


@dataclass
class StatBatch:
    namespace: str
    stats: List[StatUpload] = field(default_factory=list)
    server_name: Optional[str] = None

    @property
    def player_ids(self) -> List[UUID]:
        return list(dict.fromkeys(s.player_id for s in self.stats if s.player_id is not None))


def parse_player_id(raw: Any) -> UUID:
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError:
        raise InvalidPlayerId(f"'{raw}' is not a player UUID")


def parse_stat_id(raw: Any) -> str:
    if not isinstance(raw, str) or not raw:
        raise InvalidStatId("stat ids must be non-empty strings")
    if STAT_ID_DELIMITER in raw:
        raise InvalidStatId(f"stat id '{raw}' must not contain '{STAT_ID_DELIMITER}'")
    return raw


def parse_upload_type(raw: Any, stat_id: str) -> UploadType:
    try:
        return UploadType(raw)
    except ValueError:
        raise UnknownStatType(f"stat '{stat_id}' has unknown type {raw!r}")


def parse_value(raw: Any, upload_type: UploadType, stat_id: str) -> Number:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidValue(f"stat '{stat_id}' value {raw!r} is not a number")
    if isinstance(raw, float) and not math.isfinite(raw):
        raise InvalidValue(f"stat '{stat_id}' value {raw!r} is not finite")

    if upload_type.family == NumericFamily.FLOAT:
        return float(raw)

    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidValue(f"stat '{stat_id}' is {upload_type.value} but got fractional value {raw!r}")
        raw = int(raw)
    if not INT_MIN <= raw <= INT_MAX:
        raise InvalidValue(f"stat '{stat_id}' value {raw} does not fit in 64 bits")
    return raw


def parse_stat(player_id: Optional[UUID], raw_stat_id: Any, raw_stat: Any) -> StatUpload:
    stat_id = parse_stat_id(raw_stat_id)
    if not isinstance(raw_stat, Mapping):
        raise InvalidValue(f"stat '{stat_id}' must be an object with 'type' and 'value'")
    upload_type = parse_upload_type(raw_stat.get("type"), stat_id)
    if "value" not in raw_stat:
        raise InvalidValue(f"stat '{stat_id}' is missing its value")
    return StatUpload(player_id, stat_id, upload_type, parse_value(raw_stat["value"], upload_type, stat_id))


def parse_batch(
    namespace: Any,
    players: Optional[Mapping[Any, Mapping[Any, Any]]],
    global_stats: Optional[Mapping[Any, Any]] = None,
    server_name: Optional[str] = None,
) -> StatBatch:
    """Validate a decoded upload. Raises the first ValidationError found."""
    if not isinstance(namespace, str) or not namespace.strip():
        raise InvalidNamespace("namespace must be a non-empty string")

    batch = StatBatch(namespace=namespace, server_name=server_name)
    for raw_player_id, raw_stats in (players or {}).items():
        player_id = parse_player_id(raw_player_id)
        if not isinstance(raw_stats, Mapping):
            raise ValidationError(f"stats for player {player_id} must be an object")
        for raw_stat_id, raw_stat in raw_stats.items():
            batch.stats.append(parse_stat(player_id, raw_stat_id, raw_stat))

    for raw_stat_id, raw_stat in (global_stats or {}).items():
        batch.stats.append(parse_stat(None, raw_stat_id, raw_stat))
    return batch


class UploadMergeEngine:
    """
    Applies validated batches to a StatRecordStore.

    `players` is the player directory; when given, every player mentioned in
    a batch is registered there before their stats are merged.
    """

    def __init__(self, store: StatRecordStore, players=None):
        self.store = store
        self.players = players

    def handle_upload(self, namespace, players, global_stats=None, server_name=None):
        batch = parse_batch(namespace, players, global_stats, server_name)
        self.apply(batch)

    def apply(self, batch: StatBatch):
        logger.debug(
            f"server '{batch.server_name}' uploaded {len(batch.stats)} statistics "
            f"in statistics bundle for {batch.namespace}"
        )
        failures: List[FailedStat] = []
        unavailable_players = self._register_players(batch)

        for stat in batch.stats:
            if stat.player_id in unavailable_players:
                failures.append(self._failure(stat, StorageUnavailable("player directory unavailable")))
                continue
            key = StatKey(batch.namespace, stat.stat_id, stat.player_id)
            try:
                self.store.merge_upsert(key, self._merge_fn(stat))
            except (MergeError, StorageUnavailable) as e:
                logger.warning(f"Failed to merge {key}: {e}")
                failures.append(self._failure(stat, e))

        if failures:
            raise PartialFailure(failures)

    def _register_players(self, batch: StatBatch) -> Set[UUID]:
        unavailable = set()
        if self.players is None:
            return unavailable
        for player_id in batch.player_ids:
            try:
                self.players.ensure_player(player_id)
            except StorageUnavailable as e:
                logger.error(f"Could not register player {player_id}: {e}")
                unavailable.add(player_id)
        return unavailable

    @staticmethod
    def _merge_fn(stat: StatUpload):
        return lambda existing: merge_upload(existing, stat.upload_type, stat.value)

    @staticmethod
    def _failure(stat: StatUpload, error) -> FailedStat:
        player_id = str(stat.player_id) if stat.player_id is not None else None
        return FailedStat(player_id, stat.stat_id, error.reason, str(error))
