import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
from uuid import UUID

from app.services.stats.model import StatKey, StatRecord, StatValue

MergeFn = Callable[[Optional[StatValue]], StatValue]


class StatRecordStore(ABC):
    """
    Persistence for stat records, one record per StatKey.

    merge_upsert is the only write: it must read, merge and persist a key
    atomically with respect to other merges of the same key, while merges of
    different keys never wait on each other.
    """

    @abstractmethod
    def get(self, key: StatKey) -> Optional[StatValue]:
        ...

    @abstractmethod
    def merge_upsert(self, key: StatKey, merge_fn: MergeFn) -> StatValue:
        ...

    @abstractmethod
    def list_by_namespace(self, player_id: Optional[UUID], namespace: str) -> List[StatRecord]:
        ...

    @abstractmethod
    def list_by_player(self, player_id: UUID) -> List[StatRecord]:
        ...


class KeyLocks:
    """
    Fixed pool of locks striped by key hash. Merges of one key always share a
    lock; different keys only contend when they land on the same stripe.
    """

    def __init__(self, stripes: int = 256):
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]

    def for_key(self, key: StatKey) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def __len__(self) -> int:
        return len(self._locks)


class InMemoryStatRecordStore(StatRecordStore):
    def __init__(self):
        self._records: Dict[StatKey, StatValue] = {}
        self._locks = KeyLocks()

    def get(self, key: StatKey) -> Optional[StatValue]:
        return self._records.get(key)

    def merge_upsert(self, key: StatKey, merge_fn: MergeFn) -> StatValue:
        with self._locks.for_key(key):
            merged = merge_fn(self._records.get(key))
            self._records[key] = merged
            return merged

    def list_by_namespace(self, player_id: Optional[UUID], namespace: str) -> List[StatRecord]:
        return [
            StatRecord(key, value)
            for key, value in list(self._records.items())
            if key.player_id == player_id and key.namespace == namespace
        ]

    def list_by_player(self, player_id: UUID) -> List[StatRecord]:
        return [
            StatRecord(key, value)
            for key, value in list(self._records.items())
            if key.player_id == player_id
        ]
