from typing import Dict
from uuid import UUID

from app.services.stats.model import project
from app.services.stats.store import StatRecordStore


class StatProjectionReader:
    """Read-only view of stored stats, each projected to a single float."""

    def __init__(self, store: StatRecordStore):
        self.store = store

    def read(self, player_id: UUID, namespace: str) -> Dict[str, float]:
        return {
            record.stat_id: project(record.value)
            for record in self.store.list_by_namespace(player_id, namespace)
        }

    def read_all(self, player_id: UUID) -> Dict[str, Dict[str, float]]:
        result: Dict[str, Dict[str, float]] = {}
        for record in self.store.list_by_player(player_id):
            result.setdefault(record.key.namespace, {})[record.stat_id] = project(record.value)
        return result

    def read_global(self, namespace: str) -> Dict[str, float]:
        return {
            record.stat_id: project(record.value)
            for record in self.store.list_by_namespace(None, namespace)
        }
