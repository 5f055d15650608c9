import logging
from typing import Dict
from uuid import UUID
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.schemas import GameStatsBundle, FailedStatResponse, UploadErrorResponse
from app.services.player_service import PlayerService
from app.services.stats import (
    PartialFailure,
    StatProjectionReader,
    StatRecordStore,
    StorageUnavailable,
    UploadMergeEngine,
    ValidationError,
)
from app.services.stats.sql_store import SqlStatRecordStore
from database.connection import session_factory

logger = logging.getLogger(__name__)

class StatsController:
    """Entry points of the stats core for the HTTP layer."""

    def __init__(self, store: StatRecordStore):
        self.store = store
        self.reader = StatProjectionReader(store)

    def upload(self, db: Session, bundle: GameStatsBundle):
        engine = UploadMergeEngine(self.store, PlayerService(db))
        try:
            engine.handle_upload(
                bundle.namespace,
                bundle.stats.players,
                bundle.stats.global_stats,
                server_name=bundle.server_name,
            )
        except ValidationError as e:
            logger.info(f"Rejected upload from '{bundle.server_name}' for {bundle.namespace}: {e.message}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=UploadErrorResponse(error=e.code, message=e.message).model_dump(),
            )
        except PartialFailure as e:
            failed = [
                FailedStatResponse(player=f.player_id, stat=f.stat_id, reason=f.reason, message=f.message)
                for f in e.failures
            ]
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE if e.retryable else status.HTTP_409_CONFLICT,
                detail=UploadErrorResponse(error="partial_failure", message=str(e), failed=failed).model_dump(),
            )

    def player_stats(self, uuid: UUID, namespace: str) -> Dict[str, float]:
        try:
            return self.reader.read(uuid, namespace)
        except StorageUnavailable:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Stat storage unavailable")

    def all_player_stats(self, uuid: UUID) -> Dict[str, Dict[str, float]]:
        try:
            return self.reader.read_all(uuid)
        except StorageUnavailable:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Stat storage unavailable")

    def global_stats(self, namespace: str) -> Dict[str, float]:
        try:
            return self.reader.read_global(namespace)
        except StorageUnavailable:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Stat storage unavailable")

stats_controller = StatsController(SqlStatRecordStore(session_factory))

def get_stats_controller() -> StatsController:
    return stats_controller
