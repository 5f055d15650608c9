from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Dict
from database.connection import get_db
from app.schemas import GameStatsBundle
from app.services.auth_service import require_server_token
from app.controllers.stats_controller import StatsController, get_stats_controller

router = APIRouter(prefix="/stats", tags=["stats"])

@router.post("/upload", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def upload_game_stats(
    bundle: GameStatsBundle,
    db: Session = Depends(get_db),
    controller: StatsController = Depends(get_stats_controller),
    _token: str = Depends(require_server_token),
):
    """Merge a minigame's end-of-match statistics bundle"""
    controller.upload(db, bundle)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/global/{namespace}", response_model=Dict[str, float])
def get_global_stats(namespace: str, controller: StatsController = Depends(get_stats_controller)):
    """Get the namespace-wide stats that belong to no player"""
    return controller.global_stats(namespace)
