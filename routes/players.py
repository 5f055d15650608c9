from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import Dict
from uuid import UUID
from database.connection import get_db
from app.schemas import PlayerProfileResponse, UpdatePlayerProfileRequest
from app.services.auth_service import require_server_token
from app.services.player_service import PlayerService
from app.services.stats import StorageUnavailable
from app.controllers.stats_controller import StatsController, get_stats_controller

router = APIRouter(prefix="/player", tags=["players"])

@router.get("/{uuid}", response_model=PlayerProfileResponse, response_model_exclude_none=True)
def get_player_profile(uuid: UUID, db: Session = Depends(get_db)):
    """Get the username last reported for a player"""
    try:
        player = PlayerService(db).get_profile(uuid)
    except StorageUnavailable:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Player storage unavailable")
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return PlayerProfileResponse(uuid=player.uuid, username=player.username)

@router.put("/{uuid}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def update_player_profile(
    uuid: UUID,
    body: UpdatePlayerProfileRequest,
    db: Session = Depends(get_db),
    _token: str = Depends(require_server_token),
):
    """Create the player or overwrite their username"""
    try:
        PlayerService(db).update_profile(uuid, body.username)
    except StorageUnavailable:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Player storage unavailable")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/{uuid}/stats", response_model=Dict[str, Dict[str, float]])
def get_all_player_stats(uuid: UUID, controller: StatsController = Depends(get_stats_controller)):
    """Get a player's stats in every namespace"""
    return controller.all_player_stats(uuid)

@router.get("/{uuid}/stats/{namespace}", response_model=Dict[str, float])
def get_player_stats(uuid: UUID, namespace: str, controller: StatsController = Depends(get_stats_controller)):
    """Get a player's stats in one namespace; {} when nothing was recorded"""
    return controller.player_stats(uuid, namespace)
