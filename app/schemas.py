from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from uuid import UUID

# Stat entries stay loosely typed on the wire; the stats core validates
# ids, types and values itself so every rejection carries the same errors.

class StatsBundle(BaseModel):
    global_stats: Optional[Dict[str, Any]] = Field(default=None, alias="global")
    players: Dict[str, Any] = Field(default_factory=dict)

class GameStatsBundle(BaseModel):
    server_name: Optional[str] = None
    namespace: str
    stats: StatsBundle

class PlayerProfileResponse(BaseModel):
    uuid: UUID
    username: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class UpdatePlayerProfileRequest(BaseModel):
    username: str

class FailedStatResponse(BaseModel):
    player: Optional[str]
    stat: str
    reason: str
    message: str

class UploadErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
    failed: List[FailedStatResponse] = Field(default_factory=list)
