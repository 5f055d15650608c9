# Export Base for Alembic migrations
from .base import Base

# Player System
from .players.player import Player
from .players.player_stat import PlayerStat
from .global_stat import GlobalStat
