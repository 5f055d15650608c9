import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.services.stats.errors import StorageUnavailable
from app.services.stats.sql_store import STORAGE_ERRORS
from database.models import Player

logger = logging.getLogger(__name__)


class PlayerService:
    """Maps player UUIDs to their last known username."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, uuid: UUID) -> Optional[Player]:
        try:
            return self.db.query(Player).filter(Player.uuid == str(uuid)).first()
        except STORAGE_ERRORS as e:
            raise StorageUnavailable(str(e)) from e

    def update_profile(self, uuid: UUID, username: Optional[str] = None) -> Player:
        """
        Creates the player if unknown. A given username overwrites the stored
        one; None leaves it untouched, which is how uploads register players.
        """
        try:
            player = self.get_profile(uuid)
            if player is None:
                player = Player(uuid=str(uuid), username=username)
                self.db.add(player)
                try:
                    self.db.commit()
                except IntegrityError:
                    # Another request created the player first
                    self.db.rollback()
                    player = self.get_profile(uuid)
                    if username is None or player.username == username:
                        return player
                else:
                    return player

            if username is not None and player.username != username:
                logger.debug(f"Player {uuid} updated username to {username}")
                player.username = username
                self.db.commit()
            return player
        except STORAGE_ERRORS as e:
            self.db.rollback()
            raise StorageUnavailable(str(e)) from e

    def ensure_player(self, uuid: UUID):
        self.update_profile(uuid, None)
