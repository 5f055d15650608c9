from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from database.models.base import Base
from database.models.stat_columns import StatValueColumns

class PlayerStat(StatValueColumns, Base):
    __tablename__ = "player_stats"

    id = Column(Integer, primary_key=True, index=True)

    player_uuid = Column(String, ForeignKey("players.uuid"), nullable=False)
    namespace = Column(String, nullable=False) # e.g. "bed-wars"
    stat_id = Column(String, nullable=False) # e.g. "wins"

    __table_args__ = (
        UniqueConstraint("player_uuid", "namespace", "stat_id", name="uq_player_stats_key"),
        Index("ix_player_stats_player_namespace", "player_uuid", "namespace"),
    )

    player = relationship("Player", back_populates="stats")
