from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from database.models.base import Base
import datetime

class Player(Base):
    __tablename__ = "players"

    uuid = Column(String, primary_key=True) # Canonical hyphenated UUID
    username = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    stats = relationship("PlayerStat", back_populates="player")
