from sqlalchemy import Column, Integer, String, UniqueConstraint
from database.models.base import Base
from database.models.stat_columns import StatValueColumns

class GlobalStat(StatValueColumns, Base):
    """Namespace-wide statistics that belong to no single player."""
    __tablename__ = "global_stats"

    id = Column(Integer, primary_key=True, index=True)

    namespace = Column(String, nullable=False, index=True)
    stat_id = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("namespace", "stat_id", name="uq_global_stats_key"),
    )
