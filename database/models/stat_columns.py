from sqlalchemy import Column, Integer, BigInteger, String, Float, DateTime
import datetime

class StatValueColumns:
    """
    Columns shared by player and global stat rows.

    Integer-family records keep their value in int_value, float-family
    records in float_value; the other column stays NULL.
    """
    kind = Column(String, nullable=False) # total, rolling_average
    family = Column(String, nullable=False) # int, float
    int_value = Column(BigInteger, nullable=True)
    float_value = Column(Float, nullable=True)
    count = Column(Integer, nullable=False, default=0) # samples, rolling averages only
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)
