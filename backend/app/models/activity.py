from sqlalchemy import Column, Integer, BigInteger, DateTime, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db import Base


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)

    # Wall-clock bounds of the session (epoch ms, as reported by the tracker)
    started_at_ms = Column(BigInteger, nullable=False, index=True)
    ended_at_ms = Column(BigInteger, nullable=False)

    distance_m = Column(Numeric(9, 1), nullable=False)  # rounded to 0.1 m
    # Active time only (pauses excluded), whole seconds
    total_time_sec = Column(Integer, nullable=False)
    elevation_gain_m = Column(Integer, nullable=False, default=0)
    segment_size_m = Column(Integer, nullable=False)
    calories = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    segments = relationship(
        "ActivitySegment",
        order_by="ActivitySegment.idx",
        cascade="all, delete-orphan",
    )

    # Average pace is NOT stored; computed from time and distance
