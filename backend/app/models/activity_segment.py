from sqlalchemy import Boolean, Column, Integer, ForeignKey, Numeric
from app.db import Base


class ActivitySegment(Base):
    __tablename__ = "activity_segments"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)

    idx = Column(Integer, nullable=False)  # 1-based split index
    distance_label_m = Column(Integer, nullable=False)  # idx * segment size
    distance_m = Column(Numeric(7, 1), nullable=False)
    time_sec = Column(Numeric(8, 1), nullable=False)
    pace_sec_per_km = Column(Numeric(8, 1), nullable=False)
    partial = Column(Boolean, nullable=False, default=False)
