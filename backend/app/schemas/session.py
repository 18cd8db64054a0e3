from typing import Optional

from pydantic import BaseModel, Field

from app.tracking.models import FixStatus, GpsQuality
from app.tracking.session import SessionState
from app.tracking.track import TrackPhase


class SessionStart(BaseModel):
    # Falls back to settings.default_segment_size_m
    segment_size_m: Optional[int] = None


class FixIn(BaseModel):
    """A raw position sample pushed by the location sensor."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy_m: float = Field(ge=0)
    timestamp_ms: int
    altitude_m: Optional[float] = None


class SensorErrorIn(BaseModel):
    message: str = "position unavailable"


class SegmentRead(BaseModel):
    distance_label_m: int
    distance_m: float
    elapsed_s: float
    pace_s_per_km: float
    pace: str  # e.g. "5:12"
    partial: bool = False


class FixResultRead(BaseModel):
    status: FixStatus
    quality: Optional[GpsQuality] = None
    accuracy_m: Optional[float] = None
    total_distance_m: float
    elevation_gain_m: float
    delta_m: float = 0.0
    dt_s: float = 0.0
    speed_kmh: Optional[float] = None
    live_pace: str
    new_segments: list[SegmentRead] = []


class SessionRead(BaseModel):
    id: str
    state: SessionState
    phase: TrackPhase
    segment_size_m: int
    total_distance_m: float
    elevation_gain_m: float
    elapsed_s: float
    elapsed: str  # "MM:SS" or "HH:MM:SS"
    segment_elapsed: str
    live_pace: str
    projected_finish: Optional[str] = None
    last_status: Optional[FixStatus] = None
    last_quality: Optional[GpsQuality] = None
    sensor_error: Optional[str] = None
    segments: list[SegmentRead] = []


class SessionStopped(BaseModel):
    id: str
    distance_m: float
    total_time_s: float
    duration: str  # "HH:MM:SS"
    elevation_gain_m: float
    average_pace_s_per_km: float
    pace: str
    calories: int
    segments: list[SegmentRead] = []
    saved: bool
    activity_id: Optional[int] = None
