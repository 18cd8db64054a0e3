from pydantic import BaseModel


class ActivitySegmentRead(BaseModel):
    idx: int
    distance_label_m: int
    distance_m: float
    time_sec: float
    pace_sec_per_km: float
    pace: str  # e.g. "5:12"
    partial: bool


class ActivityRead(BaseModel):
    """Schema returned when reading a saved activity."""

    id: int
    started_at_ms: int
    ended_at_ms: int
    distance_m: float
    total_time_sec: int
    duration: str  # "HH:MM:SS"
    pace: str  # average over the whole session, e.g. "5:09"
    elevation_gain_m: int
    segment_size_m: int
    calories: int
    segments_count: int


class ActivityDetail(ActivityRead):
    segments: list[ActivitySegmentRead] = []


class ActivityStats(BaseModel):
    total_runs: int
    total_distance_km: float
    total_time: str
    total_calories: int
    longest_run_km: float
    best_avg_segment_pace: str
