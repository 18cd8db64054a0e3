"""Value types for the tracking pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from app.core import constants


@dataclass(frozen=True, slots=True)
class RawFix:
    """One location sample as reported by the sensor.

    Attributes:
        latitude: Degrees.
        longitude: Degrees.
        accuracy_m: Horizontal accuracy radius in metres (>= 0).
        timestamp_ms: Unix epoch milliseconds.
        altitude_m: Metres, or None when the sensor has no altitude.
    """

    latitude: float
    longitude: float
    accuracy_m: float
    timestamp_ms: int
    altitude_m: Optional[float] = None

    def __post_init__(self):
        if self.accuracy_m < 0:
            raise ValueError("accuracy_m must be >= 0")


@dataclass(frozen=True, slots=True)
class FilteredFix:
    """A filtered position paired with the timestamp of the fix that produced it."""

    latitude: float
    longitude: float
    timestamp_ms: int


@dataclass(frozen=True, slots=True)
class AxisEstimate:
    value: float
    variance: float


@dataclass(frozen=True, slots=True)
class FilterConfig:
    """Thresholds used by the track estimator and session controller."""

    max_accuracy_m: float = constants.MAX_ACCURACY_M
    warmup_accuracy_m: float = constants.GPS_WARMUP_ACC_M
    min_delta_m: float = constants.MIN_DELTA_M
    max_speed_mps: float = constants.MAX_SPEED_MPS
    process_noise: float = constants.PROCESS_NOISE
    measurement_variance_scale: float = constants.MEASUREMENT_VARIANCE_SCALE
    min_save_duration_s: float = constants.MIN_SAVE_DURATION_S
    pace_window: int = constants.PACE_WINDOW
    pace_stale_after_s: float = constants.PACE_STALE_AFTER_S


@dataclass(frozen=True, slots=True)
class Segment:
    """A completed split.

    `distance_label_m` is the cumulative distance at the end of the split
    (N * segment size for the N-th split). `distance_m` is the distance the
    split actually covers: the segment size, or the remainder for the
    trailing partial split written at session end.
    """

    distance_label_m: int
    elapsed_s: float
    pace_s_per_km: float
    distance_m: float
    partial: bool = False


class FixStatus(str, Enum):
    accepted = "accepted"
    unusable = "unusable"
    warming_up = "warming_up"
    locked = "locked"
    anchored = "anchored"
    spike_rejected = "spike_rejected"
    negligible = "negligible"
    not_running = "not_running"
    sensor_unavailable = "sensor_unavailable"


class GpsQuality(str, Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    unusable = "unusable"


@dataclass(frozen=True, slots=True)
class FixResult:
    """What one raw fix did to the session."""

    status: FixStatus
    quality: Optional[GpsQuality]
    accuracy_m: Optional[float]
    total_distance_m: float
    elevation_gain_m: float
    delta_m: float = 0.0
    dt_s: float = 0.0
    speed_kmh: Optional[float] = None
    live_pace_s_per_km: Optional[float] = None
    new_segments: tuple[Segment, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.status is FixStatus.accepted


@dataclass(frozen=True, slots=True)
class FinishedSession:
    """Summary handed to the persistence collaborator when a session stops."""

    started_at_ms: int
    ended_at_ms: int
    distance_m: float
    total_time_s: float
    elevation_gain_m: float
    segment_size_m: int
    segments: tuple[Segment, ...] = field(default_factory=tuple)
    average_pace_s_per_km: float = 0.0
    calories: int = 0
    persisted: bool = False
