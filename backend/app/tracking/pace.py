"""Live pace from a rolling window of accepted displacements."""

from collections import deque
from typing import Optional

from app.core.constants import (
    PACE_MIN_WINDOW_M,
    PACE_WINDOW,
    PROJECTION_DISTANCE_M,
    PROJECTION_MIN_DISTANCE_M,
)


class RollingPace:
    """Pace over the last `window` accepted (delta, dt) pairs.

    This is the live figure shown while running. The average pace reported
    when a session stops is total time over total distance, not this.
    """

    def __init__(self, window: int = PACE_WINDOW, min_distance_m: float = PACE_MIN_WINDOW_M):
        if window <= 0:
            raise ValueError("window must be > 0")
        self.min_distance_m = min_distance_m
        self._samples: deque[tuple[float, float]] = deque(maxlen=window)

    def __len__(self) -> int:
        return len(self._samples)

    def add(self, delta_m: float, dt_s: float) -> Optional[float]:
        self._samples.append((delta_m, dt_s))
        return self.seconds_per_km()

    def clear(self) -> None:
        self._samples.clear()

    def seconds_per_km(self) -> Optional[float]:
        total_d = sum(d for d, _ in self._samples)
        total_t = sum(t for _, t in self._samples)
        if total_d <= self.min_distance_m or total_t <= 0:
            return None
        speed = total_d / total_t
        return 1000 / speed


def project_finish(
    elapsed_s: float,
    distance_m: float,
    target_m: float = PROJECTION_DISTANCE_M,
    min_distance_m: float = PROJECTION_MIN_DISTANCE_M,
) -> Optional[float]:
    """Projected time (s) to cover `target_m` at the average pace so far."""
    if distance_m <= min_distance_m or elapsed_s <= 0:
        return None
    return (elapsed_s / distance_m) * target_m
