"""Track estimator: filters raw fixes and turns them into validated displacements.

Gates run in a fixed order for every fix:

1. accuracy gate (unusable fixes never touch the filter)
2. axis filter update
3. warm-up gate (the first accurate fix anchors the track)
4. speed-spike gate (implausible jumps are rolled back)
5. anti-drift gate (sub-threshold moves keep the anchor where it is)

Only fixes that clear all of them produce distance.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.tracking import gate
from app.tracking.geo import haversine_m
from app.tracking.kalman import kalman_update
from app.tracking.models import AxisEstimate, FilterConfig, FilteredFix, FixStatus, RawFix

logger = logging.getLogger(__name__)


class TrackPhase(str, Enum):
    cold = "cold"
    warming_up = "warming_up"
    tracking = "tracking"


@dataclass
class TrackState:
    lat: Optional[AxisEstimate] = None
    lon: Optional[AxisEstimate] = None
    warmed_up: bool = False
    previous: Optional[FilteredFix] = None


@dataclass(frozen=True, slots=True)
class TrackUpdate:
    """Outcome of one fix. `delta_m`/`dt_s` are only meaningful when accepted."""

    status: FixStatus
    filtered: Optional[FilteredFix] = None
    delta_m: float = 0.0
    dt_s: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.status is FixStatus.accepted


class TrackEstimator:
    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()
        self.state = TrackState()

    @property
    def phase(self) -> TrackPhase:
        if self.state.lat is None or self.state.lon is None:
            return TrackPhase.cold
        if not self.state.warmed_up:
            return TrackPhase.warming_up
        return TrackPhase.tracking

    def reset(self) -> None:
        """Drop all filter state; the next usable fix seeds a fresh estimate."""
        self.state = TrackState()

    def process(self, fix: RawFix) -> TrackUpdate:
        cfg = self.config
        st = self.state

        if not gate.is_usable(fix, cfg):
            logger.debug("fix skipped: accuracy %.1fm > %.1fm", fix.accuracy_m, cfg.max_accuracy_m)
            return TrackUpdate(FixStatus.unusable)

        st.lat = kalman_update(
            st.lat,
            fix.latitude,
            fix.accuracy_m,
            process_noise=cfg.process_noise,
            variance_scale=cfg.measurement_variance_scale,
        )
        st.lon = kalman_update(
            st.lon,
            fix.longitude,
            fix.accuracy_m,
            process_noise=cfg.process_noise,
            variance_scale=cfg.measurement_variance_scale,
        )
        current = FilteredFix(st.lat.value, st.lon.value, fix.timestamp_ms)

        if not st.warmed_up:
            if gate.is_warm(fix, cfg):
                st.warmed_up = True
                st.previous = current
                logger.debug("gps locked at accuracy %.1fm", fix.accuracy_m)
                return TrackUpdate(FixStatus.locked, current)
            return TrackUpdate(FixStatus.warming_up, current)

        if st.previous is None:
            st.previous = current
            return TrackUpdate(FixStatus.anchored, current)

        prev = st.previous
        delta = haversine_m(prev.latitude, prev.longitude, current.latitude, current.longitude)
        dt = (fix.timestamp_ms - prev.timestamp_ms) / 1000.0

        if dt > 0 and delta / dt > cfg.max_speed_mps:
            # Keep the grown variances, discard the position contribution.
            st.lat = AxisEstimate(prev.latitude, st.lat.variance)
            st.lon = AxisEstimate(prev.longitude, st.lon.variance)
            logger.debug("spike rejected: %.1fm in %.2fs", delta, dt)
            return TrackUpdate(FixStatus.spike_rejected, current, delta, dt)

        if delta < cfg.min_delta_m:
            # Anchor stays put so slow movement still adds up against it.
            return TrackUpdate(FixStatus.negligible, current, delta, dt)

        st.previous = current
        return TrackUpdate(FixStatus.accepted, current, delta, dt)
