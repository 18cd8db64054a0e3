"""Session controller: lifecycle, cumulative totals and split bookkeeping.

One controller tracks one activity at a time:

    IDLE --start--> RUNNING --pause--> PAUSED --resume--> RUNNING
    RUNNING/PAUSED --stop--> IDLE

Raw fixes are only processed while RUNNING. The controller owns the
running totals; the track estimator only reports validated displacements
and the segmentation functions only decide which splits are due.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional

from app.core.constants import DEFAULT_SEGMENT_SIZE_M, KCAL_PER_KM
from app.tracking import gate
from app.tracking.errors import SessionStateError
from app.tracking.models import (
    FilterConfig,
    FinishedSession,
    FixResult,
    FixStatus,
    GpsQuality,
    RawFix,
    Segment,
)
from app.tracking.pace import RollingPace, project_finish
from app.tracking.segments import (
    complete_segments,
    flush_segment,
    pace_for,
    trailing_segment,
    validate_segment_size,
)
from app.tracking.track import TrackEstimator, TrackPhase

logger = logging.getLogger(__name__)

SegmentListener = Callable[[Segment], None]
FinishListener = Callable[[FinishedSession], None]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class SessionState(str, Enum):
    idle = "idle"
    running = "running"
    paused = "paused"


@dataclass
class SessionAccumulator:
    total_distance_m: float = 0.0
    elevation_gain_m: float = 0.0
    segments: list[Segment] = field(default_factory=list)
    segment_start_ms: int = 0
    last_elevation_m: Optional[float] = None
    last_accepted_ms: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Point-in-time view of a session for display collaborators."""

    state: SessionState
    phase: TrackPhase
    segment_size_m: int
    total_distance_m: float
    elevation_gain_m: float
    elapsed_s: float
    segment_elapsed_s: float
    segments: tuple[Segment, ...]
    live_pace_s_per_km: Optional[float]
    projected_finish_s: Optional[float]
    last_status: Optional[FixStatus]
    last_quality: Optional[GpsQuality]
    sensor_error: Optional[str]


class SessionController:
    """Drives the tracking pipeline for a single activity session.

    Args:
        segment_size_m: Split length in metres (> 0).
        config: Filter thresholds; defaults to the module constants.
        clock: Returns the current epoch milliseconds. Session and split
            timing both use it; fix timestamps only feed the speed check.
        on_segment: Called once for every completed split.
        on_finish: Called with the finished record when a stopped session
            is worth saving.
    """

    def __init__(
        self,
        segment_size_m=DEFAULT_SEGMENT_SIZE_M,
        config: Optional[FilterConfig] = None,
        clock: Callable[[], int] = wall_clock_ms,
        on_segment: Optional[SegmentListener] = None,
        on_finish: Optional[FinishListener] = None,
    ):
        self.segment_size_m = validate_segment_size(segment_size_m)
        self.config = config or FilterConfig()
        self.clock = clock
        self.on_segment = on_segment
        self.on_finish = on_finish

        self.state = SessionState.idle
        self.track = TrackEstimator(self.config)
        self.acc = SessionAccumulator()
        self.live_pace = RollingPace(self.config.pace_window)

        self.started_at_ms: Optional[int] = None
        self._paused_ms = 0
        self._pause_started_ms: Optional[int] = None

        self.last_status: Optional[FixStatus] = None
        self.last_quality: Optional[GpsQuality] = None
        self.sensor_error: Optional[str] = None
        self.finished: Optional[FinishedSession] = None

    # ---- read-only views ----

    @property
    def total_distance_m(self) -> float:
        return self.acc.total_distance_m

    @property
    def elevation_gain_m(self) -> float:
        return self.acc.elevation_gain_m

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self.acc.segments)

    def elapsed_s(self, now_ms: Optional[int] = None) -> float:
        """Active time so far, excluding pauses."""
        if self.started_at_ms is None:
            return 0.0
        if self.state is SessionState.paused and self._pause_started_ms is not None:
            now_ms = self._pause_started_ms
        elif now_ms is None:
            now_ms = self.clock()
        return max(0.0, (now_ms - self.started_at_ms - self._paused_ms) / 1000.0)

    def snapshot(self, now_ms: Optional[int] = None) -> SessionSnapshot:
        if now_ms is None:
            now_ms = self.clock()
        elapsed = self.elapsed_s(now_ms)

        seg_now = self._pause_started_ms if self.state is SessionState.paused else now_ms
        seg_elapsed = 0.0
        if self.state is not SessionState.idle and seg_now is not None:
            seg_elapsed = max(0.0, (seg_now - self.acc.segment_start_ms) / 1000.0)

        pace = self.live_pace.seconds_per_km()
        last = self.acc.last_accepted_ms
        if last is None or (now_ms - last) / 1000.0 > self.config.pace_stale_after_s:
            # No recent movement (e.g. waiting at a crossing)
            pace = None

        return SessionSnapshot(
            state=self.state,
            phase=self.track.phase,
            segment_size_m=self.segment_size_m,
            total_distance_m=self.acc.total_distance_m,
            elevation_gain_m=self.acc.elevation_gain_m,
            elapsed_s=elapsed,
            segment_elapsed_s=seg_elapsed,
            segments=self.segments,
            live_pace_s_per_km=pace,
            projected_finish_s=project_finish(elapsed, self.acc.total_distance_m),
            last_status=self.last_status,
            last_quality=self.last_quality,
            sensor_error=self.sensor_error,
        )

    # ---- lifecycle ----

    def start(self) -> None:
        if self.state is not SessionState.idle:
            raise SessionStateError("start", self.state.value)
        now = self.clock()
        self.track.reset()
        self.live_pace.clear()
        self.acc = SessionAccumulator(segment_start_ms=now)
        self.started_at_ms = now
        self._paused_ms = 0
        self._pause_started_ms = None
        self.last_status = None
        self.last_quality = None
        self.sensor_error = None
        self.finished = None
        self.state = SessionState.running
        logger.info("session started (segment size %sm)", self.segment_size_m)

    def pause(self) -> None:
        if self.state is not SessionState.running:
            raise SessionStateError("pause", self.state.value)
        self._pause_started_ms = self.clock()
        self.state = SessionState.paused
        logger.info("session paused at %.0fm", self.acc.total_distance_m)

    def resume(self) -> None:
        """Continue after a pause.

        The paused interval is left out of the split in progress as well as
        the total: split times are active time, not time since the last
        boundary.
        """
        if self.state is not SessionState.paused:
            raise SessionStateError("resume", self.state.value)
        now = self.clock()
        paused_for = max(0, now - self._pause_started_ms)
        self._paused_ms += paused_for
        self.acc.segment_start_ms += paused_for
        self._pause_started_ms = None
        # Filter confidence from before an unknown-length gap is not reused.
        self.track.reset()
        self.live_pace.clear()
        self.state = SessionState.running
        logger.info("session resumed after %.1fs", paused_for / 1000.0)

    def stop(self) -> FinishedSession:
        if self.state is SessionState.idle:
            raise SessionStateError("stop", self.state.value)
        now = self.clock()
        if self.state is SessionState.paused:
            paused_for = max(0, now - self._pause_started_ms)
            self._paused_ms += paused_for
            self.acc.segment_start_ms += paused_for
            self._pause_started_ms = None
        total_time_s = max(0.0, (now - self.started_at_ms - self._paused_ms) / 1000.0)

        acc = self.acc
        for build in (flush_segment, trailing_segment):
            seg = build(
                acc.total_distance_m,
                len(acc.segments),
                self.segment_size_m,
                now,
                acc.segment_start_ms,
            )
            if seg is not None:
                acc.segments.append(seg)
                acc.segment_start_ms = now
                self._emit_segment(seg)

        worth_saving = (
            acc.total_distance_m > 0 and total_time_s > self.config.min_save_duration_s
        )
        record = FinishedSession(
            started_at_ms=self.started_at_ms,
            ended_at_ms=now,
            distance_m=acc.total_distance_m,
            total_time_s=total_time_s,
            elevation_gain_m=acc.elevation_gain_m,
            segment_size_m=self.segment_size_m,
            segments=tuple(acc.segments),
            average_pace_s_per_km=pace_for(total_time_s, acc.total_distance_m),
            calories=round(acc.total_distance_m / 1000 * KCAL_PER_KM),
            persisted=worth_saving and self.on_finish is not None,
        )
        self.state = SessionState.idle
        self.finished = record
        logger.info(
            "session stopped: %.1fm in %.1fs, %d segments",
            record.distance_m,
            record.total_time_s,
            len(record.segments),
        )
        if record.persisted:
            try:
                self.on_finish(record)
            except Exception:
                logger.exception("failed to save finished session")
                record = replace(record, persisted=False)
                self.finished = record
        elif acc.total_distance_m == 0:
            logger.info("no distance recorded; session not saved")
        return record

    # ---- input ----

    def add_fix(self, fix: RawFix) -> FixResult:
        """Process one raw fix. Ignored unless the session is running."""
        if self.state is not SessionState.running:
            logger.debug("fix ignored while %s", self.state.value)
            return self._result(FixStatus.not_running, None, fix.accuracy_m)

        quality = gate.classify_accuracy(fix.accuracy_m, self.config)
        self.sensor_error = None
        self.last_quality = quality
        if not gate.is_usable(fix, self.config):
            self.last_status = FixStatus.unusable
            return self._result(FixStatus.unusable, quality, fix.accuracy_m)

        acc = self.acc
        if fix.altitude_m is not None:
            if acc.last_elevation_m is not None and fix.altitude_m > acc.last_elevation_m:
                acc.elevation_gain_m += fix.altitude_m - acc.last_elevation_m
            acc.last_elevation_m = fix.altitude_m

        update = self.track.process(fix)
        self.last_status = update.status
        if not update.accepted:
            return self._result(update.status, quality, fix.accuracy_m)

        now = self.clock()
        acc.total_distance_m += update.delta_m
        acc.last_accepted_ms = now
        speed_kmh = (update.delta_m / update.dt_s) * 3.6 if update.dt_s > 0 else None
        live_pace = self.live_pace.add(update.delta_m, update.dt_s)

        new_segments, acc.segment_start_ms = complete_segments(
            acc.total_distance_m,
            len(acc.segments),
            self.segment_size_m,
            now,
            acc.segment_start_ms,
        )
        for seg in new_segments:
            acc.segments.append(seg)
            self._emit_segment(seg)

        return FixResult(
            status=FixStatus.accepted,
            quality=quality,
            accuracy_m=fix.accuracy_m,
            total_distance_m=acc.total_distance_m,
            elevation_gain_m=acc.elevation_gain_m,
            delta_m=update.delta_m,
            dt_s=update.dt_s,
            speed_kmh=speed_kmh,
            live_pace_s_per_km=live_pace,
            new_segments=tuple(new_segments),
        )

    def report_sensor_error(self, message: str) -> FixResult:
        """Record that the location sensor failed; session state is kept."""
        logger.warning("location sensor unavailable: %s", message)
        self.sensor_error = message
        self.last_status = FixStatus.sensor_unavailable
        return self._result(FixStatus.sensor_unavailable, None, None)

    # ---- helpers ----

    def _emit_segment(self, seg: Segment) -> None:
        logger.info(
            "segment %sm completed in %.1fs%s",
            seg.distance_label_m,
            seg.elapsed_s,
            " (partial)" if seg.partial else "",
        )
        if self.on_segment is not None:
            self.on_segment(seg)

    def _result(self, status: FixStatus, quality, accuracy_m) -> FixResult:
        return FixResult(
            status=status,
            quality=quality,
            accuracy_m=accuracy_m,
            total_distance_m=self.acc.total_distance_m,
            elevation_gain_m=self.acc.elevation_gain_m,
        )
