import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.config import settings
from app.core.time_utils import format_pace, format_time, format_time_long, seconds_to_hhmmss
from app.db import SessionLocal
from app.schemas.session import (
    FixIn,
    FixResultRead,
    SegmentRead,
    SensorErrorIn,
    SessionRead,
    SessionStart,
    SessionStopped,
)
from app.store import ActivityStore
from app.tracking import RawFix, Segment, SessionController, SessionStateError, TrackingError
from app.tracking.session import wall_clock_ms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class SessionRegistry:
    """Live controllers keyed by session id, one per tracked activity.

    Sessions nobody has touched for `idle_timeout_s` are dropped the next
    time a session is created.
    """

    def __init__(self, clock=None, idle_timeout_s: Optional[float] = None):
        self.clock = clock
        self.idle_timeout_s = (
            settings.session_idle_timeout_s if idle_timeout_s is None else idle_timeout_s
        )
        self._sessions: dict[str, tuple[SessionController, ActivityStore]] = {}
        self._touched: dict[str, int] = {}

    def _now(self) -> int:
        return (self.clock or wall_clock_ms)()

    def __len__(self) -> int:
        return len(self._sessions)

    def evict_stale(self) -> list[str]:
        cutoff = self._now() - self.idle_timeout_s * 1000
        stale = [sid for sid, touched in self._touched.items() if touched < cutoff]
        for sid in stale:
            controller, _ = self._sessions[sid]
            logger.warning("dropping session %s, idle while %s", sid, controller.state.value)
            self.discard(sid)
        return stale

    def create(self, segment_size_m: int) -> tuple[str, SessionController]:
        self.evict_stale()
        store = ActivityStore(SessionLocal)
        kwargs = {"clock": self.clock} if self.clock is not None else {}
        controller = SessionController(
            segment_size_m,
            config=settings.filter_config(),
            on_finish=store,
            **kwargs,
        )
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = (controller, store)
        self._touched[session_id] = self._now()
        return session_id, controller

    def get(self, session_id: str) -> tuple[SessionController, ActivityStore]:
        entry = self._sessions.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="Session not found")
        self._touched[session_id] = self._now()
        return entry

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._touched.pop(session_id, None)


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _segment_read(seg: Segment) -> SegmentRead:
    return SegmentRead(
        distance_label_m=seg.distance_label_m,
        distance_m=seg.distance_m,
        elapsed_s=seg.elapsed_s,
        pace_s_per_km=seg.pace_s_per_km,
        pace=format_pace(seg.pace_s_per_km),
        partial=seg.partial,
    )


def _session_read(session_id: str, controller: SessionController) -> SessionRead:
    snap = controller.snapshot()
    return SessionRead(
        id=session_id,
        state=snap.state,
        phase=snap.phase,
        segment_size_m=snap.segment_size_m,
        total_distance_m=snap.total_distance_m,
        elevation_gain_m=snap.elevation_gain_m,
        elapsed_s=snap.elapsed_s,
        elapsed=format_time_long(snap.elapsed_s),
        segment_elapsed=format_time(snap.segment_elapsed_s),
        live_pace=format_pace(snap.live_pace_s_per_km),
        projected_finish=(
            format_time_long(snap.projected_finish_s)
            if snap.projected_finish_s is not None
            else None
        ),
        last_status=snap.last_status,
        last_quality=snap.last_quality,
        sensor_error=snap.sensor_error,
        segments=[_segment_read(s) for s in snap.segments],
    )


def _lifecycle(action):
    try:
        action()
    except SessionStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/", response_model=SessionRead)
def start_session(
    payload: Optional[SessionStart] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    size = payload.segment_size_m if payload and payload.segment_size_m is not None else None
    if size is None:
        size = settings.default_segment_size_m
    try:
        session_id, controller = registry.create(size)
    except TrackingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    controller.start()
    return _session_read(session_id, controller)


@router.get("/{session_id}", response_model=SessionRead)
def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    controller, _ = registry.get(session_id)
    return _session_read(session_id, controller)


@router.post("/{session_id}/fixes", response_model=FixResultRead)
def add_fix(session_id: str, payload: FixIn, registry: SessionRegistry = Depends(get_registry)):
    controller, _ = registry.get(session_id)
    result = controller.add_fix(RawFix(**payload.model_dump()))
    return FixResultRead(
        status=result.status,
        quality=result.quality,
        accuracy_m=result.accuracy_m,
        total_distance_m=result.total_distance_m,
        elevation_gain_m=result.elevation_gain_m,
        delta_m=result.delta_m,
        dt_s=result.dt_s,
        speed_kmh=result.speed_kmh,
        live_pace=format_pace(result.live_pace_s_per_km),
        new_segments=[_segment_read(s) for s in result.new_segments],
    )


@router.post("/{session_id}/sensor_error", response_model=SessionRead)
def report_sensor_error(
    session_id: str,
    payload: SensorErrorIn,
    registry: SessionRegistry = Depends(get_registry),
):
    controller, _ = registry.get(session_id)
    controller.report_sensor_error(payload.message)
    return _session_read(session_id, controller)


@router.post("/{session_id}/pause", response_model=SessionRead)
def pause_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    controller, _ = registry.get(session_id)
    _lifecycle(controller.pause)
    return _session_read(session_id, controller)


@router.post("/{session_id}/resume", response_model=SessionRead)
def resume_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    controller, _ = registry.get(session_id)
    _lifecycle(controller.resume)
    return _session_read(session_id, controller)


@router.post("/{session_id}/stop", response_model=SessionStopped)
def stop_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    controller, store = registry.get(session_id)
    try:
        _lifecycle(controller.stop)
    finally:
        registry.discard(session_id)
    record = controller.finished

    return SessionStopped(
        id=session_id,
        distance_m=record.distance_m,
        total_time_s=record.total_time_s,
        duration=seconds_to_hhmmss(int(round(record.total_time_s))),
        elevation_gain_m=record.elevation_gain_m,
        average_pace_s_per_km=record.average_pace_s_per_km,
        pace=format_pace(record.average_pace_s_per_km),
        calories=record.calories,
        segments=[_segment_read(s) for s in record.segments],
        saved=record.persisted,
        activity_id=store.last_saved_id if record.persisted else None,
    )
