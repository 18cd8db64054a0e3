"""Replay a recorded GPX track through the live tracking pipeline.

Useful for tuning filter thresholds against real recordings: every track
point becomes a RawFix, fed to a SessionController whose clock follows the
recorded timestamps.
"""

import logging
from datetime import timezone
from typing import Iterator, Optional

import gpxpy
import gpxpy.gpx

from app.core.config import settings
from app.tracking.models import FilterConfig, FinishedSession, RawFix
from app.tracking.session import SessionController

logger = logging.getLogger(__name__)


def _accuracy_for(point: gpxpy.gpx.GPXTrackPoint, default_accuracy_m: float, uere_m: float) -> float:
    # GPX has no accuracy radius; HDOP times the range error is the usual stand-in
    if point.horizontal_dilution is not None:
        return float(point.horizontal_dilution) * uere_m
    return default_accuracy_m


def iter_gpx_fixes(
    path: str,
    default_accuracy_m: Optional[float] = None,
    uere_m: Optional[float] = None,
) -> Iterator[RawFix]:
    """Yield a RawFix for every timestamped track point in a GPX file.

    Points without a timestamp are skipped; naive timestamps are taken as UTC.
    """
    if default_accuracy_m is None:
        default_accuracy_m = settings.replay_default_accuracy_m
    if uere_m is None:
        uere_m = settings.replay_uere_m

    with open(path, "r", encoding="utf-8") as f:
        gpx = gpxpy.parse(f)

    skipped = 0
    for track in gpx.tracks:
        for segment in track.segments:
            for p in segment.points:
                if p.time is None:
                    skipped += 1
                    continue
                ts = p.time if p.time.tzinfo else p.time.replace(tzinfo=timezone.utc)
                yield RawFix(
                    latitude=p.latitude,
                    longitude=p.longitude,
                    accuracy_m=_accuracy_for(p, default_accuracy_m, uere_m),
                    timestamp_ms=int(ts.timestamp() * 1000),
                    altitude_m=p.elevation,
                )
    if skipped:
        logger.warning("%s GPX points without a timestamp were skipped", skipped)


def replay_gpx(
    path: str,
    segment_size_m: Optional[int] = None,
    config: Optional[FilterConfig] = None,
    on_segment=None,
) -> FinishedSession:
    """Run a whole GPX track through a fresh session and return the stopped record.

    The session starts at the first fix and stops at the last one.
    """
    fixes = list(iter_gpx_fixes(path))
    if not fixes:
        raise ValueError(f"No timestamped track points in {path}")

    now = {"ms": fixes[0].timestamp_ms}
    controller = SessionController(
        segment_size_m or settings.default_segment_size_m,
        config=config or settings.filter_config(),
        clock=lambda: now["ms"],
        on_segment=on_segment,
    )
    controller.start()
    for fix in fixes:
        now["ms"] = fix.timestamp_ms
        controller.add_fix(fix)
    return controller.stop()
