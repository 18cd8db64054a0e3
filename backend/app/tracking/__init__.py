"""GPS signal processing and split segmentation for a live activity session.

The package has no display or storage dependencies: callers push RawFix
samples into a SessionController and consume the structured results and
callbacks it produces.
"""

from app.tracking.errors import InvalidSegmentSize, SessionStateError, TrackingError
from app.tracking.models import (
    AxisEstimate,
    FilterConfig,
    FilteredFix,
    FinishedSession,
    FixResult,
    FixStatus,
    GpsQuality,
    RawFix,
    Segment,
)
from app.tracking.session import SessionController, SessionState
from app.tracking.track import TrackEstimator, TrackPhase

__all__ = [
    "AxisEstimate",
    "FilterConfig",
    "FilteredFix",
    "FinishedSession",
    "FixResult",
    "FixStatus",
    "GpsQuality",
    "InvalidSegmentSize",
    "RawFix",
    "Segment",
    "SessionController",
    "SessionState",
    "SessionStateError",
    "TrackEstimator",
    "TrackPhase",
    "TrackingError",
]
