"""SQL persistence for finished sessions."""

import logging
from typing import Callable

from sqlalchemy.orm import Session

from app.models.activity import Activity
from app.models.activity_segment import ActivitySegment
from app.tracking.models import FinishedSession

logger = logging.getLogger(__name__)


def save_activity(db: Session, record: FinishedSession) -> Activity:
    """Insert a finished session and its splits, rounded the way history shows them."""
    activity = Activity(
        started_at_ms=record.started_at_ms,
        ended_at_ms=record.ended_at_ms,
        distance_m=round(record.distance_m, 1),
        total_time_sec=int(round(record.total_time_s)),
        elevation_gain_m=int(round(record.elevation_gain_m)),
        segment_size_m=record.segment_size_m,
        calories=record.calories,
    )
    for idx, seg in enumerate(record.segments, start=1):
        activity.segments.append(
            ActivitySegment(
                idx=idx,
                distance_label_m=seg.distance_label_m,
                distance_m=round(seg.distance_m, 1),
                time_sec=round(seg.elapsed_s, 1),
                pace_sec_per_km=round(seg.pace_s_per_km, 1),
                partial=seg.partial,
            )
        )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    logger.info("saved activity %s (%.1fm, %d segments)", activity.id, record.distance_m, len(record.segments))
    return activity


class ActivityStore:
    """Finish listener for SessionController that opens its own DB session."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self.last_saved_id = None

    def __call__(self, record: FinishedSession) -> None:
        db = self.session_factory()
        try:
            self.last_saved_id = save_activity(db, record).id
        finally:
            db.close()
