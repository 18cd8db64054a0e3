from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import HISTORY_MIN_DISTANCE_M, KCAL_PER_KM
from app.core.time_utils import format_pace, seconds_to_hhmmss
from app.db import get_db
from app.models.activity import Activity
from app.models.activity_segment import ActivitySegment
from app.schemas.activity import (
    ActivityDetail,
    ActivityRead,
    ActivitySegmentRead,
    ActivityStats,
)
from app.tracking.segments import pace_for

router = APIRouter(prefix="/activities", tags=["activities"])


def _history_query(db: Session):
    # Very short runs are noise (e.g. started by accident) and stay hidden
    return db.query(Activity).filter(Activity.distance_m > HISTORY_MIN_DISTANCE_M)


def _activity_read(a: Activity) -> dict:
    distance_m = float(a.distance_m)
    return dict(
        id=a.id,
        started_at_ms=a.started_at_ms,
        ended_at_ms=a.ended_at_ms,
        distance_m=distance_m,
        total_time_sec=a.total_time_sec,
        duration=seconds_to_hhmmss(a.total_time_sec),
        pace=format_pace(pace_for(a.total_time_sec, distance_m)),
        elevation_gain_m=a.elevation_gain_m,
        segment_size_m=a.segment_size_m,
        calories=a.calories if a.calories is not None else round(distance_m / 1000 * KCAL_PER_KM),
        segments_count=len(a.segments),
    )


def _segment_read(s: ActivitySegment) -> ActivitySegmentRead:
    return ActivitySegmentRead(
        idx=s.idx,
        distance_label_m=s.distance_label_m,
        distance_m=float(s.distance_m),
        time_sec=float(s.time_sec),
        pace_sec_per_km=float(s.pace_sec_per_km),
        pace=format_pace(float(s.pace_sec_per_km)),
        partial=bool(s.partial),
    )


def _avg_segment_pace(a: Activity):
    if not a.segments:
        return None
    return sum(float(s.pace_sec_per_km) for s in a.segments) / len(a.segments)


@router.get("/", response_model=list[ActivityRead])
def list_activities(db: Session = Depends(get_db)):
    """Saved sessions, most recent first, capped at settings.history_limit."""
    rows = (
        _history_query(db)
        .order_by(Activity.started_at_ms.desc())
        .limit(settings.history_limit)
        .all()
    )
    return [ActivityRead(**_activity_read(a)) for a in rows]


@router.get("/stats", response_model=ActivityStats)
def get_activity_stats(db: Session = Depends(get_db)):
    runs = _history_query(db).all()

    total_dist = sum(float(a.distance_m) for a in runs)
    total_time = sum(a.total_time_sec for a in runs)
    total_cal = sum(_activity_read(a)["calories"] for a in runs)
    longest = max((float(a.distance_m) for a in runs), default=0.0)

    best = 0.0
    for a in runs:
        avg = _avg_segment_pace(a)
        if avg is not None and (best == 0.0 or avg < best):
            best = avg

    return ActivityStats(
        total_runs=len(runs),
        total_distance_km=round(total_dist / 1000, 1),
        total_time=seconds_to_hhmmss(total_time),
        total_calories=total_cal,
        longest_run_km=round(longest / 1000, 2),
        best_avg_segment_pace=format_pace(best),
    )


@router.get("/{activity_id}", response_model=ActivityDetail)
def get_activity(activity_id: int, db: Session = Depends(get_db)):
    a = db.query(Activity).filter(Activity.id == activity_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Activity not found")
    return ActivityDetail(**_activity_read(a), segments=[_segment_read(s) for s in a.segments])


@router.get("/{activity_id}/segments", response_model=list[ActivitySegmentRead])
def get_activity_segments(activity_id: int, db: Session = Depends(get_db)):
    rows = (
        db.query(ActivitySegment)
        .filter(ActivitySegment.activity_id == activity_id)
        .order_by(ActivitySegment.idx)
        .all()
    )
    if not rows and not db.query(Activity).filter(Activity.id == activity_id).first():
        raise HTTPException(status_code=404, detail="Activity not found")
    return [_segment_read(s) for s in rows]


@router.delete("/{activity_id}")
def delete_activity(activity_id: int, db: Session = Depends(get_db)):
    a = db.query(Activity).filter(Activity.id == activity_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Activity not found")

    db.delete(a)
    db.commit()
    return {"message": "Activity deleted"}


@router.delete("/")
def clear_activities(db: Session = Depends(get_db)):
    count = 0
    for a in db.query(Activity).all():
        db.delete(a)
        count += 1
    db.commit()
    return {"message": "History cleared", "deleted": count}
