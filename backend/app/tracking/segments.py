"""Fixed-distance split segmentation.

Pure functions over the cumulative distance, the number of splits already
recorded and the split length. The caller owns the split list and the
timestamp at which the current split started.
"""

import math

from app.tracking.errors import InvalidSegmentSize
from app.tracking.models import Segment


def validate_segment_size(segment_size_m) -> int:
    """Return the split length as whole metres; 250.0 is accepted, 2.5 is not."""
    if isinstance(segment_size_m, bool) or not isinstance(segment_size_m, (int, float)):
        raise InvalidSegmentSize(segment_size_m)
    if not math.isfinite(segment_size_m) or segment_size_m <= 0:
        raise InvalidSegmentSize(segment_size_m)
    if segment_size_m != int(segment_size_m):
        raise InvalidSegmentSize(segment_size_m)
    return int(segment_size_m)


def completed_count(total_distance_m: float, segment_size_m: float) -> int:
    return int(math.floor(total_distance_m / segment_size_m))


def pace_for(elapsed_s: float, distance_m: float) -> float:
    """Seconds per km, or 0 when the pace is undefined."""
    if elapsed_s <= 0 or distance_m <= 0:
        return 0.0
    return (elapsed_s / distance_m) * 1000


def _build(index: int, segment_size_m: int, now_ms: int, segment_start_ms: int) -> Segment:
    elapsed_s = max(0.0, (now_ms - segment_start_ms) / 1000.0)
    return Segment(
        distance_label_m=(index + 1) * segment_size_m,
        elapsed_s=elapsed_s,
        pace_s_per_km=pace_for(elapsed_s, segment_size_m),
        distance_m=float(segment_size_m),
    )


def complete_segments(
    total_distance_m: float,
    recorded: int,
    segment_size_m,
    now_ms: int,
    segment_start_ms: int,
) -> tuple[list[Segment], int]:
    """Build every split the distance has crossed since the last call.

    A single large displacement can cross more than one boundary; the first
    new split gets the time since `segment_start_ms`, any further ones get
    zero time since they complete at the same instant.

    Returns:
        (new_segments, segment_start_ms) where the start is moved to `now_ms`
        when at least one split was completed.
    """
    segment_size_m = validate_segment_size(segment_size_m)
    target = completed_count(total_distance_m, segment_size_m)
    new: list[Segment] = []
    while recorded + len(new) < target:
        new.append(_build(recorded + len(new), segment_size_m, now_ms, segment_start_ms))
        segment_start_ms = now_ms
    return new, segment_start_ms


def flush_segment(
    total_distance_m: float,
    recorded: int,
    segment_size_m,
    now_ms: int,
    segment_start_ms: int,
):
    """End-of-session rule: one split if a boundary was crossed but not yet recorded."""
    segment_size_m = validate_segment_size(segment_size_m)
    if completed_count(total_distance_m, segment_size_m) > recorded:
        return _build(recorded, segment_size_m, now_ms, segment_start_ms)
    return None


def trailing_segment(
    total_distance_m: float,
    recorded: int,
    segment_size_m,
    now_ms: int,
    segment_start_ms: int,
):
    """Partial split for the distance covered past the last recorded boundary.

    Labelled like the split it would have become; its pace is measured over
    the distance actually covered.
    """
    segment_size_m = validate_segment_size(segment_size_m)
    remainder = total_distance_m - recorded * segment_size_m
    # Nothing left over, or whole splits still unrecorded.
    if remainder <= 1e-9 or remainder >= segment_size_m:
        return None
    elapsed_s = max(0.0, (now_ms - segment_start_ms) / 1000.0)
    return Segment(
        distance_label_m=(recorded + 1) * segment_size_m,
        elapsed_s=elapsed_s,
        pace_s_per_km=pace_for(elapsed_s, remainder),
        distance_m=remainder,
        partial=True,
    )
