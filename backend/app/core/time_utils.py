import math

# Shown when a pace cannot be computed (no movement yet, zero distance)
NO_PACE = "–:––"


def seconds_to_hhmmss(total_seconds: int) -> str:
    """
    Convert total seconds (int) -> 'HH:MM:SS'.
    Example: 2732 -> '00:45:32'
    """
    total_seconds = int(total_seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_time(seconds: float) -> str:
    """
    Format a split/segment timer as 'MM:SS'.
    Example: 75.4 -> '01:15'
    """
    total = int(round(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


def format_time_long(seconds: float) -> str:
    """'HH:MM:SS' once past the hour, otherwise 'MM:SS'."""
    total = int(round(seconds))
    if total >= 3600:
        return seconds_to_hhmmss(total)
    return format_time(total)


def format_pace(sec_per_km) -> str:
    """
    Format seconds per km as 'M:SS'.
    Example: 312.4 -> '5:12'; None/0/inf -> '–:––'
    """
    if not sec_per_km or sec_per_km <= 0 or not math.isfinite(sec_per_km):
        return NO_PACE
    total = int(round(sec_per_km))
    return f"{total // 60}:{total % 60:02d}"
