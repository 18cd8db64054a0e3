"""Fix quality gate: decides whether a raw fix may touch the filter at all."""

from app.core.constants import EXCELLENT_ACCURACY_M, GOOD_ACCURACY_M
from app.tracking.models import FilterConfig, GpsQuality, RawFix


def is_usable(fix: RawFix, config: FilterConfig) -> bool:
    """False when the accuracy radius is too large for the fix to be of any use."""
    return fix.accuracy_m <= config.max_accuracy_m


def is_warm(fix: RawFix, config: FilterConfig) -> bool:
    """True when the fix is accurate enough to anchor the track after warm-up."""
    return fix.accuracy_m <= config.warmup_accuracy_m


def classify_accuracy(accuracy_m: float, config: FilterConfig) -> GpsQuality:
    if accuracy_m > config.max_accuracy_m:
        return GpsQuality.unusable
    if accuracy_m <= EXCELLENT_ACCURACY_M:
        return GpsQuality.excellent
    if accuracy_m <= GOOD_ACCURACY_M:
        return GpsQuality.good
    return GpsQuality.fair
