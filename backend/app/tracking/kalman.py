"""Scalar Kalman filter applied independently to latitude and longitude.

Each axis keeps a value (degrees) and a variance (degrees²). A fix's
accuracy radius in metres is turned into a measurement variance with
`accuracy² * measurement_variance_scale`; process noise is added before every
update to model movement between fixes.
"""

from typing import Optional

from app.core.constants import MEASUREMENT_VARIANCE_SCALE, PROCESS_NOISE
from app.tracking.models import AxisEstimate


def measurement_variance(accuracy_m: float, scale: float = MEASUREMENT_VARIANCE_SCALE) -> float:
    return (accuracy_m * accuracy_m) * scale


def kalman_gain(predicted_variance: float, meas_variance: float) -> float:
    """Blend weight for the new measurement, always within [0, 1]."""
    total = predicted_variance + meas_variance
    if total <= 0.0:
        # Both variances are zero: trust the measurement fully.
        return 1.0
    gain = predicted_variance / total
    return min(1.0, max(0.0, gain))


def kalman_update(
    prior: Optional[AxisEstimate],
    measurement: float,
    accuracy_m: float,
    *,
    process_noise: float = PROCESS_NOISE,
    variance_scale: float = MEASUREMENT_VARIANCE_SCALE,
) -> AxisEstimate:
    """Fuse one measurement into an axis estimate.

    Args:
        prior: Current estimate, or None before the first measurement.
        measurement: Raw coordinate in degrees.
        accuracy_m: Reported accuracy radius in metres.
        process_noise: Variance added per update (degrees²).
        variance_scale: Metres² to degrees² factor for the measurement.

    Returns:
        The new estimate. With no prior the measurement is returned as-is,
        with the measurement variance.
    """
    meas_var = measurement_variance(accuracy_m, variance_scale)
    if prior is None:
        return AxisEstimate(value=measurement, variance=meas_var)

    predicted = prior.variance + process_noise
    gain = kalman_gain(predicted, meas_var)
    value = prior.value + gain * (measurement - prior.value)
    variance = min(predicted, max(0.0, (1.0 - gain) * predicted))
    return AxisEstimate(value=value, variance=variance)
