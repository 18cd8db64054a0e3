"""Shared tracking constants.

Centralizes the GPS filter thresholds and session defaults so we can
document and adjust them in one place. Settings may override most of these
from the environment (see app.core.config).
"""

# Reject fixes whose reported accuracy radius is worse than this (m)
MAX_ACCURACY_M = 50.0

# Accuracy required before the first fix may anchor the track (m)
GPS_WARMUP_ACC_M = 20.0

# Minimum filtered movement before distance is added (m)
MIN_DELTA_M = 2.0

# Reject jumps implying a speed above this (m/s). ~36 km/h.
MAX_SPEED_MPS = 10.0

# Axis filter process noise per update (degrees²)
PROCESS_NOISE = 5e-9

# Converts accuracy² (m²) into degrees² for the axis filter
MEASUREMENT_VARIANCE_SCALE = 1e-10

# Mean Earth radius used by the haversine distance (m)
EARTH_RADIUS_M = 6_371_000.0

# Default split length (m)
DEFAULT_SEGMENT_SIZE_M = 250

# Accuracy bands for the advisory GPS quality label (m)
EXCELLENT_ACCURACY_M = 8.0
GOOD_ACCURACY_M = 15.0

# Rolling live pace: number of accepted displacements kept, minimum window
# distance before a pace is reported (m) and staleness cutoff (s)
PACE_WINDOW = 12
PACE_MIN_WINDOW_M = 5.0
PACE_STALE_AFTER_S = 5.0

# Finish-time projection target and minimum distance before projecting (m)
PROJECTION_DISTANCE_M = 5000.0
PROJECTION_MIN_DISTANCE_M = 100.0

# Sessions shorter than this are not saved (s)
MIN_SAVE_DURATION_S = 5.0

# Rough energy estimate for a ~70 kg runner (kcal per km)
KCAL_PER_KM = 62

# History only lists runs longer than this (m), newest first, capped
HISTORY_MIN_DISTANCE_M = 50.0
HISTORY_LIMIT = 100

# Live sessions untouched for this long are dropped from memory
SESSION_IDLE_TIMEOUT_S = 6 * 60 * 60
