"""Clinical and model constants.

All clinically significant values are defined here with their source.
These are DEFAULTS where a user setting exists (thresholds, DIA, absorption
rate come from ``glucometrics.config.Settings``); the rest are fixed parts
of the models and must not be tuned per user.
"""

from typing import Final

# Default glucose zone boundaries (mg/dL), ADA/ATTD consensus targets.
DEFAULT_VERY_LOW_MGDL: Final[float] = 54
DEFAULT_LOW_MGDL: Final[float] = 70
DEFAULT_HIGH_MGDL: Final[float] = 180
DEFAULT_VERY_HIGH_MGDL: Final[float] = 250

# Default model parameters.
DEFAULT_DIA_HOURS: Final[float] = 3.0
DEFAULT_CARB_ABSORPTION_RATE: Final[float] = 30.0  # g/h
DEFAULT_SCHEDULED_BASAL_RATE: Final[float] = 0.0  # U/h, 0 disables temp basal IOB

# Insulin action: peak activity of rapid-acting analogues (lispro/aspart).
INSULIN_PEAK_MINUTES: Final[float] = 75.0

# Extended/temp basal delivery is modelled as 5-minute micro-doses.
DELIVERY_SEGMENT_MINUTES: Final[float] = 5.0

# Temp basal deviations smaller than this (U/h) are ignored.
MIN_BASAL_DEVIATION: Final[float] = 0.001

# Bucket averaging for delta and AR2 (Nightscout bgnow.js).
BUCKET_OFFSET_MINUTES: Final[float] = 2.5
BUCKET_SIZE_MINUTES: Final[float] = 5.0
DELTA_INTERPOLATION_MINUTES: Final[float] = 9.0

# AR2 forecast (Nightscout ar2.js).
AR2_BG_REF: Final[float] = 140.0
AR2_BG_MIN: Final[float] = 36.0
AR2_BG_MAX: Final[float] = 400.0
AR2_COEFFICIENTS: Final[tuple[float, float]] = (-0.723, 1.716)
AR2_STEP_MINUTES: Final[int] = 5
AR2_DEFAULT_STEPS: Final[int] = 12  # 60 minutes
AR2_CONE_FACTOR: Final[float] = 2.0
AR2_CONE_STEPS: Final[tuple[float, ...]] = (
    0.020, 0.041, 0.061, 0.081, 0.099, 0.116,
    0.132, 0.146, 0.159, 0.171, 0.182, 0.192,
)
AR2_LOSS_WINDOW: Final[int] = 8
AR2_QUALITY_WARN: Final[float] = 0.05
AR2_QUALITY_URGENT: Final[float] = 0.10
AR2_STALE_MINUTES: Final[float] = 10.0

# Glucose Management Indicator (Bergenstal 2018) and Nathan (ADAG 2008).
GMI_INTERCEPT: Final[float] = 3.31
GMI_SLOPE: Final[float] = 0.02392
A1C_NATHAN_OFFSET: Final[float] = 46.7
A1C_NATHAN_DIVISOR: Final[float] = 28.7

# Pattern detection.
DAWN_HOURS: Final[tuple[int, ...]] = (4, 5, 6, 7, 8)
DAWN_THRESHOLD_MGDL: Final[float] = 140
DAWN_MEDIUM_MGDL: Final[float] = 160
DAWN_HIGH_MGDL: Final[float] = 180
NIGHT_HOURS: Final[tuple[int, ...]] = (23, 0, 1, 2, 3, 4, 5, 6)
NOCTURNAL_HYPO_FRACTION: Final[float] = 0.05
NOCTURNAL_HYPO_HIGH_FRACTION: Final[float] = 0.10
HIGH_VARIABILITY_CV: Final[float] = 40
HIGH_VARIABILITY_SEVERE_CV: Final[float] = 50
TARGET_CV: Final[float] = 36

# Distribution / variability.
HISTOGRAM_MIN_MGDL: Final[int] = 40
HISTOGRAM_STEP_MGDL: Final[int] = 10
HISTOGRAM_BINS: Final[int] = 36  # 40..400
GVI_MAX_GAP_MINUTES: Final[float] = 20
GVI_MODERATE: Final[float] = 1.2
GVI_HIGH: Final[float] = 1.5
FLUCTUATION_MAX_GAP_MINUTES: Final[float] = 15
FLUCTUATION_RATE: Final[float] = 1.0  # mg/dL/min
RAPID_FLUCTUATION_RATE: Final[float] = 2.0  # mg/dL/min
J_INDEX_FACTOR: Final[float] = 0.001

# Meal correlation windows (minutes).
MEAL_LOOKUP_WINDOW_MINUTES: Final[int] = 10
MEAL_PEAK_WINDOW_MINUTES: Final[int] = 180

# Glucose alarms.
DEFAULT_STALE_ALARM_MINUTES: Final[int] = 15
ALARM_PREDICTION_STEPS: Final[int] = 6  # 30 minutes of AR2

# Weekly overview.
WEEK_DAYS: Final[int] = 7
