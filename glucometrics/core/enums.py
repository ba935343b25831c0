"""Glucose analytics enums.

Treatment categories, glucose zones and pattern classifications shared by
the calculators and the result schemas.
"""

from enum import StrEnum, auto


class TreatmentEventType(StrEnum):
    """Careportal event types understood by the calculators.

    Values match the Nightscout ``eventType`` strings so treatments fetched
    from an upstream store can be passed through unchanged.
    """

    MEAL_BOLUS = "Meal Bolus"
    SNACK_BOLUS = "Snack Bolus"
    CORRECTION_BOLUS = "Correction Bolus"
    CARB_CORRECTION = "Carb Correction"
    BASAL_INSULIN = "Basal Insulin"  # long-acting pen, never counted as IOB
    COMBO_BOLUS = "Combo Bolus"
    TEMP_BASAL = "Temp Basal"
    NOTE = "Note"


class RateMode(StrEnum):
    """How a temporary basal ``rate`` is expressed."""

    absolute = auto()  # U/h
    relative = auto()  # percent of the scheduled rate


class GlucoseZone(StrEnum):
    """The five time-in-range zones, plus a marker for days without data."""

    very_low = auto()
    low = auto()
    in_range = auto()
    high = auto()
    very_high = auto()
    no_data = auto()


class PatternType(StrEnum):
    """Automatically detected glycemic patterns."""

    dawn_phenomenon = auto()
    nocturnal_hypoglycemia = auto()
    high_variability = auto()


class PatternSeverity(StrEnum):
    low = auto()
    medium = auto()
    high = auto()


class VariabilityLevel(StrEnum):
    """Qualitative band for the Glycemic Variability Index."""

    low = auto()
    moderate = auto()
    high = auto()


class PredictionQuality(StrEnum):
    """Fit quality of the AR2 model on the most recent readings."""

    good = auto()
    warn = auto()
    urgent = auto()
    unknown = auto()


class MealPeriod(StrEnum):
    breakfast = auto()
    lunch = auto()
    snack = auto()
    dinner = auto()
    other = auto()


class TrendDirection(StrEnum):
    """CGM trend arrow as reported upstream (Nightscout ``direction``)."""

    NONE = "NONE"
    TRIPLE_UP = "TripleUp"
    DOUBLE_UP = "DoubleUp"
    SINGLE_UP = "SingleUp"
    FORTY_FIVE_UP = "FortyFiveUp"
    FLAT = "Flat"
    FORTY_FIVE_DOWN = "FortyFiveDown"
    SINGLE_DOWN = "SingleDown"
    DOUBLE_DOWN = "DoubleDown"
    TRIPLE_DOWN = "TripleDown"
    NOT_COMPUTABLE = "NOT COMPUTABLE"
    RATE_OUT_OF_RANGE = "RATE OUT OF RANGE"


class AlarmType(StrEnum):
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"
    PREDICTED_LOW = "PREDICTED_LOW"
    PREDICTED_HIGH = "PREDICTED_HIGH"
    STALE = "STALE"
    RAPID_FALL = "RAPID_FALL"
    RAPID_RISE = "RAPID_RISE"


class AlarmLevel(StrEnum):
    urgent = auto()
    warning = auto()
