"""Glucose analytics core types.

Readings, treatments and configuration records consumed by the
calculators in ``glucometrics.services``, plus the shared numeric
primitives.

IMPORTANT: every value derived from these types is retrospective and
informational. Nothing in this package recommends or triggers a dose,
and a zero result (e.g. 0 U IOB for an empty window) must not be read
as "confirmed safe".
"""

from glucometrics.core.enums import (
    GlucoseZone,
    MealPeriod,
    PatternSeverity,
    PatternType,
    PredictionQuality,
    RateMode,
    TreatmentEventType,
    VariabilityLevel,
)
from glucometrics.core.models import (
    GlucoseReading,
    ModelParameters,
    ThresholdConfig,
    Treatment,
)

__all__ = [
    "GlucoseReading",
    "GlucoseZone",
    "MealPeriod",
    "ModelParameters",
    "PatternSeverity",
    "PatternType",
    "PredictionQuality",
    "RateMode",
    "ThresholdConfig",
    "Treatment",
    "TreatmentEventType",
    "VariabilityLevel",
]
