"""Automatic glycemic pattern detection.

Flags dawn phenomenon, nocturnal hypoglycemia and high variability from
a window of readings. Only patterns that actually trigger are returned.
"""

from collections.abc import Sequence

from glucometrics.config import settings
from glucometrics.core.constants import (
    DAWN_HIGH_MGDL,
    DAWN_HOURS,
    DAWN_MEDIUM_MGDL,
    DAWN_THRESHOLD_MGDL,
    HIGH_VARIABILITY_CV,
    HIGH_VARIABILITY_SEVERE_CV,
    NIGHT_HOURS,
    NOCTURNAL_HYPO_FRACTION,
    NOCTURNAL_HYPO_HIGH_FRACTION,
    TARGET_CV,
)
from glucometrics.core.enums import PatternSeverity, PatternType
from glucometrics.core.models import GlucoseReading, ThresholdConfig
from glucometrics.core.numeric import mean, round_half_up
from glucometrics.core.timezones import TimezoneLike, local_hour, resolve_timezone
from glucometrics.schemas.glucose import DetectedPattern, HourlyPattern
from glucometrics.services.statistics import (
    calculate_daily_patterns,
    calculate_glucose_stats,
)


def _detect_dawn_phenomenon(
    daily_patterns: Sequence[HourlyPattern],
) -> DetectedPattern | None:
    """Elevated mean of the 04:00-08:59 hourly averages.

    Every dawn hour takes part in the mean; an hour without readings
    averages 0 and pulls the mean down.
    """
    morning = [p for p in daily_patterns if p.hour in DAWN_HOURS]
    morning_avg = mean([p.average_glucose for p in morning])
    if morning_avg <= DAWN_THRESHOLD_MGDL:
        return None

    if morning_avg > DAWN_HIGH_MGDL:
        severity = PatternSeverity.high
    elif morning_avg > DAWN_MEDIUM_MGDL:
        severity = PatternSeverity.medium
    else:
        severity = PatternSeverity.low

    rounded = round_half_up(morning_avg)
    return DetectedPattern(
        type=PatternType.dawn_phenomenon,
        severity=severity,
        description=(
            "Elevated glucose levels detected in early morning hours "
            f"({rounded:.0f} mg/dL avg)"
        ),
        hours=[p.hour for p in morning],
        average_glucose=rounded,
    )


def _detect_nocturnal_hypoglycemia(
    readings: Sequence[GlucoseReading],
    thresholds: ThresholdConfig,
    tz: TimezoneLike | None,
) -> DetectedPattern | None:
    """Share of all readings that are low and fall in 23:00-06:59."""
    zone = resolve_timezone(tz)
    night_lows = sum(
        1
        for r in readings
        if r.value < thresholds.low and local_hour(r.timestamp, zone) in NIGHT_HOURS
    )
    total = len(readings)
    if night_lows == 0 or night_lows <= total * NOCTURNAL_HYPO_FRACTION:
        return None

    severity = (
        PatternSeverity.high
        if night_lows > total * NOCTURNAL_HYPO_HIGH_FRACTION
        else PatternSeverity.medium
    )
    return DetectedPattern(
        type=PatternType.nocturnal_hypoglycemia,
        severity=severity,
        description=(
            "Frequent low glucose readings detected during night hours "
            f"({night_lows} occurrences)"
        ),
        hours=sorted(NIGHT_HOURS),
    )


def _detect_high_variability(
    readings: Sequence[GlucoseReading],
) -> DetectedPattern | None:
    cv = calculate_glucose_stats(readings).cv
    if cv <= HIGH_VARIABILITY_CV:
        return None

    return DetectedPattern(
        type=PatternType.high_variability,
        severity=(
            PatternSeverity.high
            if cv > HIGH_VARIABILITY_SEVERE_CV
            else PatternSeverity.medium
        ),
        description=(
            f"High glucose variability detected (CV: {cv:.1f}%, "
            f"target: <{TARGET_CV:.0f}%)"
        ),
    )


def detect_patterns(
    readings: Sequence[GlucoseReading],
    thresholds: ThresholdConfig | None = None,
    tz: TimezoneLike | None = None,
) -> list[DetectedPattern]:
    """Run every detector over the readings.

    Args:
        readings: CGM readings, any order
        thresholds: Zone thresholds; ``low`` marks hypoglycemia
            (default: ``settings.threshold_config()``)
        tz: Timezone for hour-of-day grouping (default: ``settings.timezone``)

    Returns:
        Detected patterns in the order dawn, nocturnal, variability. Empty
        when nothing triggers or there are no readings.
    """
    if not readings:
        return []
    if thresholds is None:
        thresholds = settings.threshold_config()

    detected = [
        _detect_dawn_phenomenon(calculate_daily_patterns(readings, tz)),
        _detect_nocturnal_hypoglycemia(readings, thresholds, tz),
        _detect_high_variability(readings),
    ]
    return [pattern for pattern in detected if pattern is not None]
