"""Glucose statistics, time in range and hourly patterns.

All functions are pure: they take readings in any order and return
pydantic records. Empty input yields zero-valued records, never an error.
"""

from collections import defaultdict
from collections.abc import Sequence

from glucometrics.config import settings
from glucometrics.core.constants import (
    A1C_NATHAN_DIVISOR,
    A1C_NATHAN_OFFSET,
    GMI_INTERCEPT,
    GMI_SLOPE,
)
from glucometrics.core.enums import GlucoseZone
from glucometrics.core.models import GlucoseReading, ThresholdConfig
from glucometrics.core.numeric import (
    mean,
    median,
    percent,
    percentile,
    round_half_up,
    std_dev,
)
from glucometrics.core.timezones import TimezoneLike, local_hour, resolve_timezone
from glucometrics.schemas.glucose import GlucoseStats, HourlyPattern, TimeInRange


def glucose_management_indicator(mean_glucose: float) -> float:
    """GMI (%) from mean glucose: ``3.31 + 0.02392 x mean``.

    Unrounded. GMI approximates laboratory HbA1c from CGM data.
    """
    return GMI_INTERCEPT + GMI_SLOPE * mean_glucose


def estimated_a1c(mean_glucose: float) -> float:
    """Estimated HbA1c (%) from the Nathan/ADAG formula ``(mean + 46.7) / 28.7``."""
    return (mean_glucose + A1C_NATHAN_OFFSET) / A1C_NATHAN_DIVISOR


def calculate_glucose_stats(readings: Sequence[GlucoseReading]) -> GlucoseStats:
    """Summary statistics for a set of readings.

    Mean, median, SD and CV are rounded to 1 decimal; GMI and estimated A1c
    to 2 decimals. CV is 0 when the mean is 0.
    """
    values = [r.value for r in readings]
    if not values:
        return GlucoseStats(
            average=0,
            median=0,
            min=0,
            max=0,
            std_dev=0,
            cv=0,
            gmi=0,
            estimated_a1c=0,
        )

    average = mean(values)
    sd = std_dev(values)
    cv = sd / average * 100 if average > 0 else 0.0

    return GlucoseStats(
        average=round_half_up(average, 1),
        median=round_half_up(median(values), 1),
        min=min(values),
        max=max(values),
        std_dev=round_half_up(sd, 1),
        cv=round_half_up(cv, 1),
        gmi=round_half_up(glucose_management_indicator(average), 2),
        estimated_a1c=round_half_up(estimated_a1c(average), 2),
    )


def classify_glucose(
    value: float, thresholds: ThresholdConfig | None = None
) -> GlucoseZone:
    """Place a glucose value in exactly one of the five zones.

    ``< very_low``, ``< low``, ``<= high``, ``<= very_high``, otherwise
    very high.
    """
    if thresholds is None:
        thresholds = settings.threshold_config()
    if value < thresholds.very_low:
        return GlucoseZone.very_low
    if value < thresholds.low:
        return GlucoseZone.low
    if value <= thresholds.high:
        return GlucoseZone.in_range
    if value <= thresholds.very_high:
        return GlucoseZone.high
    return GlucoseZone.very_high


def calculate_time_in_range(
    readings: Sequence[GlucoseReading],
    thresholds: ThresholdConfig | None = None,
) -> TimeInRange:
    """Count readings per zone and convert to percentages (1 decimal).

    Each percentage is rounded independently, so the five may sum to
    100 +/- 0.1.
    """
    if thresholds is None:
        thresholds = settings.threshold_config()

    counts = dict.fromkeys(
        (
            GlucoseZone.very_low,
            GlucoseZone.low,
            GlucoseZone.in_range,
            GlucoseZone.high,
            GlucoseZone.very_high,
        ),
        0,
    )
    for reading in readings:
        counts[classify_glucose(reading.value, thresholds)] += 1

    total = len(readings)
    return TimeInRange(
        very_low=counts[GlucoseZone.very_low],
        low=counts[GlucoseZone.low],
        in_range=counts[GlucoseZone.in_range],
        high=counts[GlucoseZone.high],
        very_high=counts[GlucoseZone.very_high],
        percent_very_low=percent(counts[GlucoseZone.very_low], total),
        percent_low=percent(counts[GlucoseZone.low], total),
        percent_in_range=percent(counts[GlucoseZone.in_range], total),
        percent_high=percent(counts[GlucoseZone.high], total),
        percent_very_high=percent(counts[GlucoseZone.very_high], total),
    )


def group_by_hour(
    readings: Sequence[GlucoseReading], tz: TimezoneLike | None = None
) -> dict[int, list[float]]:
    """Glucose values keyed by local hour of day (only hours with data)."""
    zone = resolve_timezone(tz)
    hourly: dict[int, list[float]] = defaultdict(list)
    for reading in readings:
        hourly[local_hour(reading.timestamp, zone)].append(reading.value)
    return hourly


def _hourly_pattern(hour: int, values: list[float]) -> HourlyPattern:
    if not values:
        return HourlyPattern(
            hour=hour,
            count=0,
            average_glucose=0,
            std_dev=0,
            median=0,
            min=0,
            max=0,
            p5=0,
            p25=0,
            p75=0,
            p95=0,
        )

    ordered = sorted(values)
    return HourlyPattern(
        hour=hour,
        count=len(values),
        average_glucose=round_half_up(mean(values)),
        std_dev=round_half_up(std_dev(values)),
        median=percentile(ordered, 50),
        min=ordered[0],
        max=ordered[-1],
        p5=percentile(ordered, 5),
        p25=percentile(ordered, 25),
        p75=percentile(ordered, 75),
        p95=percentile(ordered, 95),
    )


def calculate_daily_patterns(
    readings: Sequence[GlucoseReading], tz: TimezoneLike | None = None
) -> list[HourlyPattern]:
    """Pool readings by hour of day across all dates.

    Args:
        readings: CGM readings over any span
        tz: Timezone whose wall-clock hour is used for grouping
            (default: ``settings.timezone``)

    Returns:
        Exactly 24 HourlyPattern records, hour 0 first. Hours without
        readings report zeros.
    """
    hourly = group_by_hour(readings, tz)
    return [_hourly_pattern(hour, hourly.get(hour, [])) for hour in range(24)]
