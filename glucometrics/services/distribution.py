"""Glucose distribution histogram and composite variability indices.

Path-based metrics (GVI, fluctuation) walk consecutive readings in time
order and skip sensor gaps, so they never assume 5-minute spacing.
"""

import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import date

from glucometrics.config import settings
from glucometrics.core.constants import (
    FLUCTUATION_MAX_GAP_MINUTES,
    FLUCTUATION_RATE,
    GVI_HIGH,
    GVI_MAX_GAP_MINUTES,
    GVI_MODERATE,
    HISTOGRAM_BINS,
    HISTOGRAM_MIN_MGDL,
    HISTOGRAM_STEP_MGDL,
    J_INDEX_FACTOR,
    RAPID_FLUCTUATION_RATE,
)
from glucometrics.core.enums import VariabilityLevel
from glucometrics.core.models import GlucoseReading, ThresholdConfig
from glucometrics.core.numeric import mean, percent, percentile, round_half_up, std_dev
from glucometrics.core.timezones import TimezoneLike, local_date, resolve_timezone
from glucometrics.schemas.distribution import DistributionStats, HistogramBin


def classify_gvi(gvi: float) -> VariabilityLevel:
    """``< 1.2`` low, ``<= 1.5`` moderate, otherwise high."""
    if gvi < GVI_MODERATE:
        return VariabilityLevel.low
    if gvi <= GVI_HIGH:
        return VariabilityLevel.moderate
    return VariabilityLevel.high


def build_histogram(values: Sequence[float]) -> list[HistogramBin]:
    """36 bins of 10 mg/dL covering 40-400.

    Values below 40 or at or above 400 fall in no bin. Percentages are
    still taken of ``len(values)``, so with such values the bins add up
    to less than 100.
    """
    counts = [0] * HISTOGRAM_BINS
    for value in values:
        index = math.floor((value - HISTOGRAM_MIN_MGDL) / HISTOGRAM_STEP_MGDL)
        if 0 <= index < HISTOGRAM_BINS:
            counts[index] += 1

    total = len(values)
    return [
        HistogramBin(
            bin=HISTOGRAM_MIN_MGDL + i * HISTOGRAM_STEP_MGDL,
            count=count,
            percent=percent(count, total),
        )
        for i, count in enumerate(counts)
    ]


def _mean_daily_change(
    ordered: Sequence[GlucoseReading], tz: TimezoneLike | None
) -> float:
    """Mean absolute difference between consecutive daily means."""
    zone = resolve_timezone(tz)
    by_day: dict[date, list[float]] = defaultdict(list)
    for reading in ordered:
        by_day[local_date(reading.timestamp, zone)].append(reading.value)

    daily_means = [mean(by_day[day]) for day in sorted(by_day)]
    if len(daily_means) < 2:
        return 0.0
    changes = [
        abs(daily_means[i] - daily_means[i - 1]) for i in range(1, len(daily_means))
    ]
    return round_half_up(mean(changes), 1)


def _out_of_range_rms(values: Sequence[float], low: float, high: float) -> float:
    """RMS distance of out-of-range values to the boundary they cross."""
    distances = [low - v if v < low else v - high for v in values if v < low or v > high]
    if not distances:
        return 0.0
    return round_half_up(math.sqrt(mean([d * d for d in distances])), 1)


def calculate_distribution_stats(
    readings: Sequence[GlucoseReading],
    thresholds: ThresholdConfig | None = None,
    tz: TimezoneLike | None = None,
) -> DistributionStats:
    """Histogram plus GVI, PGS, J-Index, IQR, MDC, OOR RMS and fluctuation.

    Args:
        readings: CGM readings, any order
        thresholds: Only ``low`` and ``high`` are used (out of range means
            ``< low`` or ``> high``)
        tz: Timezone for calendar-day grouping in the mean daily change
            (default: ``settings.timezone``)

    Returns:
        DistributionStats; all zeros with an empty histogram for no input.
    """
    if thresholds is None:
        thresholds = settings.threshold_config()

    total = len(readings)
    if total == 0:
        return DistributionStats(
            total_readings=0,
            gvi=0,
            gvi_level=None,
            pgs=0,
            j_index=0,
            iqr=0,
            mean_daily_change=0,
            out_of_range_rms=0,
            time_in_fluctuation=0,
            time_in_rapid_fluctuation=0,
            histogram=[],
        )

    ordered = sorted(readings, key=lambda r: r.timestamp)
    values = [r.value for r in ordered]
    sorted_values = sorted(values)

    avg = mean(values)
    sd = std_dev(values)
    iqr = percentile(sorted_values, 75) - percentile(sorted_values, 25)
    j_index = round_half_up(J_INDEX_FACTOR * (avg + sd) ** 2, 2)

    path_length = 0.0
    path_minutes = 0.0
    intervals = 0
    fluctuating = 0
    rapid = 0
    for previous, current in zip(ordered, ordered[1:]):
        dt = (current.timestamp - previous.timestamp).total_seconds() / 60
        dg = current.value - previous.value

        if 0 < dt <= GVI_MAX_GAP_MINUTES:
            path_length += math.sqrt(dt * dt + dg * dg)
            path_minutes += dt

        if 0 < dt <= FLUCTUATION_MAX_GAP_MINUTES:
            intervals += 1
            rate = abs(dg) / dt
            if rate > FLUCTUATION_RATE:
                fluctuating += 1
            if rate > RAPID_FLUCTUATION_RATE:
                rapid += 1

    # A flat signal has path length == duration, hence GVI 1.
    gvi = round_half_up(path_length / path_minutes, 2) if path_minutes > 0 else 1.0

    out_of_range = sum(1 for v in values if v < thresholds.low or v > thresholds.high)
    pgs = round_half_up(gvi * (out_of_range / total * 100), 2)

    return DistributionStats(
        total_readings=total,
        gvi=gvi,
        gvi_level=classify_gvi(gvi),
        pgs=pgs,
        j_index=j_index,
        iqr=iqr,
        mean_daily_change=_mean_daily_change(ordered, tz),
        out_of_range_rms=_out_of_range_rms(values, thresholds.low, thresholds.high),
        time_in_fluctuation=percent(fluctuating, intervals),
        time_in_rapid_fluctuation=percent(rapid, intervals),
        histogram=build_histogram(values),
    )
