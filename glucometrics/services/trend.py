"""Glucose trend: bucketed delta and AR2 short-horizon forecast.

Both estimators smooth sensor noise the same way Nightscout's bgnow.js
does: readings are averaged into a "recent" bucket centred on the latest
reading and a "previous" bucket 5 minutes earlier.

The AR2 forecast is a heuristic extrapolation of the last ten minutes of
data in log space. It does not know about insulin, carbs or exercise and
is NOT a guarantee of future glucose; callers must present it as an
indication only.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from glucometrics.core.constants import (
    AR2_BG_MAX,
    AR2_BG_MIN,
    AR2_BG_REF,
    AR2_COEFFICIENTS,
    AR2_CONE_FACTOR,
    AR2_CONE_STEPS,
    AR2_DEFAULT_STEPS,
    AR2_LOSS_WINDOW,
    AR2_QUALITY_URGENT,
    AR2_QUALITY_WARN,
    AR2_STALE_MINUTES,
    AR2_STEP_MINUTES,
    BUCKET_OFFSET_MINUTES,
    BUCKET_SIZE_MINUTES,
    DELTA_INTERPOLATION_MINUTES,
)
from glucometrics.core.enums import PredictionQuality
from glucometrics.core.models import GlucoseReading
from glucometrics.core.numeric import mean, round_half_up
from glucometrics.schemas.trend import AR2Forecast, AR2Prediction

_BUCKET_OFFSET = timedelta(minutes=BUCKET_OFFSET_MINUTES)
_BUCKET_SIZE = timedelta(minutes=BUCKET_SIZE_MINUTES)


@dataclass
class GlucoseBuckets:
    """Readings grouped around the latest one."""

    latest: GlucoseReading
    recent: list[GlucoseReading]  # [latest - 2.5 min, latest + 2.5 min]
    previous: list[GlucoseReading]  # [latest - 7.5 min, latest - 2.5 min)

    @property
    def complete(self) -> bool:
        return bool(self.recent) and bool(self.previous)

    @property
    def recent_mean(self) -> float:
        return mean([r.value for r in self.recent])

    @property
    def previous_mean(self) -> float:
        return mean([r.value for r in self.previous])


def compute_buckets(readings: Sequence[GlucoseReading]) -> GlucoseBuckets | None:
    """Split readings into the recent and previous 5-minute buckets.

    Returns:
        GlucoseBuckets, or None when there are no readings.
    """
    if not readings:
        return None

    latest = max(readings, key=lambda r: r.timestamp)
    recent_start = latest.timestamp - _BUCKET_OFFSET
    recent_end = latest.timestamp + _BUCKET_OFFSET
    previous_start = recent_start - _BUCKET_SIZE

    return GlucoseBuckets(
        latest=latest,
        recent=[r for r in readings if recent_start <= r.timestamp <= recent_end],
        previous=[
            r for r in readings if previous_start <= r.timestamp < recent_start
        ],
    )


def calculate_delta(readings: Sequence[GlucoseReading]) -> float | None:
    """5-minute glucose delta in mg/dL, rounded to a whole number.

    ``mean(recent) - mean(previous)``. When the newest readings of the two
    buckets are more than 9 minutes apart the delta is scaled to a
    5-minute equivalent.

    Returns:
        The delta, or None when either bucket is empty.
    """
    buckets = compute_buckets(readings)
    if buckets is None or not buckets.complete:
        return None

    newest_recent = max(r.timestamp for r in buckets.recent)
    newest_previous = max(r.timestamp for r in buckets.previous)
    elapsed_minutes = (newest_recent - newest_previous).total_seconds() / 60
    absolute = buckets.recent_mean - buckets.previous_mean

    # Unreachable with the current buckets: the newest recent reading is the
    # latest one and the previous bucket starts 7.5 min before it.
    if elapsed_minutes > DELTA_INTERPOLATION_MINUTES:
        return round_half_up(absolute / elapsed_minutes * 5)
    return round_half_up(absolute)


def _log_ratio(value: float) -> float:
    return math.log(value / AR2_BG_REF)


def _ar2_step(previous: float, current: float) -> float:
    return AR2_COEFFICIENTS[0] * previous + AR2_COEFFICIENTS[1] * current


def calculate_ar2_loss(readings: Sequence[GlucoseReading]) -> float | None:
    """Mean squared log error of one-step AR2 predictions.

    Back-tests the model on the last 8 readings at or above 36 mg/dL. High
    loss means recent data is noisy and the forecast less reliable.

    Returns:
        The average loss, or None with fewer than 3 usable readings.
    """
    usable = sorted(
        (r for r in readings if r.value >= AR2_BG_MIN), key=lambda r: r.timestamp
    )[-AR2_LOSS_WINDOW:]
    if len(usable) < 3:
        return None

    total_loss = 0.0
    for i in range(2, len(usable)):
        predicted = _ar2_step(_log_ratio(usable[i - 2].value), _log_ratio(usable[i - 1].value))
        total_loss += (predicted - _log_ratio(usable[i].value)) ** 2
    return total_loss / (len(usable) - 2)


def classify_prediction_quality(avg_loss: float | None) -> PredictionQuality:
    if avg_loss is None:
        return PredictionQuality.unknown
    if avg_loss > AR2_QUALITY_URGENT:
        return PredictionQuality.urgent
    if avg_loss > AR2_QUALITY_WARN:
        return PredictionQuality.warn
    return PredictionQuality.good


def calculate_ar2(
    readings: Sequence[GlucoseReading],
    steps: int = AR2_DEFAULT_STEPS,
    now: datetime | None = None,
) -> AR2Forecast:
    """Project glucose forward in 5-minute steps with an AR2 model.

    Works in log space: ``x = log(bg / 140)`` and
    ``x[n+1] = -0.723 * x[n-1] + 1.716 * x[n]``, seeded with the previous
    and recent bucket means. Predictions are clamped to 36-400 mg/dL and
    carry a widening cone of uncertainty. The default 12 steps cover 60
    minutes. Fixed 5-minute steps are used whatever the sensor interval.

    Args:
        readings: Recent CGM readings (any order)
        steps: Number of 5-minute steps to project
        now: When given, a latest reading older than 10 minutes relative to
            ``now`` yields an empty forecast

    Returns:
        AR2Forecast; empty when there are fewer than 2 readings, a bucket is
        empty, a bucket mean is below 36 mg/dL or the data is stale.
    """
    if len(readings) < 2:
        return AR2Forecast()

    buckets = compute_buckets(readings)
    if buckets is None or not buckets.complete:
        return AR2Forecast()

    latest_time = buckets.latest.timestamp
    if now is not None and now - latest_time > timedelta(minutes=AR2_STALE_MINUTES):
        return AR2Forecast()

    recent_mean = buckets.recent_mean
    previous_mean = buckets.previous_mean
    if recent_mean < AR2_BG_MIN or previous_mean < AR2_BG_MIN:
        return AR2Forecast()

    avg_loss = calculate_ar2_loss(readings)

    previous = _log_ratio(previous_mean)
    current = _log_ratio(recent_mean)
    forecast_time = latest_time
    predictions: list[AR2Prediction] = []

    for i in range(steps):
        forecast_time += timedelta(minutes=AR2_STEP_MINUTES)
        next_value = _ar2_step(previous, current)
        cone = AR2_CONE_STEPS[min(i, len(AR2_CONE_STEPS) - 1)] * AR2_CONE_FACTOR

        predicted = round_half_up(AR2_BG_REF * math.exp(next_value))
        upper = round_half_up(AR2_BG_REF * math.exp(next_value + cone))
        lower = round_half_up(AR2_BG_REF * math.exp(next_value - cone))
        predictions.append(
            AR2Prediction(
                time=forecast_time,
                predicted=max(AR2_BG_MIN, min(AR2_BG_MAX, predicted)),
                upper=min(AR2_BG_MAX, upper),
                lower=max(AR2_BG_MIN, lower),
            )
        )
        previous, current = current, next_value

    return AR2Forecast(
        predictions=predictions,
        avg_loss=avg_loss,
        quality=classify_prediction_quality(avg_loss),
    )
