"""Glucose alarm evaluation.

Checks the latest reading against the zone thresholds, the 30-minute AR2
forecast, the sensor trend arrow and data freshness, and returns the
alarms that should fire. Pure evaluation: delivering the alarms and
storing snoozes is left to the caller.
"""

import math
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from glucometrics.config import settings
from glucometrics.core.constants import ALARM_PREDICTION_STEPS, AR2_STEP_MINUTES
from glucometrics.core.enums import AlarmLevel, AlarmType, TrendDirection
from glucometrics.core.models import AlarmConfig, GlucoseReading, ThresholdConfig
from glucometrics.logging_config import get_logger
from glucometrics.schemas.alarm import AlarmEvent
from glucometrics.services.trend import calculate_ar2

logger = get_logger(__name__)


def _check_zones(
    glucose: float,
    thresholds: ThresholdConfig,
    config: AlarmConfig,
) -> list[tuple[AlarmType, AlarmLevel, str]]:
    """Zone alarms for the current value.

    Lows include their upper bound and highs their lower bound, so a
    reading exactly at a threshold already alarms.
    """
    checks = [
        (
            config.very_low and glucose <= thresholds.very_low,
            AlarmType.VERY_LOW,
            AlarmLevel.urgent,
            "Very low glucose",
        ),
        (
            config.low and thresholds.very_low < glucose <= thresholds.low,
            AlarmType.LOW,
            AlarmLevel.warning,
            "Low glucose",
        ),
        (
            config.high and thresholds.high <= glucose < thresholds.very_high,
            AlarmType.HIGH,
            AlarmLevel.warning,
            "High glucose",
        ),
        (
            config.very_high and glucose >= thresholds.very_high,
            AlarmType.VERY_HIGH,
            AlarmLevel.urgent,
            "Very high glucose",
        ),
    ]
    return [
        (alarm_type, level, f"{label}: {glucose:.0f} mg/dL")
        for fires, alarm_type, level, label in checks
        if fires
    ]


def _check_direction(
    reading: GlucoseReading,
) -> list[tuple[AlarmType, AlarmLevel, str]]:
    if reading.direction == TrendDirection.DOUBLE_DOWN:
        return [
            (
                AlarmType.RAPID_FALL,
                AlarmLevel.urgent,
                f"Rapid fall: {reading.value:.0f} mg/dL",
            )
        ]
    if reading.direction == TrendDirection.DOUBLE_UP:
        return [
            (
                AlarmType.RAPID_RISE,
                AlarmLevel.warning,
                f"Rapid rise: {reading.value:.0f} mg/dL",
            )
        ]
    return []


def _check_forecast(
    recent_readings: Sequence[GlucoseReading],
    thresholds: ThresholdConfig,
) -> list[tuple[AlarmType, AlarmLevel, str, float]]:
    """Predicted low/high within the next 30 minutes.

    At most one alarm per direction: the urgent level wins.
    """
    forecast = calculate_ar2(recent_readings, steps=ALARM_PREDICTION_STEPS)
    if not forecast.predictions:
        return []

    horizon = ALARM_PREDICTION_STEPS * AR2_STEP_MINUTES
    lowest = min(p.predicted for p in forecast.predictions)
    highest = max(p.predicted for p in forecast.predictions)
    alarms = []

    if lowest <= thresholds.low:
        urgent = lowest <= thresholds.very_low
        alarms.append(
            (
                AlarmType.PREDICTED_LOW,
                AlarmLevel.urgent if urgent else AlarmLevel.warning,
                f"Forecast: {'very low' if urgent else 'low'} glucose within "
                f"{horizon} min ({lowest:.0f} mg/dL)",
                lowest,
            )
        )

    if highest >= thresholds.high:
        urgent = highest >= thresholds.very_high
        alarms.append(
            (
                AlarmType.PREDICTED_HIGH,
                AlarmLevel.urgent if urgent else AlarmLevel.warning,
                f"Forecast: {'very high' if urgent else 'high'} glucose within "
                f"{horizon} min ({highest:.0f} mg/dL)",
                highest,
            )
        )
    return alarms


def evaluate_alarms(
    latest: GlucoseReading,
    recent_readings: Sequence[GlucoseReading],
    thresholds: ThresholdConfig | None = None,
    config: AlarmConfig | None = None,
    snoozed_until: Mapping[AlarmType, datetime] | None = None,
    now: datetime | None = None,
) -> list[AlarmEvent]:
    """Return every alarm that should fire for the latest reading.

    Args:
        latest: Most recent CGM reading
        recent_readings: Readings of the last ~15 minutes for the AR2
            forecast (any order; may include ``latest``)
        thresholds: Zone thresholds (default: ``settings.threshold_config()``)
        config: Alarm switches (default: ``settings.alarm_config()``)
        snoozed_until: Per-type snooze expiry; a type fires again once its
            expiry is at or before ``now``
        now: Evaluation instant (default: current UTC time)

    Returns:
        Alarms in the order zone, trend arrow, forecast, stale. Empty when
        the master switch is off.
    """
    if config is None:
        config = settings.alarm_config()
    if not config.enabled:
        return []
    if thresholds is None:
        thresholds = settings.threshold_config()
    if now is None:
        now = datetime.now(UTC)
    snoozed_until = snoozed_until or {}

    def is_snoozed(alarm_type: AlarmType) -> bool:
        until = snoozed_until.get(alarm_type)
        return until is not None and until > now

    events: list[AlarmEvent] = []

    candidates = _check_zones(latest.value, thresholds, config)
    if config.rapid_change:
        candidates += _check_direction(latest)
    for alarm_type, level, message in candidates:
        if not is_snoozed(alarm_type):
            events.append(
                AlarmEvent(
                    type=alarm_type,
                    level=level,
                    glucose=latest.value,
                    message=message,
                    timestamp=now,
                )
            )

    if config.predictive:
        for alarm_type, level, message, predicted in _check_forecast(
            recent_readings, thresholds
        ):
            if not is_snoozed(alarm_type):
                events.append(
                    AlarmEvent(
                        type=alarm_type,
                        level=level,
                        glucose=latest.value,
                        predicted_glucose=predicted,
                        message=message,
                        timestamp=now,
                    )
                )

    age_minutes = (now - latest.timestamp).total_seconds() / 60
    if (
        config.stale
        and age_minutes > config.stale_minutes
        and not is_snoozed(AlarmType.STALE)
    ):
        events.append(
            AlarmEvent(
                type=AlarmType.STALE,
                level=AlarmLevel.urgent,
                message=(
                    f"No reading for {math.floor(age_minutes)} min "
                    "(sensor disconnected?)"
                ),
                timestamp=now,
            )
        )

    if events:
        logger.info(
            "Glucose alarms triggered",
            alarms=[e.type.value for e in events],
            glucose=latest.value,
        )
    return events
