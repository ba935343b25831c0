"""Complete analytics report for a period."""

import math
from collections.abc import Sequence
from datetime import datetime

from glucometrics.config import settings
from glucometrics.core.models import GlucoseReading, ThresholdConfig
from glucometrics.core.timezones import TimezoneLike
from glucometrics.logging_config import get_logger
from glucometrics.schemas.glucose import AnalyticsPeriod, GlucoseAnalytics
from glucometrics.services.patterns import detect_patterns
from glucometrics.services.statistics import (
    calculate_daily_patterns,
    calculate_glucose_stats,
    calculate_time_in_range,
)

logger = get_logger(__name__)


def generate_analytics(
    readings: Sequence[GlucoseReading],
    start: datetime,
    end: datetime,
    thresholds: ThresholdConfig | None = None,
    tz: TimezoneLike | None = None,
) -> GlucoseAnalytics:
    """Build the full statistics report for ``[start, end]``.

    The caller is expected to pass readings already restricted to the
    period. ``days`` is the span rounded up to whole days.
    """
    if thresholds is None:
        thresholds = settings.threshold_config()

    days = max(0, math.ceil((end - start).total_seconds() / 86400))
    report = GlucoseAnalytics(
        period=AnalyticsPeriod(start=start, end=end, days=days),
        stats=calculate_glucose_stats(readings),
        time_in_range=calculate_time_in_range(readings, thresholds),
        daily_patterns=calculate_daily_patterns(readings, tz),
        patterns=detect_patterns(readings, thresholds, tz),
        total_readings=len(readings),
    )

    logger.debug(
        "Generated analytics report",
        days=days,
        total_readings=report.total_readings,
        patterns=len(report.patterns),
    )
    return report
