"""Per-day glucose summaries for the monthly calendar view."""

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta

from glucometrics.config import settings
from glucometrics.core.enums import GlucoseZone
from glucometrics.core.models import GlucoseReading, ThresholdConfig
from glucometrics.core.numeric import mean, round_half_up
from glucometrics.core.timezones import TimezoneLike, local_date, resolve_timezone
from glucometrics.schemas.glucose import CalendarDay
from glucometrics.services.statistics import classify_glucose

_DAY = timedelta(days=1)


def calculate_calendar_data(
    readings: Sequence[GlucoseReading],
    start: datetime,
    thresholds: ThresholdConfig | None = None,
    tz: TimezoneLike | None = None,
) -> list[CalendarDay]:
    """Summarise readings in consecutive 24-hour days starting at ``start``.

    Days are indexed by elapsed time since ``start``, so DST changes in
    ``tz`` never merge or split a day; ``tz`` only labels each day's date.
    Readings before ``start`` are ignored. The result runs from day 0 to
    the last day holding a reading; days in between without readings are
    reported with zeros and ``GlucoseZone.no_data``.
    """
    if thresholds is None:
        thresholds = settings.threshold_config()
    zone = resolve_timezone(tz)

    by_day: dict[int, list[float]] = defaultdict(list)
    for reading in readings:
        day_index = (reading.timestamp - start) // _DAY
        if day_index < 0:
            continue
        by_day[day_index].append(reading.value)

    days = max(by_day) + 1 if by_day else 0
    result: list[CalendarDay] = []
    for i in range(days):
        label = local_date(start + i * _DAY, zone).isoformat()
        values = by_day.get(i)
        if not values:
            result.append(
                CalendarDay(
                    date=label,
                    avg_glucose=0,
                    min_glucose=0,
                    max_glucose=0,
                    readings=0,
                    hypo_count=0,
                    hypo_severe=0,
                    zone=GlucoseZone.no_data,
                )
            )
            continue

        avg = round_half_up(mean(values))
        result.append(
            CalendarDay(
                date=label,
                avg_glucose=avg,
                min_glucose=min(values),
                max_glucose=max(values),
                readings=len(values),
                hypo_count=sum(1 for v in values if v < thresholds.low),
                hypo_severe=sum(1 for v in values if v < thresholds.very_low),
                zone=classify_glucose(avg, thresholds),
            )
        )
    return result
