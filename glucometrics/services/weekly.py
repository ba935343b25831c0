"""Seven-day overview: glucose and treatment totals per local day."""

from collections.abc import Sequence
from datetime import UTC, datetime, time, timedelta

from glucometrics.config import settings
from glucometrics.core.constants import WEEK_DAYS
from glucometrics.core.enums import GlucoseZone, TreatmentEventType
from glucometrics.core.models import GlucoseReading, ThresholdConfig, Treatment
from glucometrics.core.numeric import mean, round_half_up
from glucometrics.core.timezones import TimezoneLike, local_date, resolve_timezone
from glucometrics.schemas.glucose import WeeklyDaySummary
from glucometrics.services.iob import RAPID_BOLUS_TYPES
from glucometrics.services.statistics import classify_glucose

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _treatment_totals(treatments: Sequence[Treatment]) -> tuple[float, float, float]:
    """Carbs, rapid insulin and slow insulin logged in ``treatments``.

    Combo boluses count both their immediate and extended parts as rapid
    insulin.
    """
    carbs = rapid = slow = 0.0
    for t in treatments:
        carbs += t.carbs_grams or 0
        if t.event_type in RAPID_BOLUS_TYPES:
            rapid += t.insulin_units or 0
        elif t.event_type == TreatmentEventType.COMBO_BOLUS:
            rapid += (t.immediate_insulin_units or 0) + (t.extended_insulin_units or 0)
        elif t.event_type == TreatmentEventType.BASAL_INSULIN:
            slow += t.insulin_units or 0
    return carbs, rapid, slow


def aggregate_week(
    readings: Sequence[GlucoseReading],
    treatments: Sequence[Treatment],
    week_start: datetime,
    thresholds: ThresholdConfig | None = None,
    tz: TimezoneLike | None = None,
    now: datetime | None = None,
) -> list[WeeklyDaySummary]:
    """Summarise seven local days starting on ``week_start``'s date.

    Days run from local midnight to local midnight in ``tz``, so a DST
    change gives a 23 or 25 hour day.

    Args:
        readings: CGM readings, any order
        treatments: Treatments of any type
        week_start: Any instant on the first day (typically a Monday)
        thresholds: Zone thresholds (default: ``settings.threshold_config()``)
        tz: Timezone defining the days (default: ``settings.timezone``)
        now: Marks days that have not started yet (default: current UTC time)

    Returns:
        Exactly seven summaries. Days without readings report zeros and
        ``GlucoseZone.no_data``; their treatment totals are still filled.
    """
    if thresholds is None:
        thresholds = settings.threshold_config()
    if now is None:
        now = datetime.now(UTC)
    zone = resolve_timezone(tz)
    first_day = local_date(week_start, zone)

    summaries: list[WeeklyDaySummary] = []
    for i in range(WEEK_DAYS):
        day = first_day + timedelta(days=i)
        day_start = datetime.combine(day, time.min, tzinfo=zone)
        day_end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)

        values = [r.value for r in readings if day_start <= r.timestamp < day_end]
        day_treatments = [
            t for t in treatments if day_start <= t.occurred_at < day_end
        ]
        carbs, rapid, slow = _treatment_totals(day_treatments)

        if values:
            avg = round_half_up(mean(values))
            in_range = sum(1 for v in values if thresholds.low <= v <= thresholds.high)
            glucose = {
                "avg_glucose": avg,
                "min_glucose": min(values),
                "max_glucose": max(values),
                "zone": classify_glucose(avg, thresholds),
                "tir_percent": round_half_up(in_range / len(values) * 100),
                "hypo_count": sum(1 for v in values if v < thresholds.low),
            }
        else:
            glucose = {
                "avg_glucose": 0,
                "min_glucose": 0,
                "max_glucose": 0,
                "zone": GlucoseZone.no_data,
                "tir_percent": 0,
                "hypo_count": 0,
            }

        summaries.append(
            WeeklyDaySummary(
                date=day.isoformat(),
                weekday=WEEKDAY_NAMES[day.weekday()],
                is_future_day=day_start > now,
                has_glucose_data=bool(values),
                readings=len(values),
                total_carbs=round_half_up(carbs, 1),
                total_rapid_insulin=round_half_up(rapid, 1),
                total_slow_insulin=round_half_up(slow, 1),
                has_treatment_data=bool(day_treatments),
                **glucose,
            )
        )
    return summaries
