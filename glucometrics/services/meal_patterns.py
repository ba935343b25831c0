"""Meal correlation: glucose response around carbohydrate treatments.

For each meal the nearest sensor values at the meal, +1 h and +2 h and
the peak over the following 3 hours are looked up, then grouped by the
period of the day the meal was eaten in.
"""

import bisect
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta

from glucometrics.core.constants import (
    MEAL_LOOKUP_WINDOW_MINUTES,
    MEAL_PEAK_WINDOW_MINUTES,
)
from glucometrics.core.enums import MealPeriod, TreatmentEventType
from glucometrics.core.models import GlucoseReading, Treatment
from glucometrics.core.numeric import mean, round_half_up
from glucometrics.core.timezones import TimezoneLike, local_hour, resolve_timezone
from glucometrics.schemas.meal import MealEvent, MealPeriodStats, MealtimeData

MEAL_TREATMENT_TYPES = frozenset(
    {
        TreatmentEventType.MEAL_BOLUS,
        TreatmentEventType.SNACK_BOLUS,
        TreatmentEventType.CARB_CORRECTION,
    }
)

# Meal period definitions (hour ranges, inclusive start, exclusive end)
MEAL_PERIODS = {
    MealPeriod.breakfast: (5, 10),
    MealPeriod.lunch: (11, 15),
    MealPeriod.snack: (15, 19),
    MealPeriod.dinner: (19, 24),
}

PERIOD_LABELS = {
    MealPeriod.breakfast: "Breakfast",
    MealPeriod.lunch: "Lunch",
    MealPeriod.snack: "Snack",
    MealPeriod.dinner: "Dinner",
    MealPeriod.other: "Other",
}

_LOOKUP_WINDOW = timedelta(minutes=MEAL_LOOKUP_WINDOW_MINUTES)
_PEAK_WINDOW = timedelta(minutes=MEAL_PEAK_WINDOW_MINUTES)


def classify_meal_period(hour: int) -> MealPeriod:
    """Classify an hour of day into a meal period.

    Args:
        hour: Hour of day (0-23).

    Returns:
        Meal period; hours outside every range (including 10:00-10:59)
        are ``MealPeriod.other``.
    """
    for period, (start, end) in MEAL_PERIODS.items():
        if start <= hour < end:
            return period
    return MealPeriod.other


class _ReadingIndex:
    """Readings sorted by time for bisect lookups."""

    def __init__(self, readings: Sequence[GlucoseReading]):
        self.readings = sorted(readings, key=lambda r: r.timestamp)
        self.times = [r.timestamp for r in self.readings]

    def nearest(self, target: datetime, window: timedelta) -> float | None:
        """Value of the reading closest to ``target`` within ``+/- window``."""
        pos = bisect.bisect_left(self.times, target)
        best: float | None = None
        best_distance: timedelta | None = None
        for idx in (pos - 1, pos):
            if idx < 0 or idx >= len(self.times):
                continue
            distance = abs(self.times[idx] - target)
            if distance <= window and (best_distance is None or distance < best_distance):
                best_distance = distance
                best = self.readings[idx].value
        return best

    def peak(self, start: datetime, end: datetime) -> float | None:
        """Highest value in ``[start, end]``."""
        lo = bisect.bisect_left(self.times, start)
        hi = bisect.bisect_right(self.times, end)
        window = [r.value for r in self.readings[lo:hi]]
        return max(window) if window else None


def _average_or_zero(values: Sequence[float | None]) -> float:
    present = [v for v in values if v is not None]
    return round_half_up(mean(present)) if present else 0.0


def _period_stats(period: MealPeriod, events: list[MealEvent]) -> MealPeriodStats:
    return MealPeriodStats(
        period=period,
        label=PERIOD_LABELS[period],
        count=len(events),
        avg_pre_meal=_average_or_zero([e.pre_meal_glucose for e in events]),
        avg_at_1h=_average_or_zero([e.glucose_at_1h for e in events]),
        avg_at_2h=_average_or_zero([e.glucose_at_2h for e in events]),
        avg_peak=_average_or_zero([e.peak_glucose for e in events]),
        avg_delta=_average_or_zero([e.peak_delta for e in events]),
        avg_carbs=round_half_up(mean([e.carbs for e in events])),
        avg_insulin=round_half_up(mean([e.insulin for e in events]), 1),
        events=sorted(events, key=lambda e: e.occurred_at, reverse=True),
    )


def correlate_meals(
    readings: Sequence[GlucoseReading],
    treatments: Sequence[Treatment],
    tz: TimezoneLike | None = None,
) -> MealtimeData:
    """Correlate Meal Bolus, Snack Bolus and Carb Correction entries with CGM data.

    Args:
        readings: CGM readings covering the meals and 3 h after
        treatments: Treatments of any type; non-meal entries are ignored
        tz: Timezone whose wall-clock hour assigns the meal period
            (default: ``settings.timezone``)

    Returns:
        MealtimeData with one MealPeriodStats per period that has meals, in
        breakfast, lunch, snack, dinner, other order.
    """
    meals = [t for t in treatments if t.event_type in MEAL_TREATMENT_TYPES]
    if not meals:
        return MealtimeData()

    zone = resolve_timezone(tz)
    index = _ReadingIndex(readings)
    by_period: dict[MealPeriod, list[MealEvent]] = defaultdict(list)

    for meal in meals:
        at = meal.occurred_at
        hour = local_hour(at, zone)
        period = classify_meal_period(hour)
        pre_meal = index.nearest(at, _LOOKUP_WINDOW)
        peak = index.peak(at, at + _PEAK_WINDOW)

        by_period[period].append(
            MealEvent(
                event_type=meal.event_type,
                meal_period=period,
                occurred_at=at,
                hour=hour,
                carbs=meal.carbs_grams or 0.0,
                insulin=meal.insulin_units or 0.0,
                pre_meal_glucose=pre_meal,
                glucose_at_1h=index.nearest(at + timedelta(hours=1), _LOOKUP_WINDOW),
                glucose_at_2h=index.nearest(at + timedelta(hours=2), _LOOKUP_WINDOW),
                peak_glucose=peak,
                peak_delta=(
                    peak - pre_meal if peak is not None and pre_meal is not None else None
                ),
            )
        )

    return MealtimeData(
        periods=[
            _period_stats(period, by_period[period])
            for period in MealPeriod
            if by_period.get(period)
        ],
        total_events=len(meals),
    )
