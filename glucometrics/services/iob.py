"""Insulin on Board (IOB) calculator.

Sums the insulin still active from rapid boluses, combo boluses and temp
basal deviations using the bilinear decay model commonly used by loop
systems for rapid-acting analogues (peak activity at 75 minutes).

Temp basals are counted as the DEVIATION from the scheduled basal rate,
delivered as a stream of 5-minute micro-doses. A suspended or reduced temp
basal therefore produces negative IOB. Long-acting basal insulin is never
counted: its peakless 24-42 h profile does not fit the bilinear model.
"""

from collections.abc import Iterable, Iterator
from datetime import UTC, datetime, timedelta

from glucometrics.core.constants import (
    DEFAULT_DIA_HOURS,
    DELIVERY_SEGMENT_MINUTES,
    INSULIN_PEAK_MINUTES,
    MIN_BASAL_DEVIATION,
)
from glucometrics.core.enums import RateMode, TreatmentEventType
from glucometrics.core.models import Treatment
from glucometrics.core.numeric import round_half_up
from glucometrics.schemas.insulin import IOBBreakdown

RAPID_BOLUS_TYPES = frozenset(
    {
        TreatmentEventType.MEAL_BOLUS,
        TreatmentEventType.SNACK_BOLUS,
        TreatmentEventType.CORRECTION_BOLUS,
    }
)

_SEGMENT = timedelta(minutes=DELIVERY_SEGMENT_MINUTES)


def calculate_insulin_remaining(
    elapsed_hours: float, dia_hours: float = DEFAULT_DIA_HOURS
) -> float:
    """Fraction of a dose still active ``elapsed_hours`` after delivery.

    Bilinear model with a fixed 75-minute peak:

    - Phase 1 (t <= peak) loses ``(t/DIA) / (2 * (1 - peak/DIA))``, so
      decay is slow while activity is still building.
    - Phase 2 (t > peak) falls linearly from the phase 1 value at the peak
      to zero at DIA, which is faster.
    - When DIA <= 2 x peak the two phases degenerate to ``1 - t/DIA``.

    Args:
        elapsed_hours: Hours since the insulin was delivered
        dia_hours: Duration of insulin action

    Returns:
        Fraction remaining in [0, 1]; 1 at delivery, 0 for future doses and
        from DIA onwards.
    """
    if elapsed_hours < 0 or elapsed_hours >= dia_hours:
        return 0.0

    peak_hours = INSULIN_PEAK_MINUTES / 60

    if dia_hours <= peak_hours * 2:
        return 1.0 - elapsed_hours / dia_hours

    peak_ratio = peak_hours / dia_hours
    if elapsed_hours <= peak_hours:
        return 1.0 - (elapsed_hours / dia_hours) / (2 * (1 - peak_ratio))

    at_peak = 1.0 - peak_ratio / (2 * (1 - peak_ratio))
    return at_peak * (dia_hours - elapsed_hours) / (dia_hours - peak_hours)


def _hours_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / 3600


def _delivery_segments(
    start: datetime, delivered_end: datetime
) -> Iterator[tuple[datetime, float]]:
    """Yield ``(midpoint, minutes)`` for each 5-minute slice of a delivery.

    The last slice is shorter when the delivery ends mid-segment.
    """
    seg_start = start
    while seg_start < delivered_end:
        seg_end = min(seg_start + _SEGMENT, delivered_end)
        midpoint = seg_start + (seg_end - seg_start) / 2
        yield midpoint, (seg_end - seg_start).total_seconds() / 60
        seg_start = seg_end


def _sum_bolus_iob(
    treatments: Iterable[Treatment], at_time: datetime, dia_hours: float
) -> float:
    """IOB from Meal, Snack and Correction boluses."""
    total = 0.0
    for treatment in treatments:
        if treatment.event_type not in RAPID_BOLUS_TYPES:
            continue
        units = treatment.insulin_units
        if not units or units <= 0:
            continue
        elapsed = _hours_between(at_time, treatment.occurred_at)
        total += units * calculate_insulin_remaining(elapsed, dia_hours)
    return total


def _sum_combo_bolus_iob(
    treatments: Iterable[Treatment], at_time: datetime, dia_hours: float
) -> float:
    """IOB from combo boluses.

    The immediate part decays like a normal bolus. The extended part is
    delivered uniformly over ``duration_minutes``; only the portion
    delivered by ``at_time`` is counted, each 5-minute slice decaying
    from its own midpoint.
    """
    total = 0.0
    for treatment in treatments:
        if treatment.event_type != TreatmentEventType.COMBO_BOLUS:
            continue
        start = treatment.occurred_at

        immediate = treatment.immediate_insulin_units
        if immediate and immediate > 0:
            elapsed = _hours_between(at_time, start)
            total += immediate * calculate_insulin_remaining(elapsed, dia_hours)

        extended = treatment.extended_insulin_units
        duration = treatment.duration_minutes
        if not extended or extended <= 0 or not duration:
            continue

        delivered_end = min(at_time, start + timedelta(minutes=duration))
        for midpoint, minutes in _delivery_segments(start, delivered_end):
            seg_units = extended * (minutes / duration)
            elapsed = _hours_between(at_time, midpoint)
            total += seg_units * calculate_insulin_remaining(elapsed, dia_hours)
    return total


def _sum_temp_basal_iob(
    treatments: Iterable[Treatment],
    at_time: datetime,
    dia_hours: float,
    scheduled_basal_rate: float,
) -> float:
    """IOB from temp basal deviations against the scheduled rate.

    Relative rates are percentages of the scheduled rate. Each 5-minute
    micro-dose is ``(actual - scheduled) U/h x slice hours`` and may be
    negative.
    """
    total = 0.0
    for treatment in treatments:
        if treatment.event_type != TreatmentEventType.TEMP_BASAL:
            continue
        if treatment.rate is None or not treatment.duration_minutes:
            continue

        if treatment.rate_mode == RateMode.relative:
            actual_rate = treatment.rate / 100 * scheduled_basal_rate
        else:
            actual_rate = treatment.rate

        deviation = actual_rate - scheduled_basal_rate
        if abs(deviation) < MIN_BASAL_DEVIATION:
            continue

        start = treatment.occurred_at
        delivered_end = min(
            at_time, start + timedelta(minutes=treatment.duration_minutes)
        )
        for midpoint, minutes in _delivery_segments(start, delivered_end):
            seg_units = deviation * (minutes / 60)
            elapsed = _hours_between(at_time, midpoint)
            total += seg_units * calculate_insulin_remaining(elapsed, dia_hours)
    return total


def calculate_iob_breakdown(
    treatments: Iterable[Treatment],
    dia_hours: float = DEFAULT_DIA_HOURS,
    scheduled_basal_rate: float = 0.0,
    at_time: datetime | None = None,
) -> IOBBreakdown:
    """Compute IOB per delivery kind at ``at_time`` (default: now).

    Args:
        treatments: Treatments covering at least the last ``dia_hours``
        dia_hours: Duration of insulin action
        scheduled_basal_rate: Pump scheduled rate in U/h; 0 disables the
            temp basal term
        at_time: Evaluation instant

    Returns:
        IOBBreakdown with every component rounded to 2 decimals. The total
        is rounded from the unrounded sum.
    """
    if at_time is None:
        at_time = datetime.now(UTC)
    treatments = list(treatments)

    bolus = _sum_bolus_iob(treatments, at_time, dia_hours)
    combo = _sum_combo_bolus_iob(treatments, at_time, dia_hours)
    basal = (
        _sum_temp_basal_iob(treatments, at_time, dia_hours, scheduled_basal_rate)
        if scheduled_basal_rate > 0
        else 0.0
    )

    return IOBBreakdown(
        bolus_iob=round_half_up(bolus, 2),
        combo_iob=round_half_up(combo, 2),
        basal_iob=round_half_up(basal, 2),
        total_iob=round_half_up(bolus + combo + basal, 2),
    )


def calculate_iob(
    treatments: Iterable[Treatment],
    dia_hours: float = DEFAULT_DIA_HOURS,
    scheduled_basal_rate: float = 0.0,
    at_time: datetime | None = None,
) -> float:
    """Total insulin on board in units, rounded to 2 decimals.

    May be negative when a temp basal suspended or reduced delivery below
    the scheduled rate.
    """
    return calculate_iob_breakdown(
        treatments, dia_hours, scheduled_basal_rate, at_time
    ).total_iob
