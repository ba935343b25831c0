"""Tests for the insulin on board calculator.

Covers the bilinear decay curve and the bolus, combo bolus and temp basal
summations.
"""

from datetime import datetime, timedelta

import pytest

from glucometrics.core.enums import RateMode, TreatmentEventType
from glucometrics.core.models import Treatment
from glucometrics.services.iob import (
    calculate_insulin_remaining,
    calculate_iob,
    calculate_iob_breakdown,
)


def _bolus(
    units: float,
    at: datetime,
    event_type: TreatmentEventType = TreatmentEventType.CORRECTION_BOLUS,
) -> Treatment:
    return Treatment(event_type=event_type, occurred_at=at, insulin_units=units)


def _temp_basal(
    rate: float,
    at: datetime,
    duration_minutes: float,
    rate_mode: RateMode = RateMode.absolute,
) -> Treatment:
    return Treatment(
        event_type=TreatmentEventType.TEMP_BASAL,
        occurred_at=at,
        rate=rate,
        rate_mode=rate_mode,
        duration_minutes=duration_minutes,
    )


class TestInsulinDecayCurve:
    """Tests for calculate_insulin_remaining."""

    def test_full_dose_at_delivery(self):
        assert calculate_insulin_remaining(0, dia_hours=3.0) == 1.0

    def test_nothing_left_at_dia(self):
        assert calculate_insulin_remaining(3.0, dia_hours=3.0) == 0.0

    def test_nothing_left_after_dia(self):
        assert calculate_insulin_remaining(5.0, dia_hours=3.0) == 0.0

    def test_future_dose_contributes_nothing(self):
        assert calculate_insulin_remaining(-0.5, dia_hours=3.0) == 0.0

    def test_value_at_peak(self):
        """At the 75-minute peak with DIA 3 h: 1 - (5/12) / (2 * 7/12) = 9/14."""
        assert calculate_insulin_remaining(1.25, dia_hours=3.0) == pytest.approx(
            9 / 14
        )

    def test_phase_one_is_slower_than_linear(self):
        assert calculate_insulin_remaining(0.5, dia_hours=3.0) > 1 - 0.5 / 3

    def test_continuous_at_peak(self):
        before = calculate_insulin_remaining(1.25 - 1e-9, dia_hours=3.0)
        after = calculate_insulin_remaining(1.25 + 1e-9, dia_hours=3.0)
        assert before == pytest.approx(after, abs=1e-6)

    def test_monotonic_non_increasing(self):
        """Sampled every minute from 0 to DIA the curve never rises."""
        values = [calculate_insulin_remaining(m / 60, dia_hours=3.0) for m in range(181)]
        assert all(b <= a for a, b in zip(values, values[1:]))
        assert all(0.0 <= v <= 1.0 for v in values)

    def test_short_dia_is_linear(self):
        """DIA <= 2 x peak degenerates to 1 - t/DIA."""
        assert calculate_insulin_remaining(1.0, dia_hours=2.0) == pytest.approx(0.5)

    def test_longer_dia_keeps_more_insulin(self):
        assert calculate_insulin_remaining(2.0, dia_hours=5.0) > (
            calculate_insulin_remaining(2.0, dia_hours=3.0)
        )


class TestBolusIob:
    """Tests for rapid bolus summation."""

    def test_ten_units_at_delivery(self, t0):
        assert calculate_iob([_bolus(10, t0)], dia_hours=3.0, at_time=t0) == 10.0

    def test_ten_units_after_dia(self, t0):
        iob = calculate_iob(
            [_bolus(10, t0)], dia_hours=3.0, at_time=t0 + timedelta(hours=3)
        )
        assert iob == 0.0

    def test_decays_between_delivery_and_dia(self, t0):
        iob = calculate_iob(
            [_bolus(10, t0)], dia_hours=3.0, at_time=t0 + timedelta(hours=1)
        )
        assert 0 < iob < 10

    def test_all_rapid_bolus_types_count(self, t0):
        treatments = [
            _bolus(1, t0, TreatmentEventType.MEAL_BOLUS),
            _bolus(2, t0, TreatmentEventType.SNACK_BOLUS),
            _bolus(3, t0, TreatmentEventType.CORRECTION_BOLUS),
        ]
        assert calculate_iob(treatments, at_time=t0) == 6.0

    def test_long_acting_basal_excluded(self, t0):
        treatment = _bolus(20, t0, TreatmentEventType.BASAL_INSULIN)
        assert calculate_iob([treatment], at_time=t0 + timedelta(minutes=30)) == 0.0

    def test_future_bolus_excluded(self, t0):
        iob = calculate_iob([_bolus(5, t0 + timedelta(minutes=10))], at_time=t0)
        assert iob == 0.0

    def test_missing_units_contributes_nothing(self, t0):
        treatment = Treatment(event_type=TreatmentEventType.MEAL_BOLUS, occurred_at=t0)
        assert calculate_iob([treatment], at_time=t0) == 0.0

    def test_empty(self, t0):
        assert calculate_iob([], at_time=t0) == 0.0

    def test_rounded_to_two_decimals(self, t0):
        iob = calculate_iob(
            [_bolus(3.333, t0)], at_time=t0 + timedelta(minutes=17)
        )
        assert iob == round(iob, 2)


class TestComboBolusIob:
    """Tests for combo (dual wave) bolus summation."""

    def _combo(self, at: datetime) -> Treatment:
        return Treatment(
            event_type=TreatmentEventType.COMBO_BOLUS,
            occurred_at=at,
            immediate_insulin_units=2.0,
            extended_insulin_units=3.0,
            duration_minutes=60,
        )

    def test_extended_part_not_yet_delivered(self, t0):
        breakdown = calculate_iob_breakdown([self._combo(t0)], at_time=t0)
        assert breakdown.combo_iob == 2.0
        assert breakdown.bolus_iob == 0.0

    def test_only_delivered_extended_insulin_counts(self, t0):
        """After 30 min half of the 3 U extended part has been delivered."""
        breakdown = calculate_iob_breakdown(
            [self._combo(t0)], dia_hours=3.0, at_time=t0 + timedelta(minutes=30)
        )
        immediate_left = 2.0 * calculate_insulin_remaining(0.5, dia_hours=3.0)
        assert immediate_left + 1.5 * calculate_insulin_remaining(0.5, 3.0) < (
            breakdown.combo_iob
        )
        assert breakdown.combo_iob <= 3.5

    def test_extended_without_duration_ignored(self, t0):
        treatment = Treatment(
            event_type=TreatmentEventType.COMBO_BOLUS,
            occurred_at=t0,
            immediate_insulin_units=1.0,
            extended_insulin_units=3.0,
        )
        breakdown = calculate_iob_breakdown(
            [treatment], at_time=t0 + timedelta(minutes=30)
        )
        assert breakdown.combo_iob == pytest.approx(
            round(calculate_insulin_remaining(0.5), 2)
        )


class TestTempBasalIob:
    """Tests for temp basal deviation summation."""

    def test_suspend_produces_negative_iob(self, t0):
        breakdown = calculate_iob_breakdown(
            [_temp_basal(0, t0, 30)],
            scheduled_basal_rate=1.0,
            at_time=t0 + timedelta(minutes=10),
        )
        assert breakdown.basal_iob < 0
        assert breakdown.total_iob < 0

    def test_suspend_decays_to_zero(self, t0):
        """Zero once DIA has passed since the last suspended segment."""
        iob = calculate_iob(
            [_temp_basal(0, t0, 30)],
            dia_hours=3.0,
            scheduled_basal_rate=1.0,
            at_time=t0 + timedelta(hours=3, minutes=60),
        )
        assert iob == 0.0

    def test_hour_long_suspend_goes_negative_then_clears(self, t0):
        suspend = [_temp_basal(0, t0, 60)]

        early = calculate_iob(
            suspend,
            dia_hours=3.0,
            scheduled_basal_rate=1.0,
            at_time=t0 + timedelta(minutes=1),
        )
        late = calculate_iob(
            suspend,
            dia_hours=3.0,
            scheduled_basal_rate=1.0,
            at_time=t0 + timedelta(hours=4),
        )

        assert early < 0
        assert late == 0.0

    def test_high_temp_adds_insulin(self, t0):
        breakdown = calculate_iob_breakdown(
            [_temp_basal(2.0, t0, 60)],
            scheduled_basal_rate=1.0,
            at_time=t0 + timedelta(minutes=60),
        )
        # 1 U/h extra for an hour, partly decayed
        assert 0 < breakdown.basal_iob < 1.0

    def test_relative_rate_is_percent_of_schedule(self, t0):
        at = t0 + timedelta(minutes=30)
        relative = calculate_iob(
            [_temp_basal(50, t0, 60, RateMode.relative)],
            scheduled_basal_rate=2.0,
            at_time=at,
        )
        absolute = calculate_iob(
            [_temp_basal(1.0, t0, 60)], scheduled_basal_rate=2.0, at_time=at
        )
        assert relative == absolute
        assert relative < 0

    def test_hundred_percent_is_no_deviation(self, t0):
        iob = calculate_iob(
            [_temp_basal(100, t0, 60, RateMode.relative)],
            scheduled_basal_rate=1.0,
            at_time=t0 + timedelta(minutes=30),
        )
        assert iob == 0.0

    def test_ignored_without_scheduled_rate(self, t0):
        iob = calculate_iob(
            [_temp_basal(0, t0, 30)],
            scheduled_basal_rate=0.0,
            at_time=t0 + timedelta(minutes=10),
        )
        assert iob == 0.0

    def test_missing_duration_contributes_nothing(self, t0):
        treatment = Treatment(
            event_type=TreatmentEventType.TEMP_BASAL, occurred_at=t0, rate=0.0
        )
        iob = calculate_iob(
            [treatment], scheduled_basal_rate=1.0, at_time=t0 + timedelta(minutes=10)
        )
        assert iob == 0.0

    def test_breakdown_total_combines_components(self, t0):
        at = t0 + timedelta(minutes=20)
        breakdown = calculate_iob_breakdown(
            [_bolus(4, t0), _temp_basal(0, t0, 30)],
            scheduled_basal_rate=1.0,
            at_time=at,
        )
        assert breakdown.total_iob == pytest.approx(
            breakdown.bolus_iob + breakdown.basal_iob, abs=0.011
        )
