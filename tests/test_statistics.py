"""Tests for summary statistics, time in range and hourly patterns."""

from datetime import UTC, datetime, timedelta

import pytest

from glucometrics.core.enums import GlucoseZone
from glucometrics.core.models import GlucoseReading, ThresholdConfig
from glucometrics.services.statistics import (
    calculate_daily_patterns,
    calculate_glucose_stats,
    calculate_time_in_range,
    classify_glucose,
    estimated_a1c,
    glucose_management_indicator,
)


def _readings(t0, values, step_minutes=5):
    return [
        GlucoseReading(timestamp=t0 + timedelta(minutes=i * step_minutes), value=v)
        for i, v in enumerate(values)
    ]


class TestGlucoseStats:
    def test_basic_stats(self, t0):
        stats = calculate_glucose_stats(_readings(t0, [100, 150, 200]))
        assert stats.average == 150.0
        assert stats.median == 150.0
        assert stats.min == 100
        assert stats.max == 200
        assert stats.std_dev == pytest.approx(40.8)
        assert stats.cv == pytest.approx(27.2)
        assert stats.gmi == pytest.approx(6.9)
        assert stats.estimated_a1c == pytest.approx(6.85)

    def test_empty_is_all_zero(self):
        stats = calculate_glucose_stats([])
        assert stats.model_dump() == {
            "average": 0,
            "median": 0,
            "min": 0,
            "max": 0,
            "std_dev": 0,
            "cv": 0,
            "gmi": 0,
            "estimated_a1c": 0,
        }

    def test_even_count_median(self, t0):
        stats = calculate_glucose_stats(_readings(t0, [70, 80, 90, 100]))
        assert stats.median == 85

    def test_cv_zero_for_constant(self, t0):
        assert calculate_glucose_stats(_readings(t0, [120] * 5)).cv == 0


class TestClinicalFormulas:
    def test_gmi(self):
        assert glucose_management_indicator(154) == pytest.approx(6.99, abs=0.01)

    def test_nathan_a1c(self):
        # (154 + 46.7) / 28.7
        assert estimated_a1c(154) == pytest.approx(6.993, abs=0.001)

    def test_formulas_are_distinct(self):
        assert glucose_management_indicator(200) != pytest.approx(estimated_a1c(200))


class TestClassifyGlucose:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (40, GlucoseZone.very_low),
            (53.9, GlucoseZone.very_low),
            (54, GlucoseZone.low),
            (69, GlucoseZone.low),
            (70, GlucoseZone.in_range),
            (180, GlucoseZone.in_range),
            (181, GlucoseZone.high),
            (250, GlucoseZone.high),
            (251, GlucoseZone.very_high),
        ],
    )
    def test_default_boundaries(self, value, expected):
        assert classify_glucose(value) == expected

    def test_custom_thresholds(self):
        thresholds = ThresholdConfig(very_low=60, low=80, high=140, very_high=200)
        assert classify_glucose(75, thresholds) == GlucoseZone.low
        assert classify_glucose(150, thresholds) == GlucoseZone.high


class TestTimeInRange:
    def test_one_reading_per_zone(self, t0):
        tir = calculate_time_in_range(_readings(t0, [50, 60, 100, 200, 300]))
        assert (tir.very_low, tir.low, tir.in_range, tir.high, tir.very_high) == (
            1,
            1,
            1,
            1,
            1,
        )
        assert tir.percent_in_range == 20.0

    @pytest.mark.parametrize(
        "values",
        [
            [100, 200, 300],  # 3 x 33.3 = 99.9
            [50, 60, 100, 200, 300, 300],  # 4 x 16.7 + 33.3 = 100.1
            [100, 100, 100, 100],
        ],
    )
    def test_percentages_sum_to_hundred(self, t0, values):
        tir = calculate_time_in_range(_readings(t0, values))
        total = (
            tir.percent_very_low
            + tir.percent_low
            + tir.percent_in_range
            + tir.percent_high
            + tir.percent_very_high
        )
        assert abs(round(total, 1) - 100) <= 0.1

    def test_counts_cover_every_reading(self, t0):
        values = [45, 55, 65, 75, 150, 185, 240, 260, 390, 120, 70]
        tir = calculate_time_in_range(_readings(t0, values))
        assert (
            tir.very_low + tir.low + tir.in_range + tir.high + tir.very_high
            == len(values)
        )

    def test_empty(self):
        tir = calculate_time_in_range([])
        assert tir.in_range == 0
        assert tir.percent_in_range == 0

    def test_custom_thresholds(self, t0):
        thresholds = ThresholdConfig(very_low=60, low=80, high=140, very_high=200)
        tir = calculate_time_in_range(_readings(t0, [75, 150]), thresholds)
        assert tir.low == 1
        assert tir.high == 1
        assert tir.in_range == 0


class TestDailyPatterns:
    def test_always_twenty_four_hours(self):
        patterns = calculate_daily_patterns([])
        assert [p.hour for p in patterns] == list(range(24))
        assert all(p.count == 0 and p.average_glucose == 0 for p in patterns)

    def test_hour_statistics(self):
        readings = [
            GlucoseReading(timestamp=datetime(2024, 1, 15, 8, 10, tzinfo=UTC), value=100),
            GlucoseReading(timestamp=datetime(2024, 1, 16, 8, 40, tzinfo=UTC), value=120),
        ]
        hour = calculate_daily_patterns(readings)[8]
        assert hour.count == 2
        assert hour.average_glucose == 110
        assert hour.std_dev == 10
        assert hour.median == 110
        assert hour.min == 100
        assert hour.max == 120
        assert hour.p5 == 101
        assert hour.p95 == 119

    def test_empty_hours_report_zero(self):
        readings = [
            GlucoseReading(timestamp=datetime(2024, 1, 15, 8, 0, tzinfo=UTC), value=100)
        ]
        patterns = calculate_daily_patterns(readings)
        assert patterns[8].count == 1
        assert patterns[8].p95 == 100
        assert patterns[3].model_dump(exclude={"hour"}) == dict.fromkeys(
            patterns[3].model_dump(exclude={"hour"}), 0
        )

    def test_grouped_by_configured_timezone(self):
        """02:00 UTC is 23:00 the previous day in Sao Paulo (UTC-3)."""
        readings = [
            GlucoseReading(timestamp=datetime(2024, 1, 15, 2, 0, tzinfo=UTC), value=90)
        ]
        patterns = calculate_daily_patterns(readings, tz="America/Sao_Paulo")
        assert patterns[23].count == 1
        assert patterns[2].count == 0
