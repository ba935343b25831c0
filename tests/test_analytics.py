"""Tests for the combined analytics report."""

from datetime import UTC, datetime, timedelta

from glucometrics.core.enums import PatternType
from glucometrics.core.models import GlucoseReading
from glucometrics.services.analytics import generate_analytics

START = datetime(2024, 1, 8, tzinfo=UTC)


def _week_of_readings(value: float = 120) -> list[GlucoseReading]:
    return [
        GlucoseReading(timestamp=START + timedelta(minutes=15 * i), value=value)
        for i in range(7 * 96)
    ]


class TestGenerateAnalytics:
    def test_full_report(self):
        readings = _week_of_readings()
        report = generate_analytics(readings, START, START + timedelta(days=7))

        assert report.period.days == 7
        assert report.total_readings == len(readings)
        assert report.stats.average == 120
        assert report.time_in_range.percent_in_range == 100.0
        assert len(report.daily_patterns) == 24
        assert all(p.count == 28 for p in report.daily_patterns)
        assert report.patterns == []

    def test_partial_day_rounds_up(self):
        report = generate_analytics([], START, START + timedelta(days=6, hours=12))
        assert report.period.days == 7

    def test_empty_period(self):
        report = generate_analytics([], START, START + timedelta(days=1))
        assert report.total_readings == 0
        assert report.stats.average == 0
        assert report.patterns == []

    def test_includes_detected_patterns(self):
        report = generate_analytics(
            _week_of_readings(value=200), START, START + timedelta(days=7)
        )
        assert [p.type for p in report.patterns] == [PatternType.dawn_phenomenon]
