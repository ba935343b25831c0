"""Tests for the glucose delta and AR2 forecast."""

from datetime import timedelta

import pytest

from glucometrics.core.enums import PredictionQuality
from glucometrics.core.models import GlucoseReading
from glucometrics.services.trend import (
    calculate_ar2,
    calculate_ar2_loss,
    calculate_delta,
    classify_prediction_quality,
    compute_buckets,
)


def _reading(t0, minutes, value):
    return GlucoseReading(timestamp=t0 + timedelta(minutes=minutes), value=value)


class TestBuckets:
    def test_empty(self):
        assert compute_buckets([]) is None

    def test_bucket_boundaries(self, t0):
        readings = [
            _reading(t0, 0, 120),
            _reading(t0, -2.5, 118),  # recent (inclusive lower bound)
            _reading(t0, -3, 115),  # previous
            _reading(t0, -7.5, 110),  # previous (inclusive lower bound)
            _reading(t0, -8, 100),  # outside both
        ]
        buckets = compute_buckets(readings)
        assert buckets.latest.value == 120
        assert sorted(r.value for r in buckets.recent) == [118, 120]
        assert sorted(r.value for r in buckets.previous) == [110, 115]

    def test_order_independent(self, t0):
        readings = [_reading(t0, 0, 120), _reading(t0, -5, 110)]
        assert compute_buckets(readings).latest == compute_buckets(
            list(reversed(readings))
        ).latest


class TestCalculateDelta:
    def test_simple_delta(self, t0):
        readings = [_reading(t0, -10, 100), _reading(t0, -5, 110), _reading(t0, 0, 120)]
        assert calculate_delta(readings) == 10

    def test_bucket_means(self, t0):
        readings = [_reading(t0, 0, 120), _reading(t0, -2, 118), _reading(t0, -5, 110)]
        assert calculate_delta(readings) == 9

    def test_falling(self, t0):
        readings = [_reading(t0, -5, 130), _reading(t0, 0, 118)]
        assert calculate_delta(readings) == -12

    def test_ties_round_half_up(self, t0):
        readings = [_reading(t0, 0, 120.5), _reading(t0, -5, 110)]
        assert calculate_delta(readings) == 11

    def test_negative_ties_round_towards_positive(self, t0):
        readings = [_reading(t0, 0, 110), _reading(t0, -5, 121), _reading(t0, -6, 120)]
        assert calculate_delta(readings) == -10

    def test_empty_previous_bucket(self, t0):
        readings = [_reading(t0, 0, 120), _reading(t0, -15, 100)]
        assert calculate_delta(readings) is None

    def test_single_reading(self, t0):
        assert calculate_delta([_reading(t0, 0, 120)]) is None

    def test_no_readings(self):
        assert calculate_delta([]) is None


class TestAR2Forecast:
    def test_twelve_five_minute_steps(self, t0):
        forecast = calculate_ar2([_reading(t0, -5, 118), _reading(t0, 0, 120)])
        assert len(forecast.predictions) == 12
        assert [p.time for p in forecast.predictions] == [
            t0 + timedelta(minutes=5 * (i + 1)) for i in range(12)
        ]

    def test_custom_steps(self, t0):
        forecast = calculate_ar2(
            [_reading(t0, -5, 118), _reading(t0, 0, 120)], steps=3
        )
        assert len(forecast.predictions) == 3

    def test_steady_at_reference_stays_flat(self, t0):
        """140 mg/dL is log-ratio 0, a fixed point of the model."""
        readings = [_reading(t0, -5 * i, 140) for i in range(8)]
        forecast = calculate_ar2(readings)
        assert all(p.predicted == 140 for p in forecast.predictions)
        assert forecast.avg_loss == pytest.approx(0.0)
        assert forecast.quality == PredictionQuality.good

    def test_cone_widens(self, t0):
        readings = [_reading(t0, -5 * i, 140) for i in range(8)]
        predictions = calculate_ar2(readings).predictions
        first, last = predictions[0], predictions[-1]
        assert first.lower <= first.predicted <= first.upper
        assert last.upper - last.lower > first.upper - first.lower

    def test_values_clamped(self, t0):
        forecast = calculate_ar2([_reading(t0, -5, 300), _reading(t0, 0, 390)])
        assert forecast.predictions
        for p in forecast.predictions:
            assert 36 <= p.predicted <= 400
            assert p.upper <= 400
            assert p.lower >= 36

    def test_rising_trend_continues(self, t0):
        forecast = calculate_ar2([_reading(t0, -5, 110), _reading(t0, 0, 120)])
        assert forecast.predictions[0].predicted > 120

    def test_fewer_than_two_readings(self, t0):
        forecast = calculate_ar2([_reading(t0, 0, 120)])
        assert forecast.predictions == []
        assert forecast.quality == PredictionQuality.unknown

    def test_empty_bucket(self, t0):
        forecast = calculate_ar2([_reading(t0, 0, 120), _reading(t0, -20, 110)])
        assert forecast.predictions == []

    def test_bucket_mean_below_minimum(self, t0):
        forecast = calculate_ar2([_reading(t0, -5, 30), _reading(t0, 0, 32)])
        assert forecast.predictions == []

    def test_stale_data_relative_to_now(self, t0):
        readings = [_reading(t0, -5, 118), _reading(t0, 0, 120)]
        assert calculate_ar2(readings, now=t0 + timedelta(minutes=11)).predictions == []
        assert calculate_ar2(readings, now=t0 + timedelta(minutes=5)).predictions

    def test_two_readings_have_unknown_quality(self, t0):
        forecast = calculate_ar2([_reading(t0, -5, 118), _reading(t0, 0, 120)])
        assert forecast.avg_loss is None
        assert forecast.quality == PredictionQuality.unknown


class TestAR2Loss:
    def test_needs_three_usable_readings(self, t0):
        readings = [_reading(t0, 0, 120), _reading(t0, -5, 118), _reading(t0, -10, 20)]
        assert calculate_ar2_loss(readings) is None

    def test_noisy_data_is_urgent(self, t0):
        values = [80, 200, 80, 200, 80, 200, 80, 200]
        readings = [_reading(t0, 5 * i, v) for i, v in enumerate(values)]
        loss = calculate_ar2_loss(readings)
        assert loss > 0.10
        assert classify_prediction_quality(loss) == PredictionQuality.urgent

    @pytest.mark.parametrize(
        ("loss", "expected"),
        [
            (None, PredictionQuality.unknown),
            (0.01, PredictionQuality.good),
            (0.05, PredictionQuality.good),
            (0.07, PredictionQuality.warn),
            (0.10, PredictionQuality.warn),
            (0.2, PredictionQuality.urgent),
        ],
    )
    def test_quality_thresholds(self, loss, expected):
        assert classify_prediction_quality(loss) == expected
