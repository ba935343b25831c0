"""Glucose statistics schemas.

Pydantic records for summary statistics, time in range, hourly patterns,
detected patterns, calendar and weekly days and the combined analytics
report.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from glucometrics.core.enums import GlucoseZone, PatternSeverity, PatternType


class GlucoseStats(BaseModel):
    """Aggregate statistics over a window of readings."""

    average: float = Field(..., ge=0, description="Mean glucose in mg/dL")
    median: float = Field(..., ge=0, description="Median glucose in mg/dL")
    min: float = Field(..., ge=0, description="Lowest reading in mg/dL")
    max: float = Field(..., ge=0, description="Highest reading in mg/dL")
    std_dev: float = Field(..., ge=0, description="Population standard deviation")
    cv: float = Field(..., ge=0, description="Coefficient of variation (%)")
    gmi: float = Field(..., ge=0, description="Glucose Management Indicator (%)")
    estimated_a1c: float = Field(
        ..., ge=0, description="Estimated HbA1c (%) from the Nathan/ADAG formula"
    )


class TimeInRange(BaseModel):
    """Reading counts and percentages per glucose zone."""

    very_low: int = Field(..., ge=0)
    low: int = Field(..., ge=0)
    in_range: int = Field(..., ge=0)
    high: int = Field(..., ge=0)
    very_high: int = Field(..., ge=0)
    percent_very_low: float = Field(..., ge=0, le=100)
    percent_low: float = Field(..., ge=0, le=100)
    percent_in_range: float = Field(..., ge=0, le=100)
    percent_high: float = Field(..., ge=0, le=100)
    percent_very_high: float = Field(..., ge=0, le=100)


class HourlyPattern(BaseModel):
    """Statistics for one hour of the day, pooled across all dates."""

    hour: int = Field(..., ge=0, le=23, description="Hour of day (0-23)")
    count: int = Field(..., ge=0, description="Number of readings in this hour")
    average_glucose: float = Field(..., ge=0)
    std_dev: float = Field(..., ge=0)
    median: float = Field(..., ge=0)
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)
    p5: float = Field(..., ge=0, description="5th percentile glucose (mg/dL)")
    p25: float = Field(..., ge=0, description="25th percentile glucose (mg/dL)")
    p75: float = Field(..., ge=0, description="75th percentile glucose (mg/dL)")
    p95: float = Field(..., ge=0, description="95th percentile glucose (mg/dL)")


class DetectedPattern(BaseModel):
    """A pattern flagged by the detector."""

    type: PatternType
    severity: PatternSeverity
    description: str = Field(..., min_length=1)
    hours: list[int] | None = Field(None, description="Contributing hours of day")
    average_glucose: float | None = None


class CalendarDay(BaseModel):
    """One day of the monthly calendar view."""

    date: str = Field(..., description="YYYY-MM-DD")
    avg_glucose: float = Field(..., ge=0)
    min_glucose: float = Field(..., ge=0)
    max_glucose: float = Field(..., ge=0)
    readings: int = Field(..., ge=0)
    hypo_count: int = Field(..., ge=0, description="Readings below the low threshold")
    hypo_severe: int = Field(
        ..., ge=0, description="Readings below the very-low threshold"
    )
    zone: GlucoseZone


class AnalyticsPeriod(BaseModel):
    start: datetime
    end: datetime
    days: int = Field(..., ge=0)


class GlucoseAnalytics(BaseModel):
    """Complete statistics report for a period."""

    period: AnalyticsPeriod
    stats: GlucoseStats
    time_in_range: TimeInRange
    daily_patterns: list[HourlyPattern]
    patterns: list[DetectedPattern]
    total_readings: int = Field(..., ge=0)


class WeeklyDaySummary(BaseModel):
    """One local calendar day of the weekly overview."""

    date: str = Field(..., description="YYYY-MM-DD in the configured timezone")
    weekday: str = Field(..., description="Short weekday name (Mon-Sun)")
    is_future_day: bool
    has_glucose_data: bool
    avg_glucose: float = Field(..., ge=0)
    min_glucose: float = Field(..., ge=0)
    max_glucose: float = Field(..., ge=0)
    readings: int = Field(..., ge=0)
    zone: GlucoseZone
    tir_percent: float = Field(
        ..., ge=0, le=100, description="Whole-percent share of readings in range"
    )
    hypo_count: int = Field(..., ge=0, description="Readings below the low threshold")
    total_carbs: float = Field(..., ge=0, description="Logged carbohydrates in grams")
    total_rapid_insulin: float = Field(
        ..., ge=0, description="Rapid and combo bolus insulin in units"
    )
    total_slow_insulin: float = Field(
        ..., ge=0, description="Long-acting basal insulin in units"
    )
    has_treatment_data: bool
