"""Meal correlation schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from glucometrics.core.enums import MealPeriod, TreatmentEventType


class MealEvent(BaseModel):
    """Glucose response around a single carbohydrate treatment."""

    event_type: TreatmentEventType
    meal_period: MealPeriod
    occurred_at: datetime
    hour: int = Field(..., ge=0, le=23)
    carbs: float = Field(..., ge=0)
    insulin: float = Field(..., ge=0)
    pre_meal_glucose: float | None = None
    glucose_at_1h: float | None = None
    glucose_at_2h: float | None = None
    peak_glucose: float | None = None
    peak_delta: float | None = None


class MealPeriodStats(BaseModel):
    """Averages over all meals in one period of the day.

    Averages skip missing lookups and are 0 when no meal had a value.
    """

    period: MealPeriod
    label: str
    count: int = Field(..., ge=1)
    avg_pre_meal: float
    avg_at_1h: float
    avg_at_2h: float
    avg_peak: float
    avg_delta: float
    avg_carbs: float
    avg_insulin: float
    events: list[MealEvent]


class MealtimeData(BaseModel):
    periods: list[MealPeriodStats] = Field(default_factory=list)
    total_events: int = Field(0, ge=0)
