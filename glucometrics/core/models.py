"""Domain input models.

Pure data models for readings, treatments and configuration. No I/O, no
database dependencies. Instances are frozen: calculators never mutate
their inputs.

Ordering and positivity of thresholds and model parameters are validated
here, at the configuration boundary. The calculators assume valid input
and do not re-check it.
"""

from typing import Final, Self

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from glucometrics.core.constants import (
    DEFAULT_CARB_ABSORPTION_RATE,
    DEFAULT_DIA_HOURS,
    DEFAULT_HIGH_MGDL,
    DEFAULT_LOW_MGDL,
    DEFAULT_SCHEDULED_BASAL_RATE,
    DEFAULT_STALE_ALARM_MINUTES,
    DEFAULT_VERY_HIGH_MGDL,
    DEFAULT_VERY_LOW_MGDL,
)
from glucometrics.core.enums import RateMode, TreatmentEventType, TrendDirection

# Longest DIA accepted from configuration (hours).
MAX_DIA_HOURS: Final[float] = 8.0


class GlucoseReading(BaseModel):
    """A single CGM sensor value in mg/dL."""

    model_config = ConfigDict(frozen=True)

    timestamp: AwareDatetime
    value: float = Field(ge=0, description="Sensor glucose in mg/dL")
    direction: TrendDirection | None = Field(
        default=None, description="Trend arrow reported by the sensor, if any"
    )


class Treatment(BaseModel):
    """A logged treatment event.

    Every amount is optional: ``None`` means the field does not apply to
    this event, never "zero with meaning".
    """

    model_config = ConfigDict(frozen=True)

    event_type: TreatmentEventType
    occurred_at: AwareDatetime
    insulin_units: float | None = Field(default=None, ge=0)
    carbs_grams: float | None = Field(default=None, ge=0)
    duration_minutes: float | None = Field(default=None, ge=0)
    rate: float | None = Field(
        default=None,
        ge=0,
        description="Temp basal rate: U/h, or percent of schedule when relative",
    )
    rate_mode: RateMode | None = None
    immediate_insulin_units: float | None = Field(default=None, ge=0)
    extended_insulin_units: float | None = Field(default=None, ge=0)


class ThresholdConfig(BaseModel):
    """Zone boundaries in mg/dL: ``very_low < low < high < very_high``."""

    model_config = ConfigDict(frozen=True)

    very_low: float = Field(default=DEFAULT_VERY_LOW_MGDL, gt=0)
    low: float = Field(default=DEFAULT_LOW_MGDL, gt=0)
    high: float = Field(default=DEFAULT_HIGH_MGDL, gt=0)
    very_high: float = Field(default=DEFAULT_VERY_HIGH_MGDL, gt=0)

    @model_validator(mode="after")
    def check_ordering(self) -> Self:
        """Reject thresholds that would not partition the glucose axis."""
        if not self.very_low < self.low < self.high < self.very_high:
            msg = (
                "thresholds must satisfy very_low < low < high < very_high "
                f"(got {self.very_low}/{self.low}/{self.high}/{self.very_high})"
            )
            raise ValueError(msg)
        return self


class ModelParameters(BaseModel):
    """Pharmacokinetic parameters for IOB and COB."""

    model_config = ConfigDict(frozen=True)

    dia_hours: float = Field(
        default=DEFAULT_DIA_HOURS,
        gt=0,
        le=MAX_DIA_HOURS,
        description="Duration of insulin action in hours",
    )
    carb_absorption_rate: float = Field(
        default=DEFAULT_CARB_ABSORPTION_RATE,
        gt=0,
        description="Carbohydrate absorption rate in g/h",
    )
    scheduled_basal_rate: float = Field(
        default=DEFAULT_SCHEDULED_BASAL_RATE,
        ge=0,
        description="Pump scheduled basal rate in U/h (0 disables temp basal IOB)",
    )


class AlarmConfig(BaseModel):
    """Which glucose alarms may fire.

    Nothing fires while ``enabled`` (the master switch) is off.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    very_low: bool = True
    low: bool = True
    high: bool = True
    very_high: bool = True
    predictive: bool = True
    stale: bool = True
    stale_minutes: float = Field(
        default=DEFAULT_STALE_ALARM_MINUTES,
        gt=0,
        description="Minutes without a reading before the stale alarm fires",
    )
    rapid_change: bool = False
