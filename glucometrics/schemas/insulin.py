"""Insulin and carbs on board schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from glucometrics.schemas.trend import AR2Forecast


class IOBBreakdown(BaseModel):
    """Insulin on board split by delivery kind.

    ``basal_iob`` is a deviation from the scheduled rate and is negative
    while a temp basal reduces or suspends delivery, so ``total_iob`` may
    be negative too.
    """

    bolus_iob: float = Field(..., description="Rapid bolus IOB in units")
    combo_iob: float = Field(..., description="Combo bolus IOB in units")
    basal_iob: float = Field(..., description="Temp basal deviation IOB in units")
    total_iob: float = Field(..., description="Sum of all components in units")


class ActiveMetricsSnapshot(BaseModel):
    """Latest values published by the active metrics monitor."""

    computed_at: datetime
    iob: float = Field(..., description="Insulin on board in units (may be negative)")
    iob_breakdown: IOBBreakdown
    cob: float = Field(..., ge=0, description="Carbs on board in grams")
    delta: float | None = Field(
        None, description="5-minute glucose delta in mg/dL; None without buckets"
    )
    latest_glucose: float | None = None
    forecast: AR2Forecast = Field(default_factory=AR2Forecast)
    treatments_count: int = Field(..., ge=0)
    readings_count: int = Field(..., ge=0)
    refresh_id: str | None = Field(
        None, description="Correlation ID carried by the log lines of this refresh"
    )
