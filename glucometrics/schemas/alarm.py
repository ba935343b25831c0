"""Glucose alarm schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from glucometrics.core.enums import AlarmLevel, AlarmType


class AlarmEvent(BaseModel):
    """An alarm that should be raised for the latest reading."""

    type: AlarmType
    level: AlarmLevel
    glucose: float | None = Field(
        None, description="Latest glucose in mg/dL; None for stale data alarms"
    )
    predicted_glucose: float | None = Field(
        None, description="Forecast extreme that triggered a predictive alarm"
    )
    message: str = Field(..., min_length=1)
    timestamp: datetime
