"""Trend and forecast schemas.

AR2 forecasts are heuristic extrapolations of the last ten minutes of CGM
data. They are not guarantees and must be presented as such.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from glucometrics.core.enums import PredictionQuality


class AR2Prediction(BaseModel):
    """One forecast step with its cone of uncertainty."""

    time: datetime
    predicted: float = Field(..., description="Forecast glucose in mg/dL")
    upper: float = Field(..., description="Upper cone bound in mg/dL")
    lower: float = Field(..., description="Lower cone bound in mg/dL")


class AR2Forecast(BaseModel):
    """Result of an AR2 projection."""

    predictions: list[AR2Prediction] = Field(default_factory=list)
    avg_loss: float | None = Field(
        None,
        description="Mean squared log error of AR2 on the last readings; "
        "None with fewer than 3 usable readings",
    )
    quality: PredictionQuality = PredictionQuality.unknown
