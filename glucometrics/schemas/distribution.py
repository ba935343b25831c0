"""Distribution and variability schemas."""

from pydantic import BaseModel, Field

from glucometrics.core.enums import VariabilityLevel


class HistogramBin(BaseModel):
    """A 10 mg/dL wide histogram bucket.

    ``percent`` is relative to every reading, including those outside
    40-400 mg/dL that no bucket counts.
    """

    bin: int = Field(..., description="Lower bound in mg/dL")
    count: int = Field(..., ge=0)
    percent: float = Field(..., ge=0, le=100)


class DistributionStats(BaseModel):
    """Histogram plus composite variability indices."""

    total_readings: int = Field(..., ge=0)
    gvi: float = Field(..., ge=0, description="Glycemic Variability Index")
    gvi_level: VariabilityLevel | None = Field(
        None, description="Qualitative GVI band; None without readings"
    )
    pgs: float = Field(..., ge=0, description="Patient Glycemic Status (GVI x %TOR)")
    j_index: float = Field(..., ge=0, description="0.001 x (mean + SD)^2")
    iqr: float = Field(..., ge=0, description="P75 - P25 in mg/dL")
    mean_daily_change: float = Field(
        ..., ge=0, description="Mean absolute change of daily means (mg/dL)"
    )
    out_of_range_rms: float = Field(
        ..., ge=0, description="RMS distance of out-of-range readings to range"
    )
    time_in_fluctuation: float = Field(
        ..., ge=0, le=100, description="% intervals with |dG/dt| > 1 mg/dL/min"
    )
    time_in_rapid_fluctuation: float = Field(
        ..., ge=0, le=100, description="% intervals with |dG/dt| > 2 mg/dL/min"
    )
    histogram: list[HistogramBin]
