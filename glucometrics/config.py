"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from glucometrics.core.constants import (
    DEFAULT_CARB_ABSORPTION_RATE,
    DEFAULT_DIA_HOURS,
    DEFAULT_HIGH_MGDL,
    DEFAULT_LOW_MGDL,
    DEFAULT_SCHEDULED_BASAL_RATE,
    DEFAULT_VERY_HIGH_MGDL,
    DEFAULT_VERY_LOW_MGDL,
)
from glucometrics.core.models import AlarmConfig, ModelParameters, ThresholdConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Logging
    log_format: str = "json"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "glucometrics"

    # Local timezone used for hour-of-day and calendar-day grouping
    timezone: str = "UTC"

    # Glucose zone thresholds (mg/dL)
    threshold_very_low: float = DEFAULT_VERY_LOW_MGDL
    threshold_low: float = DEFAULT_LOW_MGDL
    threshold_high: float = DEFAULT_HIGH_MGDL
    threshold_very_high: float = DEFAULT_VERY_HIGH_MGDL

    # Insulin / carb model
    dia_hours: float = DEFAULT_DIA_HOURS
    carb_absorption_rate: float = DEFAULT_CARB_ABSORPTION_RATE  # g/h
    scheduled_basal_rate: float = DEFAULT_SCHEDULED_BASAL_RATE  # U/h

    # Treatment fetch cache
    treatment_cache_ttl_seconds: float = 55.0  # below the poll interval
    treatment_window_hours: float = 8.0  # covers COB and the longest DIA
    reading_window_minutes: int = 60

    # Active metrics polling
    poll_interval_seconds: int = 60
    poll_enabled: bool = True

    # Glucose alarms (all zone alarms on once the master switch is set)
    alarm_enabled: bool = False
    alarm_predictive: bool = True
    alarm_stale: bool = True
    alarm_stale_minutes: int = 15
    alarm_rapid_change: bool = False

    def threshold_config(self) -> ThresholdConfig:
        """Build validated zone thresholds from the configured values.

        Raises:
            pydantic.ValidationError: If the thresholds are not strictly
                increasing.
        """
        return ThresholdConfig(
            very_low=self.threshold_very_low,
            low=self.threshold_low,
            high=self.threshold_high,
            very_high=self.threshold_very_high,
        )

    def alarm_config(self) -> AlarmConfig:
        """Build the alarm switches; zone alarms are all on."""
        return AlarmConfig(
            enabled=self.alarm_enabled,
            predictive=self.alarm_predictive,
            stale=self.alarm_stale,
            stale_minutes=self.alarm_stale_minutes,
            rapid_change=self.alarm_rapid_change,
        )

    def model_parameters(self) -> ModelParameters:
        """Build validated IOB/COB model parameters."""
        return ModelParameters(
            dia_hours=self.dia_hours,
            carb_absorption_rate=self.carb_absorption_rate,
            scheduled_basal_rate=self.scheduled_basal_rate,
        )


settings = Settings()
