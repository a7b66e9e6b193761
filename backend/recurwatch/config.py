"""
Application configuration using Pydantic settings.
"""

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Recurwatch"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Server
    frontend_url: str = "http://localhost:5173"

    # Persisted pattern defaults
    reminder_days_before: int = 2

    # Detection tuning
    detection_lookback_months: int = 12
    detection_min_occurrences: int = 3
    detection_min_confidence: float = 0.5
    detection_amount_tolerance_abs: float = 5.0
    detection_amount_tolerance_pct: float = 0.05
    detection_recency_multiplier: float = 1.5
    detection_max_mad_ratio: float = 0.2
    detection_min_interval_days: int = 6
    detection_anchor_match_ratio: float = 0.8
    detection_variable_anchor_match_ratio: float = 0.9
    detection_variable_min_occurrences: int = 5
    detection_variable_min_amount_spread: float = 0.15
    detection_variable_date_consistency: float = 0.9
    detection_variable_amount_flag_ratio: float = 0.1

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@dataclass(frozen=True)
class DetectionConfig:
    """Tuning constants injected into the detection pipeline."""

    lookback_months: int = 12
    min_occurrences: int = 3
    min_confidence: float = 0.5
    amount_tolerance_abs: float = 5.0
    amount_tolerance_pct: float = 0.05
    recency_multiplier: float = 1.5
    max_mad_ratio: float = 0.2
    min_interval_days: int = 6
    anchor_match_ratio: float = 0.8
    anchor_tolerance_days: int = 2
    weekday_tolerance_days: int = 1
    variable_anchor_match_ratio: float = 0.9
    variable_min_occurrences: int = 5
    variable_min_amount_spread: float = 0.15
    variable_date_consistency: float = 0.9
    # Persisted records are flagged variable above this variance/amount ratio
    variable_amount_flag_ratio: float = 0.1

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DetectionConfig":
        return cls(
            lookback_months=settings.detection_lookback_months,
            min_occurrences=settings.detection_min_occurrences,
            min_confidence=settings.detection_min_confidence,
            amount_tolerance_abs=settings.detection_amount_tolerance_abs,
            amount_tolerance_pct=settings.detection_amount_tolerance_pct,
            recency_multiplier=settings.detection_recency_multiplier,
            max_mad_ratio=settings.detection_max_mad_ratio,
            min_interval_days=settings.detection_min_interval_days,
            anchor_match_ratio=settings.detection_anchor_match_ratio,
            variable_anchor_match_ratio=settings.detection_variable_anchor_match_ratio,
            variable_min_occurrences=settings.detection_variable_min_occurrences,
            variable_min_amount_spread=settings.detection_variable_min_amount_spread,
            variable_date_consistency=settings.detection_variable_date_consistency,
            variable_amount_flag_ratio=settings.detection_variable_amount_flag_ratio,
        )


# Global settings instance
settings = Settings()
