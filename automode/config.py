"""
Configuration settings for the Auto Mode practice engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with AUTOMODE_ (e.g. AUTOMODE_DATA_DIR).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AUTOMODE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".automode",
        description="Root directory for save slots (runs/) and analytics.json",
    )
    curriculum_path: Path | None = Field(
        default=None,
        description="Optional curriculum JSON overriding the bundled catalog",
    )

    # ========================================
    # Progression Tuning
    # ========================================
    streak_to_promote: int = Field(
        default=3,
        ge=1,
        description="Consecutive correct answers needed to promote to the next topic",
    )
    aggressive_streak_to_promote: int = Field(
        default=2,
        ge=1,
        description="Same, when aggressive progression is enabled",
    )

    # ─── Defaults for new runs ──────────────────────────────────────────────────
    default_aggressive_progression: bool = Field(
        default=False,
        description="Aggressive progression toggle for freshly created runs",
    )
    default_remediation_mode: bool = Field(
        default=True,
        description="Remediation mode toggle for freshly created runs",
    )

    # ========================================
    # Question Serving
    # ========================================
    difficulty_policy: Literal["module", "beginner", "intermediate", "advanced"] = Field(
        default="module",
        description="Difficulty banding policy: 'module' bands by position within a module",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Loguru level for CLI output (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _check_thresholds(self) -> Settings:
        if self.aggressive_streak_to_promote > self.streak_to_promote:
            raise ValueError(
                "aggressive_streak_to_promote cannot exceed streak_to_promote"
            )
        return self

    def get_progression_config(self) -> dict[str, int]:
        """Get promotion thresholds as a dictionary."""
        return {
            "streak_to_promote": self.streak_to_promote,
            "aggressive_streak_to_promote": self.aggressive_streak_to_promote,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
