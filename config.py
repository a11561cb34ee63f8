"""
Configuration settings for the drill spaced-repetition engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Loguru level for the CLI stderr sink",
    )
    log_format: str = Field(
        default="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
        description="Loguru format for the CLI stderr sink",
    )

    # ========================================
    # Sets
    # ========================================
    default_method: str = Field(
        default="sm2",
        description="Method bound to new sets when none is given",
    )
    set_indent: int = Field(
        default=2,
        description="JSON indentation of persisted set files",
    )

    # ========================================
    # Sessions
    # ========================================
    rng_seed: int | None = Field(
        default=None,
        description="Seed for card selection (unset = system entropy)",
    )
    test_correct_response: str = Field(
        default="y",
        description="Response meaning 'answered correctly' in test runs",
    )
    test_incorrect_response: str = Field(
        default="n",
        description="Response meaning 'answered incorrectly' in test runs",
    )

    # ========================================
    # Scripts
    # ========================================
    script_timeout_seconds: float | None = Field(
        default=None,
        description="Wall-clock limit for one script call (unset = no limit)",
    )

    def get_test_responses(self) -> tuple[str, str]:
        """Get the (correct, incorrect) test responses."""
        return (self.test_correct_response, self.test_incorrect_response)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
