"""
config.py — pydantic-settings Settings class.

All environment variables for covidcan are declared here (prefix COVIDCAN_).
Sources, pipelines and the CLI import `settings` from this module.

Usage:
    from covidcan.config import settings
    print(settings.cases_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COVIDCAN_",
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Data sources
    # -------------------------------------------------------------------------
    cases_url: str = Field(
        default="https://health-infobase.canada.ca/src/data/covidLive/covid19-download.csv"
    )
    variants_url: str = Field(
        default="https://health-infobase.canada.ca/src/data/covidLive/covid19-epiSummary-variants.csv"
    )
    http_timeout: float = Field(default=60.0, gt=0)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------
    output_dir: Path = Field(default=Path("./output"))
    figure_format: Literal["pdf", "png", "svg"] = Field(default="pdf")
    # US Letter, landscape
    figure_width: float = Field(default=11.0, gt=0)
    figure_height: float = Field(default=8.5, gt=0)

    # -------------------------------------------------------------------------
    # Analysis defaults
    # -------------------------------------------------------------------------
    default_province: str = Field(default="Newfoundland and Labrador")
    forecast_region: str = Field(default="Canada")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    @field_validator("cases_url", "variants_url", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton: import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
