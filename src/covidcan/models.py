"""
models.py — Pydantic models for the rows flowing through the pipelines.

The pipelines work on polars DataFrames; these models describe one row of
each frame and are used to validate and serialize summaries for logging.

All models provide:
  .from_row(row: dict) -> Model
  .to_dict() -> dict
"""

from __future__ import annotations

import datetime as dt
from typing import Any

import polars as pl
from pydantic import BaseModel, Field


class ObservationRow(BaseModel):
    """One cumulative observation for one region on one date."""

    province_name: str
    date: dt.date
    total_cases: float | None = Field(default=None, ge=0)
    total_deaths: float | None = Field(default=None, ge=0)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ObservationRow":
        return cls(**row)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


class ProvincialSummary(BaseModel):
    """
    One derived metric for one province.

    `date` is only set for the first-occurrence summary.
    """

    province_name: str
    metric: str
    metric_value: float
    date: dt.date | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ProvincialSummary":
        return cls(**row)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def summaries_from_frame(df: pl.DataFrame) -> list[ProvincialSummary]:
    """Validate every row of a summary frame into ProvincialSummary models."""
    return [ProvincialSummary.from_row(row) for row in df.iter_rows(named=True)]
