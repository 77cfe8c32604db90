"""
sources/infobase.py — Public Health Agency of Canada Health Infobase datasets.

Two CSV files are published under
https://health-infobase.canada.ca/src/data/covidLive/ :

  covid19-download.csv            — cumulative cases and deaths per region per date
  covid19-epiSummary-variants.csv — weekly variant proportions and vaccine doses

Cases/deaths CSV format notes:
  - One row per region per reporting date; regions include every province
    and territory, plus "Canada" (national aggregate) and
    "Repatriated travellers"
  - prname, date (YYYY-MM-DD), totalcases, numdeaths are the columns used here
  - Counts are cumulative; cells may be empty or "NA"

Usage:
    source = CasesDeathsSource()
    df = await source.run()
    # columns: province_name, date, total_cases, total_deaths
"""

from __future__ import annotations

from typing import Any

import polars as pl
import structlog

from covidcan.config import settings
from covidcan.constants import CASES_COLUMNS, VARIANT_COLUMNS
from covidcan.sources.base import BaseSource
from covidcan.transforms.normalize import (
    cast_numeric_cols,
    clean_string_columns,
    drop_all_null_rows,
    normalize_columns,
    parse_date_cols,
)

log = structlog.get_logger(__name__)


class CasesDeathsSource(BaseSource):
    """Cumulative COVID-19 cases and deaths by province and date."""

    name = "InfobaseCasesDeaths"

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        super().__init__(
            url or settings.cases_url,
            timeout if timeout is not None else settings.http_timeout,
        )

    async def extract(self, **kwargs: Any) -> pl.DataFrame:
        raw = await self._download()
        return self._read_csv(raw)

    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        df = normalize_columns(raw)
        self._require_columns(df, list(CASES_COLUMNS))

        df = df.select(list(CASES_COLUMNS)).rename(CASES_COLUMNS)
        df = clean_string_columns(df)
        df = drop_all_null_rows(df)
        df = parse_date_cols(df, ["date"])
        return cast_numeric_cols(df, ["total_cases", "total_deaths"])

    async def get_metadata(self) -> dict[str, Any]:
        return {
            "source_name": self.name,
            "url": self.url,
            "description": "Health Infobase cumulative COVID-19 cases and deaths",
        }


class VariantVaccineSource(BaseSource):
    """Weekly variant proportions and vaccine dose counts."""

    name = "InfobaseVariants"

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        super().__init__(
            url or settings.variants_url,
            timeout if timeout is not None else settings.http_timeout,
        )

    async def extract(self, **kwargs: Any) -> pl.DataFrame:
        raw = await self._download()
        return self._read_csv(raw)

    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        df = normalize_columns(raw)
        self._require_columns(df, list(VARIANT_COLUMNS))

        df = df.select(list(VARIANT_COLUMNS)).rename(VARIANT_COLUMNS)
        df = clean_string_columns(df)
        df = drop_all_null_rows(df)
        df = parse_date_cols(df, ["collection_week"])
        return cast_numeric_cols(df, ["proportion", "num_doses"])

    async def get_metadata(self) -> dict[str, Any]:
        return {
            "source_name": self.name,
            "url": self.url,
            "description": "Health Infobase variant proportions and vaccine doses",
        }
