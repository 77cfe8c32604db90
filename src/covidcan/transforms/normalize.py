"""
transforms/normalize.py — Stateless cleaning helpers for raw CSV frames.

Sources read every CSV column as a String; these helpers turn the raw frame
into typed columns without raising on bad cells (bad cells become null).

Usage:
    from covidcan.transforms.normalize import (
        cast_numeric_cols,
        clean_string_columns,
        parse_date_cols,
    )

    df = clean_string_columns(df)
    df = parse_date_cols(df, ["date"])
    df = cast_numeric_cols(df, ["total_cases", "total_deaths"])
"""

from __future__ import annotations

import re

import polars as pl
import structlog

from covidcan.constants import DATE_FORMAT

log = structlog.get_logger(__name__)


def to_snake_case(name: str) -> str:
    """Convert 'prnameFR' or 'Collection Week' to 'prname_fr' / 'collection_week'."""
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name.strip())
    s = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s)
    return s.lower().replace(" ", "_").replace("-", "_")


def normalize_columns(df: pl.DataFrame) -> pl.DataFrame:
    """Rename all columns to snake_case."""
    return df.rename({col: to_snake_case(col) for col in df.columns})


def clean_string_columns(df: pl.DataFrame) -> pl.DataFrame:
    """Strip whitespace from all String columns."""
    return df.with_columns(
        [
            pl.col(c).str.strip_chars()
            for c in df.columns
            if df[c].dtype == pl.String
        ]
    )


def drop_all_null_rows(df: pl.DataFrame) -> pl.DataFrame:
    """Drop rows where every column is null."""
    if df.width == 0:
        return df
    return df.filter(
        pl.any_horizontal([pl.col(c).is_not_null() for c in df.columns])
    )


def cast_numeric_cols(
    df: pl.DataFrame,
    columns: list[str],
    dtype: type[pl.DataType] = pl.Float64,
) -> pl.DataFrame:
    """Cast specified columns to a numeric dtype, coercing errors to null."""
    return df.with_columns(
        [pl.col(c).cast(dtype, strict=False) for c in columns if c in df.columns]
    )


def parse_date_cols(
    df: pl.DataFrame,
    columns: list[str],
    fmt: str = DATE_FORMAT,
) -> pl.DataFrame:
    """Parse String columns into Date, coercing unparseable values to null."""
    exprs = []
    for c in columns:
        if c not in df.columns:
            continue
        if df[c].dtype == pl.Date:
            continue
        exprs.append(pl.col(c).cast(pl.String).str.to_date(fmt, strict=False).alias(c))
    if not exprs:
        return df

    result = df.with_columns(exprs)
    for c in columns:
        if c in df.columns:
            coerced = result[c].null_count() - df[c].null_count()
            if coerced:
                log.debug("unparsed_dates", column=c, count=coerced)
    return result
