"""
transforms/provincial.py — Per-province summaries of the cases/deaths table.

Input frames carry the canonical observation schema produced by
CasesDeathsSource: province_name, date, total_cases, total_deaths.

Summary frames have one row per province with columns
province_name, metric, metric_value (and date for "first_case").

Ordering rule used everywhere: metric_value descending, ties broken by
province_name ascending. Missing values are dropped before any summary.

Usage:
    from covidcan.transforms.provincial import summarize, top_n

    summary = summarize(df, "max_cases")
    top5 = top_n(summary, 5)
"""

from __future__ import annotations

import polars as pl
import structlog

from covidcan.constants import EXCLUDED_REGIONS, Metric

log = structlog.get_logger(__name__)

SUMMARY_SCHEMA: dict[str, type[pl.DataType]] = {
    "province_name": pl.String,
    "metric": pl.String,
    "metric_value": pl.Float64,
}


def exclude_aggregates(df: pl.DataFrame, *, region_col: str = "province_name") -> pl.DataFrame:
    """Drop the national aggregate and the repatriated-travellers pseudo-region."""
    return df.filter(~pl.col(region_col).is_in(list(EXCLUDED_REGIONS)))


def drop_missing(df: pl.DataFrame, columns: list[str]) -> pl.DataFrame:
    """Drop rows with a null (or NaN) value in any of `columns`."""
    float_cols = [c for c in columns if df.schema[c].is_float()]
    if float_cols:
        df = df.with_columns([pl.col(c).fill_nan(None) for c in float_cols])

    n_before = len(df)
    df = df.drop_nulls(subset=columns)
    dropped = n_before - len(df)
    if dropped:
        log.debug("missing_rows_dropped", dropped=dropped, columns=columns)
    return df


def order_by_metric(summary: pl.DataFrame, *, descending: bool = True) -> pl.DataFrame:
    """Sort by metric_value, ties broken by province_name ascending."""
    return summary.sort(
        ["metric_value", "province_name"],
        descending=[descending, False],
    )


def top_n(summary: pl.DataFrame, n: int) -> pl.DataFrame:
    """The `n` provinces with the highest metric_value."""
    if n < 1:
        raise ValueError(f"n must be positive, got {n}")
    return order_by_metric(summary).head(n)


def first_nonzero_by_province(
    df: pl.DataFrame,
    metric: str = "total_cases",
) -> pl.DataFrame:
    """
    The earliest-dated row with `metric` > 0, one per province.

    Rows sharing the earliest date keep their input order, so the first of
    them wins.

    Returns:
        DataFrame[province_name, date, metric, metric_value] ordered by date,
        then province_name.
    """
    df = drop_missing(df, ["province_name", "date", metric])
    return (
        df.filter(pl.col(metric) > 0)
        .sort("date", maintain_order=True)
        .group_by("province_name", maintain_order=True)
        .agg(
            pl.col("date").first(),
            pl.col(metric).first().cast(pl.Float64).alias("metric_value"),
        )
        .with_columns(pl.lit("first_case").alias("metric"))
        .select(["province_name", "date", "metric", "metric_value"])
        .sort(["date", "province_name"])
    )


def max_by_province(df: pl.DataFrame, metric: str) -> pl.DataFrame:
    """
    The maximum observed `metric` per province, ignoring missing entries.

    Returns:
        DataFrame[province_name, metric, metric_value] in order_by_metric order.
    """
    label = {"total_cases": "max_cases", "total_deaths": "max_deaths"}.get(metric, f"max_{metric}")
    df = drop_missing(df, ["province_name", metric])
    summary = (
        df.group_by("province_name")
        .agg(pl.col(metric).max().cast(pl.Float64).alias("metric_value"))
        .with_columns(pl.lit(label).alias("metric"))
        .select(list(SUMMARY_SCHEMA))
    )
    return order_by_metric(summary)


def death_percentage_by_province(df: pl.DataFrame) -> pl.DataFrame:
    """
    Latest cumulative deaths divided by latest cumulative cases, per province.

    Counts are cumulative, so the latest value is the per-province maximum.
    Rows with zero cases are removed first so no ratio has a zero denominator.

    Returns:
        DataFrame[province_name, metric, metric_value] in order_by_metric order.
    """
    df = drop_missing(df, ["province_name", "total_cases", "total_deaths"])
    df = df.filter(pl.col("total_cases") > 0)
    summary = (
        df.group_by("province_name")
        .agg(
            (
                pl.col("total_deaths").max().cast(pl.Float64)
                / pl.col("total_cases").max().cast(pl.Float64)
            ).alias("metric_value")
        )
        .with_columns(pl.lit("death_percentage").alias("metric"))
        .select(list(SUMMARY_SCHEMA))
    )
    return order_by_metric(summary)


def summarize(df: pl.DataFrame, metric: Metric) -> pl.DataFrame:
    """
    Provincial summary for a metric selector, aggregate regions excluded.

    Args:
        df:     Canonical observation frame.
        metric: "first_case" | "max_cases" | "max_deaths" | "death_percentage".
    """
    provinces = exclude_aggregates(df)
    match metric:
        case "first_case":
            summary = first_nonzero_by_province(provinces, "total_cases")
        case "max_cases":
            summary = max_by_province(provinces, "total_cases")
        case "max_deaths":
            summary = max_by_province(provinces, "total_deaths")
        case "death_percentage":
            summary = death_percentage_by_province(provinces)
        case _:
            raise ValueError(f"Unknown metric: {metric!r}")

    log.debug("summary_ready", metric=metric, provinces=len(summary))
    return summary


def province_series(
    df: pl.DataFrame,
    province: str,
    *,
    positive_only: bool = True,
) -> pl.DataFrame:
    """
    One region's cases/deaths time series sorted by date.

    Args:
        df:            Canonical observation frame.
        province:      Region name as published (e.g. "Newfoundland and Labrador").
        positive_only: Keep only rows where both cases and deaths are > 0,
                       as a log scale cannot show zeros.
    """
    series = drop_missing(
        df.filter(pl.col("province_name") == province),
        ["date", "total_cases", "total_deaths"],
    )
    if positive_only:
        series = series.filter((pl.col("total_cases") > 0) & (pl.col("total_deaths") > 0))
    return series.sort("date", maintain_order=True)
