"""
transforms/variants.py — Reshaping of the variant/vaccine table.

Input frames carry the canonical schema produced by VariantVaccineSource:
variant, collection_week, proportion, vaccine_group, num_doses.
"""

from __future__ import annotations

import polars as pl
import structlog

from covidcan.transforms.provincial import drop_missing

log = structlog.get_logger(__name__)


def proportions_by_variant(df: pl.DataFrame) -> pl.DataFrame:
    """Weekly proportion rows per variant, sorted by variant then week."""
    return (
        drop_missing(df, ["variant", "collection_week", "proportion"])
        .select(["variant", "collection_week", "proportion"])
        .sort(["variant", "collection_week"], maintain_order=True)
    )


def dominant_variant_by_week(df: pl.DataFrame) -> pl.DataFrame:
    """
    The variant with the highest proportion in each collection week.

    Equal proportions within a week resolve to the alphabetically first variant.

    Returns:
        DataFrame[collection_week, variant, proportion] sorted by week.
    """
    rows = proportions_by_variant(df)
    # Sum first: one variant can be reported on several lineage rows per week
    weekly = rows.group_by(["collection_week", "variant"]).agg(pl.col("proportion").sum())
    return (
        weekly.sort(
            ["collection_week", "proportion", "variant"],
            descending=[False, True, False],
        )
        .group_by("collection_week", maintain_order=True)
        .first()
        .select(["collection_week", "variant", "proportion"])
    )


def doses_by_vaccine_group(df: pl.DataFrame) -> pl.DataFrame:
    """
    Cumulative doses administered per vaccine group.

    Dose counts are cumulative, so the per-group maximum is the latest total.

    Returns:
        DataFrame[vaccine_group, num_doses] ordered by num_doses descending,
        ties by vaccine_group ascending.
    """
    return (
        drop_missing(df, ["vaccine_group", "num_doses"])
        .group_by("vaccine_group")
        .agg(pl.col("num_doses").max().cast(pl.Float64))
        .sort(["num_doses", "vaccine_group"], descending=[True, False])
    )
