"""
pipelines/variants.py — Variant proportions and vaccine dose charts.

Orchestrates:
  1. VariantVaccineSource → canonical variant/vaccine rows
  2. proportions_by_variant() → boxplot of weekly proportion per variant
     → {output_dir}/variant_proportions.{fmt}
  3. doses_by_vaccine_group() → bar chart of cumulative doses per group
     → {output_dir}/vaccine_doses.{fmt}
  4. dominant_variant_by_week() → logged, latest week reported in metrics

Usage:
    from covidcan.pipelines.variants import run
    result = await run()
"""

from __future__ import annotations

import time
from pathlib import Path

from covidcan.charts.render import ChartSpec, render, save_figure
from covidcan.config import settings
from covidcan.constants import FigureFormat
from covidcan.pipelines.result import PipelineResult
from covidcan.sources.infobase import VariantVaccineSource
from covidcan.transforms.variants import (
    doses_by_vaccine_group,
    dominant_variant_by_week,
    proportions_by_variant,
)
from covidcan.utils.logging import configure_logging, get_logger

PROPORTION_SPEC = ChartSpec(
    kind="box",
    x="variant",
    y="proportion",
    title="Weekly share of sequenced samples by COVID-19 variant",
    x_label="Variant",
    y_label="Weekly proportion",
    sort_descending=True,
)

DOSES_SPEC = ChartSpec(
    kind="bar",
    x="vaccine_group",
    y="num_doses",
    title="COVID-19 vaccine doses administered by vaccine group",
    x_label="Vaccine group",
    y_label="Doses administered",
    sort_descending=True,
)


async def run(
    *,
    output_dir: Path | None = None,
    fmt: FigureFormat | None = None,
    source: VariantVaccineSource | None = None,
) -> PipelineResult:
    """
    Run the variants pipeline end-to-end.

    Args:
        output_dir: Directory for the charts (default settings.output_dir).
        fmt:        Image format (default settings.figure_format).
        source:     Override the variant/vaccine source (tests).
    """
    configure_logging()
    t0 = time.monotonic()
    run_log = get_logger(__name__, pipeline="variants")
    run_log.info("variants_start")

    source = source or VariantVaccineSource()
    rows = await source.run()
    ext = fmt or settings.figure_format
    out_dir = Path(output_dir or settings.output_dir)

    proportions = proportions_by_variant(rows)
    doses = doses_by_vaccine_group(rows)
    dominant = dominant_variant_by_week(rows)
    for row in dominant.tail(4).iter_rows(named=True):
        run_log.info("dominant_variant", week=str(row["collection_week"]), variant=row["variant"])

    outputs = [
        save_figure(
            render(proportions, PROPORTION_SPEC),
            out_dir / f"variant_proportions.{ext}",
            PROPORTION_SPEC,
        ),
        save_figure(
            render(doses, DOSES_SPEC),
            out_dir / f"vaccine_doses.{ext}",
            DOSES_SPEC,
        ),
    ]

    metrics: dict[str, float] = {"variants": float(proportions["variant"].n_unique())}
    if not dominant.is_empty():
        metrics["latest_dominant_proportion"] = float(dominant["proportion"][-1])

    result = PipelineResult(
        pipeline="variants",
        rows_extracted=len(rows),
        rows_summarized=len(proportions) + len(doses),
        outputs=outputs,
        metrics=metrics,
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    run_log.info("variants_complete", outputs=[str(p) for p in outputs])
    return result
