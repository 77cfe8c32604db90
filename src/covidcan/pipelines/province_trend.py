"""
pipelines/province_trend.py — Cumulative cases and deaths over time for one province.

Orchestrates:
  1. CasesDeathsSource → canonical observation rows
  2. province_series() → one province, both counts strictly positive
  3. Log-scale line chart with yearly ticks, US Letter landscape page
     → {output_dir}/province_trend_{slug}.{fmt}

Usage:
    from covidcan.pipelines.province_trend import run
    result = await run(province="Newfoundland and Labrador")
"""

from __future__ import annotations

import re
import time
from pathlib import Path

from covidcan.charts.render import ChartSpec, render, save_figure
from covidcan.config import settings
from covidcan.constants import FigureFormat
from covidcan.models import ObservationRow
from covidcan.pipelines.result import PipelineResult
from covidcan.sources.infobase import CasesDeathsSource
from covidcan.transforms.provincial import province_series
from covidcan.utils.logging import configure_logging, get_logger


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def build_chart_spec(province: str) -> ChartSpec:
    return ChartSpec(
        kind="line",
        x="date",
        y=["total_cases", "total_deaths"],
        title=f"Total COVID-19 Cases and Deaths: {province}",
        x_label="Year",
        y_label="Total (Log. Scale)",
        series_labels={"total_cases": "Total cases", "total_deaths": "Total deaths"},
        legend_title="Legend",
        log_y=True,
        year_ticks=True,
    )


async def run(
    *,
    province: str | None = None,
    output_dir: Path | None = None,
    fmt: FigureFormat | None = None,
    source: CasesDeathsSource | None = None,
) -> PipelineResult:
    """
    Run the province trend pipeline end-to-end.

    Args:
        province:   Region name as published (default settings.default_province).
        output_dir: Directory for the chart (default settings.output_dir).
        fmt:        Image format (default settings.figure_format).
        source:     Override the cases/deaths source (tests).

    Returns:
        PipelineResult with the chart path and the latest counts as metrics.
    """
    configure_logging()
    t0 = time.monotonic()
    province = province or settings.default_province
    run_log = get_logger(__name__, pipeline="province_trend", province=province)
    run_log.info("province_trend_start")

    source = source or CasesDeathsSource()
    observations = await source.run()

    series = province_series(observations, province)
    run_log.info("series_ready", rows=len(series))

    spec = build_chart_spec(province)
    out_dir = Path(output_dir or settings.output_dir)
    path = save_figure(
        render(series, spec),
        out_dir / f"province_trend_{slugify(province)}.{fmt or settings.figure_format}",
        spec,
    )
    latest = ObservationRow.from_row(
        series.select(["province_name", "date", "total_cases", "total_deaths"]).row(-1, named=True)
    )

    result = PipelineResult(
        pipeline="province_trend",
        rows_extracted=len(observations),
        rows_summarized=len(series),
        outputs=[path],
        metrics={
            "latest_cases": latest.total_cases,
            "latest_deaths": latest.total_deaths,
        },
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    run_log.info("province_trend_complete", path=str(path), **result.metrics)
    return result
