"""
pipelines/provincial_summary.py — Provincial summary bar charts.

Orchestrates:
  1. CasesDeathsSource → canonical observation rows
  2. summarize() → one row per province (aggregate regions excluded)
  3. Optional top-N cut (e.g. the five provinces with the most cases)
  4. Bar chart ordered by metric value → {output_dir}/{metric}.{fmt}

Metrics:
  first_case        — cases on the earliest date with a non-zero count
  max_cases         — highest cumulative case count
  max_deaths        — highest cumulative death count
  death_percentage  — latest deaths / latest cases

Usage:
    from covidcan.pipelines.provincial_summary import run
    result = await run(metric="max_cases", top=5)
"""

from __future__ import annotations

import time
from pathlib import Path

from covidcan.charts.render import ChartSpec, render, save_figure
from covidcan.config import settings
from covidcan.constants import METRIC_LABELS, FigureFormat, Metric
from covidcan.models import summaries_from_frame
from covidcan.pipelines.result import PipelineResult
from covidcan.sources.infobase import CasesDeathsSource
from covidcan.transforms.provincial import summarize, top_n
from covidcan.utils.logging import configure_logging, get_logger


def build_chart_spec(metric: Metric, top: int | None = None) -> ChartSpec:
    label = METRIC_LABELS[metric]
    title = f"COVID-19 {label.lower()} by province"
    if top:
        title = f"Top {top} provinces: COVID-19 {label.lower()}"
    return ChartSpec(
        kind="bar",
        x="province_name",
        y="metric_value",
        title=title,
        x_label="Province",
        y_label=label,
        sort_descending=True,
        percent_y=metric == "death_percentage",
    )


async def run(
    *,
    metric: Metric = "max_cases",
    top: int | None = None,
    output_dir: Path | None = None,
    fmt: FigureFormat | None = None,
    source: CasesDeathsSource | None = None,
) -> PipelineResult:
    """
    Run the provincial summary pipeline end-to-end.

    Args:
        metric:     Summary metric selector.
        top:        Keep only the `top` provinces by metric value (None = all).
        output_dir: Directory for the chart (default settings.output_dir).
        fmt:        Image format (default settings.figure_format).
        source:     Override the cases/deaths source (tests).

    Returns:
        PipelineResult with the chart path.
    """
    configure_logging()
    t0 = time.monotonic()
    run_log = get_logger(__name__, pipeline="provincial_summary", metric=metric, top=top)
    run_log.info("provincial_summary_start")

    source = source or CasesDeathsSource()
    observations = await source.run()

    summary = summarize(observations, metric)
    if top:
        summary = top_n(summary, top)

    for row in summaries_from_frame(summary):
        run_log.info("province_summary", **row.to_dict())

    spec = build_chart_spec(metric, top)
    out_dir = Path(output_dir or settings.output_dir)
    path = save_figure(
        render(summary, spec),
        out_dir / f"{metric}.{fmt or settings.figure_format}",
        spec,
    )

    result = PipelineResult(
        pipeline="provincial_summary",
        rows_extracted=len(observations),
        rows_summarized=len(summary),
        outputs=[path],
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    run_log.info("provincial_summary_complete", rows=result.rows_summarized, path=str(path))
    return result
