"""
cli.py — Click CLI entrypoint for the analysis pipelines.

Usage:
    covidcan run provincial-summary --metric max_cases --top 5
    covidcan run province-trend --province "Nova Scotia" --format png
    covidcan run variants
    covidcan run case-forecast --region Canada --forecast-days 60
    covidcan run all
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import get_args

import click
import structlog

from covidcan.config import settings
from covidcan.constants import CANADA, METRICS, PROVINCES, PipelineName
from covidcan.modeling.forest import ForestConfig
from covidcan.pipelines import case_forecast, province_trend, provincial_summary, variants
from covidcan.pipelines.result import PipelineResult
from covidcan.sources.infobase import CasesDeathsSource, VariantVaccineSource
from covidcan.utils.logging import configure_logging

log = structlog.get_logger(__name__)

PIPELINES: list[str] = list(get_args(PipelineName))


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
def main(log_level: str) -> None:
    """Canadian COVID-19 provincial analysis."""
    configure_logging(log_level=log_level)


def _echo_result(result: PipelineResult) -> None:
    click.echo(f"  {result.pipeline:20s} {result.status:10s} {result.rows_summarized} rows")
    for path in result.outputs:
        click.echo(f"    -> {path}")
    for key, value in result.metrics.items():
        click.echo(f"    {key}: {value:,.4f}")


@main.command()
@click.argument(
    "pipeline",
    type=click.Choice([*PIPELINES, "all"], case_sensitive=False),
)
@click.option("--metric", type=click.Choice(METRICS), default="max_cases", show_default=True,
              help="Provincial summary metric")
@click.option("--top", type=click.IntRange(min=1), default=None,
              help="Keep only the top N provinces")
@click.option("--province", type=click.Choice(PROVINCES), default=None,
              help="Province for the trend chart")
@click.option("--region", type=click.Choice([CANADA, *PROVINCES]), default=None,
              help="Region for the case forecast")
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory for chart files")
@click.option("--format", "fmt", type=click.Choice(["pdf", "png", "svg"]), default=None,
              help="Chart file format")
@click.option("--forecast-days", type=click.IntRange(min=0), default=30, show_default=True)
@click.option("--n-estimators", type=click.IntRange(min=1), default=100, show_default=True)
def run(
    pipeline: str,
    metric: str,
    top: int | None,
    province: str | None,
    region: str | None,
    output_dir: Path | None,
    fmt: str | None,
    forecast_days: int,
    n_estimators: int,
) -> None:
    """Run a named pipeline or 'all' to run every pipeline in turn."""
    selected = PIPELINES if pipeline.lower() == "all" else [pipeline.lower()]
    click.echo(f"Running: {', '.join(selected)}")

    # One source per dataset: pipelines sharing a source reuse its first download
    cases = CasesDeathsSource()
    variant_rows = VariantVaccineSource()

    for name in selected:
        log.info("pipeline_start", pipeline=name)
        match name:
            case "provincial-summary":
                coro = provincial_summary.run(
                    metric=metric, top=top, output_dir=output_dir, fmt=fmt, source=cases
                )
            case "province-trend":
                coro = province_trend.run(
                    province=province, output_dir=output_dir, fmt=fmt, source=cases
                )
            case "variants":
                coro = variants.run(output_dir=output_dir, fmt=fmt, source=variant_rows)
            case "case-forecast":
                coro = case_forecast.run(
                    region=region,
                    output_dir=output_dir,
                    fmt=fmt,
                    config=ForestConfig(n_estimators=n_estimators, forecast_days=forecast_days),
                    source=cases,
                )
            case _:
                raise click.BadParameter(f"Unknown pipeline: {name}")

        result = asyncio.run(coro)
        _echo_result(result)
        log.info("pipeline_complete", pipeline=name, status=result.status)


if __name__ == "__main__":
    main()
