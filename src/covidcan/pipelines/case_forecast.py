"""
pipelines/case_forecast.py — Random-forest fit and forecast of cumulative cases.

Orchestrates:
  1. CasesDeathsSource → canonical observation rows
  2. elapsed_days_frame() → one region (default "Canada"), days since first row
  3. fit_and_evaluate() → holdout R²/MAE/RMSE, K-fold CV R², refit on all rows
  4. Fitted + forecast line chart → {output_dir}/case_forecast_{slug}.{fmt}
  5. learning_curve_over_trees() → {output_dir}/learning_curve_{slug}.{fmt}

Usage:
    from covidcan.pipelines.case_forecast import run
    result = await run(region="Ontario", config=ForestConfig(forecast_days=60))
    print(result.metrics["r2"])
"""

from __future__ import annotations

import time
from pathlib import Path

from covidcan.charts.render import ChartSpec, render, save_figure
from covidcan.config import settings
from covidcan.constants import FigureFormat
from covidcan.modeling.forest import (
    ForestConfig,
    elapsed_days_frame,
    fit_and_evaluate,
    fitted_and_forecast_frame,
    learning_curve_over_trees,
    to_features,
)
from covidcan.pipelines.province_trend import slugify
from covidcan.pipelines.result import PipelineResult
from covidcan.sources.infobase import CasesDeathsSource
from covidcan.utils.logging import configure_logging, get_logger


def build_forecast_spec(region: str, days: int) -> ChartSpec:
    return ChartSpec(
        kind="line",
        x="date",
        y=["observed", "fitted", "forecast"],
        title=f"Random forest fit and {days}-day forecast of COVID-19 cases: {region}",
        x_label="Date",
        y_label="Total cases",
        series_labels={
            "observed": "Observed",
            "fitted": "Fitted",
            "forecast": "Forecast",
        },
        legend_title="Series",
    )


def build_learning_curve_spec(region: str) -> ChartSpec:
    return ChartSpec(
        kind="line",
        x="n_estimators",
        y=["train_r2", "test_r2"],
        title=f"Random forest learning curve over tree count: {region}",
        x_label="Number of trees",
        y_label="R²",
        series_labels={"train_r2": "Training", "test_r2": "Holdout"},
        legend_title="Split",
    )


async def run(
    *,
    region: str | None = None,
    output_dir: Path | None = None,
    fmt: FigureFormat | None = None,
    config: ForestConfig | None = None,
    source: CasesDeathsSource | None = None,
) -> PipelineResult:
    """
    Run the case forecast pipeline end-to-end.

    Args:
        region:     Region name as published (default settings.forecast_region).
        output_dir: Directory for the charts (default settings.output_dir).
        fmt:        Image format (default settings.figure_format).
        config:     Forest hyper-parameters and evaluation settings.
        source:     Override the cases/deaths source (tests).

    Returns:
        PipelineResult with both chart paths and the evaluation metrics.
    """
    configure_logging()
    t0 = time.monotonic()
    cfg = config or ForestConfig()
    region = region or settings.forecast_region
    run_log = get_logger(
        __name__, pipeline="case_forecast", region=region, n_estimators=cfg.n_estimators
    )
    run_log.info("case_forecast_start")

    source = source or CasesDeathsSource()
    observations = await source.run()

    frame = elapsed_days_frame(observations, region)
    X, y = to_features(frame)
    report = fit_and_evaluate(X, y, cfg)

    ext = fmt or settings.figure_format
    out_dir = Path(output_dir or settings.output_dir)
    slug = slugify(region)

    forecast_spec = build_forecast_spec(region, cfg.forecast_days)
    curve_spec = build_learning_curve_spec(region)
    outputs = [
        save_figure(
            render(fitted_and_forecast_frame(frame, report, cfg.forecast_days), forecast_spec),
            out_dir / f"case_forecast_{slug}.{ext}",
            forecast_spec,
        ),
        save_figure(
            render(learning_curve_over_trees(X, y, cfg), curve_spec),
            out_dir / f"learning_curve_{slug}.{ext}",
            curve_spec,
        ),
    ]

    result = PipelineResult(
        pipeline="case_forecast",
        rows_extracted=len(observations),
        rows_summarized=len(frame),
        outputs=outputs,
        metrics=report.metrics(),
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    run_log.info("case_forecast_complete", **result.metrics)
    return result
