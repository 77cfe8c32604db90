"""
tests/test_pipelines/test_case_forecast.py — Unit tests for the case forecast pipeline.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

import polars as pl
import pytest

from covidcan.modeling.forest import ForestConfig
from covidcan.pipelines.case_forecast import build_forecast_spec, build_learning_curve_spec, run


@pytest.fixture
def growth_df() -> pl.DataFrame:
    start = date(2020, 3, 1)
    return pl.DataFrame({
        "province_name": ["Canada"] * 40,
        "date": [start + timedelta(days=d) for d in range(40)],
        "total_cases": [float(50 * d) for d in range(40)],
        "total_deaths": [float(d // 2) for d in range(40)],
    })


def test_chart_specs():
    forecast_spec = build_forecast_spec("Canada", 30)
    assert forecast_spec.y == ["observed", "fitted", "forecast"]
    assert "30-day" in forecast_spec.title
    assert build_learning_curve_spec("Canada").x == "n_estimators"


@pytest.mark.asyncio
async def test_run_writes_fit_and_learning_curve(tmp_path: Path, fake_source,
                                                 growth_df: pl.DataFrame):
    config = ForestConfig(n_estimators=10, tree_counts=(5, 10), forecast_days=7)
    result = await run(
        region="Canada",
        output_dir=tmp_path,
        fmt="png",
        config=config,
        source=fake_source(growth_df),
    )

    assert [p.name for p in result.outputs] == [
        "case_forecast_canada.png",
        "learning_curve_canada.png",
    ]
    assert all(p.exists() for p in result.outputs)
    assert result.rows_summarized == 40
    assert {"r2", "mae", "rmse", "cv_r2_mean", "cv_r2_std"} <= set(result.metrics)


@pytest.mark.asyncio
async def test_unknown_region_fails(tmp_path: Path, fake_source, growth_df: pl.DataFrame):
    with pytest.raises(ValueError, match="observations"):
        await run(region="Atlantis", output_dir=tmp_path, source=fake_source(growth_df))
