"""
tests/test_pipelines/test_provincial_summary.py — Unit tests for the provincial summary pipeline.

The source is replaced by a stand-in returning the fixture frame; charts
are written to tmp_path. No network access required.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import polars as pl
import pytest

from covidcan.charts.render import RenderError
from covidcan.pipelines.provincial_summary import build_chart_spec, run
from covidcan.sources.infobase import CasesDeathsSource


class TestBuildChartSpec:
    def test_bar_sorted_by_value(self):
        spec = build_chart_spec("max_cases")
        assert spec.kind == "bar"
        assert spec.sort_descending is True
        assert spec.x == "province_name"
        assert spec.y == ["metric_value"]

    def test_percent_axis_for_death_percentage(self):
        assert build_chart_spec("death_percentage").percent_y is True
        assert build_chart_spec("max_deaths").percent_y is False

    def test_title_mentions_top(self):
        assert build_chart_spec("max_cases", top=5).title.startswith("Top 5 provinces")


class TestRun:
    @pytest.mark.asyncio
    async def test_writes_chart(self, tmp_path: Path, fake_source, observations_df: pl.DataFrame):
        result = await run(
            metric="max_cases",
            output_dir=tmp_path,
            fmt="png",
            source=fake_source(observations_df),
        )
        assert result.status == "success"
        assert result.outputs == [tmp_path / "max_cases.png"]
        assert result.outputs[0].exists()
        assert result.rows_extracted == 30
        assert result.rows_summarized == 4

    @pytest.mark.asyncio
    async def test_top_n(self, tmp_path: Path, fake_source, observations_df: pl.DataFrame):
        result = await run(
            metric="max_deaths",
            top=2,
            output_dir=tmp_path,
            fmt="png",
            source=fake_source(observations_df),
        )
        assert result.rows_summarized == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("metric", ["first_case", "death_percentage"])
    async def test_every_metric_renders(self, tmp_path: Path, fake_source,
                                        observations_df: pl.DataFrame, metric: str):
        result = await run(
            metric=metric, output_dir=tmp_path, fmt="svg", source=fake_source(observations_df)
        )
        assert (tmp_path / f"{metric}.svg").exists()
        assert result.rows_summarized == 4

    @pytest.mark.asyncio
    async def test_only_aggregates_fails_render(self, tmp_path: Path, fake_source,
                                                observations_df: pl.DataFrame):
        canada = observations_df.filter(pl.col("province_name") == "Canada")
        with pytest.raises(RenderError):
            await run(metric="max_cases", output_dir=tmp_path, source=fake_source(canada))

    @pytest.mark.asyncio
    async def test_network_failure_is_fatal(self, tmp_path: Path, mock_http, cases_url: str):
        mock_http.get(cases_url).mock(return_value=httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            await run(output_dir=tmp_path, source=CasesDeathsSource(url=cases_url))
        assert not any(tmp_path.iterdir())
