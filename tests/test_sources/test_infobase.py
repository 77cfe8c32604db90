"""
tests/test_sources/test_infobase.py — Unit tests for the Health Infobase sources.

All HTTP is mocked via respx; no real network calls are made.
Fixture CSV files in tests/fixtures/ mirror the published CSV layout.
"""

from __future__ import annotations

from datetime import date

import httpx
import polars as pl
import pytest

from covidcan.sources.base import SchemaError
from covidcan.sources.infobase import CasesDeathsSource, VariantVaccineSource


# ---------------------------------------------------------------------------
# extract() tests
# ---------------------------------------------------------------------------

class TestCasesDeathsExtract:
    @pytest.mark.asyncio
    async def test_extract_returns_dataframe(self, mock_http, cases_url: str, cases_csv: bytes):
        mock_http.get(cases_url).mock(return_value=httpx.Response(200, content=cases_csv))
        df = await CasesDeathsSource(url=cases_url).extract()

        assert isinstance(df, pl.DataFrame)
        assert len(df) == 30
        assert "prname" in df.columns
        assert "prnameFR" in df.columns

    @pytest.mark.asyncio
    async def test_extract_reads_every_column_as_string(self, mock_http, cases_url: str,
                                                        cases_csv: bytes):
        mock_http.get(cases_url).mock(return_value=httpx.Response(200, content=cases_csv))
        df = await CasesDeathsSource(url=cases_url).extract()
        assert all(dtype == pl.String for dtype in df.dtypes)

    @pytest.mark.asyncio
    async def test_extract_strips_byte_order_mark(self, mock_http, cases_url: str,
                                                  cases_csv: bytes):
        mock_http.get(cases_url).mock(
            return_value=httpx.Response(200, content=b"\xef\xbb\xbf" + cases_csv)
        )
        df = await CasesDeathsSource(url=cases_url).extract()
        assert df.columns[0] == "pruid"

    @pytest.mark.asyncio
    async def test_extract_raises_on_http_error(self, mock_http, cases_url: str):
        mock_http.get(cases_url).mock(return_value=httpx.Response(404))
        with pytest.raises(httpx.HTTPStatusError):
            await CasesDeathsSource(url=cases_url).extract()

    @pytest.mark.asyncio
    async def test_extract_does_not_retry(self, mock_http, cases_url: str):
        route = mock_http.get(cases_url).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(httpx.ConnectError):
            await CasesDeathsSource(url=cases_url).extract()
        assert route.call_count == 1


# ---------------------------------------------------------------------------
# transform() tests
# ---------------------------------------------------------------------------

class TestCasesDeathsTransform:
    def test_canonical_columns(self, observations_df: pl.DataFrame):
        assert observations_df.columns == [
            "province_name", "date", "total_cases", "total_deaths",
        ]

    def test_column_types(self, observations_df: pl.DataFrame):
        assert observations_df["date"].dtype == pl.Date
        assert observations_df["total_cases"].dtype == pl.Float64
        assert observations_df["total_deaths"].dtype == pl.Float64

    def test_na_tokens_become_null(self, observations_df: pl.DataFrame):
        nl = observations_df.filter(
            (pl.col("province_name") == "Newfoundland and Labrador")
            & (pl.col("date") == date(2022, 3, 13))
        )
        assert nl["total_cases"][0] is None
        assert nl["total_deaths"][0] == pytest.approx(52.0)

    def test_empty_cells_become_null(self, observations_df: pl.DataFrame):
        on = observations_df.filter(
            (pl.col("province_name") == "Ontario") & (pl.col("date") == date(2022, 3, 13))
        )
        assert on["total_deaths"][0] is None

    def test_aggregate_rows_are_kept_by_the_loader(self, observations_df: pl.DataFrame):
        regions = set(observations_df["province_name"].to_list())
        assert "Canada" in regions
        assert "Repatriated travellers" in regions

    def test_unparseable_values_become_null(self, cases_url: str):
        raw = pl.DataFrame({
            "prname": ["Ontario", "Ontario"],
            "date": ["2021-01-01", "not a date"],
            "totalcases": ["12", "twelve"],
            "numdeaths": ["1", "0"],
        })
        df = CasesDeathsSource(url=cases_url).transform(raw)
        assert df["date"].to_list() == [date(2021, 1, 1), None]
        assert df["total_cases"].to_list() == [12.0, None]

    def test_missing_columns_raise_schema_error(self, cases_url: str):
        raw = pl.DataFrame({"prname": ["Ontario"], "date": ["2021-01-01"], "totalcases": ["1"]})
        with pytest.raises(SchemaError) as exc_info:
            CasesDeathsSource(url=cases_url).transform(raw)
        assert exc_info.value.missing == ["numdeaths"]


# ---------------------------------------------------------------------------
# run() tests
# ---------------------------------------------------------------------------

class TestSourceRun:
    @pytest.mark.asyncio
    async def test_run_returns_transformed_frame(self, mock_http, cases_url: str,
                                                 cases_csv: bytes):
        mock_http.get(cases_url).mock(return_value=httpx.Response(200, content=cases_csv))
        df = await CasesDeathsSource(url=cases_url).run()
        assert "province_name" in df.columns
        assert len(df) == 30

    @pytest.mark.asyncio
    async def test_second_run_reuses_first_download(self, mock_http, cases_url: str,
                                                    cases_csv: bytes):
        route = mock_http.get(cases_url).mock(
            return_value=httpx.Response(200, content=cases_csv)
        )
        source = CasesDeathsSource(url=cases_url)

        first = await source.run()
        second = await source.run()

        assert route.call_count == 1
        assert second.equals(first)

    @pytest.mark.asyncio
    async def test_failed_run_is_not_kept(self, mock_http, cases_url: str, cases_csv: bytes):
        route = mock_http.get(cases_url).mock(
            side_effect=[
                httpx.Response(503),
                httpx.Response(200, content=cases_csv),
            ]
        )
        source = CasesDeathsSource(url=cases_url)

        with pytest.raises(httpx.HTTPStatusError):
            await source.run()
        df = await source.run()

        assert route.call_count == 2
        assert len(df) == 30

    @pytest.mark.asyncio
    async def test_run_reraises_schema_error(self, mock_http, cases_url: str):
        mock_http.get(cases_url).mock(
            return_value=httpx.Response(200, content=b"region,day\nOntario,2021-01-01\n")
        )
        with pytest.raises(SchemaError):
            await CasesDeathsSource(url=cases_url).run()

    @pytest.mark.asyncio
    async def test_get_metadata(self, cases_url: str):
        meta = await CasesDeathsSource(url=cases_url).get_metadata()
        assert meta["source_name"] == "InfobaseCasesDeaths"
        assert meta["url"] == cases_url


class TestVariantVaccineSource:
    @pytest.mark.asyncio
    async def test_run_returns_canonical_frame(self, mock_http, variants_url: str,
                                               variants_csv: bytes):
        mock_http.get(variants_url).mock(
            return_value=httpx.Response(200, content=variants_csv)
        )
        df = await VariantVaccineSource(url=variants_url).run()

        assert df.columns == [
            "variant", "collection_week", "proportion", "vaccine_group", "num_doses",
        ]
        assert df["collection_week"].dtype == pl.Date
        assert df["proportion"].dtype == pl.Float64
        assert len(df) == 10

    def test_missing_columns_raise_schema_error(self, variants_url: str):
        raw = pl.DataFrame({"variant_grouping": ["Alpha"], "proportion": ["0.1"]})
        with pytest.raises(SchemaError) as exc_info:
            VariantVaccineSource(url=variants_url).transform(raw)
        assert "collection_week" in exc_info.value.missing
