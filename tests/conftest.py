"""
tests/conftest.py — Shared pytest fixtures for the covidcan test suite.

Provides:
  fixture_path()        — resolves paths to tests/fixtures/
  cases_url / variants_url — dataset URLs the sources are built with in tests
  cases_csv / variants_csv — raw CSV bytes as Health Infobase would serve them
  observations_df       — canonical cases/deaths DataFrame from the fixture
  variants_df           — canonical variant/vaccine DataFrame from the fixture
  mock_http             — configured respx router for faking HTTP responses
  fake_source()         — factory for a source whose run() returns a given frame
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import polars as pl  # noqa: E402
import pytest  # noqa: E402
import respx  # noqa: E402

from covidcan.sources.base import BaseSource  # noqa: E402
from covidcan.sources.infobase import CasesDeathsSource, VariantVaccineSource  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"

CASES_URL = "https://example.test/covid19-download.csv"
VARIANTS_URL = "https://example.test/covid19-epiSummary-variants.csv"


# ---------------------------------------------------------------------------
# Paths and URLs
# ---------------------------------------------------------------------------

@pytest.fixture
def fixture_path() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def cases_url() -> str:
    """URL the cases/deaths source is pointed at; mock it with mock_http."""
    return CASES_URL


@pytest.fixture
def variants_url() -> str:
    return VARIANTS_URL


# ---------------------------------------------------------------------------
# Raw payloads and canonical DataFrames
# ---------------------------------------------------------------------------

@pytest.fixture
def cases_csv() -> bytes:
    return (FIXTURES_DIR / "covid19_download_sample.csv").read_bytes()


@pytest.fixture
def variants_csv() -> bytes:
    return (FIXTURES_DIR / "variants_sample.csv").read_bytes()


@pytest.fixture
def observations_df(cases_csv: bytes, cases_url: str) -> pl.DataFrame:
    """Cases/deaths fixture after CasesDeathsSource.transform()."""
    source = CasesDeathsSource(url=cases_url)
    return source.transform(BaseSource._read_csv(cases_csv))


@pytest.fixture
def variants_df(variants_csv: bytes, variants_url: str) -> pl.DataFrame:
    """Variant/vaccine fixture after VariantVaccineSource.transform()."""
    source = VariantVaccineSource(url=variants_url)
    return source.transform(BaseSource._read_csv(variants_csv))


@pytest.fixture
def fake_source():
    """
    Build a stand-in source whose run() resolves to the given DataFrame.

    Usage in tests:
        source = fake_source(observations_df)
        result = await provincial_summary.run(source=source, ...)
    """
    def factory(df: pl.DataFrame) -> MagicMock:
        source = MagicMock()
        source.run = AsyncMock(return_value=df)
        return source

    return factory


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.get("https://...").mock(return_value=httpx.Response(200, content=b"..."))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# matplotlib
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
