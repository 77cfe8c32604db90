"""
sources/base.py — Abstract base class for the dataset loaders.

Each concrete source must implement:
  extract()      — fetch raw data, return polars DataFrame
  transform()    — validate and type the raw DataFrame into the canonical schema
  get_metadata() — return dict with source info for logging

The run() method orchestrates extract → transform → return and handles
timing/logging automatically. Pipelines call run() rather than the
individual methods.

There is no retry: a failed download or a schema mismatch is fatal to the run.
"""

from __future__ import annotations

import io
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import polars as pl
import structlog

from covidcan.constants import NA_VALUES


class SchemaError(ValueError):
    """Raised when a downloaded table lacks columns the pipeline depends on."""

    def __init__(self, source: str, missing: list[str]) -> None:
        self.source = source
        self.missing = missing
        super().__init__(f"{source}: missing expected columns {missing}")


class BaseSource(ABC):
    """Abstract base for covidcan data source adapters."""

    # Override in subclass; used for logging
    name: str = "unknown"

    def __init__(self, url: str, timeout: float) -> None:
        self.url = url
        self._timeout = timeout
        self._log = structlog.get_logger(__name__).bind(source_name=self.name)
        self._frame: pl.DataFrame | None = None

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def extract(self, **kwargs: Any) -> pl.DataFrame:
        """
        Fetch raw data from the external source.

        Returns:
            Raw polars DataFrame, every column a String.
        """
        ...

    @abstractmethod
    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        """
        Validate and type a raw DataFrame into the canonical schema.

        Implementations should:
        - Rename columns to snake_case
        - Raise SchemaError when expected columns are missing
        - Parse dates and cast metrics, coercing bad cells to null
        - Return only the canonical columns

        Args:
            raw: DataFrame returned by extract().
        """
        ...

    @abstractmethod
    async def get_metadata(self) -> dict[str, Any]:
        """Return source-level metadata (source_name, url, description)."""
        ...

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    async def run(self, **kwargs: Any) -> pl.DataFrame:
        """
        Extract + transform in sequence with timing and structured logging.

        Args:
            **kwargs: Forwarded to extract().

        The first successful run without kwargs is kept; later calls with
        no kwargs return it instead of downloading again.

        Returns:
            Transformed polars DataFrame.

        Raises:
            Any exception from extract() or transform() after logging it.
        """
        if self._frame is not None and not kwargs:
            self._log.info("source_run_reused", url=self.url, rows=len(self._frame))
            return self._frame

        run_log = self._log.bind(**{k: str(v) for k, v in kwargs.items()})
        run_log.info("source_run_start", url=self.url)

        t0 = time.monotonic()
        try:
            raw = await self.extract(**kwargs)
            run_log.info(
                "extract_complete",
                raw_rows=len(raw),
                raw_cols=raw.width,
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

            t1 = time.monotonic()
            result = self.transform(raw)
            run_log.info(
                "transform_complete",
                result_rows=len(result),
                result_cols=result.width,
                duration_ms=int((time.monotonic() - t1) * 1000),
            )
            if not kwargs:
                self._frame = result
            return result

        except Exception as exc:
            run_log.error(
                "source_run_failed",
                error=str(exc),
                duration_ms=int((time.monotonic() - t0) * 1000),
                exc_info=True,
            )
            raise

    # ------------------------------------------------------------------
    # Shared helpers available to all subclasses
    # ------------------------------------------------------------------

    async def _download(self) -> bytes:
        """Download the raw CSV body; non-2xx responses raise httpx.HTTPStatusError."""
        self._log.info("resource_download", url=self.url)
        async with httpx.AsyncClient(
            timeout=self._timeout, follow_redirects=True
        ) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            return response.content

    @staticmethod
    def _read_csv(raw: bytes) -> pl.DataFrame:
        """Parse CSV bytes with every column as String and NA tokens as null."""
        # utf-8-sig strips the BOM Health Infobase files carry
        text = raw.decode("utf-8-sig", errors="replace")
        return pl.read_csv(
            io.StringIO(text),
            infer_schema_length=0,
            null_values=NA_VALUES,
            truncate_ragged_lines=True,
        )

    def _require_columns(self, df: pl.DataFrame, expected: list[str]) -> None:
        missing = [c for c in expected if c not in df.columns]
        if missing:
            raise SchemaError(self.name, missing)
