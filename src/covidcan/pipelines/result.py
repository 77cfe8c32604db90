"""
pipelines/result.py — Summary of one pipeline run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PipelineResult:
    """What a pipeline read, derived and wrote."""

    pipeline: str
    rows_extracted: int = 0
    rows_summarized: int = 0
    outputs: list[Path] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return bool(self.outputs)

    @property
    def status(self) -> str:
        return "success" if self.success else "no_output"
