"""
charts/render.py — matplotlib rendering of summary and time-series frames.

A ChartSpec maps DataFrame columns onto a chart: which column is the x
axis, which columns are plotted as values, ordering, palette and labels.
render() validates the frame against the spec before drawing anything;
a missing column, a non-numeric value column or an empty frame raises
RenderError.

Numeric axes are labelled in plain notation (never 1e+05).

Usage:
    from covidcan.charts.render import ChartSpec, render, save_figure

    spec = ChartSpec(kind="bar", x="province_name", y="metric_value",
                     title="Total cases", sort_descending=True)
    fig = render(summary_df, spec)
    save_figure(fig, "output/max_cases.pdf", spec)
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import polars as pl
import structlog
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter, NullFormatter, PercentFormatter
from pydantic import BaseModel, Field, field_validator

from covidcan.config import settings
from covidcan.constants import ChartKind

log = structlog.get_logger(__name__)

# Okabe-Ito colour-blind-safe palette
COLORBLIND_PALETTE: list[str] = [
    "#000000",
    "#E69F00",
    "#56B4E9",
    "#009E73",
    "#F0E442",
    "#0072B2",
    "#D55E00",
    "#CC79A7",
]


class RenderError(ValueError):
    """Raised when a frame cannot be drawn with the given ChartSpec."""


class ChartSpec(BaseModel):
    """Column-to-chart mapping plus labels for one figure."""

    kind: ChartKind
    x: str
    y: list[str]
    title: str = ""
    x_label: str | None = None
    y_label: str | None = None
    series_labels: dict[str, str] = Field(default_factory=dict)
    legend_title: str | None = None
    # None keeps the input row order
    sort_descending: bool | None = None
    palette: list[str] = Field(default_factory=lambda: list(COLORBLIND_PALETTE), min_length=1)
    log_y: bool = False
    percent_y: bool = False
    year_ticks: bool = False
    width: float = Field(default_factory=lambda: settings.figure_width, gt=0)
    height: float = Field(default_factory=lambda: settings.figure_height, gt=0)

    @field_validator("y", mode="before")
    @classmethod
    def wrap_single_column(cls, v: str | list[str]) -> list[str]:
        return [v] if isinstance(v, str) else v

    def label_for(self, column: str) -> str:
        return self.series_labels.get(column, column)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate(df: pl.DataFrame, spec: ChartSpec) -> None:
    if not spec.y:
        raise RenderError("ChartSpec needs at least one value column")
    if spec.kind in ("bar", "box") and len(spec.y) != 1:
        raise RenderError(f"{spec.kind} charts take exactly one value column, got {spec.y}")

    missing = [c for c in [spec.x, *spec.y] if c not in df.columns]
    if missing:
        raise RenderError(f"Columns not in frame: {missing}")
    if df.is_empty():
        raise RenderError(f"No rows to render for {spec.title or spec.kind!r}")

    for c in spec.y:
        dtype = df.schema[c]
        if not dtype.is_numeric():
            raise RenderError(f"Value column {c!r} is not numeric (dtype {dtype})")
        # Gaps are allowed in line charts only
        if spec.kind != "line" and df[c].null_count():
            raise RenderError(f"Value column {c!r} has {df[c].null_count()} missing values")


# ---------------------------------------------------------------------------
# Axis helpers
# ---------------------------------------------------------------------------


def _plain_number(value: float, _pos: int | None = None) -> str:
    if value == 0 or abs(value) >= 1:
        return f"{value:,.0f}"
    return f"{value:g}"


def _format_y_axis(ax: plt.Axes, spec: ChartSpec) -> None:
    if spec.log_y:
        ax.set_yscale("log")
        ax.yaxis.set_minor_formatter(NullFormatter())
    if spec.percent_y:
        ax.yaxis.set_major_formatter(PercentFormatter(xmax=1.0))
    else:
        ax.yaxis.set_major_formatter(FuncFormatter(_plain_number))


def _new_figure(spec: ChartSpec) -> tuple[Figure, plt.Axes]:
    fig, ax = plt.subplots(figsize=(spec.width, spec.height), layout="constrained")
    ax.set_title(spec.title)
    ax.set_xlabel(spec.x_label if spec.x_label is not None else spec.x)
    ax.set_ylabel(spec.y_label if spec.y_label is not None else spec.label_for(spec.y[0]))
    return fig, ax


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------


def render_bar(df: pl.DataFrame, spec: ChartSpec) -> Figure:
    """One bar per row: categories from spec.x, heights from spec.y[0]."""
    _validate(df, spec)
    value_col = spec.y[0]
    if spec.sort_descending is not None:
        df = df.sort([value_col, spec.x], descending=[spec.sort_descending, False])

    labels = df[spec.x].cast(pl.String).to_list()
    values = df[value_col].cast(pl.Float64).to_list()
    colors = [spec.palette[i % len(spec.palette)] for i in range(len(labels))]

    fig, ax = _new_figure(spec)
    ax.bar(range(len(labels)), values, color=colors)
    ax.set_xticks(range(len(labels)), labels=labels, rotation=45, ha="right")
    _format_y_axis(ax, spec)
    return fig


def render_line(df: pl.DataFrame, spec: ChartSpec) -> Figure:
    """One line per value column against spec.x; nulls leave gaps."""
    _validate(df, spec)
    df = df.sort(spec.x, maintain_order=True)

    if df.schema[spec.x].is_temporal():
        xs = df[spec.x].to_list()
    else:
        xs = df[spec.x].cast(pl.Float64).to_numpy()

    fig, ax = _new_figure(spec)
    for i, col in enumerate(spec.y):
        ax.plot(
            xs,
            df[col].cast(pl.Float64).to_numpy(),
            color=spec.palette[i % len(spec.palette)],
            linewidth=1.5,
            label=spec.label_for(col),
        )

    if spec.year_ticks:
        ax.xaxis.set_major_locator(mdates.YearLocator())
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y"))
    _format_y_axis(ax, spec)
    ax.legend(title=spec.legend_title)
    return fig


def render_box(df: pl.DataFrame, spec: ChartSpec) -> Figure:
    """Distribution of spec.y[0] per category in spec.x."""
    _validate(df, spec)
    value_col = spec.y[0]

    groups = (
        df.group_by(spec.x, maintain_order=True)
        .agg(pl.col(value_col).cast(pl.Float64), pl.col(value_col).median().alias("_median"))
    )
    if spec.sort_descending is not None:
        groups = groups.sort(["_median", spec.x], descending=[spec.sort_descending, False])

    labels = groups[spec.x].cast(pl.String).to_list()
    data = groups[value_col].to_list()

    fig, ax = _new_figure(spec)
    boxes = ax.boxplot(data, patch_artist=True)
    for i, patch in enumerate(boxes["boxes"]):
        patch.set_facecolor(spec.palette[i % len(spec.palette)])
    ax.set_xticks(range(1, len(labels) + 1), labels=labels, rotation=45, ha="right")
    _format_y_axis(ax, spec)
    return fig


def render(df: pl.DataFrame, spec: ChartSpec) -> Figure:
    """Draw `df` according to `spec`. Raises RenderError on malformed input."""
    match spec.kind:
        case "bar":
            return render_bar(df, spec)
        case "line":
            return render_line(df, spec)
        case "box":
            return render_box(df, spec)
        case _:
            raise RenderError(f"Unknown chart kind: {spec.kind!r}")


def save_figure(fig: Figure, path: str | Path, spec: ChartSpec | None = None) -> Path:
    """
    Write `fig` to `path` and close it.

    The image format follows the file suffix (pdf, png, svg); the page size
    is the spec's width x height in inches (default 11 x 8.5, landscape).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if spec is not None:
        fig.set_size_inches(spec.width, spec.height)

    fmt = path.suffix.lstrip(".") or settings.figure_format
    try:
        fig.savefig(path, format=fmt)
    finally:
        plt.close(fig)
    log.info("chart_saved", path=str(path), format=fmt)
    return path
