"""
covidcan.charts — static chart rendering with matplotlib.

    from covidcan.charts import ChartSpec, render, save_figure
"""

from covidcan.charts.render import (
    COLORBLIND_PALETTE,
    ChartSpec,
    RenderError,
    render,
    save_figure,
)

__all__ = ["COLORBLIND_PALETTE", "ChartSpec", "RenderError", "render", "save_figure"]
