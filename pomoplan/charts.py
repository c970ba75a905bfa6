"""Matplotlib chart of the weekly pomodoro count.

The figure uses a dark theme consistent with the terminal palette.
"""

from __future__ import annotations

import io

import matplotlib
matplotlib.use("Agg")  # non-interactive backend -- render to image buffers
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from matplotlib.ticker import MaxNLocator
from PIL import Image

from pomoplan.models import StatsSummary

# -- Palette ---------------------------------------------------------------
_BG = "#2b2b2b"
_FG = "#e0e0e0"
_BAR = "#f43f5e"
_TODAY = "#fb7185"
_GRID = "#444444"


def _fig_to_pil(fig: Figure, dpi: int = 100) -> Image.Image:
    """Render a matplotlib Figure to a PIL Image and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight",
                facecolor=fig.get_facecolor(), edgecolor="none")
    plt.close(fig)
    buf.seek(0)
    return Image.open(buf)


def weekly_chart(
    summary: StatsSummary,
    *,
    title: str = "Pomodoros this week",
    size: tuple[int, int] = (540, 320),
    dpi: int = 100,
) -> Image.Image:
    """Draw one bar per day of ``summary.weekly`` and return a PIL Image.

    The last bar (today) is highlighted. An empty week still renders, with
    the y axis pinned to at least 1.
    """
    labels = [d.label for d in summary.weekly]
    counts = np.array([d.count for d in summary.weekly], dtype=float)
    x = np.arange(len(labels))

    fig, ax = plt.subplots(figsize=(size[0] / dpi, size[1] / dpi), dpi=dpi)
    fig.patch.set_facecolor(_BG)
    ax.set_facecolor(_BG)

    colours = [_BAR] * len(labels)
    if colours:
        colours[-1] = _TODAY
    ax.bar(x, counts, color=colours, width=0.6)

    ax.set_xticks(x)
    ax.set_xticklabels(labels, color=_FG)
    ax.set_ylim(0, max(float(counts.max()) if counts.size else 0.0, 1.0) * 1.15)
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.tick_params(colors=_FG)
    ax.grid(axis="y", color=_GRID, linewidth=0.5)
    ax.set_axisbelow(True)
    for spine in ax.spines.values():
        spine.set_color(_GRID)
    ax.set_title(title, color=_FG, fontsize=12, pad=10)

    return _fig_to_pil(fig, dpi=dpi)


def save_weekly_chart(summary: StatsSummary, path: str) -> None:
    weekly_chart(summary).save(path, format="PNG")
