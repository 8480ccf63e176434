"""Balance trajectory charts for projected instruments."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.figure import Figure

from .loans import LoanProjectionModel
from .statements import CardCycleProjection


def build_trajectory_chart(
    card_projections: Sequence[CardCycleProjection],
    loan_models: Sequence[LoanProjectionModel] = (),
    *,
    months: int = 12,
) -> Figure:
    """Plot each instrument's projected ending balance month by month.

    Cards are drawn solid, loans dashed; the loan series is cut to ``months``
    so both share the same horizon.
    """

    fig, ax = plt.subplots(figsize=(10, 6))
    series = 0

    for projection in card_projections:
        rows = projection.rows[:months]
        if not rows:
            continue
        x_vals = [row.month_index for row in rows]
        ax.plot(x_vals, [row.ending_balance for row in rows], marker="o", linewidth=2, markersize=4,
                label=projection.card.name)
        series += 1

    for model in loan_models:
        rows = model.rows[:months]
        if not rows:
            continue
        x_vals = [row.month_index for row in rows]
        ax.plot(x_vals, [row.ending_outstanding for row in rows], linestyle="--", linewidth=2,
                label=model.name)
        series += 1

    if series:
        ax.grid(True, linestyle="--", alpha=0.3)
        ax.set_axisbelow(True)
        ax.set_title("Projected Balances", fontsize=14, fontweight="bold", pad=15)
        ax.set_ylabel("Ending Balance ($)", fontsize=11)
        ax.set_xlabel("Month", fontsize=11)
        ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, p: f"${x:,.0f}"))
        ax.legend(loc="upper right", fontsize=9, framealpha=0.9)
    else:
        ax.text(0.5, 0.5, "No projected balances", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")

    fig.tight_layout()
    return fig


def render_chart(figure: Figure, *, output_path: Path) -> Path:
    """Save ``figure`` as a PNG and release it."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    figure.savefig(output_path, bbox_inches="tight", dpi=100)
    plt.close(figure)
    return output_path
