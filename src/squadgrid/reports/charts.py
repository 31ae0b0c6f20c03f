"""
Chart utilities for analytics reports.

Renders the trailing-12-month revenue buckets as a bar chart with the
completed-transaction count annotated on each bar. Saves PNGs to a destination
path (ensures parent directories exist).
"""

from __future__ import annotations

import os
from typing import List

import matplotlib

# Use a non-interactive backend for headless environments
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from ..ledger.analytics import MonthRevenue  # noqa: E402


def save_revenue_by_month_png(months: List[MonthRevenue], out_path: str, title: str = "Revenue by month") -> str:
    """Render revenue per month and save to `out_path` (PNG).

    Returns the absolute path to the saved file.
    """
    if not months:
        raise ValueError("No monthly buckets provided for charting")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)

    labels = [m.month for m in months]
    revenue = [m.revenue for m in months]

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.set_title(title)
    bars = ax.bar(range(len(labels)), revenue, color="#4f46e5", alpha=0.8)
    for bar, m in zip(bars, months):
        if m.transaction_count:
            ax.annotate(
                str(m.transaction_count),
                (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                ha="center",
                va="bottom",
                fontsize=8,
            )
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=45, ha="right")
    ax.set_ylabel("Revenue (stablecoin units)")
    ax.grid(True, axis="y", linestyle=":", alpha=0.5)

    fig.tight_layout()
    fig.savefig(out_path, dpi=120)
    plt.close(fig)
    return os.path.abspath(out_path)
