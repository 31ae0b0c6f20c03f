"""
Generate a simple HTML analytics report with a revenue-by-month chart.

Usage (venv):
  PYTHONPATH=src python -m squadgrid.reports.generate

Writes `index.html` and `images/revenue_by_month.png` under REPORT_DIR
(default `reports`). Without a store argument the demo records are used.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from squadgrid.config.loader import load_settings
from squadgrid.ledger import LedgerStore, compute_analytics, seed_sample_data
from squadgrid.reports.charts import save_revenue_by_month_png


def _template_env(template_dir: str) -> Environment:
    return Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_report(store: LedgerStore, out_dir: str) -> str:
    """Render the analytics report for `store`; return the HTML path."""
    stats = compute_analytics(store)
    img_dir = os.path.join(out_dir, "images")
    os.makedirs(img_dir, exist_ok=True)
    png = save_revenue_by_month_png(stats.revenue_by_month, os.path.join(img_dir, "revenue_by_month.png"))

    template_dir = os.path.join(os.path.dirname(__file__), "templates")
    env = _template_env(template_dir)
    tpl = env.get_template("report.html.j2")
    html = tpl.render(
        generated_at=datetime.now(timezone.utc).isoformat(),
        stats=stats,
        chart=os.path.relpath(png, start=out_dir),
        links=store.get_all_payment_links(),
        accounts=store.get_all_virtual_accounts(),
    )
    out_html = os.path.join(out_dir, "index.html")
    with open(out_html, "w", encoding="utf-8") as f:
        f.write(html)
    return out_html


def main(store: Optional[LedgerStore] = None) -> None:
    if store is None:
        settings = load_settings()
        store = LedgerStore(widget_origin=settings.widget_origin, yield_rates=settings.yield_rates)
        seed_sample_data(store)
    out_dir = os.environ.get("REPORT_DIR", "reports")
    out_html = render_report(store, out_dir)
    print(f"Report written to: {out_html}")


if __name__ == "__main__":
    main()
