"""
Main entrypoint for squadgrid.

What it does:
- Loads runtime settings from `config/config.yaml` and `SQUADGRID_*` environment
  variables.
- Starts the Prometheus metrics server (tolerating bind failures).
- Builds the process-wide LedgerStore and seeds it with the demo records.
- Logs an analytics summary and exits (demo flow; the HTTP API lives in
  `services/api/main.py`).

Where it is used:
- Invoked by `python -m squadgrid.main`.

Key related modules:
- `squadgrid.config.loader.Settings` and `load_settings`
- `squadgrid.ledger.LedgerStore`, `seed_sample_data`, `compute_analytics`
"""
import json
import logging
import os

from squadgrid.config.loader import load_settings
from squadgrid.ledger import LedgerStore, compute_analytics, seed_sample_data
from squadgrid.metrics.core import start_server_safe


def build_store(settings) -> LedgerStore:
    store = LedgerStore(widget_origin=settings.widget_origin, yield_rates=settings.yield_rates)
    if settings.seed_sample_data:
        seed_sample_data(store)
    return store


def main() -> None:
    settings = load_settings(os.getenv("SQUADGRID_CONFIG", "config/config.yaml"))
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")
    logging.info(f"Widget origin: {settings.widget_origin}")

    start_server_safe(settings.prometheus_port)

    store = build_store(settings)
    logging.info(
        "Store ready: %d payment links, %d accounts, %d transactions, %d widgets",
        len(store.payment_links),
        len(store.virtual_accounts),
        len(store.transactions),
        len(store.widgets),
    )

    stats = compute_analytics(store)
    summary = {
        "total_revenue": round(stats.total_revenue, 2),
        "transaction_count": stats.transaction_count,
        "success_rate": round(stats.success_rate, 2),
        "revenue_by_currency": stats.revenue_by_currency,
    }
    logging.info("Analytics: %s", json.dumps(summary, separators=(",", ":")))

    export_dir = os.getenv("SQUADGRID_EXPORT_DIR")
    if export_dir:
        store.write_parquet(export_dir)
        logging.info(f"Exported ledger snapshot to {export_dir}")


if __name__ == "__main__":
    main()
