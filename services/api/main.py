"""
SquadGrid ledger API service.

Run with:
  uvicorn services.api.main:app --port 8080

Builds one LedgerStore for the process (seeded with demo data unless
SQUADGRID_SEED_SAMPLE_DATA=false) and serves it through `create_app`.
"""

from __future__ import annotations

import logging
import os

from squadgrid.api import create_app
from squadgrid.config.loader import load_settings
from squadgrid.main import build_store
from squadgrid.metrics.core import start_server_safe

settings = load_settings(os.getenv("SQUADGRID_CONFIG", "config/config.yaml"))
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
start_server_safe(settings.prometheus_port)

store = build_store(settings)
app = create_app(store, settings)
