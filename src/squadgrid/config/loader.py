"""
Configuration loader for squadgrid.

What it does:
- Reads static settings from `config/config.yaml` (a missing file means defaults).
- Overlays environment variables named `SQUADGRID_<FIELD>` (upper-case), e.g.
  `SQUADGRID_WIDGET_ORIGIN` or `SQUADGRID_PAYMENT_FAILURE_RATE`.
  `PROMETHEUS_PORT` is honoured as well for the metrics port.
- Validates the result using Pydantic models.

Where it is used:
- Called by `squadgrid.main` and the API service to build a `Settings` object.

Key outputs:
- `Settings` with the widget embed origin, sample-data toggle, yield-rate table,
  simulated payment failure rate and metrics port.
"""

import os
import pathlib
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, field_validator

ENV_PREFIX = "SQUADGRID_"


class YieldRates(BaseModel):
    """Annual yield (APY, percent) applied to new yield-enabled accounts by type."""
    yield_account: float = 6.5
    savings: float = 5.1
    default: float = 4.2

    def for_type(self, account_type: str) -> float:
        if account_type == "yield":
            return self.yield_account
        if account_type == "savings":
            return self.savings
        return self.default


class Settings(BaseModel):
    """Runtime settings assembled from YAML + environment variables."""
    widget_origin: str = "https://squadgrid.xyz"
    seed_sample_data: bool = True
    yield_rates: YieldRates = YieldRates()
    payment_failure_rate: float = 0.05
    prometheus_port: int = 8000
    log_level: str = "INFO"

    @field_validator("widget_origin")
    @classmethod
    def strip_trailing_slash(cls, v):
        if not v:
            raise ValueError("widget_origin must not be empty")
        return v.rstrip("/")

    @field_validator("payment_failure_rate")
    @classmethod
    def rate_in_unit_interval(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"payment_failure_rate must be within [0, 1], got {v}")
        return v


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in ("widget_origin", "seed_sample_data", "payment_failure_rate", "prometheus_port", "log_level"):
        val = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if val is not None and val != "":
            out[name] = val
    port = os.getenv("PROMETHEUS_PORT")
    if port and "prometheus_port" not in out:
        out["prometheus_port"] = port
    return out


def load_settings(path: str = "config/config.yaml", overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """Load YAML config, overlay env vars (and explicit overrides), return Settings."""
    config: Dict[str, Any] = {}
    p = pathlib.Path(path)
    if p.exists():
        with open(p, "r") as f:
            config = yaml.safe_load(f) or {}
    config.update(_env_overrides())
    if overrides:
        config.update(overrides)
    return Settings(**config)
