"""Metrics helpers (Prometheus)."""
