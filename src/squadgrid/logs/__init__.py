"""Structured log helpers."""
