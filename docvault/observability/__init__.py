"""Observability: in-memory metrics sink. No FastAPI."""

from docvault.observability.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
