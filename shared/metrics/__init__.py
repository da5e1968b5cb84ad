"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    ConversionMetrics,
    HTTPMetrics,
    setup_metrics,
    get_metrics_handler,
)

__all__ = [
    "ConversionMetrics",
    "HTTPMetrics",
    "setup_metrics",
    "get_metrics_handler",
]
