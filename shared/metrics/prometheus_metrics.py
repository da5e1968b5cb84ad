"""Prometheus metrics definitions and helpers.

Provides the metric definitions for the HTTP layer and the conversion
endpoint.
"""

from functools import lru_cache
from typing import Callable

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class HTTPMetrics:
    """HTTP request metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize HTTP metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=registry,
        )

        self.requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method"],
            registry=registry,
        )


class ConversionMetrics:
    """Temperature conversion metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize conversion metrics.

        Args:
            registry: Prometheus registry to use
        """
        # Successful conversions, by reply format
        self.conversions_total = Counter(
            "tempconvert_conversions_total",
            "Total number of successful temperature conversions",
            ["format"],
            registry=registry,
        )

        # Rejected or failed conversions, by error kind
        self.conversion_errors_total = Counter(
            "tempconvert_conversion_errors_total",
            "Total number of temperature conversions that failed",
            ["error_type"],
            registry=registry,
        )


@lru_cache()
def setup_metrics() -> tuple[HTTPMetrics, ConversionMetrics]:
    """Setup and return the process-wide metric instances.

    Cached so that collectors are registered with the default registry
    only once.

    Returns:
        Tuple of (HTTPMetrics, ConversionMetrics)
    """
    http_metrics = HTTPMetrics()
    conversion_metrics = ConversionMetrics()
    return http_metrics, conversion_metrics


def get_metrics_handler(registry: CollectorRegistry = REGISTRY) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Args:
        registry: Prometheus registry to expose

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler
