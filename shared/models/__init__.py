"""Shared Pydantic models for the temperature conversion service."""

from .common import (
    HealthStatus,
    ReadinessReport,
    ServiceInfo,
)

__all__ = [
    "HealthStatus",
    "ReadinessReport",
    "ServiceInfo",
]
