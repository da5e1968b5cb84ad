"""Common Pydantic models shared across services."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ServiceInfo(BaseModel):
    """Liveness document returned by the health endpoint."""

    status: HealthStatus = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    environment: str = Field(..., description="Deployment environment")

    model_config = ConfigDict(use_enum_values=True)


class ReadinessReport(BaseModel):
    """Readiness document returned by the readiness endpoint."""

    status: str = Field(..., description="ready or not_ready")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    checks: Dict[str, HealthStatus] = Field(
        default_factory=dict, description="Component health status"
    )

    model_config = ConfigDict(use_enum_values=True)

    @property
    def is_ready(self) -> bool:
        """Whether every component check passed."""
        return all(check == HealthStatus.HEALTHY.value for check in self.checks.values())
