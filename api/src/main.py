"""
FastAPI application entry point for the Temperature Conversion API.

This module provides the main FastAPI application with:
- The greeting and Fahrenheit to Celsius conversion endpoints
- Health and readiness endpoints
- Request/response logging with correlation IDs
- Prometheus metrics
- OpenTelemetry distributed tracing
- CORS and security headers
- Graceful startup and shutdown
"""

import time
import uuid
import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from prometheus_client import CONTENT_TYPE_LATEST
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api.src.config import get_settings, Settings
from api.src.models.conversion import ConversionReply, ErrorResponse
from api.src.routers import conversion
from api.src.services.conversion_service import ConversionError
from api.src.services.serialization import (
    ReplyFormat,
    SerializationError,
    decode_reply,
    encode_reply,
)
from shared.logging import bind_context, clear_context, configure_logging
from shared.metrics import get_metrics_handler, setup_metrics
from shared.models import HealthStatus, ReadinessReport, ServiceInfo
from shared.tracing import configure_tracing

# Get settings
settings: Settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
    app_name=settings.app_name,
    environment=settings.environment,
)

# Initialize logger
logger = structlog.get_logger(__name__)

http_metrics, conversion_metrics = setup_metrics()
metrics_handler = get_metrics_handler()

CORRELATION_ID_HEADER = "X-Correlation-ID"

# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - OpenTelemetry tracing setup
    - Graceful shutdown of the span exporter
    """
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    try:
        if settings.tracing_enabled:
            logger.info("initializing_tracing", otlp_endpoint=settings.tracing_otlp_endpoint)
            configure_tracing(
                service_name=settings.app_name,
                service_version=settings.app_version,
                otlp_endpoint=settings.tracing_otlp_endpoint,
                sampling_rate=settings.tracing_sample_rate,
            )
            logger.info("tracing_initialized")

        logger.info(
            "application_started",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")

        if settings.tracing_enabled:
            logger.info("shutting_down_tracing")
            provider = trace.get_tracer_provider()
            if hasattr(provider, "shutdown"):
                provider.shutdown()

        logger.info("application_shutdown_complete")

# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Converts Fahrenheit temperatures to Celsius and returns the result "
        "as JSON, Protocol Buffers or plain text."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

# ============================================================================
# Middleware Configuration
# ============================================================================

# Request Logging and Metrics Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, metrics and correlation IDs."""

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        bind_context(correlation_id=correlation_id)
        http_metrics.requests_in_progress.labels(method=method).inc()
        start_time = time.perf_counter()

        logger.info(
            "request_started",
            method=method,
            path=path,
            client_ip=client_ip,
        )

        try:
            response = await call_next(request)

            duration = time.perf_counter() - start_time
            self._record(request, response, duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s",
            )

        except Exception as e:
            logger.error(
                "unexpected_exception",
                method=method,
                path=path,
                error=str(e),
                exc_info=True
            )

            # Unhandled errors never reach the inner middleware's headers
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(detail="Internal server error").model_dump()
            )
            apply_security_headers(response)

            duration = time.perf_counter() - start_time
            self._record(request, response, duration)

            logger.error(
                "request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s",
            )

        finally:
            http_metrics.requests_in_progress.labels(method=method).dec()
            clear_context()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response

    def _record(self, request: Request, response: Response, duration: float) -> None:
        endpoint = self._get_endpoint(request)

        http_metrics.requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()

        http_metrics.request_duration.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

    def _get_endpoint(self, request: Request) -> str:
        """Route template for metric labels, so unknown paths share one series."""
        route = request.scope.get("route")
        return getattr(route, "path", "unmatched")


def apply_security_headers(response: Response) -> None:
    """Set the configured security headers on a response."""
    if not settings.security_headers_enabled:
        return

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if settings.security_require_https:
        response.headers["Strict-Transport-Security"] = (
            f"max-age={settings.security_hsts_max_age}; includeSubDomains"
        )


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        apply_security_headers(response)
        return response

app.add_middleware(SecurityHeadersMiddleware)

# CORS Middleware
if settings.cors_enabled:
    logger.info("configuring_cors", origins=settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=[CORRELATION_ID_HEADER],
    )

# Outermost, so that logged durations cover the other middleware
app.add_middleware(RequestLoggingMiddleware)

# OpenTelemetry Instrumentation
if settings.tracing_enabled:
    FastAPIInstrumentor.instrument_app(app)

# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ConversionError)
async def conversion_exception_handler(request: Request, exc: ConversionError):
    """Handle missing or invalid conversion parameters."""
    logger.warning(
        "conversion_rejected",
        path=request.url.path,
        error_type=exc.error_type,
        value=exc.value,
    )
    conversion_metrics.conversion_errors_total.labels(error_type=exc.error_type).inc()
    return PlainTextResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=exc.message
    )

@app.exception_handler(SerializationError)
async def serialization_exception_handler(request: Request, exc: SerializationError):
    """Handle replies that cannot be encoded in the requested format."""
    logger.error(
        "serialization_failed",
        path=request.url.path,
        reply_format=exc.reply_format.value,
        error=str(exc)
    )
    conversion_metrics.conversion_errors_total.labels(error_type="serialization").inc()
    return PlainTextResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=str(exc)
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None)
    )

# ============================================================================
# Health and Readiness Endpoints
# ============================================================================

@app.get("/health", tags=["Health"], response_model=ServiceInfo)
async def health_check() -> ServiceInfo:
    """
    Health check endpoint.

    Returns basic health status without checking dependencies.
    Use for container health checks.

    Returns:
        Health status
    """
    return ServiceInfo(
        status=HealthStatus.HEALTHY,
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def run_readiness_checks() -> Dict[str, HealthStatus]:
    """
    Verify every reply codec can encode and decode a sample reply.

    The protobuf check also proves the wire contract was built.

    Returns:
        Check name to health status
    """
    sample = ConversionReply(celsius=-40.0)
    checks: Dict[str, HealthStatus] = {}

    for reply_format in ReplyFormat:
        check_name = f"codec_{reply_format.name.lower()}"
        try:
            decoded = decode_reply(encode_reply(sample, reply_format), reply_format)
            healthy = decoded.celsius == sample.celsius
        except SerializationError as e:
            logger.error("readiness_check_failed", check=check_name, error=str(e))
            healthy = False
        checks[check_name] = HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY

    return checks


@app.get("/ready", tags=["Health"], response_model=ReadinessReport)
async def readiness_check() -> JSONResponse:
    """
    Readiness check endpoint.

    Checks if application is ready to serve requests by verifying
    the reply codecs and the Protocol Buffers contract.

    Returns:
        Readiness status with component health
    """
    checks = run_readiness_checks()
    all_healthy = all(check == HealthStatus.HEALTHY for check in checks.values())

    report = ReadinessReport(
        status="ready" if all_healthy else "not_ready",
        service=settings.app_name,
        version=settings.app_version,
        checks=checks,
    )

    return JSONResponse(
        status_code=status.HTTP_200_OK if report.is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.model_dump(),
    )

# ============================================================================
# Metrics Endpoint
# ============================================================================

if settings.metrics_enabled:
    @app.get(settings.metrics_endpoint, tags=["Monitoring"], response_class=PlainTextResponse)
    async def metrics() -> Response:
        """
        Prometheus metrics endpoint.

        Exposes application metrics in Prometheus format for scraping.

        Returns:
            Prometheus metrics
        """
        return Response(
            content=metrics_handler(),
            media_type=CONTENT_TYPE_LATEST
        )

# ============================================================================
# API Router Registration
# ============================================================================

app.include_router(conversion.router)

# ============================================================================
# Application Entry Point
# ============================================================================

def run() -> None:
    """Run the application with Uvicorn."""
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=None if settings.debug else settings.workers,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=settings.server_keepalive_timeout,
        access_log=False,
    )


if __name__ == "__main__":
    run()
