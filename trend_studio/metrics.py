"""Prometheus metrics and OpenTelemetry tracing for TrendStudio.

Usage:
    from trend_studio.metrics import track_request

    with track_request("refine"):
        # issue the content request
        ...

The API server exposes the Prometheus registry at /metrics.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Generator, Optional

from opentelemetry import trace
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# ============================================================================
# Prometheus Metrics Definitions
# ============================================================================

content_requests_total = Counter(
    "trend_studio_content_requests_total",
    "Total number of content generation requests",
    ["operation", "outcome"],
)

content_request_duration_seconds = Histogram(
    "trend_studio_content_request_duration_seconds",
    "Content generation request duration in seconds",
    ["operation"],
    buckets=(0.5, 1, 2.5, 5, 10, 20, 30, 60, 120),
)

image_generations_total = Counter(
    "trend_studio_image_generations_total",
    "Total number of image generation attempts",
    ["outcome"],  # generated, failed, fallback
)

publish_attempts_total = Counter(
    "trend_studio_publish_attempts_total",
    "Total number of publish attempts",
    ["outcome"],
)

api_requests_total = Counter(
    "trend_studio_api_requests_total",
    "Total number of API requests",
    ["method", "endpoint", "status_code"],
)

api_request_duration_seconds = Histogram(
    "trend_studio_api_request_duration_seconds",
    "API request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0),
)


# ============================================================================
# OpenTelemetry Tracing
# ============================================================================

_tracer: Optional[trace.Tracer] = None


def get_tracer(name: str = "trend_studio") -> trace.Tracer:
    """Get or create the OpenTelemetry tracer."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(name)
    return _tracer


# ============================================================================
# Instrumentation Helpers
# ============================================================================


@contextmanager
def track_request(operation: str) -> Generator[None, None, None]:
    """Context manager to track one content request.

    Args:
        operation: The operation name (trends, draft, rewrite, refine, extend).

    Yields:
        None
    """
    tracer = get_tracer()
    start_time = time.time()

    with tracer.start_as_current_span(
        f"content.{operation}",
        attributes={"content.operation": operation},
    ) as span:
        try:
            yield
        except Exception as e:
            content_requests_total.labels(operation=operation, outcome="failed").inc()
            span.record_exception(e)
            raise
        else:
            content_requests_total.labels(operation=operation, outcome="succeeded").inc()
        finally:
            duration = time.time() - start_time
            content_request_duration_seconds.labels(operation=operation).observe(duration)
            span.set_attribute("content.duration_seconds", duration)


def record_image_generation(outcome: str) -> None:
    """Record an image generation outcome (generated, failed, fallback)."""
    image_generations_total.labels(outcome=outcome).inc()


def record_publish(outcome: str) -> None:
    """Record a publish attempt outcome (published, rejected, auth_failed)."""
    publish_attempts_total.labels(outcome=outcome).inc()


def track_api_request(method: str, endpoint: str, status_code: int, duration: float) -> None:
    """Record API request metrics.

    Args:
        method: HTTP method.
        endpoint: Request endpoint.
        status_code: Response status code.
        duration: Request duration in seconds.
    """
    api_requests_total.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
    api_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for recording HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process the request and record metrics."""
        start_time = time.time()

        response = await call_next(request)

        track_api_request(
            request.method,
            request.url.path,
            response.status_code,
            time.time() - start_time,
        )
        return response
