"""Prometheus metrics for the crawl, index and answer pipeline."""

import logging
import re
import time
from typing import Optional

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from prometheus_client.core import CollectorRegistry

logger = logging.getLogger(__name__)

# Dedicated registry for SiteChat metrics
sitechat_registry = CollectorRegistry()

# HTTP metrics
request_count = Counter(
    'sitechat_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=sitechat_registry
)

request_duration = Histogram(
    'sitechat_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 120.0],
    registry=sitechat_registry
)

# Crawl metrics
pages_fetched = Counter(
    'sitechat_pages_fetched_total',
    'Pages fetched by the crawler',
    ['outcome'],
    registry=sitechat_registry
)

fetch_duration = Histogram(
    'sitechat_fetch_duration_seconds',
    'Time spent fetching a single page',
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0],
    registry=sitechat_registry
)

crawl_duration = Histogram(
    'sitechat_crawl_duration_seconds',
    'Duration of a full crawl in seconds',
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0],
    registry=sitechat_registry
)

# Index metrics
chunks_indexed = Histogram(
    'sitechat_chunks_indexed_count',
    'Number of chunks in each relevance index build',
    buckets=[1, 10, 50, 100, 250, 500, 1000, 5000],
    registry=sitechat_registry
)

# Query metrics
queries = Counter(
    'sitechat_queries_total',
    'Questions answered',
    ['status'],
    registry=sitechat_registry
)

query_results_count = Histogram(
    'sitechat_query_results_count',
    'Number of chunks retrieved per question',
    buckets=[0, 1, 2, 3, 5, 10, 25],
    registry=sitechat_registry
)

generation_duration = Histogram(
    'sitechat_generation_duration_seconds',
    'Answer generation duration in seconds',
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=sitechat_registry
)

error_count = Counter(
    'sitechat_errors_total',
    'Total number of errors',
    ['error_type', 'component'],
    registry=sitechat_registry
)


class PrometheusMiddleware:
    """ASGI middleware counting HTTP requests and their duration."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        method = request.method
        endpoint = self._normalize_endpoint(request.url.path)
        start_time = time.time()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(f"Request processing error: {e}")
            error_count.labels(error_type=type(e).__name__, component="http").inc()
            raise
        finally:
            request_count.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
            request_duration.labels(method=method, endpoint=endpoint).observe(time.time() - start_time)

    def _normalize_endpoint(self, path: str) -> str:
        """Replace numeric IDs to keep label cardinality low."""
        return re.sub(r'/\d+', '/{id}', path)


def setup_prometheus_metrics(app: FastAPI) -> None:
    """Attach the middleware and a /metrics endpoint to an app."""
    app.add_middleware(PrometheusMiddleware)

    @app.get("/metrics", include_in_schema=False)
    def metrics_endpoint():
        """Prometheus metrics endpoint."""
        return Response(generate_latest(sitechat_registry), media_type=CONTENT_TYPE_LATEST)

    logger.info("Prometheus metrics configured")


def record_page_fetch(outcome: str, duration: Optional[float] = None) -> None:
    """Record one crawler fetch; outcome is 'success' or 'error'."""
    pages_fetched.labels(outcome=outcome).inc()
    if duration is not None:
        fetch_duration.observe(duration)
    if outcome != "success":
        error_count.labels(error_type="fetch_error", component="crawler").inc()


def record_crawl(duration: float) -> None:
    crawl_duration.observe(duration)


def record_index_build(chunk_count: int) -> None:
    chunks_indexed.observe(chunk_count)


def record_query(result_count: int, generation_time: Optional[float] = None,
                 error: Optional[str] = None) -> None:
    """Record query-related metrics."""
    status = "error" if error else "success"
    queries.labels(status=status).inc()
    query_results_count.observe(result_count)

    if generation_time is not None:
        generation_duration.observe(generation_time)

    if error:
        error_count.labels(error_type=error, component="generation").inc()
