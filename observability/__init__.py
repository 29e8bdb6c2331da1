"""Observability package for SiteChat."""

from .logging import (
    setup_logging,
    setup_logging_from_settings,
    log_context,
    CrawlContextFilter,
    JSONFormatter,
    ColoredFormatter
)
from .metrics import (
    setup_prometheus_metrics,
    record_page_fetch,
    record_crawl,
    record_index_build,
    record_query,
    PrometheusMiddleware,
    sitechat_registry
)

__all__ = [
    'setup_logging',
    'setup_logging_from_settings',
    'log_context',
    'CrawlContextFilter',
    'JSONFormatter',
    'ColoredFormatter',
    'setup_prometheus_metrics',
    'record_page_fetch',
    'record_crawl',
    'record_index_build',
    'record_query',
    'PrometheusMiddleware',
    'sitechat_registry'
]
