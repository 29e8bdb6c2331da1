"""Configuration module for SiteChat.

Provides configuration for the crawler, answer generation and the service.
"""

from .settings import (
    CrawlerConfig,
    GenerationConfig,
    Settings,
    get_settings,
    DEFAULT_USER_AGENT
)

__all__ = [
    'CrawlerConfig',
    'GenerationConfig',
    'Settings',
    'get_settings',
    'DEFAULT_USER_AGENT'
]
