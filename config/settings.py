"""Runtime configuration for SiteChat.

All settings come from environment variables with sensible defaults, the same
values the service uses when nothing is configured.
"""

import os
import logging
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class CrawlerConfig(BaseModel):
    """Crawler configuration."""
    max_pages: int = Field(default=10, ge=0, description="Page budget per crawl")
    delay_seconds: float = Field(default=1.0, ge=0, description="Politeness delay between fetches")
    request_timeout: float = Field(default=15.0, gt=0, description="Per-request timeout in seconds")
    verify_tls: bool = Field(default=False, description="Validate TLS certificates of crawled sites")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent sent with every request")
    retry_failed_urls: bool = Field(default=False, description="Re-fetch a failed URL when it is discovered again")
    chunk_max_length: int = Field(default=1000, gt=0, description="Maximum narrative chunk length in characters")

    @classmethod
    def from_env(cls) -> 'CrawlerConfig':
        """Create configuration from environment variables."""
        return cls(
            max_pages=int(os.getenv('SITECHAT_MAX_PAGES', '10')),
            delay_seconds=float(os.getenv('SITECHAT_CRAWL_DELAY', '1.0')),
            request_timeout=float(os.getenv('SITECHAT_REQUEST_TIMEOUT', '15')),
            verify_tls=_env_bool('SITECHAT_VERIFY_TLS', False),
            user_agent=os.getenv('SITECHAT_USER_AGENT', DEFAULT_USER_AGENT),
            retry_failed_urls=_env_bool('SITECHAT_RETRY_FAILED_URLS', False),
            chunk_max_length=int(os.getenv('SITECHAT_CHUNK_MAX_LENGTH', '1000'))
        )


class GenerationConfig(BaseModel):
    """Answer generation configuration."""
    api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    model: str = Field(default="claude-3-haiku-20240307", description="Model used for answers")
    max_tokens: int = Field(default=500, gt=0, description="Maximum tokens per answer")
    temperature: float = Field(default=0.7, ge=0, le=1, description="Sampling temperature")
    max_results: int = Field(default=5, gt=0, description="Chunks retrieved per question")
    timeout: float = Field(default=60.0, gt=0, description="Generation request timeout in seconds")

    @classmethod
    def from_env(cls) -> 'GenerationConfig':
        """Create configuration from environment variables."""
        return cls(
            api_key=os.getenv('ANTHROPIC_API_KEY') or None,
            model=os.getenv('SITECHAT_MODEL', 'claude-3-haiku-20240307'),
            max_tokens=int(os.getenv('SITECHAT_MAX_TOKENS', '500')),
            temperature=float(os.getenv('SITECHAT_TEMPERATURE', '0.7')),
            max_results=int(os.getenv('SITECHAT_MAX_RESULTS', '5')),
            timeout=float(os.getenv('SITECHAT_GENERATION_TIMEOUT', '60'))
        )


class Settings(BaseModel):
    """Top-level application settings."""
    db_path: str = Field(default="data/sitechat.db", description="SQLite database path")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Emit JSON logs")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file")
    host: str = Field(default="0.0.0.0", description="API bind host")
    port: int = Field(default=3000, description="API port")

    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig, description="Crawler configuration")
    generation: GenerationConfig = Field(default_factory=GenerationConfig, description="Generation configuration")

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create configuration from environment variables."""
        return cls(
            db_path=os.getenv('SITECHAT_DB_PATH', 'data/sitechat.db'),
            log_level=os.getenv('SITECHAT_LOG_LEVEL', 'INFO'),
            log_json=_env_bool('SITECHAT_LOG_JSON', False),
            log_file=os.getenv('SITECHAT_LOG_FILE') or None,
            host=os.getenv('SITECHAT_HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', '3000')),
            crawler=CrawlerConfig.from_env(),
            generation=GenerationConfig.from_env()
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings loaded once from the environment."""
    settings = Settings.from_env()
    logger.debug(f"Settings loaded (db_path={settings.db_path}, max_pages={settings.crawler.max_pages})")
    return settings
