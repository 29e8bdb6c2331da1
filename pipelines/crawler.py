"""Breadth-first website crawler.

Fetches one page at a time in FIFO order, extracts its content, discovers
same-domain links and waits a fixed politeness delay before the next fetch.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

import requests
import urllib3

from config.settings import CrawlerConfig, DEFAULT_USER_AGENT
from observability.logging import log_context
from observability.metrics import record_crawl, record_page_fetch
from .extractor import ContentExtractor
from .links import extract_links, same_domain
from .models import CrawlState

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept-Encoding': 'gzip, deflate',
    'DNT': '1',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1',
}

NAVIGATION_HEADERS = {
    'Sec-Fetch-Dest': 'document',
    'Sec-Fetch-Mode': 'navigate',
    'Sec-Fetch-Site': 'none',
    'Sec-Fetch-User': '?1',
}

HTML_CONTENT_TYPES = ('text/', 'application/xhtml+xml', 'application/xml')


@dataclass
class FetchResponse:
    """Result of fetching a single URL."""
    url: str
    status_code: int
    content: str
    content_type: str = ''
    headers: Dict[str, str] = field(default_factory=dict)
    final_url: Optional[str] = None  # After redirects
    response_time: Optional[float] = None


class FetchError(Exception):
    """Raised when a page cannot be fetched; never fatal to a crawl."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class HttpTransport:
    """Blocking HTTP transport with browser-like headers.

    Certificate validation is off unless ``verify_tls=True``; responses from
    sites with invalid certificates are accepted.
    """

    def __init__(self,
                 request_timeout: float = 15.0,
                 user_agent: str = DEFAULT_USER_AGENT,
                 verify_tls: bool = False,
                 session: Optional[requests.Session] = None):
        self.request_timeout = request_timeout
        self.verify_tls = verify_tls
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': user_agent, **BROWSER_HEADERS})

        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.session.close()

    def fetch(self, url: str) -> FetchResponse:
        """Fetch a page.

        Raises:
            FetchError: On network errors, timeouts, non-2xx statuses and
                non-HTML content
        """
        start_time = time.time()
        headers = {'Referer': url, **NAVIGATION_HEADERS}

        try:
            response = self.session.get(
                url,
                headers=headers,
                timeout=self.request_timeout,
                verify=self.verify_tls,
                allow_redirects=True
            )
        except requests.Timeout as e:
            raise FetchError(url, f"Timeout after {self.request_timeout}s: {e}") from e
        except requests.RequestException as e:
            raise FetchError(url, f"Request failed: {e}") from e

        content_type = response.headers.get('content-type', '')
        logger.debug(f"Response status: {response.status_code}, Content-Type: {content_type}")

        if not 200 <= response.status_code < 300:
            raise FetchError(url, f"HTTP {response.status_code} {response.reason}", response.status_code)

        if content_type and not content_type.lower().startswith(HTML_CONTENT_TYPES):
            raise FetchError(url, f"Non-HTML content type: {content_type}", response.status_code)

        return FetchResponse(
            url=url,
            status_code=response.status_code,
            content=response.text,
            content_type=content_type,
            headers=dict(response.headers),
            final_url=str(response.url),
            response_time=time.time() - start_time
        )


class WebCrawler:
    """Sequential breadth-first crawler bounded by a page budget."""

    def __init__(self,
                 transport: Optional[HttpTransport] = None,
                 extractor: Optional[ContentExtractor] = None,
                 delay_seconds: float = 1.0,
                 retry_failed_urls: bool = False,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize crawler.

        Args:
            transport: Object with a ``fetch(url) -> FetchResponse`` method
            extractor: Content extractor run on every fetched page
            delay_seconds: Blocking pause between consecutive fetches
            retry_failed_urls: Fetch a previously failed URL again if it is rediscovered
            sleep: Function used for the politeness delay
        """
        self.transport = transport or HttpTransport()
        self.extractor = extractor or ContentExtractor()
        self.delay_seconds = delay_seconds
        self.retry_failed_urls = retry_failed_urls
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: CrawlerConfig, **kwargs) -> 'WebCrawler':
        """Build a crawler with an HTTP transport from configuration."""
        transport = kwargs.pop('transport', None) or HttpTransport(
            request_timeout=config.request_timeout,
            user_agent=config.user_agent,
            verify_tls=config.verify_tls
        )
        return cls(
            transport=transport,
            delay_seconds=config.delay_seconds,
            retry_failed_urls=config.retry_failed_urls,
            **kwargs
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        close = getattr(self.transport, 'close', None)
        if close:
            close()

    def _should_enqueue(self, url: str, state: CrawlState, queued: set) -> bool:
        if url in state.visited or url in queued:
            return False
        if url in state.failed and not self.retry_failed_urls:
            return False
        return True

    def crawl(self, base_url: str, max_pages: int = 10) -> CrawlState:
        """Crawl a website breadth-first.

        Args:
            base_url: Start URL; its hostname is the crawl domain
            max_pages: Maximum number of pages to visit

        Returns:
            CrawlState holding every page collected, in visit order
        """
        if not urlparse(base_url).scheme:
            base_url = f"https://{base_url}"

        state = CrawlState(base_url=base_url, max_pages=max_pages)
        state.frontier.append(base_url)
        queued = {base_url}
        start_time = time.time()

        with log_context(crawl_url=base_url, domain=state.domain):
            logger.info(f"Starting to crawl: {base_url} (max_pages={max_pages})")

            while state.frontier and not state.budget_reached:
                current_url = state.frontier.popleft()
                queued.discard(current_url)

                if current_url in state.visited:
                    continue

                with log_context(page_url=current_url):
                    logger.info(f"Scraping page {len(state.visited) + 1}/{max_pages}")
                    self._visit(current_url, state, queued)

                if state.frontier and not state.budget_reached and self.delay_seconds > 0:
                    self.sleep(self.delay_seconds)

            state.finish()
            duration = time.time() - start_time
            record_crawl(duration)

            logger.info(
                f"Crawl completed: {len(state.pages)} pages, {len(state.failed)} failed, "
                f"{len(state.frontier)} left in frontier, {duration:.1f}s"
            )
        return state

    def _visit(self, url: str, state: CrawlState, queued: set):
        """Fetch, extract and enqueue links for a single URL."""
        try:
            response = self.transport.fetch(url)
        except FetchError as e:
            logger.warning(f"Error scraping {url}: {e.reason}")
            state.failed.add(url)
            record_page_fetch("error")
            return
        except Exception as e:
            logger.warning(f"Error scraping {url}: {e}")
            state.failed.add(url)
            record_page_fetch("error")
            return

        record_page_fetch("success", response.response_time)
        state.failed.discard(url)

        page = self.extractor.extract(response.content, url)
        state.pages.append(page)
        state.visited.add(url)
        logger.info(f"Successfully scraped: {page.title or 'No title'}")

        link_base = url
        if response.final_url and same_domain(response.final_url, state.domain):
            link_base = response.final_url
        new_links = 0
        for link in extract_links(response.content, link_base, state.domain):
            if self._should_enqueue(link, state, queued):
                state.frontier.append(link)
                queued.add(link)
                new_links += 1

        logger.debug(f"Found {new_links} new internal links on {url}")


# Convenience functions
def crawl_site(base_url: str, max_pages: int = 10,
               config: Optional[CrawlerConfig] = None) -> CrawlState:
    """Convenience function to crawl a website with an HTTP transport.

    Args:
        base_url: Start URL
        max_pages: Maximum number of pages to visit
        config: Crawler configuration, defaults to CrawlerConfig()

    Returns:
        Completed CrawlState
    """
    with WebCrawler.from_config(config or CrawlerConfig()) as crawler:
        return crawler.crawl(base_url, max_pages)
