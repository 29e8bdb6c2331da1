"""Same-domain link discovery for the crawl frontier."""

import logging
from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

FOLLOWED_SCHEMES = {'http', 'https'}


def normalize_link(href: str, base_url: str) -> Optional[str]:
    """Resolve ``href`` against ``base_url`` and strip the fragment.

    Returns None for empty, unparsable or non-http(s) links.
    """
    href = (href or '').strip()
    if not href:
        return None

    try:
        parsed = urlparse(urljoin(base_url, href))
        # .port raises ValueError for a malformed netloc
        if parsed.port == 0:
            return None
    except ValueError:
        return None

    if parsed.scheme.lower() not in FOLLOWED_SCHEMES or not parsed.hostname:
        return None

    return urlunparse(parsed._replace(fragment=''))


def same_domain(url: str, domain: str) -> bool:
    """Check that the hostname of ``url`` is exactly ``domain``."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return False
    return bool(hostname) and hostname.lower() == domain.lower()


def extract_links(page: Union[str, BeautifulSoup], base_url: str,
                  domain: Optional[str] = None) -> List[str]:
    """Extract same-domain absolute links from a page.

    Args:
        page: Raw HTML or an already parsed document
        base_url: URL the relative links are resolved against
        domain: Hostname links must match; defaults to the hostname of base_url

    Returns:
        Deduplicated URLs in the order they first appear in the document
    """
    if domain is None:
        domain = urlparse(base_url).hostname or ''

    soup = page if isinstance(page, BeautifulSoup) else BeautifulSoup(page or '', 'html.parser')

    links = []
    seen = set()
    for anchor in soup.find_all('a', href=True):
        url = normalize_link(anchor['href'], base_url)
        if url is None or url in seen:
            continue
        if not same_domain(url, domain):
            continue
        seen.add(url)
        links.append(url)

    logger.debug(f"Found {len(links)} internal links on {base_url}")
    return links
