"""Pipelines package for SiteChat.

Provides crawling, content extraction, link discovery and chunking.
"""

from .models import Faq, Product, ContactInfo, PageRecord, CrawlSummary, CrawlState
from .links import normalize_link, same_domain, extract_links
from .extractor import ContentExtractor, parse_contact_text
from .crawler import WebCrawler, HttpTransport, FetchResponse, FetchError, crawl_site
from .chunker import TextChunker, split_text, chunk_pages

__all__ = [
    # Models
    'Faq',
    'Product',
    'ContactInfo',
    'PageRecord',
    'CrawlSummary',
    'CrawlState',

    # Links
    'normalize_link',
    'same_domain',
    'extract_links',

    # Extractor
    'ContentExtractor',
    'parse_contact_text',

    # Crawler
    'WebCrawler',
    'HttpTransport',
    'FetchResponse',
    'FetchError',
    'crawl_site',

    # Chunker
    'TextChunker',
    'split_text',
    'chunk_pages'
]
