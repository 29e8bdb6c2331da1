"""Data model shared by the crawl, chunk and index stages."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional, Set
from urllib.parse import urlparse


@dataclass(frozen=True)
class Faq:
    question: str
    answer: str

    def to_dict(self) -> Dict[str, str]:
        return {"question": self.question, "answer": self.answer}


@dataclass(frozen=True)
class Product:
    """A product or service card. Any field may be missing."""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "description": self.description, "price": self.price}


@dataclass(frozen=True)
class ContactInfo:
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.email or self.phone or self.address)

    def to_dict(self) -> Dict[str, str]:
        """Only the fields that were found."""
        return {
            key: value
            for key, value in (("email", self.email), ("phone", self.phone), ("address", self.address))
            if value
        }


@dataclass(frozen=True)
class PageRecord:
    """Everything extracted from one successfully fetched page."""
    url: str
    title: str = ""
    text: str = ""
    faqs: List[Faq] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    contact: ContactInfo = field(default_factory=ContactInfo)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "text": self.text,
            "faqs": [faq.to_dict() for faq in self.faqs],
            "products": [product.to_dict() for product in self.products],
            "contact": self.contact.to_dict(),
        }


@dataclass(frozen=True)
class CrawlSummary:
    """Aggregate counts over the pages of one crawl."""
    total_pages: int = 0
    total_faqs: int = 0
    total_products: int = 0
    has_contact_info: bool = False

    @classmethod
    def from_pages(cls, pages: List[PageRecord]) -> 'CrawlSummary':
        return cls(
            total_pages=len(pages),
            total_faqs=sum(len(page.faqs) for page in pages),
            total_products=sum(len(page.products) for page in pages),
            has_contact_info=any(not page.contact.is_empty() for page in pages),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_pages": self.total_pages,
            "total_faqs": self.total_faqs,
            "total_products": self.total_products,
            "has_contact_info": self.has_contact_info,
        }


@dataclass
class CrawlState:
    """Mutable state of a single crawl.

    ``visited`` only grows and never exceeds ``max_pages``; ``pages`` is
    append-only and keeps crawl order. URLs whose fetch failed are kept in
    ``failed`` and never enter ``visited``.
    """
    base_url: str
    max_pages: int
    domain: str = ""
    visited: Set[str] = field(default_factory=set)
    frontier: Deque[str] = field(default_factory=deque)
    pages: List[PageRecord] = field(default_factory=list)
    failed: Set[str] = field(default_factory=set)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def __post_init__(self):
        if self.max_pages < 0:
            raise ValueError("max_pages must not be negative")
        if not self.domain:
            self.domain = (urlparse(self.base_url).hostname or "").lower()
        if self.started_at is None:
            self.started_at = datetime.utcnow()

    @property
    def budget_reached(self) -> bool:
        return len(self.visited) >= self.max_pages

    @property
    def summary(self) -> CrawlSummary:
        return CrawlSummary.from_pages(self.pages)

    def finish(self):
        """Mark crawl as finished."""
        self.finished_at = datetime.utcnow()

    def to_session_record(self) -> Dict[str, Any]:
        """Session metadata handed to the persistence store."""
        scraped_at = self.finished_at or datetime.utcnow()
        return {
            "website_url": self.base_url,
            "total_pages": len(self.pages),
            "scraped_at": scraped_at.isoformat() + "Z",
            "summary": self.summary.to_dict(),
        }
