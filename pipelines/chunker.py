"""Text chunking pipeline.

Turns the page records of a completed crawl into the flat, ordered list of
text chunks that makes up the retrieval corpus.
"""

import logging
from typing import Iterable, List, Optional

from .models import ContactInfo, Faq, PageRecord, Product

logger = logging.getLogger(__name__)

MISSING = 'N/A'


def _or_missing(value: Optional[str]) -> str:
    return value if value else MISSING


def format_title(title: str) -> str:
    return f"Page Title: {title}"


def format_faq(faq: Faq) -> str:
    return f"FAQ Question: {faq.question} Answer: {faq.answer}"


def format_product(product: Product) -> str:
    return (
        f"Product: {_or_missing(product.name)} "
        f"Description: {_or_missing(product.description)} "
        f"Price: {_or_missing(product.price)}"
    )


def format_contact(contact: ContactInfo) -> str:
    return (
        f"Contact Information: Email: {_or_missing(contact.email)} "
        f"Phone: {_or_missing(contact.phone)} "
        f"Address: {_or_missing(contact.address)}"
    )


class TextChunker:
    """Chunks page records into bounded-length retrievable units."""

    def __init__(self, max_length: int = 1000):
        """Initialize chunker.

        Args:
            max_length: Maximum chunk length in characters, separating spaces included
        """
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.max_length = max_length

    def split_text(self, text: str) -> List[str]:
        """Greedy word accumulation.

        Words are appended while the running chunk stays within max_length;
        the word that would overflow starts the next chunk. A single word
        longer than max_length becomes a chunk of its own.
        """
        chunks = []
        current = ''

        for word in text.split():
            candidate = f"{current} {word}" if current else word
            if len(candidate) <= self.max_length:
                current = candidate
                continue

            if current:
                chunks.append(current)
                current = word
            else:
                chunks.append(word)

            if len(current) > self.max_length:
                chunks.append(current)
                current = ''

        if current:
            chunks.append(current)

        return chunks

    def chunk_page(self, page: PageRecord) -> List[str]:
        chunks = []

        if page.title:
            chunks.append(format_title(page.title))

        if page.text:
            chunks.extend(self.split_text(page.text))

        chunks.extend(format_faq(faq) for faq in page.faqs)
        chunks.extend(format_product(product) for product in page.products)

        if not page.contact.is_empty():
            chunks.append(format_contact(page.contact))

        return chunks

    def chunk_pages(self, pages: Iterable[PageRecord]) -> List[str]:
        """Chunk every page in crawl order.

        Args:
            pages: Page records in crawl order

        Returns:
            The retrieval corpus; a chunk's position is its index
        """
        all_chunks = []
        page_count = 0

        for page in pages:
            all_chunks.extend(self.chunk_page(page))
            page_count += 1

        logger.info(f"Created {len(all_chunks)} chunks from {page_count} pages")
        return all_chunks


# Convenience functions
def split_text(text: str, max_length: int = 1000) -> List[str]:
    """Convenience function to split narrative text into bounded chunks."""
    return TextChunker(max_length=max_length).split_text(text)


def chunk_pages(pages: Iterable[PageRecord], max_length: int = 1000) -> List[str]:
    """Convenience function to chunk the pages of a crawl.

    Args:
        pages: Page records in crawl order
        max_length: Maximum narrative chunk length in characters

    Returns:
        Ordered list of chunk texts
    """
    return TextChunker(max_length=max_length).chunk_pages(pages)
