"""Heuristic content extraction for business web pages.

Each field of a page record is produced by its own strategy: a list of CSS
selectors tried in order over the parsed document. Strategies are best-effort;
one failing leaves its field empty and never blocks the others.
"""

import copy
import logging
import re
from typing import Callable, List, Optional, TypeVar, Union

from bs4 import BeautifulSoup, Tag

from .models import ContactInfo, Faq, PageRecord, Product

logger = logging.getLogger(__name__)

T = TypeVar('T')

NOISE_SELECTOR = 'script, style, nav, footer, header'

CONTENT_SELECTORS = [
    'main', 'article', '.content', '.main-content',
    '#content', '#main', '.post-content', '.entry-content',
]

FAQ_SELECTORS = [
    'h2:-soup-contains("FAQ"), h3:-soup-contains("FAQ"), .faq, .faqs',
    'h2:-soup-contains("Frequently Asked"), h3:-soup-contains("Frequently Asked")',
    '.accordion, .faq-item, .faq-question',
]
FAQ_QUESTION_SELECTOR = 'h3, h4, h5, strong'
FAQ_ANSWER_TAGS = {'p', 'div'}

PRODUCT_SELECTORS = [
    '.product', '.item', '.card', '.product-card',
    '.product-item', '.product-box', '.service',
]
PRODUCT_NAME_SELECTOR = 'h3, h4, h5, .product-name, .title'
PRODUCT_DESCRIPTION_SELECTOR = 'p, .description, .desc'
PRODUCT_PRICE_SELECTOR = '.price, .cost, .amount'

CONTACT_SELECTORS = [
    '.contact', '.contact-info', '.contact-details',
    '#contact', '.address', '.phone', '.email',
]

EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
PHONE_PATTERN = re.compile(r'(\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}')
MIN_ADDRESS_LENGTH = 20

_WHITESPACE = re.compile(r'\s+')


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(' ', text or '').strip()


def element_text(element: Optional[Tag]) -> str:
    """Visible text of an element with whitespace collapsed."""
    if element is None:
        return ''
    return collapse_whitespace(element.get_text(' '))


def parse_contact_text(text: str) -> ContactInfo:
    """Pull email, phone and address out of one block of text.

    The address is whatever text remains once the email and phone matches
    are removed, provided it is longer than MIN_ADDRESS_LENGTH characters.
    """
    email_match = EMAIL_PATTERN.search(text)
    phone_match = PHONE_PATTERN.search(text)

    remainder = EMAIL_PATTERN.sub(' ', text)
    remainder = collapse_whitespace(PHONE_PATTERN.sub(' ', remainder))

    return ContactInfo(
        email=email_match.group(0) if email_match else None,
        phone=phone_match.group(0).strip() if phone_match else None,
        address=remainder if len(remainder) > MIN_ADDRESS_LENGTH else None,
    )


class ContentExtractor:
    """Extracts a PageRecord from HTML using selector heuristics."""

    def __init__(self, parser: str = 'html.parser'):
        self.parser = parser

    def parse(self, page: Union[str, bytes, BeautifulSoup]) -> BeautifulSoup:
        if isinstance(page, BeautifulSoup):
            return page
        return BeautifulSoup(page or '', self.parser)

    def extract(self, page: Union[str, bytes, BeautifulSoup], url: str = '') -> PageRecord:
        """Run every extraction strategy over a page.

        Args:
            page: Raw HTML or a parsed document
            url: URL the page was fetched from

        Returns:
            PageRecord with whatever fields could be extracted
        """
        soup = self.parse(page)

        record = PageRecord(
            url=url,
            title=self._safely('title', url, self.extract_title, soup, ''),
            text=self._safely('text', url, self.extract_text, soup, ''),
            faqs=self._safely('faqs', url, self.extract_faqs, soup, []),
            products=self._safely('products', url, self.extract_products, soup, []),
            contact=self._safely('contact', url, self.extract_contact_info, soup, ContactInfo()),
        )

        logger.info(
            f"Extracted - Title: \"{record.title}\", Text: {len(record.text)} chars, "
            f"FAQs: {len(record.faqs)}, Products: {len(record.products)}"
        )
        return record

    def _safely(self, field_name: str, url: str, strategy: Callable[[BeautifulSoup], T],
                soup: BeautifulSoup, default: T) -> T:
        try:
            return strategy(soup)
        except Exception as e:
            logger.debug(f"Extraction of {field_name} failed for {url}: {e}")
            return default

    def extract_title(self, soup: BeautifulSoup) -> str:
        title = soup.find('title')
        return title.get_text().strip() if title else ''

    def extract_text(self, soup: BeautifulSoup) -> str:
        """Main narrative text with navigation noise removed.

        Works on a copy so the other strategies still see the full document.
        """
        doc = copy.copy(soup)
        for element in doc.select(NOISE_SELECTOR):
            element.decompose()

        main_content = ''
        for selector in CONTENT_SELECTORS:
            elements = doc.select(selector)
            if elements:
                main_content = ' '.join(element.get_text(' ').strip() for element in elements)
                break

        if not collapse_whitespace(main_content):
            body = doc.body or doc
            main_content = body.get_text(' ')

        return collapse_whitespace(main_content)

    def extract_faqs(self, soup: BeautifulSoup) -> List[Faq]:
        faqs = []

        for selector in FAQ_SELECTORS:
            try:
                candidates = soup.select(selector)
            except Exception as e:
                logger.debug(f"FAQ selector {selector!r} failed: {e}")
                continue

            for block in candidates:
                question_el = block.select_one(FAQ_QUESTION_SELECTOR)
                if question_el is None:
                    continue

                answer_el = self._next_answer_sibling(question_el) or self._next_answer_sibling(block)
                question = element_text(question_el)
                answer = element_text(answer_el)

                if question and answer:
                    faqs.append(Faq(question=question, answer=answer))

        return faqs

    @staticmethod
    def _next_answer_sibling(element: Tag) -> Optional[Tag]:
        sibling = element.find_next_sibling()
        if sibling is not None and sibling.name in FAQ_ANSWER_TAGS:
            return sibling
        return None

    def extract_products(self, soup: BeautifulSoup) -> List[Product]:
        products = []

        for selector in PRODUCT_SELECTORS:
            for card in soup.select(selector):
                name = element_text(card.select_one(PRODUCT_NAME_SELECTOR))
                description = element_text(card.select_one(PRODUCT_DESCRIPTION_SELECTOR))
                price = element_text(card.select_one(PRODUCT_PRICE_SELECTOR))

                if name or description or price:
                    products.append(Product(
                        name=name or None,
                        description=description or None,
                        price=price or None,
                    ))

        return products

    def extract_contact_info(self, soup: BeautifulSoup) -> ContactInfo:
        """Scan contact containers; the first match wins for each field."""
        email = phone = address = None

        for selector in CONTACT_SELECTORS:
            for element in soup.select(selector):
                found = parse_contact_text(element_text(element))
                email = email or found.email
                phone = phone or found.phone
                address = address or found.address

                if email and phone and address:
                    return ContactInfo(email=email, phone=phone, address=address)

        return ContactInfo(email=email, phone=phone, address=address)
