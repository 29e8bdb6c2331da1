"""Tests for heuristic page extraction."""

import re

import pytest
from bs4 import BeautifulSoup

from pipelines.extractor import ContentExtractor, parse_contact_text
from pipelines.models import ContactInfo, Faq, Product


class TestContentExtractor:

    @pytest.fixture
    def extractor(self):
        return ContentExtractor()

    @pytest.fixture
    def record(self, extractor, bakery_html):
        return extractor.extract(bakery_html, "https://acme.example/")

    def test_title(self, record):
        assert record.url == "https://acme.example/"
        assert record.title == "Acme Bakery"

    def test_text_prefers_main_content_without_noise(self, record):
        """Scripts are dropped and whitespace collapsed."""
        assert record.text == "Fresh bread We bake every day."

    def test_text_falls_back_to_body(self, extractor):
        html = "<html><body><nav>Menu</nav><p>Hello   there</p><footer>Bye</footer></body></html>"
        assert extractor.extract(html).text == "Hello there"

    def test_faqs(self, record):
        assert record.faqs == [Faq(question="Do you deliver?", answer="Yes, within 10 miles.")]

    def test_faq_answer_after_block(self, extractor):
        """When the question has no answer sibling the block's sibling is used."""
        html = '<div class="faq-item"><strong>Open on Sunday?</strong></div><p>Yes, 10 to 4.</p>'
        assert extractor.extract(html).faqs == [Faq(question="Open on Sunday?", answer="Yes, 10 to 4.")]

    def test_faq_heading_containing_faq(self, extractor):
        html = '<section><h2>FAQ <strong>Parking?</strong></h2><p>Free parking out back.</p></section>'
        # The question is the strong inside the heading and the answer follows the heading
        faqs = extractor.extract(html).faqs
        assert faqs == [Faq(question="Parking?", answer="Free parking out back.")]

    def test_faq_without_answer_is_skipped(self, extractor):
        html = '<div class="faq"><h4>Lonely question?</h4></div>'
        assert extractor.extract(html).faqs == []

    def test_products(self, record):
        assert record.products == [
            Product(name="Sourdough", description="Naturally leavened loaf", price="$6"),
            Product(name="Baguette"),
        ]

    def test_contact_info_read_before_footer_removal(self, record):
        assert record.contact.email == "hello@acme.com"
        assert record.contact.phone == "(555) 123-4567"
        assert "12 Baker Street, Springfield" in record.contact.address

    def test_extract_does_not_modify_parsed_document(self, extractor, bakery_html):
        soup = BeautifulSoup(bakery_html, "html.parser")
        extractor.extract(soup)
        assert soup.find("footer") is not None
        assert soup.find("script") is not None

    def test_empty_page(self, extractor):
        record = extractor.extract("", "https://acme.example/empty")
        assert record.title == ""
        assert record.text == ""
        assert record.faqs == []
        assert record.products == []
        assert record.contact.is_empty()

    def test_failing_strategy_leaves_other_fields(self, bakery_html):
        class BrokenProducts(ContentExtractor):
            def extract_products(self, soup):
                raise RuntimeError("boom")

        record = BrokenProducts().extract(bakery_html)
        assert record.products == []
        assert record.title == "Acme Bakery"
        assert len(record.faqs) == 1


class TestParseContactText:

    def test_short_text_has_no_address(self):
        contact = parse_contact_text("Email: a@b.com Call (555) 123-4567")
        assert contact.email == "a@b.com"
        assert re.search(r"555\D+123\D+4567", contact.phone)
        assert contact.address is None

    def test_long_remainder_is_address(self):
        contact = parse_contact_text("Find us at 400 Market Street, Suite 12, Portland OR")
        assert contact.email is None
        assert contact.phone is None
        assert contact.address == "Find us at 400 Market Street, Suite 12, Portland OR"

    def test_nothing_found(self):
        assert parse_contact_text("Say hi") == ContactInfo()
