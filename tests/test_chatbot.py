"""Tests for the business chatbot service."""

from unittest.mock import Mock

import pytest

from conftest import FakeTransport, SITE_ROOT, link_page
from config.settings import Settings
from indexer.sqlite_adapter import SessionStore
from pipelines.crawler import WebCrawler
from server.chatbot import (
    BusinessChatbot,
    CrawlInProgressError,
    FAQ_SUGGESTION,
    NO_DATA_MESSAGE,
    PRODUCT_SUGGESTION,
    SUGGESTED_QUESTIONS,
)
from server.generation import GenerationError

BUSINESS_SITE = {
    "https://example.com/": link_page("Home", "/hours", "/shop", body="Welcome to Acme bakery"),
    "https://example.com/hours": link_page("Hours", body="Our business hours are 9am to 5pm"),
    "https://example.com/shop": (
        "<html><head><title>Shop</title></head><body>"
        '<div class="product"><h3>Sourdough</h3><p>Tangy loaf</p><span class="price">$6</span></div>'
        '<div class="faq"><h4>Do you ship?</h4><p>Only locally.</p></div>'
        "</body></html>"
    ),
}


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=str(tmp_path / "sitechat.db"))


@pytest.fixture
def generator():
    generator = Mock()
    generator.generate.return_value = "We are open from 9am to 5pm."
    return generator


@pytest.fixture
def store(settings):
    store = SessionStore(settings.db_path)
    yield store
    store.close()


@pytest.fixture
def chatbot(settings, store, generator):
    crawler = WebCrawler(transport=FakeTransport(dict(BUSINESS_SITE)), sleep=lambda seconds: None)
    return BusinessChatbot(settings, store=store, generator=generator, crawler=crawler)


def test_answer_without_data(chatbot, generator):
    assert not chatbot.is_loaded
    assert chatbot.answer_question("When are you open?") == NO_DATA_MESSAGE
    generator.generate.assert_not_called()


def test_load_website(chatbot):
    data = chatbot.load_website(SITE_ROOT, max_pages=10)

    assert data["website_url"] == SITE_ROOT
    assert data["total_pages"] == 3
    assert data["summary"]["total_products"] == 1
    assert data["summary"]["total_faqs"] == 1
    assert chatbot.is_loaded
    assert chatbot.session_id is not None


def test_answer_uses_relevant_context(chatbot, generator):
    chatbot.load_website(SITE_ROOT)

    answer = chatbot.answer_question("What are your business hours?")

    assert answer == "We are open from 9am to 5pm."
    context, question = generator.generate.call_args.args
    assert question == "What are your business hours?"
    assert context.split("\n\n")[0] == "Our business hours are 9am to 5pm"


def test_answer_respects_max_results(chatbot, generator):
    chatbot.load_website(SITE_ROOT)
    chatbot.answer_question("sourdough loaf price hours", max_results=1)
    context, _ = generator.generate.call_args.args
    assert "\n\n" not in context


def test_generation_error_message(chatbot, generator):
    chatbot.load_website(SITE_ROOT)
    generator.generate.side_effect = GenerationError("rate limited")

    answer = chatbot.answer_question("Hours?")
    assert answer == "I encountered an error while processing your question: rate limited"


def test_summary_from_database(chatbot):
    assert chatbot.get_website_summary() is None

    chatbot.load_website(SITE_ROOT)
    summary = chatbot.get_website_summary()

    assert summary["data_source"] == "database"
    assert summary["website_url"] == SITE_ROOT
    assert summary["total_pages"] == 3
    assert summary["chunks_loaded"] == len(chatbot.index.current)
    assert summary["chunks_loaded"] > 0


def test_suggestions(chatbot):
    assert chatbot.suggest_questions() == SUGGESTED_QUESTIONS

    chatbot.load_website(SITE_ROOT)
    suggestions = chatbot.suggest_questions()
    assert suggestions[:7] == SUGGESTED_QUESTIONS
    assert suggestions[7:] == [FAQ_SUGGESTION, PRODUCT_SUGGESTION]


def test_load_session_restores_index(chatbot, settings, store, generator):
    chatbot.load_website(SITE_ROOT)
    expected_chunks = chatbot.index.current.chunks

    restored = BusinessChatbot(settings, store=store, generator=generator,
                               crawler=WebCrawler(transport=FakeTransport({})))
    data = restored.load_session()

    assert data["website_url"] == SITE_ROOT
    assert restored.index.current.chunks == expected_chunks
    assert restored.session_id == chatbot.session_id


def test_load_session_without_data(chatbot):
    assert chatbot.load_session() is None
    assert chatbot.load_session(42) is None
    assert not chatbot.is_loaded


def test_concurrent_crawl_rejected(chatbot):
    chatbot._crawl_lock.acquire()
    try:
        with pytest.raises(CrawlInProgressError):
            chatbot.load_website(SITE_ROOT)
    finally:
        chatbot._crawl_lock.release()


def test_recrawl_replaces_index(chatbot):
    chatbot.load_website(SITE_ROOT, max_pages=1)
    first = chatbot.index.current
    chatbot.load_website(SITE_ROOT, max_pages=3)
    assert chatbot.index.current is not first
    assert len(chatbot.index.current) > len(first)


def test_generator_created_lazily(settings, store):
    bot = BusinessChatbot(settings, store=store, crawler=WebCrawler(transport=FakeTransport({})))
    with pytest.raises(GenerationError):
        bot.generator
