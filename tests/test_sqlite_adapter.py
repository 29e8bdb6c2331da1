"""Tests for the SQLite session store."""

import sqlite3

import pytest

from indexer.sqlite_adapter import SessionStore
from pipelines.models import ContactInfo, CrawlState, Faq, PageRecord, Product


def make_state(url="https://example.com/"):
    state = CrawlState(base_url=url, max_pages=5)
    state.pages.extend([
        PageRecord(
            url=url,
            title="Home",
            text="Welcome",
            faqs=[Faq(question="Open late?", answer="Until 8pm.")],
            products=[Product(name="Rye", price="$5"), Product(description="Seasonal")],
            contact=ContactInfo(email="hi@example.com", phone="555-123-4567"),
        ),
        PageRecord(url=url + "about", title="About"),
    ])
    state.visited.update(page.url for page in state.pages)
    state.finish()
    return state


@pytest.fixture
def store(tmp_path):
    store = SessionStore(str(tmp_path / "data" / "sitechat.db"))
    yield store
    store.close()


def test_empty_store(store):
    assert store.get_latest_session() is None
    assert store.get_website_data(1) is None
    assert store.get_text_chunks(1) == []


def test_save_and_load_round_trip(store):
    state = make_state()
    chunks = ["Page Title: Home", "Welcome", "Page Title: About"]

    session_id = store.save_crawl(state, chunks)

    session = store.get_latest_session()
    assert session["id"] == session_id
    assert session["website_url"] == "https://example.com/"
    assert session["total_pages"] == 2
    assert session["summary"] == {
        "total_pages": 2,
        "total_faqs": 1,
        "total_products": 2,
        "has_contact_info": True,
    }

    assert store.get_text_chunks(session_id) == chunks

    data = store.get_website_data(session_id)
    assert data["pages"] == state.pages


def test_save_replaces_previous_session(store):
    first = store.save_crawl(make_state("https://one.example/"), ["one"])
    second = store.save_crawl(make_state("https://two.example/"), ["two"])

    assert second != first
    assert store.get_latest_session()["website_url"] == "https://two.example/"
    assert store.get_website_data(first) is None
    assert store.get_text_chunks(first) == []
    assert store.get_text_chunks(second) == ["two"]


def test_failed_save_keeps_previous_session(store):
    session_id = store.save_crawl(make_state(), ["kept"])

    with pytest.raises(sqlite3.IntegrityError):
        store.save_crawl(make_state("https://bad.example/"), ["ok", None])

    assert store.get_latest_session()["id"] == session_id
    assert store.get_text_chunks(session_id) == ["kept"]


def test_clear_all_data(store):
    store.save_crawl(make_state(), ["chunk"])
    store.clear_all_data()
    assert store.get_latest_session() is None


def test_persists_across_connections(tmp_path):
    path = str(tmp_path / "sitechat.db")
    with SessionStore(path) as store:
        session_id = store.save_crawl(make_state(), ["a", "b"])

    with SessionStore(path) as reopened:
        assert reopened.get_text_chunks(session_id) == ["a", "b"]
