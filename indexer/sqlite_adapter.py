"""SQLite persistence for crawl sessions.

Stores the latest crawl (session metadata, pages with their FAQs, products
and contact details, and the ordered chunk corpus) so the index can be
rebuilt without crawling again.
"""

import sqlite3
import logging
import json
import threading
from typing import List, Dict, Any, Optional
from pathlib import Path

from pipelines.models import ContactInfo, CrawlState, Faq, PageRecord, Product

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS scraping_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    website_url TEXT NOT NULL,
    total_pages INTEGER,
    scraped_at TEXT,
    summary TEXT
);

CREATE TABLE IF NOT EXISTS pages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER,
    url TEXT NOT NULL,
    title TEXT,
    text_content TEXT,
    FOREIGN KEY (session_id) REFERENCES scraping_sessions (id)
);

CREATE TABLE IF NOT EXISTS faqs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page_id INTEGER,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    FOREIGN KEY (page_id) REFERENCES pages (id)
);

CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page_id INTEGER,
    name TEXT,
    description TEXT,
    price TEXT,
    FOREIGN KEY (page_id) REFERENCES pages (id)
);

CREATE TABLE IF NOT EXISTS contact_info (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page_id INTEGER,
    email TEXT,
    phone TEXT,
    address TEXT,
    FOREIGN KEY (page_id) REFERENCES pages (id)
);

CREATE TABLE IF NOT EXISTS text_chunks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER,
    chunk_text TEXT NOT NULL,
    FOREIGN KEY (session_id) REFERENCES scraping_sessions (id)
);
"""

# Children before parents so foreign keys hold while deleting
_CLEAR_ORDER = ["text_chunks", "contact_info", "products", "faqs", "pages", "scraping_sessions"]


class SessionStore:
    """SQLite store holding the most recent crawl session."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = threading.RLock()

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn: Optional[sqlite3.Connection] = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SCHEMA)
        self.conn.commit()

        logger.info(f"Session store initialized: {db_path}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close SQLite connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.info("SQLite connection closed")

    def clear_all_data(self):
        """Delete every stored session."""
        with self._lock, self.conn:
            self._clear(self.conn)
        logger.info("Cleared all stored sessions")

    @staticmethod
    def _clear(conn: sqlite3.Connection):
        for table in _CLEAR_ORDER:
            conn.execute(f"DELETE FROM {table}")

    def save_crawl(self, state: CrawlState, chunks: List[str]) -> int:
        """Replace stored data with a completed crawl and its chunks.

        Everything is written in one transaction; on error nothing changes.

        Returns:
            The new session id
        """
        record = state.to_session_record()

        with self._lock, self.conn:
            self._clear(self.conn)

            cursor = self.conn.execute(
                "INSERT INTO scraping_sessions (website_url, total_pages, scraped_at, summary) VALUES (?, ?, ?, ?)",
                (record["website_url"], record["total_pages"], record["scraped_at"], json.dumps(record["summary"]))
            )
            session_id = cursor.lastrowid

            for page in state.pages:
                self._insert_page(session_id, page)

            self.conn.executemany(
                "INSERT INTO text_chunks (session_id, chunk_text) VALUES (?, ?)",
                [(session_id, chunk) for chunk in chunks]
            )

        logger.info(f"Saved session {session_id}: {len(state.pages)} pages, {len(chunks)} chunks")
        return session_id

    def _insert_page(self, session_id: int, page: PageRecord):
        cursor = self.conn.execute(
            "INSERT INTO pages (session_id, url, title, text_content) VALUES (?, ?, ?, ?)",
            (session_id, page.url, page.title, page.text)
        )
        page_id = cursor.lastrowid

        self.conn.executemany(
            "INSERT INTO faqs (page_id, question, answer) VALUES (?, ?, ?)",
            [(page_id, faq.question, faq.answer) for faq in page.faqs]
        )
        self.conn.executemany(
            "INSERT INTO products (page_id, name, description, price) VALUES (?, ?, ?, ?)",
            [(page_id, p.name, p.description, p.price) for p in page.products]
        )
        if not page.contact.is_empty():
            self.conn.execute(
                "INSERT INTO contact_info (page_id, email, phone, address) VALUES (?, ?, ?, ?)",
                (page_id, page.contact.email, page.contact.phone, page.contact.address)
            )

    def get_latest_session(self) -> Optional[Dict[str, Any]]:
        """Most recent session row, with its summary decoded."""
        with self._lock:
            row = self.conn.execute(
                "SELECT * FROM scraping_sessions ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return self._session_dict(row) if row else None

    def get_text_chunks(self, session_id: int) -> List[str]:
        """Chunks of a session in insertion order."""
        with self._lock:
            rows = self.conn.execute(
                "SELECT chunk_text FROM text_chunks WHERE session_id = ? ORDER BY id",
                (session_id,)
            ).fetchall()
        return [row["chunk_text"] for row in rows]

    def get_website_data(self, session_id: int) -> Optional[Dict[str, Any]]:
        """Session metadata plus its pages rebuilt as PageRecords."""
        with self._lock:
            row = self.conn.execute(
                "SELECT * FROM scraping_sessions WHERE id = ?", (session_id,)
            ).fetchone()
            if row is None:
                return None

            data = self._session_dict(row)
            data["pages"] = self._get_pages(session_id)
        return data

    def _get_pages(self, session_id: int) -> List[PageRecord]:
        pages = []
        page_rows = self.conn.execute(
            "SELECT * FROM pages WHERE session_id = ? ORDER BY id", (session_id,)
        ).fetchall()

        for page_row in page_rows:
            page_id = page_row["id"]
            faqs = [
                Faq(question=r["question"], answer=r["answer"])
                for r in self.conn.execute(
                    "SELECT question, answer FROM faqs WHERE page_id = ? ORDER BY id", (page_id,)
                )
            ]
            products = [
                Product(name=r["name"], description=r["description"], price=r["price"])
                for r in self.conn.execute(
                    "SELECT name, description, price FROM products WHERE page_id = ? ORDER BY id", (page_id,)
                )
            ]
            contact_row = self.conn.execute(
                "SELECT email, phone, address FROM contact_info WHERE page_id = ?", (page_id,)
            ).fetchone()
            contact = ContactInfo(**dict(contact_row)) if contact_row else ContactInfo()

            pages.append(PageRecord(
                url=page_row["url"],
                title=page_row["title"] or "",
                text=page_row["text_content"] or "",
                faqs=faqs,
                products=products,
                contact=contact
            ))

        return pages

    @staticmethod
    def _session_dict(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "website_url": row["website_url"],
            "total_pages": row["total_pages"],
            "scraped_at": row["scraped_at"],
            "summary": json.loads(row["summary"]) if row["summary"] else {},
        }
