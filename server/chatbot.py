"""Business chatbot: crawl a website, index it and answer questions about it."""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from config.settings import Settings, get_settings
from indexer.assembler import assemble_context
from indexer.relevance import IndexHandle, RelevanceIndex
from indexer.sqlite_adapter import SessionStore
from observability.logging import log_context
from observability.metrics import record_query
from pipelines.chunker import TextChunker
from pipelines.crawler import WebCrawler
from .generation import AnthropicGenerator, GenerationError

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "I don't have any website data loaded yet. Please scrape a website first."
ERROR_MESSAGE = "I encountered an error while processing your question: {reason}"

SUGGESTED_QUESTIONS = [
    "What are your business hours?",
    "How can I contact you?",
    "What products/services do you offer?",
    "Do you have any FAQs?",
    "What are your prices?",
    "Where are you located?",
    "Do you offer customer support?",
]
FAQ_SUGGESTION = "Can you answer some frequently asked questions?"
PRODUCT_SUGGESTION = "Can you tell me more about your products?"


class CrawlInProgressError(RuntimeError):
    """Raised when a crawl is requested while another one is running."""


class BusinessChatbot:
    """Owns the crawler, the session store, the live index and the generator."""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 store: Optional[SessionStore] = None,
                 generator: Optional[AnthropicGenerator] = None,
                 crawler: Optional[WebCrawler] = None):
        self.settings = settings or get_settings()
        self.store = store or SessionStore(self.settings.db_path)
        self.crawler = crawler or WebCrawler.from_config(self.settings.crawler)
        self.chunker = TextChunker(self.settings.crawler.chunk_max_length)
        self.index = IndexHandle()

        self._generator = generator
        self._crawl_lock = threading.Lock()
        self.session_id: Optional[int] = None
        self.website_data: Optional[Dict[str, Any]] = None

    @property
    def generator(self) -> AnthropicGenerator:
        """Generator, created on first use."""
        if self._generator is None:
            self._generator = AnthropicGenerator(self.settings.generation)
        return self._generator

    @property
    def is_loaded(self) -> bool:
        return self.index.loaded

    def close(self):
        self.crawler.close()
        self.store.close()

    def load_website(self, website_url: str, max_pages: Optional[int] = None) -> Dict[str, Any]:
        """Crawl a website, persist it and replace the live index.

        Raises:
            CrawlInProgressError: If another crawl is running
        """
        if not self._crawl_lock.acquire(blocking=False):
            raise CrawlInProgressError("A crawl is already in progress")

        try:
            if max_pages is None:
                max_pages = self.settings.crawler.max_pages

            state = self.crawler.crawl(website_url, max_pages)
            chunks = self.chunker.chunk_pages(state.pages)
            self.session_id = self.store.save_crawl(state, chunks)

            website_data = state.to_session_record()
            self.index.swap(RelevanceIndex(chunks))
            self.website_data = website_data

            logger.info(f"Loaded {len(chunks)} text chunks for {state.base_url}",
                        extra={"session_id": self.session_id})
            return website_data
        finally:
            self._crawl_lock.release()

    def load_session(self, session_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Rebuild the index from a stored session without crawling.

        Returns:
            The session's website data, or None if nothing is stored
        """
        if session_id is None:
            session = self.store.get_latest_session()
            if session is None:
                logger.info("No stored session to load")
                return None
            session_id = session["id"]

        website_data = self.store.get_website_data(session_id)
        if website_data is None:
            logger.warning(f"Session {session_id} not found")
            return None

        chunks = self.store.get_text_chunks(session_id)
        self.index.swap(RelevanceIndex(chunks))
        self.session_id = session_id
        self.website_data = {
            key: website_data[key]
            for key in ("website_url", "total_pages", "scraped_at", "summary")
        }

        logger.info(f"Loaded {len(chunks)} text chunks from database", extra={"session_id": session_id})
        return self.website_data

    def answer_question(self, question: str, max_results: Optional[int] = None) -> str:
        """Answer a question from the indexed website content."""
        index = self.index.current
        if index is None or len(index) == 0:
            return NO_DATA_MESSAGE

        if max_results is None:
            max_results = self.settings.generation.max_results

        with log_context(session_id=self.session_id):
            hits = index.search(question, max_results)
            context = assemble_context(hits)
            logger.debug(f"Retrieved {len(hits)} chunks for question: {question}")

            start_time = time.time()
            try:
                answer = self.generator.generate(context, question)
            except GenerationError as e:
                logger.error(f"Error generating response: {e}")
                record_query(len(hits), error="generation_error")
                return ERROR_MESSAGE.format(reason=e)

        record_query(len(hits), generation_time=time.time() - start_time)
        return answer

    def get_website_summary(self) -> Optional[Dict[str, Any]]:
        """Metadata of the loaded website, or None if nothing is loaded."""
        index = self.index.current
        chunks_loaded = len(index) if index is not None else 0

        if self.session_id is not None:
            stored = self.store.get_website_data(self.session_id)
            if stored:
                return {
                    "website_url": stored["website_url"],
                    "total_pages": stored["total_pages"],
                    "scraped_at": stored["scraped_at"],
                    "summary": stored["summary"],
                    "chunks_loaded": chunks_loaded,
                    "data_source": "database",
                }

        if self.website_data is None:
            return None

        return {
            **self.website_data,
            "chunks_loaded": chunks_loaded,
            "data_source": "memory",
        }

    def suggest_questions(self) -> List[str]:
        suggestions = list(SUGGESTED_QUESTIONS)
        summary = (self.website_data or {}).get("summary") or {}

        if summary.get("total_faqs", 0) > 0:
            suggestions.append(FAQ_SUGGESTION)
        if summary.get("total_products", 0) > 0:
            suggestions.append(PRODUCT_SUGGESTION)

        return suggestions
