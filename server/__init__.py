"""Chatbot service, answer generation and API surface for SiteChat."""

from .generation import AnthropicGenerator, GenerationError
from .chatbot import BusinessChatbot, CrawlInProgressError

__all__ = [
    'AnthropicGenerator',
    'GenerationError',
    'BusinessChatbot',
    'CrawlInProgressError'
]
