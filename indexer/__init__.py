"""Indexing and retrieval for SiteChat."""

from .relevance import STOPWORDS, tokenize, SearchHit, RelevanceIndex, IndexHandle
from .assembler import PERSONA_INSTRUCTIONS, assemble_context, build_prompt
from .sqlite_adapter import SessionStore

__all__ = [
    'STOPWORDS',
    'tokenize',
    'SearchHit',
    'RelevanceIndex',
    'IndexHandle',
    'PERSONA_INSTRUCTIONS',
    'assemble_context',
    'build_prompt',
    'SessionStore'
]
