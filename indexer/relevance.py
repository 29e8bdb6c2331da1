"""TF-IDF relevance index over the chunk corpus of one crawl.

Term frequency is the raw count of a term in a chunk and
``idf(t) = 1 + ln(N / (1 + df(t)))``. A query scores every chunk by summing
``tf * idf`` over its distinct terms; only strictly positive scores are hits.
"""

import logging
import math
import re
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from observability.metrics import record_index_build

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r'\w+')

STOPWORDS = frozenset({
    "about", "above", "after", "again", "all", "also", "am", "an", "and", "another",
    "any", "are", "as", "at", "be", "because", "been", "before", "being", "below",
    "between", "both", "but", "by", "came", "can", "cannot", "come", "could", "did",
    "do", "does", "doing", "down", "during", "each", "few", "for", "from", "further",
    "get", "got", "had", "has", "have", "having", "he", "her", "here", "hers",
    "herself", "him", "himself", "his", "how", "i", "if", "in", "into", "is", "it",
    "its", "itself", "just", "like", "make", "many", "me", "might", "more", "most",
    "much", "must", "my", "myself", "never", "no", "nor", "not", "now", "of", "off",
    "on", "once", "only", "or", "other", "our", "ours", "ourselves", "out", "over",
    "own", "said", "same", "see", "she", "should", "since", "so", "some", "still",
    "such", "take", "than", "that", "the", "their", "theirs", "them", "themselves",
    "then", "there", "these", "they", "this", "those", "through", "to", "too",
    "under", "until", "up", "very", "was", "way", "we", "well", "were", "what",
    "when", "where", "which", "while", "who", "whom", "why", "will", "with",
    "would", "you", "your", "yours", "yourself", "yourselves", "a", "b", "c", "d",
    "e", "f", "g", "h", "j", "k", "l", "m", "n", "o", "p", "q", "r", "s", "t",
    "u", "v", "w", "x", "y", "z",
})


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens with stopwords removed."""
    return [t for t in TOKEN_PATTERN.findall(text.lower()) if t not in STOPWORDS]


@dataclass(frozen=True)
class SearchHit:
    """A chunk matched by a query."""
    index: int
    score: float
    text: str

    def to_dict(self) -> Dict[str, object]:
        return {"index": self.index, "score": self.score, "text": self.text}


class RelevanceIndex:
    """Immutable TF-IDF index built once over an ordered chunk list."""

    def __init__(self, chunks: Iterable[str]):
        self._chunks: List[str] = list(chunks)
        self._term_counts: List[Counter] = []
        self._df: Dict[str, int] = {}
        self._build()

    def _build(self):
        for chunk in self._chunks:
            counts = Counter(tokenize(chunk))
            self._term_counts.append(counts)
            for term in counts:
                self._df[term] = self._df.get(term, 0) + 1

        record_index_build(len(self._chunks))
        logger.info(f"Relevance index built: {len(self._chunks)} chunks, {len(self._df)} terms")

    def __len__(self) -> int:
        return len(self._chunks)

    @property
    def chunks(self) -> List[str]:
        return list(self._chunks)

    def idf(self, term: str) -> float:
        n = len(self._chunks)
        if n == 0:
            return 0.0
        return 1.0 + math.log(n / (1 + self._df.get(term, 0)))

    def tf_idf(self, term: str, index: int) -> float:
        return self._term_counts[index].get(term, 0) * self.idf(term)

    def score(self, query: str) -> List[SearchHit]:
        """Score every chunk against a query.

        Returns:
            Hits with a strictly positive score, highest first; equal scores
            keep corpus order
        """
        terms = set(tokenize(query))
        if not terms or not self._chunks:
            return []

        idf = {term: self.idf(term) for term in terms if term in self._df}
        if not idf:
            return []

        hits = []
        for index, counts in enumerate(self._term_counts):
            score = sum(counts[term] * weight for term, weight in idf.items() if term in counts)
            if score > 0:
                hits.append(SearchHit(index=index, score=score, text=self._chunks[index]))

        hits.sort(key=lambda hit: (-hit.score, hit.index))
        return hits

    def search(self, query: str, k: int = 5) -> List[SearchHit]:
        """Top k hits for a query."""
        if k <= 0:
            return []
        return self.score(query)[:k]

    def top_k(self, query: str, k: int = 5) -> List[int]:
        """Indices of the top k chunks for a query."""
        return [hit.index for hit in self.search(query, k)]


class IndexHandle:
    """Holder for the live index; a new build replaces it whole.

    Readers call ``current`` once per query and keep using that reference,
    so an in-flight query never sees a half-replaced index.
    """

    def __init__(self, index: Optional[RelevanceIndex] = None):
        self._lock = threading.Lock()
        self._index = index

    @property
    def current(self) -> Optional[RelevanceIndex]:
        with self._lock:
            return self._index

    @property
    def loaded(self) -> bool:
        return self.current is not None

    def swap(self, index: Optional[RelevanceIndex]) -> Optional[RelevanceIndex]:
        """Install a new index and return the previous one."""
        with self._lock:
            previous, self._index = self._index, index
        logger.debug(f"Index swapped ({len(index) if index is not None else 0} chunks)")
        return previous
