"""Tests for TF-IDF scoring and the index handle."""

import math
import threading

import pytest

from indexer.relevance import IndexHandle, RelevanceIndex, SearchHit, tokenize

CORPUS = [
    "Welcome to the Acme bakery",
    "Our business hours are 9am to 5pm daily",
    "Contact us by email for catering orders",
]


@pytest.fixture
def index():
    return RelevanceIndex(CORPUS)


def test_tokenize_lowercases_and_drops_stopwords():
    assert tokenize("What are YOUR opening Hours?") == ["opening", "hours"]


def test_business_hours_hits_only_matching_chunk(index):
    hits = index.score("business hours")
    assert len(hits) == 1
    assert hits[0].index == 1
    assert hits[0].score > 0
    assert hits[0].text == CORPUS[1]


def test_no_overlap_is_empty(index):
    assert index.score("nonexistent") == []


def test_stopword_only_query_is_empty(index):
    assert index.score("the and our") == []


def test_empty_corpus():
    empty = RelevanceIndex([])
    assert len(empty) == 0
    assert empty.score("anything") == []
    assert empty.top_k("anything", 5) == []


def test_idf_formula(index):
    assert index.idf("hours") == pytest.approx(1 + math.log(3 / 2))
    assert index.idf("missing") == pytest.approx(1 + math.log(3))


def test_idf_positive_when_term_in_every_chunk():
    common = RelevanceIndex(["bread rolls", "bread loaf", "bread crumbs"])
    assert common.idf("bread") > 0
    assert len(common.score("bread")) == 3


def test_rarer_terms_score_higher():
    idx = RelevanceIndex(["cake pie", "cake tart", "cake scone"])
    hits = idx.score("cake tart")
    assert hits[0].index == 1
    assert [hit.index for hit in hits[1:]] == [0, 2]


def test_term_frequency_raises_score():
    idx = RelevanceIndex(["bread", "bread bread bread", "cookies"])
    assert [hit.index for hit in idx.score("bread")] == [1, 0]


def test_ties_keep_corpus_order():
    idx = RelevanceIndex(["coffee beans", "tea leaves", "coffee cups", "coffee mugs"])
    hits = idx.score("coffee")
    assert [hit.index for hit in hits] == [0, 2, 3]
    assert hits[0].score == hits[1].score == hits[2].score


def test_repeated_query_terms_counted_once():
    idx = RelevanceIndex(["cake", "pie"])
    assert idx.score("cake cake cake")[0].score == idx.score("cake")[0].score


def test_top_k_and_search():
    idx = RelevanceIndex(["pizza oven", "pizza dough", "pizza pizza", "salad"])
    assert idx.top_k("pizza", 2) == [2, 0]
    assert idx.search("pizza", 0) == []
    assert all(isinstance(hit, SearchHit) for hit in idx.search("pizza", 10))
    assert len(idx.search("pizza", 10)) == 3


def test_rebuild_is_deterministic():
    first = RelevanceIndex(CORPUS).score("email orders hours")
    second = RelevanceIndex(list(CORPUS)).score("email orders hours")
    assert first == second


class TestIndexHandle:

    def test_starts_empty(self):
        handle = IndexHandle()
        assert handle.current is None
        assert not handle.loaded

    def test_swap_returns_previous(self, index):
        handle = IndexHandle()
        assert handle.swap(index) is None
        replacement = RelevanceIndex(["new corpus"])
        assert handle.swap(replacement) is index
        assert handle.current is replacement

    def test_readers_keep_their_reference(self, index):
        handle = IndexHandle(index)
        snapshot = handle.current
        handle.swap(RelevanceIndex(["other"]))
        assert snapshot.score("business hours")[0].index == 1

    def test_concurrent_swaps(self):
        handle = IndexHandle()
        indexes = [RelevanceIndex([f"chunk {i}"]) for i in range(20)]
        threads = [threading.Thread(target=handle.swap, args=(idx,)) for idx in indexes]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert handle.current in indexes
