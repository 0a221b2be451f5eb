"""Tests for retrieval utilities."""

import math
import random

import pytest

from brain_kb.ingest.embeddings import EmbeddingClient
from brain_kb.models.entities import KeywordSearchResult, SemanticSearchResult
from brain_kb.retrieval.hybrid import HybridRanker, fuse_rankings
from brain_kb.retrieval.keyword import KeywordSearch, generate_snippet, tokenize_query
from brain_kb.retrieval.semantic import SemanticSearch
from brain_kb.retrieval.vector_index import DimensionMismatchError, cosine_similarity


def _semantic(doc_id: str, chunk_id: str, similarity: float = 0.5) -> SemanticSearchResult:
    return SemanticSearchResult(
        doc_id=doc_id,
        chunk_id=chunk_id,
        content=f"content of {chunk_id}",
        similarity=similarity,
        doc_title=doc_id.upper(),
        source_type="text",
        chunk_index=0,
    )


def _keyword(doc_id: str) -> KeywordSearchResult:
    return KeywordSearchResult(
        doc_id=doc_id,
        title=doc_id.upper(),
        content="",
        source_type="text",
        match_count=1,
        snippet="",
    )


# Cosine similarity -----------------------------------------------------------


def test_cosine_similarity_symmetry_and_bounds() -> None:
    rng = random.Random(7)
    for _ in range(50):
        a = [rng.uniform(-1, 1) for _ in range(8)]
        b = [rng.uniform(-1, 1) for _ in range(8)]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert -1.0 <= cosine_similarity(a, b) <= 1.0
        assert cosine_similarity(a, a) == pytest.approx(1.0)


def test_cosine_similarity_zero_vector_and_mismatch() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
    with pytest.raises(DimensionMismatchError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])
    assert issubclass(DimensionMismatchError, AssertionError)


# Keyword search --------------------------------------------------------------


def test_keyword_search_end_to_end(ingest, store, sample_text: str) -> None:
    ingest.ingest_text("u1", "Greeting", sample_text)
    search = KeywordSearch(store)

    [result] = search.search("cats", "u1", 10)
    assert result.match_count == 1
    assert "cats" in result.snippet
    assert result.snippet == sample_text
    assert search.search("dogs", "u1", 10) == []


def test_keyword_search_matches_every_document_with_token(ingest, store) -> None:
    doc_a = ingest.ingest_text("owner", "A", "apple banana")
    doc_b = ingest.ingest_text("owner", "B", "banana cherry")
    results = KeywordSearch(store).search("banana", "owner", 10)
    assert {result.doc_id for result in results} == {doc_a.id, doc_b.id}
    assert all(result.match_count >= 1 for result in results)


def test_keyword_search_requires_every_token(ingest, store) -> None:
    ingest.ingest_text("owner", "A", "apple banana")
    ingest.ingest_text("owner", "B", "banana cherry")
    [result] = KeywordSearch(store).search("Banana CHERRY", "owner", 10)
    assert result.title == "B"
    assert result.match_count == 2


def test_keyword_search_matches_title_and_counts_both(ingest, store) -> None:
    ingest.ingest_text("owner", "Banana bread", "A recipe with banana and more banana.")
    [result] = KeywordSearch(store).search("banana", "owner", 10)
    assert result.match_count == 3


def test_keyword_search_short_tokens_and_ownership(ingest, store) -> None:
    ingest.ingest_text("u1", "Mine", "an ox is big")
    ingest.ingest_text("u2", "Theirs", "cats everywhere")
    search = KeywordSearch(store)
    assert tokenize_query("an ox is") == []
    assert search.search("an ox is", "u1", 10) == []
    assert search.search("cats", "u1", 10) == []


def test_keyword_search_folds_non_ascii_case(ingest, store) -> None:
    doc = ingest.ingest_text("u1", "Notizen", "Über alles und mehr")
    search = KeywordSearch(store)
    for query in ("über", "ÜBER", "Über"):
        [result] = search.search(query, "u1", 10)
        assert result.doc_id == doc.id
        assert result.match_count == 1
    assert tokenize_query("ÜBER Straße") == ["über", "strasse"]


def test_keyword_search_skips_documents_not_ready(ingest, store) -> None:
    doc = ingest.ingest_text("u1", "Cats", "cats are here")
    store.mark_error(doc.id, "failed later")
    assert KeywordSearch(store).search("cats", "u1", 10) == []


def test_generate_snippet_windows() -> None:
    text = "a" * 200 + " cats " + "b" * 200
    snippet = generate_snippet(text, "cats")
    assert snippet.startswith("...")
    assert snippet.endswith("...")
    assert "cats" in snippet
    assert len(snippet) == 150 + 6

    assert generate_snippet("x" * 200, "cats") == "x" * 150 + "..."
    assert generate_snippet("short text", "cats") == "short text"
    assert generate_snippet("Cats first then more", "cats") == "Cats first then more"


# Semantic search -------------------------------------------------------------


def _embed_all(store, indexer, *docs) -> None:
    for doc in docs:
        indexer.generate_embeddings_for_doc(doc.id)


def test_semantic_search_ranks_by_similarity(ingest, store, indexer, embedding_client) -> None:
    apple = ingest.ingest_text("u1", "Apples", "apple apple apple")
    mixed = ingest.ingest_text("u1", "Mixed", "apple banana")
    cherry = ingest.ingest_text("u1", "Cherries", "cherry only")
    _embed_all(store, indexer, apple, mixed, cherry)

    results = SemanticSearch(store, embedding_client).search("apple", "u1", 10)
    assert [result.doc_id for result in results] == [apple.id, mixed.id, cherry.id]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[1].similarity == pytest.approx(1 / math.sqrt(2))
    assert results[2].similarity == 0.0
    assert results[0].doc_title == "Apples"

    assert len(SemanticSearch(store, embedding_client).search("apple", "u1", 1)) == 1


def test_semantic_search_disabled_and_isolated(ingest, store, indexer, embedding_client) -> None:
    doc = ingest.ingest_text("u2", "Theirs", "apple pie")
    _embed_all(store, indexer, doc)
    assert SemanticSearch(store, embedding_client).search("apple", "u1", 10) == []
    assert SemanticSearch(store, EmbeddingClient(None)).search("apple", "u2", 10) == []


def test_find_similar_uses_first_chunk_and_dedupes(store, indexer, embedding_client) -> None:
    from brain_kb.ingest.pipeline import IngestService

    service = IngestService(store, chunk_size=100, chunk_overlap=20)
    reference = service.ingest_text("u1", "Reference", "apple " * 15 + ". " + "cherry " * 20)
    twin = service.ingest_text("u1", "Twin", "apple apple. " * 20)
    other = service.ingest_text("u1", "Other", "banana cherry")
    foreign = service.ingest_text("u2", "Foreign", "apple")
    _embed_all(store, indexer, reference, twin, other, foreign)
    assert twin.chunk_count > 1

    semantic = SemanticSearch(store, embedding_client)
    results = semantic.find_similar(reference.id, "u1", 5)
    assert [result.doc_id for result in results] == [twin.id, other.id]
    assert results[0].similarity == pytest.approx(1.0)
    assert len({result.doc_id for result in results}) == len(results)

    assert semantic.find_similar(reference.id, "u1", 1)[0].doc_id == twin.id
    assert semantic.find_similar(reference.id, "u2", 5) == []
    assert SemanticSearch(store, EmbeddingClient(None)).find_similar(reference.id, "u1", 5) == []


# Hybrid fusion ---------------------------------------------------------------


def test_fuse_rankings_rank_decay_and_keyword_boost() -> None:
    semantic = [_semantic("d1", "c1"), _semantic("d2", "c2"), _semantic("d1", "c3"), _semantic("d3", "c4")]
    keyword = [_keyword("d3"), _keyword("d9")]

    fused = fuse_rankings(semantic, keyword, semantic_weight=0.7)
    scores = {item.result.chunk_id: item.score for item in fused}
    assert scores["c1"] == pytest.approx(0.7)
    assert scores["c2"] == pytest.approx(0.525)
    assert scores["c3"] == pytest.approx(0.35)
    assert scores["c4"] == pytest.approx(0.175 + 0.3)
    assert [item.result.chunk_id for item in fused] == ["c1", "c2", "c4", "c3"]
    assert all(item.result.doc_id != "d9" for item in fused)


def test_fuse_rankings_boosts_every_chunk_of_document() -> None:
    semantic = [_semantic("d1", "c1"), _semantic("d2", "c2"), _semantic("d2", "c3")]
    fused = fuse_rankings(semantic, [_keyword("d2")], semantic_weight=0.5)
    scores = {item.result.chunk_id: item.score for item in fused}
    assert scores["c2"] == pytest.approx(0.5 / 3 * 2 + 0.5)
    assert scores["c3"] == pytest.approx(0.5 / 3 + 0.5)
    assert [item.result.chunk_id for item in fused] == ["c2", "c3", "c1"]


def test_fuse_rankings_is_deterministic() -> None:
    semantic = [_semantic(f"d{index % 4}", f"c{index}") for index in range(10)]
    keyword = [_keyword("d2"), _keyword("d0")]
    first = [(item.result.chunk_id, item.score) for item in fuse_rankings(semantic, keyword)]
    second = [(item.result.chunk_id, item.score) for item in fuse_rankings(list(semantic), list(keyword))]
    assert first == second
    assert fuse_rankings([], keyword) == []
    with pytest.raises(ValueError):
        fuse_rankings(semantic, keyword, semantic_weight=1.5)


def test_hybrid_ranker_combines_searches(ingest, store, indexer, embedding_client) -> None:
    apple = ingest.ingest_text("u1", "Apples", "apple apple")
    banana = ingest.ingest_text("u1", "Bananas", "banana with one apple")
    _embed_all(store, indexer, apple, banana)

    ranker = HybridRanker(SemanticSearch(store, embedding_client), KeywordSearch(store))
    results = ranker.search("apple", "u1", semantic_weight=0.7, limit=10)
    assert [item.result.doc_id for item in results] == [apple.id, banana.id]
    assert len(ranker.search("apple", "u1", limit=1)) == 1
    assert ranker.search("apple", "u1", limit=0) == []
