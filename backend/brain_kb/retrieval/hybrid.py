"""Rank-decay fusion of semantic and keyword results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from brain_kb.models.entities import KeywordSearchResult, SemanticSearchResult

if TYPE_CHECKING:
    from brain_kb.retrieval.keyword import KeywordSearch
    from brain_kb.retrieval.semantic import SemanticSearch


@dataclass(slots=True)
class RankedResult:
    result: SemanticSearchResult
    score: float


def fuse_rankings(
    semantic: Sequence[SemanticSearchResult],
    keyword: Sequence[KeywordSearchResult],
    semantic_weight: float = 0.7,
) -> list[RankedResult]:
    """Combine two ranked lists into semantic-shaped results ordered by fused score.

    A semantic hit at position ``i`` scores ``(1 - i/N) * semantic_weight``. A
    keyword hit at position ``j`` adds ``(1 - j/M) * (1 - semantic_weight)`` to
    every semantic hit of the same document. Keyword hits without a semantic
    counterpart are dropped. Ties keep semantic order.
    """
    if not 0.0 <= semantic_weight <= 1.0:
        raise ValueError("semantic_weight must be between 0 and 1")
    ranked = [
        RankedResult(result=result, score=(1 - index / len(semantic)) * semantic_weight)
        for index, result in enumerate(semantic)
    ]
    by_doc: dict[str, list[RankedResult]] = {}
    for item in ranked:
        by_doc.setdefault(item.result.doc_id, []).append(item)
    for index, hit in enumerate(keyword):
        boost = (1 - index / len(keyword)) * (1 - semantic_weight)
        for item in by_doc.get(hit.doc_id, ()):
            item.score += boost
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked


class HybridRanker:
    """Fetch twice the limit from both searches and fuse them.

    Assumes semantic search is available; callers substitute keyword search
    when embeddings are disabled.
    """

    def __init__(self, semantic: SemanticSearch, keyword: KeywordSearch) -> None:
        self.semantic = semantic
        self.keyword = keyword

    def search(
        self,
        query: str,
        owner_id: str,
        semantic_weight: float = 0.7,
        limit: int = 10,
    ) -> list[RankedResult]:
        if limit <= 0:
            return []
        semantic_hits = self.semantic.search(query, owner_id, limit * 2)
        keyword_hits = self.keyword.search(query, owner_id, limit * 2)
        return fuse_rankings(semantic_hits, keyword_hits, semantic_weight)[:limit]


__all__ = ["HybridRanker", "RankedResult", "fuse_rankings"]
