"""Search orchestration."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Literal, Union

from brain_kb.core.config import Settings
from brain_kb.core.logging import get_logger
from brain_kb.core.metrics import REQUEST_COUNT, SEARCH_LATENCY
from brain_kb.db.store import DocumentStore
from brain_kb.ingest.embeddings import EmbeddingClient
from brain_kb.models.entities import KeywordSearchResult, SemanticSearchResult
from brain_kb.retrieval.hybrid import HybridRanker, RankedResult
from brain_kb.retrieval.keyword import KeywordSearch
from brain_kb.retrieval.semantic import SemanticSearch

logger = get_logger(__name__)

SearchMode = Literal["keyword", "semantic", "hybrid"]
SearchHit = Union[KeywordSearchResult, SemanticSearchResult, RankedResult]


class SemanticSearchDisabled(RuntimeError):
    """Semantic search was requested but no embedding provider is configured."""


@dataclass(slots=True)
class SearchOutcome:
    """Results of one search call and the mode that actually produced them."""

    requested_mode: str
    mode: str
    results: list[SearchHit] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.mode != self.requested_mode


class SearchService:
    """Coordinates keyword, semantic and hybrid retrieval for one owner at a time."""

    def __init__(self, store: DocumentStore, client: EmbeddingClient, settings: Settings) -> None:
        self.store = store
        self.client = client
        self.settings = settings
        self.keyword = KeywordSearch(store)
        self.semantic = SemanticSearch(store, client)
        self.hybrid = HybridRanker(self.semantic, self.keyword)

    @property
    def embeddings_enabled(self) -> bool:
        return self.client.is_enabled()

    def search(
        self,
        query: str,
        owner_id: str,
        mode: SearchMode = "hybrid",
        limit: int | None = None,
    ) -> SearchOutcome:
        """Dispatch on ``mode``; hybrid falls back to keyword search when embeddings are disabled."""
        limit = limit or self.settings.search_limit
        start_time = time.perf_counter()
        if mode == "keyword":
            outcome = SearchOutcome(mode, "keyword", list(self.keyword_search(query, owner_id, limit)))
        elif mode == "semantic":
            if not self.embeddings_enabled:
                raise SemanticSearchDisabled("Semantic search not enabled (no embedding provider configured)")
            outcome = SearchOutcome(mode, "semantic", list(self.semantic_search(query, owner_id, limit)))
        elif mode == "hybrid":
            if self.embeddings_enabled:
                outcome = SearchOutcome(mode, "hybrid", list(self.hybrid_search(query, owner_id, limit=limit)))
            else:
                outcome = SearchOutcome(mode, "keyword", list(self.keyword_search(query, owner_id, limit)))
        else:
            raise ValueError(f"Unknown search mode {mode!r}")

        SEARCH_LATENCY.labels(mode=outcome.mode).observe(time.perf_counter() - start_time)
        REQUEST_COUNT.labels(endpoint="search", mode=outcome.mode).inc()
        logger.info(
            "Search returned %s results",
            len(outcome.results),
            extra={"ctx_owner_id": owner_id, "ctx_mode": outcome.mode, "ctx_requested_mode": mode},
        )
        return outcome

    def keyword_search(self, query: str, owner_id: str, limit: int = 20) -> list[KeywordSearchResult]:
        return self.keyword.search(query, owner_id, limit)

    def semantic_search(self, query: str, owner_id: str, limit: int = 10) -> list[SemanticSearchResult]:
        return self.semantic.search(query, owner_id, limit)

    def hybrid_search(
        self,
        query: str,
        owner_id: str,
        semantic_weight: float | None = None,
        limit: int = 10,
    ) -> list[RankedResult]:
        weight = self.settings.semantic_weight if semantic_weight is None else semantic_weight
        return self.hybrid.search(query, owner_id, semantic_weight=weight, limit=limit)

    def find_similar(self, document_id: str, owner_id: str, limit: int = 5) -> list[SemanticSearchResult]:
        results = self.semantic.find_similar(document_id, owner_id, limit)
        REQUEST_COUNT.labels(endpoint="similar", mode="semantic").inc()
        return results


__all__ = ["SearchOutcome", "SearchService", "SemanticSearchDisabled"]
