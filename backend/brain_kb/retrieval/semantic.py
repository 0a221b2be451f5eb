"""Brute-force cosine search over stored chunk embeddings."""

from __future__ import annotations

from brain_kb.core.logging import get_logger
from brain_kb.db.store import DocumentStore
from brain_kb.ingest.embeddings import EmbeddingClient, EmbeddingError
from brain_kb.models.entities import EmbeddedChunk, SemanticSearchResult
from brain_kb.retrieval.vector_index import cosine_similarity

logger = get_logger(__name__)


class SemanticSearch:
    """Rank an owner's embedded chunks against a query or another document."""

    def __init__(self, store: DocumentStore, client: EmbeddingClient) -> None:
        self.store = store
        self.client = client

    def search(self, query: str, owner_id: str, limit: int = 10) -> list[SemanticSearchResult]:
        """Embed ``query`` once and return the ``limit`` most similar chunks.

        No similarity threshold is applied. Returns an empty list when
        embeddings are disabled or the query cannot be embedded.
        """
        if not self.client.is_enabled() or limit <= 0 or not query.strip():
            return []
        try:
            query_vector = self.client.generate_embedding(query)
        except EmbeddingError as exc:
            logger.warning(
                "Failed to embed search query: %s",
                exc,
                extra={"ctx_owner_id": owner_id, "ctx_provider": exc.provider_name},
            )
            return []
        candidates = self.store.owner_embeddings(owner_id)
        return _rank(query_vector, candidates)[:limit]

    def find_similar(self, document_id: str, owner_id: str, limit: int = 5) -> list[SemanticSearchResult]:
        """Best-matching chunk of each other document, compared with the first chunk of ``document_id``."""
        if not self.client.is_enabled() or limit <= 0:
            return []
        reference = self.store.first_embedding(document_id, owner_id)
        if reference is None:
            return []
        candidates = self.store.owner_embeddings(owner_id, exclude_document_id=document_id)
        results: list[SemanticSearchResult] = []
        seen: set[str] = set()
        for result in _rank(reference.vector, candidates):
            if result.doc_id in seen:
                continue
            seen.add(result.doc_id)
            results.append(result)
            if len(results) >= limit:
                break
        return results


def _rank(query_vector: list[float], candidates: list[EmbeddedChunk]) -> list[SemanticSearchResult]:
    scored = [
        SemanticSearchResult(
            doc_id=candidate.doc_id,
            chunk_id=candidate.chunk_id,
            content=candidate.content,
            similarity=cosine_similarity(query_vector, candidate.vector),
            doc_title=candidate.doc_title,
            source_type=candidate.source_type,
            chunk_index=candidate.chunk_index,
        )
        for candidate in candidates
    ]
    scored.sort(key=lambda result: result.similarity, reverse=True)
    return scored


__all__ = ["SemanticSearch"]
