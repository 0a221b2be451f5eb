"""Embedding generation for stored chunks."""

from __future__ import annotations

import threading

from brain_kb.core.logging import get_logger
from brain_kb.core.metrics import EMBEDDING_FAILURES, EMBEDDINGS_CREATED
from brain_kb.db.store import DocumentStore
from brain_kb.ingest.embeddings import EmbeddingClient, EmbeddingError
from brain_kb.retrieval.vector_index import DimensionMismatchError

logger = get_logger(__name__)


class EmbeddingIndexer:
    """Fill in missing chunk embeddings of a document, one provider call per chunk."""

    def __init__(self, store: DocumentStore, client: EmbeddingClient, delay: float = 0.1) -> None:
        self.store = store
        self.client = client
        self.delay = delay

    def generate_embeddings_for_doc(
        self,
        document_id: str,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Embed every chunk of ``document_id`` that has no embedding yet.

        A failing chunk is logged and skipped. Setting ``cancel_event`` stops
        the loop before the next chunk. Returns the number of embeddings
        written, so a second run over the same chunks returns 0.
        """
        if not self.client.is_enabled():
            return 0
        cancel_event = cancel_event or threading.Event()
        pending = self.store.chunks_missing_embeddings(document_id)
        created = 0
        for position, chunk in enumerate(pending):
            if cancel_event.is_set():
                logger.info(
                    "Embedding generation cancelled",
                    extra={"ctx_doc_id": document_id, "ctx_created": created},
                )
                break
            try:
                vector = self.client.generate_embedding(chunk.content)
                self.store.upsert_embedding(chunk.id, document_id, self.client.model_name, vector)
            except DimensionMismatchError:
                raise
            except EmbeddingError as exc:
                EMBEDDING_FAILURES.inc()
                logger.warning(
                    "Failed to generate embedding for chunk %s: %s",
                    chunk.id,
                    exc,
                    extra={"ctx_doc_id": document_id, "ctx_chunk_id": chunk.id},
                )
            except Exception:
                EMBEDDING_FAILURES.inc()
                logger.exception(
                    "Failed to store embedding for chunk %s",
                    chunk.id,
                    extra={"ctx_doc_id": document_id, "ctx_chunk_id": chunk.id},
                )
            else:
                created += 1
                EMBEDDINGS_CREATED.inc()
            if self.delay > 0 and position < len(pending) - 1:
                cancel_event.wait(self.delay)
        logger.info(
            "Generated %s embeddings",
            created,
            extra={"ctx_doc_id": document_id, "ctx_pending": len(pending)},
        )
        return created


__all__ = ["EmbeddingIndexer"]
