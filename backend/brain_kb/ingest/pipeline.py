"""Ingest pipeline orchestration."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from brain_kb.core.logging import get_logger
from brain_kb.core.metrics import INDEX_SIZE, INGEST_DURATION
from brain_kb.db.store import DocumentStore
from brain_kb.ingest.chunker import CHUNK_OVERLAP, CHUNK_SIZE, chunk_text
from brain_kb.ingest.loaders import LoaderRegistry
from brain_kb.models.entities import Document

logger = get_logger(__name__)


class IngestService:
    """Turn text, URL and file payloads into a stored document with ordered chunks.

    Embeddings are not produced here; callers hand the returned document id to
    the embedding worker once ingestion succeeds.
    """

    def __init__(
        self,
        store: DocumentStore,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        loader_registry: LoaderRegistry | None = None,
        file_root: Path | None = None,
    ) -> None:
        self.store = store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.loader_registry = loader_registry or LoaderRegistry()
        self.file_root = file_root

    def ingest_text(
        self,
        owner_id: str,
        title: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        return self._ingest(owner_id, title, content, "text", metadata=metadata)

    def ingest_url(
        self,
        owner_id: str,
        title: str,
        url: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        """Ingest already-fetched page content under its source URL."""
        return self._ingest(owner_id, title, content, "url", metadata=metadata, source_url=url)

    def ingest_file(
        self,
        owner_id: str,
        title: str | None,
        file_path: str,
        file_name: str | None = None,
        file_type: str | None = None,
        file_size: int | None = None,
        content: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        """Ingest file content.

        When ``content`` is omitted the file is read on this host, which is
        only allowed below ``file_root``; the loader's title (front matter or
        file stem) is used when ``title`` is empty.
        """
        if content is None:
            loaded = self.loader_registry.load(self.resolve_file(file_path))
            content = loaded.text
            title = title or loaded.title
            file_name = file_name or loaded.path.name
            file_type = file_type or loaded.mime
            file_size = loaded.size_bytes if file_size is None else file_size
            if loaded.metadata:
                metadata = {**loaded.metadata, **(metadata or {})}
        return self._ingest(
            owner_id,
            title or Path(file_path).stem,
            content,
            "file",
            metadata=metadata,
            file_path=file_path,
            file_name=file_name or Path(file_path).name,
            file_type=file_type,
            file_size=file_size,
        )

    def resolve_file(self, file_path: str) -> Path:
        """Resolve ``file_path`` and require it to sit below ``file_root``."""
        if self.file_root is None:
            raise PermissionError("Reading files on the server is disabled; send the file content instead")
        root = self.file_root.expanduser().resolve()
        resolved = Path(file_path).expanduser().resolve()
        if not resolved.is_relative_to(root):
            raise PermissionError(f"{file_path} is outside the ingest root")
        return resolved

    # Internal helpers -------------------------------------------------

    def _ingest(self, owner_id: str, title: str, content: str, source_type: str, **fields: Any) -> Document:
        if not owner_id:
            raise ValueError("owner_id is required")
        if not title or not title.strip():
            raise ValueError("title must not be empty")
        if not content or not content.strip():
            raise ValueError("content must not be empty")

        started = time.perf_counter()
        document_id = self.store.create_document(owner_id, title, content, source_type, **fields)
        try:
            chunks = chunk_text(content, chunk_size=self.chunk_size, overlap=self.chunk_overlap)
            self.store.insert_chunks(document_id, chunks)
            self.store.mark_ready(document_id, len(chunks))
        except Exception as exc:
            logger.exception(
                "Failed to chunk document",
                extra={"ctx_doc_id": document_id, "ctx_owner_id": owner_id},
            )
            self.store.mark_error(document_id, str(exc))
            raise

        INGEST_DURATION.labels(source=source_type).observe(time.perf_counter() - started)
        self._update_index_metric()
        logger.info(
            "Ingested %s document with %s chunks",
            source_type,
            len(chunks),
            extra={"ctx_doc_id": document_id, "ctx_owner_id": owner_id},
        )
        document = self.store.get_doc(document_id)
        if document is None:
            raise RuntimeError(f"Document {document_id} disappeared during ingest")
        return document

    def _update_index_metric(self) -> None:
        INDEX_SIZE.set(self.store.count_chunks())


__all__ = ["IngestService"]
