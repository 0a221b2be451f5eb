"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException

from brain_kb.core.config import Settings, get_settings
from brain_kb.db.sqlite import SQLiteDatabase
from brain_kb.db.store import DocumentStore
from brain_kb.ingest.embeddings import EmbeddingClient
from brain_kb.ingest.indexer import EmbeddingIndexer
from brain_kb.ingest.pipeline import IngestService
from brain_kb.ingest.worker import EmbeddingWorker
from brain_kb.retrieval.search import SearchService

_DB: SQLiteDatabase | None = None
_STORE: DocumentStore | None = None
_EMBEDDING_CLIENT: EmbeddingClient | None = None
_INDEXER: EmbeddingIndexer | None = None
_WORKER: EmbeddingWorker | None = None
_INGEST_SERVICE: IngestService | None = None
_SEARCH_SERVICE: SearchService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_store() -> DocumentStore:
    global _STORE
    if _STORE is None:
        _STORE = DocumentStore(get_database())
    return _STORE


def get_embedding_client() -> EmbeddingClient:
    global _EMBEDDING_CLIENT
    if _EMBEDDING_CLIENT is None:
        _EMBEDDING_CLIENT = EmbeddingClient.from_settings(get_app_settings())
    return _EMBEDDING_CLIENT


def get_indexer() -> EmbeddingIndexer:
    global _INDEXER
    if _INDEXER is None:
        _INDEXER = EmbeddingIndexer(
            store=get_store(),
            client=get_embedding_client(),
            delay=get_app_settings().embedding_delay,
        )
    return _INDEXER


def get_worker() -> EmbeddingWorker:
    global _WORKER
    if _WORKER is None:
        _WORKER = EmbeddingWorker(get_indexer(), max_workers=get_app_settings().embedding_workers)
    return _WORKER


def get_ingest_service() -> IngestService:
    global _INGEST_SERVICE
    if _INGEST_SERVICE is None:
        settings = get_app_settings()
        _INGEST_SERVICE = IngestService(
            store=get_store(),
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            file_root=settings.ingest_root,
        )
    return _INGEST_SERVICE


def get_search_service() -> SearchService:
    global _SEARCH_SERVICE
    if _SEARCH_SERVICE is None:
        _SEARCH_SERVICE = SearchService(
            store=get_store(),
            client=get_embedding_client(),
            settings=get_app_settings(),
        )
    return _SEARCH_SERVICE


def get_owner_id(x_user_id: str | None = Header(default=None)) -> str:
    """Owner id forwarded by the authenticating proxy in ``X-User-Id``."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="User ID required")
    return x_user_id.strip()


def reset_dependencies() -> None:
    """Drop cached singletons, shutting down the worker and closing the database."""
    global _DB, _STORE, _EMBEDDING_CLIENT, _INDEXER, _WORKER, _INGEST_SERVICE, _SEARCH_SERVICE
    if _WORKER is not None:
        _WORKER.shutdown(wait=True)
    if _DB is not None:
        _DB.close()
    _DB = _STORE = _EMBEDDING_CLIENT = _INDEXER = _WORKER = _INGEST_SERVICE = _SEARCH_SERVICE = None
    get_app_settings.cache_clear()


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedding_client",
    "get_indexer",
    "get_ingest_service",
    "get_owner_id",
    "get_search_service",
    "get_store",
    "get_worker",
    "reset_dependencies",
]
