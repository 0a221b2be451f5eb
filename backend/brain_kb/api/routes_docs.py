"""Document, chunk, chat link and statistics routes."""

from __future__ import annotations

import asyncio
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from brain_kb.api.dependencies import (
    get_embedding_client,
    get_owner_id,
    get_search_service,
    get_store,
    get_worker,
)
from brain_kb.core.logging import get_logger
from brain_kb.db.store import DocumentStore
from brain_kb.ingest.embeddings import EmbeddingClient
from brain_kb.ingest.worker import EmbeddingWorker
from brain_kb.models.dto import (
    ChatLinkResponse,
    ChunkListResponse,
    ChunkResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdateRequest,
    EmbeddingsResponse,
    LinkRequest,
    SemanticHit,
    SimilarResponse,
    StatsResponse,
    SuccessResponse,
)
from brain_kb.models.entities import Document
from brain_kb.retrieval.search import SearchService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/docs", response_model=DocumentListResponse, summary="List documents")
async def list_docs(
    source_type: Literal["text", "url", "file"] | None = None,
    status: Literal["processing", "ready", "error"] | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> DocumentListResponse:
    docs = store.list_docs(owner_id, source_type=source_type, status=status, limit=limit, offset=offset)
    return DocumentListResponse(docs=[DocumentResponse.model_validate(doc) for doc in docs], count=len(docs))


@router.get("/docs/{doc_id}", response_model=DocumentResponse, summary="Get document details")
async def get_doc(
    doc_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> DocumentResponse:
    return DocumentResponse.model_validate(_owned_doc(store, doc_id, owner_id))


@router.patch("/docs/{doc_id}", response_model=DocumentResponse, summary="Update title or metadata")
async def update_doc(
    doc_id: str,
    request: DocumentUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> DocumentResponse:
    _owned_doc(store, doc_id, owner_id)
    if request.title is None and request.metadata is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    store.update_doc(doc_id, title=request.title, metadata=request.metadata, owner_id=owner_id)
    return DocumentResponse.model_validate(_owned_doc(store, doc_id, owner_id))


@router.delete("/docs/{doc_id}", response_model=SuccessResponse, summary="Delete a document")
async def delete_doc(
    doc_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
    worker: EmbeddingWorker = Depends(get_worker),
) -> SuccessResponse:
    _owned_doc(store, doc_id, owner_id)
    if worker.cancel(doc_id):
        logger.info("Cancelled embedding job of deleted document", extra={"ctx_doc_id": doc_id})
    return SuccessResponse(success=store.delete_doc(doc_id, owner_id=owner_id))


@router.get("/docs/{doc_id}/chunks", response_model=ChunkListResponse, summary="List chunks of a document")
async def get_chunks(
    doc_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> ChunkListResponse:
    _owned_doc(store, doc_id, owner_id)
    chunks = store.get_chunks(doc_id)
    return ChunkListResponse(chunks=[ChunkResponse.model_validate(chunk) for chunk in chunks], count=len(chunks))


@router.get("/chunks/{chunk_id}", response_model=ChunkResponse, summary="Get a single chunk")
async def get_chunk(
    chunk_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> ChunkResponse:
    chunk = store.get_chunk(chunk_id)
    if chunk is None:
        raise HTTPException(status_code=404, detail="Chunk not found")
    _owned_doc(store, chunk.document_id, owner_id)
    return ChunkResponse.model_validate(chunk)


@router.get("/docs/{doc_id}/similar", response_model=SimilarResponse, summary="Find similar documents")
async def find_similar(
    doc_id: str,
    limit: int = Query(default=5, ge=1, le=100),
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
    service: SearchService = Depends(get_search_service),
) -> SimilarResponse:
    if not service.embeddings_enabled:
        raise HTTPException(status_code=503, detail="Semantic search not enabled")
    _owned_doc(store, doc_id, owner_id)
    results = service.find_similar(doc_id, owner_id, limit)
    return SimilarResponse(results=[SemanticHit.model_validate(result) for result in results], count=len(results))


@router.post("/docs/{doc_id}/embeddings", response_model=EmbeddingsResponse, summary="Generate missing embeddings")
async def generate_embeddings(
    doc_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
    client: EmbeddingClient = Depends(get_embedding_client),
    worker: EmbeddingWorker = Depends(get_worker),
) -> EmbeddingsResponse:
    if not client.is_enabled():
        raise HTTPException(status_code=503, detail="Embeddings not enabled")
    _owned_doc(store, doc_id, owner_id)
    generated = await asyncio.wrap_future(worker.submit(doc_id))
    return EmbeddingsResponse(generated=generated)


@router.post("/link", response_model=ChatLinkResponse, status_code=201, summary="Link a document to a chat")
async def link_doc(
    request: LinkRequest,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> ChatLinkResponse:
    _owned_doc(store, request.doc_id, owner_id)
    link = store.link_to_chat(request.chat_id, request.doc_id)
    if link is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return ChatLinkResponse.model_validate(link)


@router.delete("/link", response_model=SuccessResponse, summary="Unlink a document from a chat")
async def unlink_doc(
    request: LinkRequest,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> SuccessResponse:
    _owned_doc(store, request.doc_id, owner_id)
    return SuccessResponse(success=store.unlink_from_chat(request.chat_id, request.doc_id))


@router.get("/chat/{chat_id}/docs", response_model=DocumentListResponse, summary="Documents linked to a chat")
async def chat_docs(
    chat_id: str,
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
) -> DocumentListResponse:
    docs = [doc for doc in store.get_linked_docs(chat_id) if doc.owner_id == owner_id]
    return DocumentListResponse(docs=[DocumentResponse.model_validate(doc) for doc in docs], count=len(docs))


@router.get("/stats", response_model=StatsResponse, summary="Knowledge base statistics")
async def stats(
    owner_id: str = Depends(get_owner_id),
    store: DocumentStore = Depends(get_store),
    service: SearchService = Depends(get_search_service),
) -> StatsResponse:
    user_stats = store.get_user_stats(owner_id)
    embedding_stats = store.get_embedding_stats(owner_id)
    return StatsResponse(
        enabled=service.embeddings_enabled,
        total_docs=user_stats.total_docs,
        total_chunks=user_stats.total_chunks,
        by_source_type=user_stats.by_source_type,
        by_status=user_stats.by_status,
        total_embeddings=embedding_stats.total_embeddings,
        embedding_coverage=embedding_stats.embedding_coverage,
    )


def _owned_doc(store: DocumentStore, doc_id: str, owner_id: str) -> Document:
    document = store.get_doc(doc_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    if document.owner_id != owner_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return document


__all__ = ["router"]
