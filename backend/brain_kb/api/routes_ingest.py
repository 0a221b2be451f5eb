"""Ingest API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from brain_kb.api.dependencies import (
    get_embedding_client,
    get_ingest_service,
    get_owner_id,
    get_worker,
)
from brain_kb.core.logging import get_logger
from brain_kb.ingest.embeddings import EmbeddingClient
from brain_kb.ingest.pipeline import IngestService
from brain_kb.ingest.worker import EmbeddingWorker
from brain_kb.models.dto import (
    DocumentResponse,
    IngestFileRequest,
    IngestResponse,
    IngestTextRequest,
    IngestUrlRequest,
)
from brain_kb.models.entities import Document

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/text",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest plain text",
)
async def ingest_text(
    request: IngestTextRequest,
    owner_id: str = Depends(get_owner_id),
    service: IngestService = Depends(get_ingest_service),
    client: EmbeddingClient = Depends(get_embedding_client),
    worker: EmbeddingWorker = Depends(get_worker),
) -> IngestResponse:
    try:
        document = service.ingest_text(owner_id, request.title, request.content, metadata=request.metadata)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _respond(document, client, worker)


@router.post(
    "/url",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest fetched page content under its URL",
)
async def ingest_url(
    request: IngestUrlRequest,
    owner_id: str = Depends(get_owner_id),
    service: IngestService = Depends(get_ingest_service),
    client: EmbeddingClient = Depends(get_embedding_client),
    worker: EmbeddingWorker = Depends(get_worker),
) -> IngestResponse:
    try:
        document = service.ingest_url(
            owner_id,
            request.title,
            request.url,
            request.content,
            metadata=request.metadata,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _respond(document, client, worker)


@router.post(
    "/file",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest file content",
)
async def ingest_file(
    request: IngestFileRequest,
    owner_id: str = Depends(get_owner_id),
    service: IngestService = Depends(get_ingest_service),
    client: EmbeddingClient = Depends(get_embedding_client),
    worker: EmbeddingWorker = Depends(get_worker),
) -> IngestResponse:
    if request.content is None and service.file_root is None:
        raise HTTPException(status_code=422, detail="content is required")
    try:
        document = service.ingest_file(
            owner_id,
            request.title,
            file_path=request.file_path,
            file_name=request.file_name,
            file_type=request.file_type,
            file_size=request.file_size,
            content=request.content,
            metadata=request.metadata,
        )
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"File not found: {request.file_path}") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _respond(document, client, worker)


def _respond(document: Document, client: EmbeddingClient, worker: EmbeddingWorker) -> IngestResponse:
    scheduled = False
    if client.is_enabled():
        worker.submit(document.id)
        scheduled = True
        logger.info("Scheduled embedding generation", extra={"ctx_doc_id": document.id})
    return IngestResponse(doc=DocumentResponse.model_validate(document), embeddings_scheduled=scheduled)


__all__ = ["router"]
