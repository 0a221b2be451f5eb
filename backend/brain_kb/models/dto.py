"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IngestTextRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1)
    metadata: dict[str, Any] | None = None

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class IngestUrlRequest(IngestTextRequest):
    url: str = Field(min_length=1)


class IngestFileRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    file_path: str = Field(min_length=1)
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    content: str | None = Field(default=None, description="Extracted text; the server reads file_path only when an ingest root is configured")
    metadata: dict[str, Any] | None = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    content: str
    source_type: Literal["text", "url", "file"]
    status: Literal["processing", "ready", "error"]
    chunk_count: int
    created_at: datetime
    updated_at: datetime
    source_url: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: str | None = None


class IngestResponse(BaseModel):
    doc: DocumentResponse
    embeddings_scheduled: bool


class DocumentListResponse(BaseModel):
    docs: list[DocumentResponse]
    count: int


class DocumentUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    metadata: dict[str, Any] | None = None


class ChunkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    document_id: str
    chunk_index: int
    content: str
    token_count: int
    start_offset: int
    end_offset: int
    created_at: datetime


class ChunkListResponse(BaseModel):
    chunks: list[ChunkResponse]
    count: int


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=100)
    mode: Literal["keyword", "semantic", "hybrid"] = "hybrid"


class KeywordHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    doc_id: str
    title: str
    content: str
    source_type: str
    match_count: int
    snippet: str


class SemanticHit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    doc_id: str
    chunk_id: str
    content: str
    similarity: float
    doc_title: str
    source_type: str
    chunk_index: int


class HybridHit(SemanticHit):
    score: float


class SearchResponse(BaseModel):
    results: list[Union[HybridHit, SemanticHit, KeywordHit]]
    count: int
    mode: Literal["keyword", "semantic", "hybrid"]
    requested_mode: Literal["keyword", "semantic", "hybrid"]
    degraded: bool = False


class SimilarResponse(BaseModel):
    results: list[SemanticHit]
    count: int


class EmbeddingsResponse(BaseModel):
    generated: int


class LinkRequest(BaseModel):
    chat_id: str = Field(min_length=1)
    doc_id: str = Field(min_length=1)


class ChatLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    chat_id: str
    document_id: str
    created_at: datetime


class SuccessResponse(BaseModel):
    success: bool


class StatsResponse(BaseModel):
    enabled: bool
    total_docs: int
    total_chunks: int
    by_source_type: dict[str, int]
    by_status: dict[str, int]
    total_embeddings: int
    embedding_coverage: int


__all__ = [
    "ChatLinkResponse",
    "ChunkListResponse",
    "ChunkResponse",
    "DocumentListResponse",
    "DocumentResponse",
    "DocumentUpdateRequest",
    "EmbeddingsResponse",
    "HybridHit",
    "IngestFileRequest",
    "IngestResponse",
    "IngestTextRequest",
    "IngestUrlRequest",
    "KeywordHit",
    "LinkRequest",
    "SearchRequest",
    "SearchResponse",
    "SemanticHit",
    "SimilarResponse",
    "StatsResponse",
    "SuccessResponse",
]
