"""Internal dataclasses representing persisted entities and search hits."""

from __future__ import annotations

import sqlite3
from array import array
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

import orjson

from brain_kb.utils.time import ms_to_datetime

SourceType = Literal["text", "url", "file"]
DocumentStatus = Literal["processing", "ready", "error"]

SOURCE_TYPES: tuple[str, ...] = ("text", "url", "file")
DOCUMENT_STATUSES: tuple[str, ...] = ("processing", "ready", "error")


@dataclass(slots=True)
class Document:
    id: str
    owner_id: str
    title: str
    content: str
    source_type: SourceType
    status: DocumentStatus
    chunk_count: int
    created_at: datetime
    updated_at: datetime
    source_url: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None


@dataclass(slots=True)
class Chunk:
    id: str
    document_id: str
    chunk_index: int
    content: str
    token_count: int
    start_offset: int
    end_offset: int
    created_at: datetime


@dataclass(slots=True)
class Embedding:
    chunk_id: str
    document_id: str
    model: str
    dim: int
    vector: list[float]
    created_at: datetime


@dataclass(slots=True)
class ChatLink:
    id: str
    chat_id: str
    document_id: str
    created_at: datetime


@dataclass(slots=True)
class KeywordSearchResult:
    doc_id: str
    title: str
    content: str
    source_type: str
    match_count: int
    snippet: str


@dataclass(slots=True)
class SemanticSearchResult:
    doc_id: str
    chunk_id: str
    content: str
    similarity: float
    doc_title: str
    source_type: str
    chunk_index: int


@dataclass(slots=True)
class EmbeddedChunk:
    """A stored chunk vector joined with its chunk and document rows."""

    chunk_id: str
    doc_id: str
    content: str
    chunk_index: int
    doc_title: str
    source_type: str
    vector: list[float]


@dataclass(slots=True)
class UserStats:
    total_docs: int
    total_chunks: int
    by_source_type: dict[str, int]
    by_status: dict[str, int]


@dataclass(slots=True)
class EmbeddingStats:
    total_embeddings: int
    total_docs: int
    embedding_coverage: int


def pack_vector(vector: list[float]) -> bytes:
    """Serialise a vector into a fixed-width float32 blob."""
    return array("f", vector).tobytes()


def unpack_vector(blob: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(blob)
    return list(floats)


def row_to_document(row: sqlite3.Row) -> Document:
    source_type = row["source_type"]
    status = row["status"]
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type {source_type!r} for document {row['id']}")
    if status not in DOCUMENT_STATUSES:
        raise ValueError(f"Unknown status {status!r} for document {row['id']}")
    return Document(
        id=row["id"],
        owner_id=row["owner_id"],
        title=row["title"],
        content=row["content"],
        source_type=source_type,
        status=status,
        chunk_count=int(row["chunk_count"]),
        created_at=ms_to_datetime(row["created_at"]),
        updated_at=ms_to_datetime(row["updated_at"]),
        source_url=row["source_url"],
        file_path=row["file_path"],
        file_name=row["file_name"],
        file_type=row["file_type"],
        file_size=row["file_size"],
        metadata=orjson.loads(row["meta_json"]) if row["meta_json"] else {},
        error_message=row["error_message"],
    )


def row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=int(row["chunk_index"]),
        content=row["content"],
        token_count=int(row["token_count"]),
        start_offset=int(row["start_offset"]),
        end_offset=int(row["end_offset"]),
        created_at=ms_to_datetime(row["created_at"]),
    )


def row_to_embedding(row: sqlite3.Row) -> Embedding:
    vector = unpack_vector(row["vector"])
    if len(vector) != row["dim"]:
        raise ValueError(f"Stored vector for chunk {row['chunk_id']} does not match its dimension")
    return Embedding(
        chunk_id=row["chunk_id"],
        document_id=row["document_id"],
        model=row["model"],
        dim=int(row["dim"]),
        vector=vector,
        created_at=ms_to_datetime(row["created_at"]),
    )


def row_to_chat_link(row: sqlite3.Row) -> ChatLink:
    return ChatLink(
        id=row["id"],
        chat_id=row["chat_id"],
        document_id=row["document_id"],
        created_at=ms_to_datetime(row["created_at"]),
    )


__all__ = [
    "Document",
    "Chunk",
    "Embedding",
    "ChatLink",
    "KeywordSearchResult",
    "SemanticSearchResult",
    "EmbeddedChunk",
    "UserStats",
    "EmbeddingStats",
    "pack_vector",
    "unpack_vector",
    "row_to_document",
    "row_to_chunk",
    "row_to_embedding",
    "row_to_chat_link",
]
