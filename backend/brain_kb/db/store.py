"""Persistence port for knowledge base documents, chunks, embeddings and chat links."""

from __future__ import annotations

from typing import Any, Sequence

import orjson

from brain_kb.db.sqlite import SQLiteDatabase
from brain_kb.ingest.chunker import TextChunk
from brain_kb.models.entities import (
    ChatLink,
    Chunk,
    Document,
    EmbeddedChunk,
    Embedding,
    EmbeddingStats,
    UserStats,
    pack_vector,
    row_to_chat_link,
    row_to_chunk,
    row_to_document,
    row_to_embedding,
    unpack_vector,
)
from brain_kb.retrieval.vector_index import DimensionMismatchError
from brain_kb.utils.ids import new_id
from brain_kb.utils.time import now_ms

_EMBEDDED_CHUNK_COLUMNS = """
  e.chunk_id, e.document_id, e.vector,
  c.content, c.chunk_index,
  d.title, d.source_type
"""


class DocumentStore:
    """SQL access for the knowledge base tables.

    Read paths return ``None`` (or an empty list) for unknown ids; mutations
    report success as a boolean. Passing ``owner_id`` scopes a lookup to the
    documents of that owner.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    # Documents ---------------------------------------------------------

    def create_document(
        self,
        owner_id: str,
        title: str,
        content: str,
        source_type: str,
        *,
        source_url: str | None = None,
        file_path: str | None = None,
        file_name: str | None = None,
        file_type: str | None = None,
        file_size: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        document_id = new_id("doc")
        now = now_ms()
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO documents (
                  id, owner_id, title, content, source_type, source_url, file_path,
                  file_name, file_type, file_size, meta_json, status, chunk_count,
                  created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'processing', 0, ?, ?)
                """,
                [
                    document_id,
                    owner_id,
                    title,
                    content,
                    source_type,
                    source_url,
                    file_path,
                    file_name,
                    file_type,
                    file_size,
                    orjson.dumps(metadata).decode("utf-8") if metadata else None,
                    now,
                    now,
                ],
            )
        return document_id

    def insert_chunks(self, document_id: str, chunks: Sequence[TextChunk]) -> list[str]:
        """Insert every chunk of a document in one transaction."""
        now = now_ms()
        chunk_ids = [new_id("chk") for _ in chunks]
        with self.db.transaction() as cursor:
            cursor.executemany(
                """
                INSERT INTO chunks (
                  id, document_id, chunk_index, content, token_count, start_offset, end_offset, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        chunk_id,
                        document_id,
                        index,
                        chunk.content,
                        chunk.token_count,
                        chunk.start,
                        chunk.end,
                        now,
                    )
                    for index, (chunk_id, chunk) in enumerate(zip(chunk_ids, chunks))
                ],
            )
        return chunk_ids

    def mark_ready(self, document_id: str, chunk_count: int) -> None:
        with self.db.transaction() as cursor:
            cursor.execute(
                "UPDATE documents SET status = 'ready', chunk_count = ?, updated_at = ? WHERE id = ?",
                [chunk_count, now_ms(), document_id],
            )

    def mark_error(self, document_id: str, message: str) -> None:
        with self.db.transaction() as cursor:
            cursor.execute(
                "UPDATE documents SET status = 'error', error_message = ?, updated_at = ? WHERE id = ?",
                [message, now_ms(), document_id],
            )

    def get_doc(self, document_id: str, owner_id: str | None = None) -> Document | None:
        sql = "SELECT * FROM documents WHERE id = ?"
        params: list[Any] = [document_id]
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)
        row = self.db.query_one(sql, params)
        return row_to_document(row) if row else None

    def list_docs(
        self,
        owner_id: str,
        *,
        source_type: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Document]:
        clauses = ["owner_id = ?"]
        params: list[Any] = [owner_id]
        if source_type:
            clauses.append("source_type = ?")
            params.append(source_type)
        if status:
            clauses.append("status = ?")
            params.append(status)
        params.extend([limit, offset])
        rows = self.db.query(
            f"""
            SELECT * FROM documents
            WHERE {' AND '.join(clauses)}
            ORDER BY updated_at DESC, rowid DESC
            LIMIT ? OFFSET ?
            """,
            params,
        )
        return [row_to_document(row) for row in rows]

    def update_doc(
        self,
        document_id: str,
        *,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
        owner_id: str | None = None,
    ) -> bool:
        """Update title and/or metadata; content and chunks never change."""
        updates: list[str] = []
        params: list[Any] = []
        if title is not None:
            updates.append("title = ?")
            params.append(title)
        if metadata is not None:
            updates.append("meta_json = ?")
            params.append(orjson.dumps(metadata).decode("utf-8"))
        if not updates:
            return False
        updates.append("updated_at = ?")
        params.extend([now_ms(), document_id])
        sql = f"UPDATE documents SET {', '.join(updates)} WHERE id = ?"
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)
        with self.db.transaction() as cursor:
            cursor.execute(sql, params)
            return cursor.rowcount > 0

    def delete_doc(self, document_id: str, owner_id: str | None = None) -> bool:
        """Delete a document; chunks, embeddings and chat links cascade."""
        sql = "DELETE FROM documents WHERE id = ?"
        params: list[Any] = [document_id]
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)
        with self.db.transaction() as cursor:
            cursor.execute(sql, params)
            return cursor.rowcount > 0

    # Chunks ------------------------------------------------------------

    def get_chunks(self, document_id: str) -> list[Chunk]:
        rows = self.db.query(
            "SELECT * FROM chunks WHERE document_id = ? ORDER BY chunk_index ASC",
            [document_id],
        )
        return [row_to_chunk(row) for row in rows]

    def get_chunk(self, chunk_id: str) -> Chunk | None:
        row = self.db.query_one("SELECT * FROM chunks WHERE id = ?", [chunk_id])
        return row_to_chunk(row) if row else None

    def count_chunks(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS count FROM chunks")
        return int(row["count"]) if row else 0

    # Chat links --------------------------------------------------------

    def link_to_chat(self, chat_id: str, document_id: str) -> ChatLink | None:
        """Attach a document to a chat; repeated links return the existing row."""
        if self.get_doc(document_id) is None:
            return None
        with self.db.transaction() as cursor:
            cursor.execute(
                "INSERT OR IGNORE INTO chat_links (id, chat_id, document_id, created_at) VALUES (?, ?, ?, ?)",
                [new_id("lnk"), chat_id, document_id, now_ms()],
            )
        row = self.db.query_one(
            "SELECT * FROM chat_links WHERE chat_id = ? AND document_id = ?",
            [chat_id, document_id],
        )
        return row_to_chat_link(row) if row else None

    def unlink_from_chat(self, chat_id: str, document_id: str) -> bool:
        with self.db.transaction() as cursor:
            cursor.execute(
                "DELETE FROM chat_links WHERE chat_id = ? AND document_id = ?",
                [chat_id, document_id],
            )
            return cursor.rowcount > 0

    def get_linked_docs(self, chat_id: str) -> list[Document]:
        rows = self.db.query(
            """
            SELECT d.* FROM documents d
            JOIN chat_links l ON l.document_id = d.id
            WHERE l.chat_id = ?
            ORDER BY l.created_at DESC, l.rowid DESC
            """,
            [chat_id],
        )
        return [row_to_document(row) for row in rows]

    # Keyword candidates ------------------------------------------------

    def keyword_candidates(self, owner_id: str, tokens: Sequence[str], limit: int) -> list[Document]:
        """Ready documents of ``owner_id`` whose title or content contains every token, ignoring case."""
        conditions = " AND ".join(
            "(casefold(content) LIKE ? ESCAPE '\\' OR casefold(title) LIKE ? ESCAPE '\\')" for _ in tokens
        )
        params: list[Any] = [owner_id]
        for token in tokens:
            pattern = f"%{_escape_like(token.casefold())}%"
            params.extend([pattern, pattern])
        params.append(limit)
        rows = self.db.query(
            f"""
            SELECT * FROM documents
            WHERE owner_id = ? AND status = 'ready' AND ({conditions})
            ORDER BY updated_at DESC, rowid DESC
            LIMIT ?
            """,
            params,
        )
        return [row_to_document(row) for row in rows]

    # Embeddings --------------------------------------------------------

    def chunks_missing_embeddings(self, document_id: str) -> list[Chunk]:
        rows = self.db.query(
            """
            SELECT c.* FROM chunks c
            LEFT JOIN embeddings e ON e.chunk_id = c.id
            WHERE c.document_id = ? AND e.chunk_id IS NULL
            ORDER BY c.chunk_index ASC
            """,
            [document_id],
        )
        return [row_to_chunk(row) for row in rows]

    def upsert_embedding(self, chunk_id: str, document_id: str, model: str, vector: Sequence[float]) -> None:
        """Store or replace the embedding of a chunk."""
        dim = len(vector)
        with self.db.transaction() as cursor:
            existing = cursor.execute(
                "SELECT dim FROM embeddings WHERE model = ? AND chunk_id != ? LIMIT 1",
                [model, chunk_id],
            ).fetchone()
            if existing is not None and int(existing["dim"]) != dim:
                raise DimensionMismatchError(
                    f"Model {model} stores {existing['dim']}-dimensional vectors, got {dim}"
                )
            cursor.execute(
                """
                INSERT OR REPLACE INTO embeddings (chunk_id, document_id, model, dim, vector, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [chunk_id, document_id, model, dim, pack_vector(list(vector)), now_ms()],
            )

    def get_embedding(self, chunk_id: str) -> Embedding | None:
        row = self.db.query_one("SELECT * FROM embeddings WHERE chunk_id = ?", [chunk_id])
        return row_to_embedding(row) if row else None

    def owner_embeddings(self, owner_id: str, exclude_document_id: str | None = None) -> list[EmbeddedChunk]:
        """Every stored vector of the owner's ready documents."""
        sql = f"""
            SELECT {_EMBEDDED_CHUNK_COLUMNS}
            FROM embeddings e
            JOIN chunks c ON c.id = e.chunk_id
            JOIN documents d ON d.id = e.document_id
            WHERE d.owner_id = ? AND d.status = 'ready'
        """
        params: list[Any] = [owner_id]
        if exclude_document_id is not None:
            sql += " AND d.id != ?"
            params.append(exclude_document_id)
        sql += " ORDER BY d.updated_at DESC, c.chunk_index ASC"
        return [_row_to_embedded_chunk(row) for row in self.db.query(sql, params)]

    def first_embedding(self, document_id: str, owner_id: str) -> EmbeddedChunk | None:
        """Embedding of the lowest-index embedded chunk of an owner's document."""
        row = self.db.query_one(
            f"""
            SELECT {_EMBEDDED_CHUNK_COLUMNS}
            FROM embeddings e
            JOIN chunks c ON c.id = e.chunk_id
            JOIN documents d ON d.id = e.document_id
            WHERE e.document_id = ? AND d.owner_id = ?
            ORDER BY c.chunk_index ASC
            LIMIT 1
            """,
            [document_id, owner_id],
        )
        return _row_to_embedded_chunk(row) if row else None

    # Statistics --------------------------------------------------------

    def get_user_stats(self, owner_id: str) -> UserStats:
        docs_row = self.db.query_one("SELECT COUNT(*) AS count FROM documents WHERE owner_id = ?", [owner_id])
        chunks_row = self.db.query_one(
            """
            SELECT COUNT(*) AS count FROM chunks
            WHERE document_id IN (SELECT id FROM documents WHERE owner_id = ?)
            """,
            [owner_id],
        )
        type_rows = self.db.query(
            "SELECT source_type, COUNT(*) AS count FROM documents WHERE owner_id = ? GROUP BY source_type",
            [owner_id],
        )
        status_rows = self.db.query(
            "SELECT status, COUNT(*) AS count FROM documents WHERE owner_id = ? GROUP BY status",
            [owner_id],
        )
        return UserStats(
            total_docs=int(docs_row["count"]) if docs_row else 0,
            total_chunks=int(chunks_row["count"]) if chunks_row else 0,
            by_source_type={row["source_type"]: int(row["count"]) for row in type_rows},
            by_status={row["status"]: int(row["count"]) for row in status_rows},
        )

    def get_embedding_stats(self, owner_id: str | None = None) -> EmbeddingStats:
        if owner_id is None:
            embeddings_sql = "SELECT COUNT(*) AS count FROM embeddings"
            chunks_sql = "SELECT COUNT(*) AS count FROM chunks"
            docs_sql = "SELECT COUNT(*) AS count FROM documents"
            params: list[Any] = []
        else:
            embeddings_sql = """
                SELECT COUNT(*) AS count FROM embeddings e
                JOIN documents d ON d.id = e.document_id
                WHERE d.owner_id = ?
            """
            chunks_sql = """
                SELECT COUNT(*) AS count FROM chunks c
                JOIN documents d ON d.id = c.document_id
                WHERE d.owner_id = ?
            """
            docs_sql = "SELECT COUNT(*) AS count FROM documents WHERE owner_id = ?"
            params = [owner_id]
        total_embeddings = int(self.db.query_one(embeddings_sql, params)["count"])
        total_chunks = int(self.db.query_one(chunks_sql, params)["count"])
        total_docs = int(self.db.query_one(docs_sql, params)["count"])
        coverage = round(total_embeddings / total_chunks * 100) if total_chunks else 0
        return EmbeddingStats(
            total_embeddings=total_embeddings,
            total_docs=total_docs,
            embedding_coverage=coverage,
        )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_embedded_chunk(row) -> EmbeddedChunk:
    return EmbeddedChunk(
        chunk_id=row["chunk_id"],
        doc_id=row["document_id"],
        content=row["content"],
        chunk_index=int(row["chunk_index"]),
        doc_title=row["title"],
        source_type=row["source_type"],
        vector=unpack_vector(row["vector"]),
    )


__all__ = ["DocumentStore"]
