"""Chunking utilities."""

from __future__ import annotations

import math
from dataclasses import dataclass

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 200


@dataclass(slots=True)
class TextChunk:
    content: str
    start: int
    end: int
    token_count: int


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> list[TextChunk]:
    """Split text into overlapping windows that prefer sentence or line breaks.

    ``start``/``end`` are offsets into ``text`` before the chunk content is
    stripped. Consecutive windows overlap by ``overlap`` characters and
    together cover the whole input.
    """
    if chunk_size <= 0 or overlap < 0 or overlap * 2 >= chunk_size:
        raise ValueError("overlap must be non-negative and smaller than half of chunk_size")

    length = len(text)
    if length <= chunk_size:
        return [_make_chunk(text, 0, length)]

    chunks: list[TextChunk] = []
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        if end < length:
            break_point = max(text.rfind(".", start, end), text.rfind("\n", start, end))
            if break_point > start + chunk_size // 2:
                end = break_point + 1
        chunks.append(_make_chunk(text, start, end))
        start = end - overlap
        if start >= length - overlap:
            break
    return chunks


def _make_chunk(text: str, start: int, end: int) -> TextChunk:
    content = text[start:end].strip()
    return TextChunk(content=content, start=start, end=end, token_count=estimate_tokens(content))


def estimate_tokens(content: str) -> int:
    """Rough token estimate of four characters per token."""
    return math.ceil(len(content) / 4)


__all__ = ["CHUNK_SIZE", "CHUNK_OVERLAP", "TextChunk", "chunk_text", "estimate_tokens"]
