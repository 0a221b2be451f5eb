"""Keyword search over document titles and content."""

from __future__ import annotations

from brain_kb.db.store import DocumentStore
from brain_kb.models.entities import Document, KeywordSearchResult

MIN_TOKEN_LENGTH = 3
SNIPPET_LENGTH = 150


def tokenize_query(query: str) -> list[str]:
    """Case-folded whitespace tokens, dropping those of two characters or fewer."""
    return [token for token in query.casefold().split() if len(token) >= MIN_TOKEN_LENGTH]


def count_matches(document: Document, tokens: list[str]) -> int:
    """Non-overlapping occurrences of every token, summed over title and content."""
    title = (document.title or "").casefold()
    content = (document.content or "").casefold()
    return sum(title.count(token) + content.count(token) for token in tokens)


def generate_snippet(text: str, keyword: str, max_length: int = SNIPPET_LENGTH) -> str:
    """Window of ``max_length`` characters around the first occurrence of ``keyword``."""
    index = text.lower().find(keyword.lower())
    if index == -1:
        return text[:max_length] + ("..." if len(text) > max_length else "")
    start = max(0, index - max_length // 2)
    end = min(len(text), start + max_length)
    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


class KeywordSearch:
    """AND-match every query token against the owner's ready documents.

    Results keep the store order (most recently updated first); ``match_count``
    is attached for callers but does not re-sort the list.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def search(self, query: str, owner_id: str, limit: int = 20) -> list[KeywordSearchResult]:
        tokens = tokenize_query(query)
        if not tokens or limit <= 0:
            return []
        documents = self.store.keyword_candidates(owner_id, tokens, limit)
        return [
            KeywordSearchResult(
                doc_id=document.id,
                title=document.title,
                content=document.content,
                source_type=document.source_type,
                match_count=count_matches(document, tokens),
                snippet=generate_snippet(document.content or "", tokens[0]),
            )
            for document in documents
        ]


__all__ = ["KeywordSearch", "count_matches", "generate_snippet", "tokenize_query"]
