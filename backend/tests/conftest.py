"""Test fixtures for Brain KB."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

VOCABULARY = ("apple", "banana", "cherry", "cats", "dogs", "retrieval")


class KeywordVectorProvider:
    """Deterministic provider: one dimension per vocabulary word present in the text."""

    model_name = "fake-keyword"

    def __init__(self, vocabulary: tuple[str, ...] = VOCABULARY) -> None:
        self.vocabulary = vocabulary
        self.calls: list[str] = []

    def embed(self, text: str):
        from brain_kb.ingest.embeddings import EmbeddingVector

        self.calls.append(text)
        lowered = text.lower()
        vector = [float(lowered.count(word)) for word in self.vocabulary]
        return EmbeddingVector(vector=vector, dim=len(vector))


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("BRAIN_DB_PATH", str(tmp_path / "brain.db"))
    monkeypatch.setenv("BRAIN_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("BRAIN_EMBEDDING_DELAY_MS", "0")
    monkeypatch.delenv("BRAIN_CONFIG", raising=False)
    monkeypatch.delenv("BRAIN_INGEST_ROOT", raising=False)
    monkeypatch.delenv("BRAIN_OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    from brain_kb.api import dependencies as deps
    from brain_kb.core.config import get_settings

    deps.reset_dependencies()
    get_settings.cache_clear()
    yield
    deps.reset_dependencies()
    get_settings.cache_clear()


@pytest.fixture
def database(tmp_path: Path):
    from brain_kb.db.sqlite import SQLiteDatabase

    db = SQLiteDatabase(tmp_path / "store.db")
    db.ensure_schema()
    yield db
    db.close()


@pytest.fixture
def store(database):
    from brain_kb.db.store import DocumentStore

    return DocumentStore(database)


@pytest.fixture
def ingest(store, tmp_path: Path):
    from brain_kb.ingest.pipeline import IngestService

    return IngestService(store, file_root=tmp_path)


@pytest.fixture
def provider() -> KeywordVectorProvider:
    return KeywordVectorProvider()


@pytest.fixture
def embedding_client(provider):
    from brain_kb.ingest.embeddings import EmbeddingClient

    return EmbeddingClient(provider)


@pytest.fixture
def indexer(store, embedding_client):
    from brain_kb.ingest.indexer import EmbeddingIndexer

    return EmbeddingIndexer(store, embedding_client, delay=0)


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "Hello world. This is a test document about cats."
