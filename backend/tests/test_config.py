"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from brain_kb.core.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.embedding_model == "text-embedding-3-small"
    assert settings.chunk_size == 1000
    assert settings.chunk_overlap == 200
    assert settings.semantic_weight == 0.7
    assert settings.embedding_delay == pytest.approx(0.1)
    assert settings.ingest_root is None


def test_yaml_sections_and_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "storage:\n"
        "  db_path: ~/kb/brain.db\n"
        "embeddings:\n"
        "  backend: hashed\n"
        "  dim: 64\n"
        "chunking:\n"
        "  size: 500\n"
        "  overlap: 100\n"
        "retrieval:\n"
        "  semantic_weight: 0.5\n"
    )
    monkeypatch.setenv("BRAIN_CONFIG", str(config))
    monkeypatch.setenv("BRAIN_CHUNK_OVERLAP", "50")
    monkeypatch.delenv("BRAIN_DB_PATH", raising=False)
    monkeypatch.delenv("BRAIN_EMBEDDING_BACKEND", raising=False)

    settings = Settings.from_yaml()
    assert settings.db_path == Path("~/kb/brain.db").expanduser()
    assert settings.embedding_backend == "hashed"
    assert settings.embedding_dim == 64
    assert settings.chunk_size == 500
    assert settings.chunk_overlap == 50
    assert settings.semantic_weight == 0.5


def test_openai_api_key_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert Settings.from_yaml().openai_api_key == "sk-env"
    monkeypatch.setenv("BRAIN_OPENAI_API_KEY", "sk-brain")
    assert Settings.from_yaml().openai_api_key == "sk-brain"


def test_invalid_chunking_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(chunk_size=100, chunk_overlap=50)
    with pytest.raises(ValidationError):
        Settings(semantic_weight=1.5)


def test_get_settings_is_cached(tmp_path: Path) -> None:
    first = get_settings()
    assert get_settings() is first
    assert first.db_path == tmp_path / "brain.db"


def test_ingest_root_from_yaml_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("storage:\n  ingest_root: ~/kb/inbox\n")
    monkeypatch.setenv("BRAIN_CONFIG", str(config))
    assert Settings.from_yaml().ingest_root == Path("~/kb/inbox").expanduser()

    monkeypatch.setenv("BRAIN_INGEST_ROOT", "")
    assert Settings.from_yaml().ingest_root is None
