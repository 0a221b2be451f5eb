"""Tests for embedding providers and the embedding client."""

import math
from types import SimpleNamespace

import httpx
import openai
import pytest

from brain_kb.core.config import Settings
from brain_kb.ingest.embeddings import (
    EmbeddingClient,
    EmbeddingError,
    HashedEmbeddingModel,
    OpenAIEmbeddingProvider,
)


def _fake_openai_client(create) -> SimpleNamespace:
    return SimpleNamespace(embeddings=SimpleNamespace(create=create))


def test_hashed_model_is_deterministic_and_normalized() -> None:
    model = HashedEmbeddingModel(dim=64)
    first = model.embed("hello world")
    second = model.embed("hello world")
    assert first.dim == 64
    assert first.vector == second.vector
    assert math.isclose(sum(value * value for value in first.vector), 1.0, rel_tol=1e-9)
    assert all(value == 0.0 for value in model.embed("").vector)


def test_disabled_client_raises_on_generate() -> None:
    client = EmbeddingClient(None)
    assert client.is_enabled() is False
    assert client.model_name is None
    with pytest.raises(EmbeddingError):
        client.generate_embedding("anything")


def test_from_settings_selects_provider() -> None:
    hashed = EmbeddingClient.from_settings(Settings(embedding_backend="hashed", embedding_dim=16))
    assert hashed.is_enabled()
    assert len(hashed.generate_embedding("text")) == 16

    assert EmbeddingClient.from_settings(Settings(embedding_backend="openai")).is_enabled() is False

    openai_client = EmbeddingClient.from_settings(
        Settings(embedding_backend="openai", openai_api_key="sk-test", embedding_model="text-embedding-3-small")
    )
    assert openai_client.is_enabled()
    assert openai_client.model_name == "text-embedding-3-small"


def test_openai_provider_requests_float_embeddings() -> None:
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])

    provider = OpenAIEmbeddingProvider(api_key="sk-test", client=_fake_openai_client(create))
    result = provider.embed("hello")
    assert result.vector == [0.1, 0.2, 0.3]
    assert result.dim == 3
    assert calls == [{"model": "text-embedding-3-small", "input": "hello", "encoding_format": "float"}]


def test_openai_provider_wraps_api_errors() -> None:
    def create(**kwargs):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        raise openai.APIError("rate limited", request, body=None)

    provider = OpenAIEmbeddingProvider(api_key="sk-test", client=_fake_openai_client(create))
    with pytest.raises(EmbeddingError) as excinfo:
        provider.embed("hello")
    assert excinfo.value.provider_name == "openai_embedding"
    assert isinstance(excinfo.value.__cause__, openai.APIError)


def test_openai_provider_rejects_empty_response() -> None:
    provider = OpenAIEmbeddingProvider(
        api_key="sk-test",
        base_url="http://localhost:8080/v1",
        client=_fake_openai_client(lambda **kwargs: SimpleNamespace(data=[])),
    )
    with pytest.raises(EmbeddingError) as excinfo:
        provider.embed("hello")
    assert excinfo.value.provider_name == "openai-compatible_embedding"
