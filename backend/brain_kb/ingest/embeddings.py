"""Embedding providers and the client gating semantic features."""

from __future__ import annotations

import hashlib
import math
import re
from dataclasses import dataclass
from typing import Protocol

import openai

from brain_kb.core.config import Settings
from brain_kb.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")


class EmbeddingError(RuntimeError):
    """Raised when an embedding provider fails to produce a vector."""

    def __init__(self, message: str, provider_name: str | None = None) -> None:
        super().__init__(message)
        self.provider_name = provider_name


@dataclass(slots=True)
class EmbeddingVector:
    vector: list[float]
    dim: int


class EmbeddingProvider(Protocol):
    model_name: str

    def embed(self, text: str) -> EmbeddingVector: ...


class HashedEmbeddingModel:
    """Lightweight hashed bag-of-words embedding model with deterministic output."""

    def __init__(self, model_name: str = "hashed", dim: int = 384) -> None:
        self.model_name = model_name
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> EmbeddingVector:
        vector = [0.0] * self._dim
        for token in _tokenize(text):
            vector[_hash_token(token, self._dim)] += 1.0
        _normalize(vector)
        return EmbeddingVector(vector=vector, dim=self._dim)


class OpenAIEmbeddingProvider:
    """Embedding provider backed by an OpenAI-compatible embeddings API."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "text-embedding-3-small",
        base_url: str | None = None,
        client: openai.OpenAI | None = None,
    ) -> None:
        client_kwargs: dict = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = client or openai.OpenAI(**client_kwargs)
        self.model_name = model_name
        self._provider_label = "openai-compatible_embedding" if base_url else "openai_embedding"

    def embed(self, text: str) -> EmbeddingVector:
        try:
            response = self._client.embeddings.create(
                model=self.model_name,
                input=text,
                encoding_format="float",
            )
        except openai.APIError as exc:
            raise EmbeddingError(
                f"{self._provider_label} API error: {exc}",
                provider_name=self._provider_label,
            ) from exc
        if not response.data:
            raise EmbeddingError("Embedding response contained no data", provider_name=self._provider_label)
        vector = [float(value) for value in response.data[0].embedding]
        return EmbeddingVector(vector=vector, dim=len(vector))


class EmbeddingClient:
    """Stateless wrapper around an optional provider.

    Semantic features check :meth:`is_enabled` and degrade to empty results
    when no provider was configured.
    """

    def __init__(self, provider: EmbeddingProvider | None) -> None:
        self._provider = provider

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingClient":
        if settings.embedding_backend == "hashed":
            return cls(HashedEmbeddingModel(model_name="hashed", dim=settings.embedding_dim))
        if not settings.openai_api_key:
            logger.warning("OpenAI API key not set; semantic search disabled")
            return cls(None)
        return cls(
            OpenAIEmbeddingProvider(
                api_key=settings.openai_api_key,
                model_name=settings.embedding_model,
                base_url=settings.openai_base_url,
            )
        )

    def is_enabled(self) -> bool:
        return self._provider is not None

    @property
    def model_name(self) -> str | None:
        return self._provider.model_name if self._provider is not None else None

    def generate_embedding(self, text: str) -> list[float]:
        """Embed ``text`` with a single provider call."""
        if self._provider is None:
            raise EmbeddingError("Embedding provider not configured")
        return self._provider.embed(text).vector


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingClient",
    "EmbeddingError",
    "EmbeddingProvider",
    "EmbeddingVector",
    "HashedEmbeddingModel",
    "OpenAIEmbeddingProvider",
]
