"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "brainkb_requests_total",
    "Total search requests",
    labelnames=("endpoint", "mode"),
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "brainkb_search_latency_seconds",
    "Latency of knowledge base searches",
    labelnames=("mode",),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "brainkb_ingest_duration_seconds",
    "Ingest duration",
    labelnames=("source",),
    registry=REGISTRY,
)

EMBEDDINGS_CREATED = Counter(
    "brainkb_embeddings_created_total",
    "Chunk embeddings written",
    registry=REGISTRY,
)

EMBEDDING_FAILURES = Counter(
    "brainkb_embedding_failures_total",
    "Chunk embeddings that failed to generate",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "brainkb_chunks",
    "Number of chunks stored",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "SEARCH_LATENCY",
    "INGEST_DURATION",
    "EMBEDDINGS_CREATED",
    "EMBEDDING_FAILURES",
    "INDEX_SIZE",
    "metrics_response",
]
