"""Administrative routes."""

from __future__ import annotations

from fastapi import APIRouter

from brain_kb.core.metrics import metrics_response

router = APIRouter()


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
