"""Search API routes."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from brain_kb.api.dependencies import get_owner_id, get_search_service
from brain_kb.models.dto import HybridHit, KeywordHit, SearchRequest, SearchResponse, SemanticHit
from brain_kb.models.entities import KeywordSearchResult
from brain_kb.retrieval.hybrid import RankedResult
from brain_kb.retrieval.search import SearchHit, SearchService, SemanticSearchDisabled

router = APIRouter()


@router.post("/search", response_model=SearchResponse, summary="Search the knowledge base")
async def search(
    request: SearchRequest,
    owner_id: str = Depends(get_owner_id),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    return _run_search(service, request.query, owner_id, request.mode, request.limit)


@router.get("/search", response_model=SearchResponse, summary="Quick search")
async def quick_search(
    q: str = Query(min_length=1),
    limit: int = Query(default=10, ge=1, le=100),
    mode: Literal["keyword", "semantic", "hybrid"] = "hybrid",
    owner_id: str = Depends(get_owner_id),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    return _run_search(service, q, owner_id, mode, limit)


def _run_search(service: SearchService, query: str, owner_id: str, mode: str, limit: int) -> SearchResponse:
    try:
        outcome = service.search(query, owner_id, mode=mode, limit=limit)
    except SemanticSearchDisabled as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    results = [_to_hit(result) for result in outcome.results]
    return SearchResponse(
        results=results,
        count=len(results),
        mode=outcome.mode,
        requested_mode=outcome.requested_mode,
        degraded=outcome.degraded,
    )


def _to_hit(result: SearchHit) -> HybridHit | SemanticHit | KeywordHit:
    if isinstance(result, RankedResult):
        hit = SemanticHit.model_validate(result.result)
        return HybridHit(**hit.model_dump(), score=result.score)
    if isinstance(result, KeywordSearchResult):
        return KeywordHit.model_validate(result)
    return SemanticHit.model_validate(result)


__all__ = ["router"]
