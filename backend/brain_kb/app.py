"""FastAPI application setup for the Brain knowledge base."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brain_kb.api.dependencies import (
    get_app_settings,
    get_database,
    get_embedding_client,
    get_ingest_service,
    get_search_service,
    get_worker,
    reset_dependencies,
)
from brain_kb.api.routes_admin import router as admin_router
from brain_kb.api.routes_docs import router as docs_router
from brain_kb.api.routes_ingest import router as ingest_router
from brain_kb.api.routes_search import router as search_router
from brain_kb.core.logging import configure_logging

configure_logging()

app = FastAPI(
    title="Brain KB",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ingest_router, prefix="/brain/ingest", tags=["ingest"])
app.include_router(search_router, prefix="/brain", tags=["search"])
app.include_router(docs_router, prefix="/brain", tags=["docs"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_database()
    get_embedding_client()
    get_worker()
    get_ingest_service()
    get_search_service()


@app.on_event("shutdown")
async def shutdown() -> None:
    """Wait for running embedding jobs and close the database."""
    reset_dependencies()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True, "embeddings": get_embedding_client().is_enabled()}
