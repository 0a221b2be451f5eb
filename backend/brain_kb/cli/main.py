"""CLI entrypoint for the Brain knowledge base."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from brain_kb.ingest.loaders import LoaderRegistry

app = typer.Typer(name="brainkb", help="Brain knowledge base command-line interface")
docs_app = typer.Typer(name="docs", help="Inspect and manage documents")
app.add_typer(docs_app, name="docs")

DEFAULT_HOST = "http://127.0.0.1:8000"

HostOption = typer.Option(None, "--host", help="Override backend host")
UserOption = typer.Option(None, "--user", help="Owner id sent as X-User-Id")


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("BRAIN_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _resolve_user(override: Optional[str]) -> str:
    user = override or os.environ.get("BRAIN_USER")
    if not user:
        typer.echo("An owner id is required (--user or BRAIN_USER)", err=True)
        raise typer.Exit(code=2)
    return user


def _request(
    method: str,
    path: str,
    host: Optional[str] = None,
    user: Optional[str] = None,
    **kwargs,
) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    headers = {"X-User-Id": _resolve_user(user)}
    resp = requests.request(method, url, headers=headers, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command("ingest-text")
def ingest_text(
    title: str = typer.Argument(..., help="Document title"),
    content: Optional[str] = typer.Option(None, "--content", help="Text to ingest; read from stdin when omitted"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Ingest a block of text."""
    if content is None:
        content = typer.get_text_stream("stdin").read()
    resp = _request("POST", "/brain/ingest/text", host=host, user=user, json={"title": title, "content": content})
    _echo(resp)


@app.command("ingest-file")
def ingest_file(
    path: Path = typer.Argument(..., help="Markdown or text file to ingest"),
    title: Optional[str] = typer.Option(None, "--title", help="Document title (defaults to front matter or file name)"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Read a local file and send its extracted text to the backend."""
    resolved = path.expanduser().resolve()
    try:
        loaded = LoaderRegistry().load(resolved)
    except (OSError, ValueError) as exc:
        typer.echo(f"Cannot read {resolved}: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    payload = {
        "title": title or loaded.title,
        "file_path": str(resolved),
        "file_name": resolved.name,
        "file_type": loaded.mime,
        "file_size": loaded.size_bytes,
        "content": loaded.text,
    }
    resp = _request("POST", "/brain/ingest/file", host=host, user=user, json=payload)
    _echo(resp)


@app.command()
def search(
    q: str = typer.Argument(..., help="Query text"),
    limit: int = typer.Option(10, "--limit", help="Number of results to return"),
    mode: str = typer.Option("hybrid", "--mode", help="keyword, semantic or hybrid"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Search the knowledge base."""
    resp = _request(
        "POST",
        "/brain/search",
        host=host,
        user=user,
        json={"query": q, "limit": limit, "mode": mode},
    )
    _echo(resp)


@docs_app.command("list")
def list_docs(
    source_type: Optional[str] = typer.Option(None, "--source-type", help="text, url or file"),
    status: Optional[str] = typer.Option(None, "--status", help="processing, ready or error"),
    limit: int = typer.Option(50, "--limit"),
    offset: int = typer.Option(0, "--offset"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """List documents, most recently updated first."""
    params: dict[str, object] = {"limit": limit, "offset": offset}
    if source_type:
        params["source_type"] = source_type
    if status:
        params["status"] = status
    _echo(_request("GET", "/brain/docs", host=host, user=user, params=params))


@docs_app.command("show")
def show_doc(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    chunks: bool = typer.Option(False, "--chunks", help="Show the document's chunks instead"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Show a document or its chunks."""
    path = f"/brain/docs/{doc_id}/chunks" if chunks else f"/brain/docs/{doc_id}"
    _echo(_request("GET", path, host=host, user=user))


@docs_app.command("delete")
def delete_doc(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Delete a document with its chunks, embeddings and chat links."""
    _echo(_request("DELETE", f"/brain/docs/{doc_id}", host=host, user=user))


@app.command()
def embed(
    doc_id: str = typer.Argument(..., help="Document identifier"),
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Generate missing embeddings for a document."""
    _echo(_request("POST", f"/brain/docs/{doc_id}/embeddings", host=host, user=user))


@app.command()
def stats(
    host: Optional[str] = HostOption,
    user: Optional[str] = UserOption,
) -> None:
    """Show document and embedding statistics."""
    _echo(_request("GET", "/brain/stats", host=host, user=user))


if __name__ == "__main__":
    app()
