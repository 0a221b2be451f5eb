"""CLI tests against a recorded HTTP layer."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from brain_kb.cli import main as cli

runner = CliRunner()


class RecordedResponse:
    ok = True
    status_code = 200

    def __init__(self, payload: dict) -> None:
        self._payload = payload

    def json(self) -> dict:
        return self._payload


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    recorded: list[dict] = []

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        recorded.append({"method": method, "url": url, "headers": headers, **kwargs})
        return RecordedResponse({"ok": True})

    monkeypatch.delenv("BRAIN_HOST", raising=False)
    monkeypatch.delenv("BRAIN_USER", raising=False)
    monkeypatch.setattr(cli.requests, "request", fake_request)
    return recorded


def test_default_host_is_backend_port(calls: list[dict]) -> None:
    result = runner.invoke(cli.app, ["stats", "--user", "u1"])
    assert result.exit_code == 0, result.output
    [call] = calls
    assert call["method"] == "GET"
    assert call["url"] == "http://127.0.0.1:8000/brain/stats"
    assert call["headers"] == {"X-User-Id": "u1"}


def test_host_and_user_from_environment(calls: list[dict], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BRAIN_HOST", "http://kb.internal:9000/")
    monkeypatch.setenv("BRAIN_USER", "u2")
    result = runner.invoke(cli.app, ["search", "cats", "--mode", "keyword"])
    assert result.exit_code == 0, result.output
    [call] = calls
    assert call["url"] == "http://kb.internal:9000/brain/search"
    assert call["headers"] == {"X-User-Id": "u2"}
    assert call["json"] == {"query": "cats", "limit": 10, "mode": "keyword"}


def test_missing_user_exits(calls: list[dict]) -> None:
    result = runner.invoke(cli.app, ["stats"])
    assert result.exit_code == 2
    assert calls == []


def test_ingest_file_sends_local_content(calls: list[dict], tmp_path: Path) -> None:
    sample = tmp_path / "notes.md"
    sample.write_text("---\ntitle: Field Notes\n---\n# Cats\n\nCats sleep all day.\n")
    result = runner.invoke(cli.app, ["ingest-file", str(sample), "--user", "u1"])
    assert result.exit_code == 0, result.output
    [call] = calls
    assert call["url"] == "http://127.0.0.1:8000/brain/ingest/file"
    payload = call["json"]
    assert payload["title"] == "Field Notes"
    assert payload["file_name"] == "notes.md"
    assert payload["file_type"] == "text/markdown"
    assert "Cats sleep all day." in payload["content"]
    assert "---" not in payload["content"]
