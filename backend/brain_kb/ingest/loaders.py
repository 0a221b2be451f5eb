"""Text extraction for files ingested without pre-extracted content."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from brain_kb.utils.text import normalize

_MD = MarkdownIt()


@dataclass(slots=True)
class LoadedFile:
    """Text and file facts extracted from a path."""

    path: Path
    text: str
    mime: str
    title: str
    size_bytes: int
    metadata: dict[str, Any] = field(default_factory=dict)


class BaseLoader:
    """Common loader interface."""

    suffixes: tuple[str, ...] = ()
    mime_type: str = "application/octet-stream"

    def can_load(self, path: Path) -> bool:
        return path.suffix.lower() in self.suffixes

    def load(self, path: Path) -> LoadedFile:  # pragma: no cover - interface
        raise NotImplementedError


class MarkdownLoader(BaseLoader):
    suffixes = (".md", ".markdown", ".mdx")
    mime_type = "text/markdown"

    def load(self, path: Path) -> LoadedFile:
        raw = path.read_bytes()
        text = raw.decode("utf-8", errors="ignore")
        front_matter, body = _split_front_matter(text)
        metadata: dict[str, Any] = {}
        title = path.stem
        if front_matter:
            metadata["front_matter"] = front_matter
            title = str(front_matter.get("title") or path.stem)
        return LoadedFile(
            path=path,
            text=_markdown_to_text(body),
            mime=self.mime_type,
            title=title,
            size_bytes=len(raw),
            metadata=metadata,
        )


class TextLoader(BaseLoader):
    suffixes = (".txt", ".text", ".log")
    mime_type = "text/plain"

    def load(self, path: Path) -> LoadedFile:
        raw = path.read_bytes()
        return LoadedFile(
            path=path,
            text=normalize(raw.decode("utf-8", errors="ignore")),
            mime=self.mime_type,
            title=path.stem,
            size_bytes=len(raw),
        )


class LoaderRegistry:
    """Registry that selects an appropriate loader for a path."""

    def __init__(self) -> None:
        self._loaders: list[BaseLoader] = [MarkdownLoader(), TextLoader()]

    def for_path(self, path: Path) -> BaseLoader | None:
        for loader in self._loaders:
            if loader.can_load(path):
                return loader
        return None

    def load(self, path: Path) -> LoadedFile:
        loader = self.for_path(path)
        if loader is None:
            raise ValueError(f"No loader registered for suffix {path.suffix}")
        return loader.load(path)


def _split_front_matter(text: str) -> tuple[dict[str, object] | None, str]:
    if text.startswith("---"):
        parts = text.split("---", 2)
        if len(parts) >= 3:
            try:
                front_matter = yaml.safe_load(parts[1]) or {}
            except yaml.YAMLError:
                return None, text
            if isinstance(front_matter, dict):
                return front_matter, parts[2]
    return None, text


def _markdown_to_text(text: str) -> str:
    tokens = _MD.parse(text)
    parts: list[str] = []
    for token in tokens:
        content = token.content.strip()
        if content:
            parts.append(content)
    return normalize("\n".join(parts) if parts else text)


__all__ = ["BaseLoader", "LoadedFile", "LoaderRegistry", "MarkdownLoader", "TextLoader"]
