"""Text processing helpers."""

from __future__ import annotations

import re


WHITESPACE_RE = re.compile(r"[ \t\f\v]+")
BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize(text: str) -> str:
    """Collapse runs of spaces and blank lines, keeping paragraph breaks, and strip."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = WHITESPACE_RE.sub(" ", text)
    return BLANK_LINES_RE.sub("\n\n", text).strip()
