"""Removal of ANSI terminal escape sequences from log messages."""

from __future__ import annotations

import re

ANSI_ESCAPE_RE = re.compile(
    r"[\x1b\x9b][\[\]()#;?]*"
    r"(?:(?:(?:[a-zA-Z\d]*(?:;[a-zA-Z\d]*)*)?\x07)"
    r"|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PRZcf-ntqry=><~]))",
    re.ASCII,
)


def strip_ansi(text: str) -> str:
    """Return ``text`` without ANSI escape sequences."""
    return ANSI_ESCAPE_RE.sub("", text)