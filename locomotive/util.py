"""Small helpers shared across the package: quoting, sizes and log filters."""

from __future__ import annotations

import re

_SIMPLE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}

_SIZE_UNIT = 1024
_SIZE_PREFIXES = "KMGTPE"


def _quote(s: str) -> str:
    """Return ``s`` as a double-quoted literal with non-printable characters escaped."""
    parts = ['"']
    for ch in s:
        escaped = _SIMPLE_ESCAPES.get(ch)
        if escaped is not None:
            parts.append(escaped)
            continue
        if ch.isprintable():
            parts.append(ch)
            continue
        code = ord(ch)
        if code < 0x20 or code == 0x7F:
            parts.append(f"\\x{code:02x}")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def quote_if_needed(s: str) -> str:
    """Quote ``s`` unless it is already wrapped in double quotes."""
    if len(s) > 1 and s[0] == '"' and s[-1] == '"':
        return s
    return _quote(s)


def byte_count_iec(b: int) -> str:
    """Format a byte count using binary (IEC) prefixes, e.g. ``1.50 KiB``."""
    if b < 0:
        raise ValueError("byte count must not be negative")
    if b < _SIZE_UNIT:
        return f"{b} B"
    div, exp = _SIZE_UNIT, 0
    n = b // _SIZE_UNIT
    while n >= _SIZE_UNIT:
        div *= _SIZE_UNIT
        exp += 1
        n //= _SIZE_UNIT
    return f"{b / div:.2f} {_SIZE_PREFIXES[exp]}iB"


def is_wanted_level(wanted: list[str], current: str) -> bool:
    """Report whether ``current`` is among the ``wanted`` levels, ignoring case.

    An empty ``wanted`` list means every level is wanted, as does ``ALL``.
    """
    if not wanted:
        return True
    if current == "err":
        current = "error"
    folded = current.casefold()
    return any(level.casefold() in ("all", folded) for level in wanted)


def matches_content_filter(pattern: str, content: str) -> bool:
    """Report whether ``content`` matches the regular expression ``pattern``.

    An empty pattern matches everything; an invalid one is used as plain text.
    """
    if not pattern:
        return True
    try:
        compiled = re.compile(pattern)
    except re.error:
        return pattern in content
    return compiled.search(content) is not None