"""HTTP delivery of webhook payloads."""

from __future__ import annotations

import json
from collections.abc import Container, Mapping

import requests
from requests.adapters import HTTPAdapter

REQUEST_TIMEOUT = 5.0
POOL_SIZE = 100
SUCCESS_STATUS_CODES = range(200, 300)


class WebhookError(Exception):
    """Raised when a webhook payload cannot be built or delivered."""


def create_session() -> requests.Session:
    """Return a session with connection pooling suited to frequent webhook posts."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=POOL_SIZE, pool_maxsize=POOL_SIZE)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def post_json(
    session: requests.Session,
    url: str,
    body: str | bytes,
    headers: Mapping[str, str] | None = None,
    accepted: Container[int] | None = None,
) -> None:
    """POST ``body`` to ``url`` and raise :class:`WebhookError` unless the status is accepted.

    Redirects are not followed; ``accepted`` defaults to every 2xx status.
    """
    payload = body.encode("utf-8") if isinstance(body, str) else body
    allowed = SUCCESS_STATUS_CODES if accepted is None else accepted

    try:
        response = session.post(
            url,
            data=payload,
            headers=dict(headers or {}),
            timeout=REQUEST_TIMEOUT,
            allow_redirects=False,
        )
    except requests.RequestException as exc:
        raise WebhookError(f"failed to send webhook request: {exc}") from exc

    with response:
        if response.status_code in allowed:
            return
        try:
            text = response.text
        except requests.RequestException:
            raise WebhookError(f"non success status code: {response.status_code}") from None
        raise WebhookError(
            f"non success status code: {response.status_code}; with body: {text}"
        )


def _indent_json(text: str, indent: str = "  ") -> str:
    """Re-indent JSON text while leaving every literal exactly as written."""
    try:
        json.loads(text)
    except ValueError as exc:
        raise WebhookError(f"failed to indent json log object: {exc}") from exc

    out: list[str] = []
    depth = 0
    in_string = False
    escaped = False
    need_indent = False

    def newline() -> None:
        out.append("\n" + indent * depth)

    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch in " \t\r\n":
            continue
        if need_indent and ch not in "]}":
            need_indent = False
            newline()
        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            out.append(ch)
            depth += 1
            need_indent = True
        elif ch == ",":
            out.append(ch)
            newline()
        elif ch == ":":
            out.append(": ")
        elif ch in "}]":
            depth -= 1
            if need_indent:
                need_indent = False
            else:
                newline()
            out.append(ch)
        else:
            out.append(ch)

    return "".join(out)