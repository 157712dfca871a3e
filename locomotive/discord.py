"""Delivery of logs to a Discord webhook as embeds."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import requests

from .config import Config
from .delivery import _indent_json, post_json
from .models import EnvironmentLog, _compact_json, _format_timestamp
from .reconstruct import reconstruct_log_line

USERNAME = "locomotive"
DEFAULT_COLOR = 2303786

_COLORS = {
    "info": 16777215,
    "err": 15548997,
    "error": 15548997,
    "warn": 16776960,
    "debug": 9807270,
}


def get_color(severity: str) -> int:
    """Return the embed colour for a severity."""
    return _COLORS.get(severity.lower(), DEFAULT_COLOR)


def _embed(log: EnvironmentLog, pretty: bool) -> dict[str, Any]:
    raw = reconstruct_log_line(log)
    if pretty:
        raw = _indent_json(raw)
    return {
        "title": log.severity.upper(),
        "url": "",
        "description": f"```{log.message}```\n```{raw}```",
        "color": get_color(log.severity),
        "thumbnail": {"url": ""},
        "footer": {"text": "", "icon_url": ""},
        "fields": None,
        "timestamp": _format_timestamp(log.timestamp),
        "author": {"name": "", "icon_url": "", "url": ""},
    }


def build_payload(logs: Sequence[EnvironmentLog], config: Config) -> dict[str, Any]:
    """Return the webhook body with one embed per log."""
    return {
        "username": USERNAME,
        "avatar_url": "",
        "content": "",
        "embeds": [_embed(log, config.discord_pretty_json) for log in logs],
        "attachments": None,
    }


def send_webhook(
    logs: Sequence[EnvironmentLog], config: Config, session: requests.Session
) -> None:
    """Post the logs to the configured Discord webhook."""
    body = _compact_json(build_payload(logs, config))
    post_json(
        session,
        config.discord_webhook_url,
        body,
        {"Content-Type": "application/json; charset=UTF-8"},
    )