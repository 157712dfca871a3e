"""Delivery of logs to a Slack webhook as message blocks."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any

import requests

from .config import Config
from .delivery import _indent_json, post_json
from .models import EnvironmentLog, _compact_json
from .reconstruct import reconstruct_log_line


def _time_string(moment: datetime) -> str:
    """Render a time as ``2006-01-02 15:04:05.999 -0700 ZONE``."""
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    fraction = f"{moment.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    offset = moment.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    numeric = f"{sign}{hours:02d}{mins:02d}"
    zone = "UTC" if minutes == 0 else numeric
    return f"{text} {numeric} {zone}"


def _user_tags(tags: Sequence[str]) -> str:
    if not tags:
        return ""
    return " ".join(f"<@{tag}>" for tag in tags) + "\n"


def build_payload(logs: Sequence[EnvironmentLog], config: Config) -> dict[str, Any]:
    """Return the message body: a section, context and divider block per log."""
    mentions = _user_tags(config.slack_tags)
    blocks: list[dict[str, Any]] = []

    for log in logs:
        raw = reconstruct_log_line(log)
        if config.slack_pretty_json:
            raw = _indent_json(raw)

        text = f"{mentions}*{log.severity.upper()}*\n```{log.message}```\n```{raw}```"
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": text}})
        blocks.append(
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": f"*Timestamp:* {_time_string(log.timestamp)}"}
                ],
            }
        )
        blocks.append({"type": "divider"})

    return {"blocks": blocks}


def send_webhook(
    logs: Sequence[EnvironmentLog], config: Config, session: requests.Session
) -> None:
    """Post the logs to the configured Slack webhook."""
    body = _compact_json(build_payload(logs, config))
    post_json(
        session,
        config.slack_webhook_url,
        body,
        {"Content-Type": "application/json; charset=UTF-8"},
    )