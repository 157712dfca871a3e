"""Rebuild platform log records in the Loki push format."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from .ansi import strip_ansi
from .models import EnvironmentLog
from .util import _quote, quote_if_needed

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SKIPPED_ATTRIBUTES = frozenset({"time", "level"})


def _render_object(fields: dict[str, str]) -> str:
    body = ",".join(
        f"{json.dumps(key, ensure_ascii=False)}:{value}" for key, value in fields.items()
    )
    return "{" + body + "}"


def _unix_nanos(moment: datetime) -> int:
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1000


def reconstruct_log_line_loki(log: EnvironmentLog) -> str:
    """Return one log as a Loki stream with labels and a single value entry."""
    tags = log.tags
    stream: dict[str, str] = {
        "project_id": _quote(tags.project_id),
        "project_name": _quote(tags.project_name),
        "environment_id": _quote(tags.environment_id),
        "environment_name": _quote(tags.environment_name),
        "service_id": _quote(tags.service_id),
        "service_name": _quote(tags.service_name),
        "deployment_id": _quote(tags.deployment_id),
        "deployment_instance_id": _quote(tags.deployment_instance_id),
    }

    structured: dict[str, str] = {}
    for attribute in log.attributes:
        if attribute.key in _SKIPPED_ATTRIBUTES:
            continue
        structured[attribute.key] = quote_if_needed(attribute.value)

    stream["severity"] = _quote(log.severity)
    stream["level"] = _quote(log.severity)

    timestamp = quote_if_needed(str(_unix_nanos(log.timestamp)))
    message = quote_if_needed(strip_ansi(log.message))

    values = f"[[{timestamp},{message},{_render_object(structured)}]]"
    return f'{{"stream":{_render_object(stream)},"values":{values}}}'


def reconstruct_log_lines_loki(logs: Iterable[EnvironmentLog]) -> str:
    """Return the logs as a Loki push request body."""
    streams = ",".join(reconstruct_log_line_loki(log) for log in logs)
    return '{"streams": [' + streams + "]}"