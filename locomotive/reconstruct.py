"""Rebuild platform log records as flat JSON objects for generic ingestion."""

from __future__ import annotations

import json
from collections.abc import Iterable

from .ansi import strip_ansi
from .models import EnvironmentLog, _compact_json, _format_timestamp, attributes_has_keys
from .util import _quote

COMMON_TIMESTAMP_ATTRIBUTES = ("time", "_time", "timestamp", "ts", "datetime", "dt")


def _render_object(fields: dict[str, str]) -> str:
    """Render a mapping of keys to raw JSON value text as a compact JSON object."""
    body = ",".join(
        f"{json.dumps(key, ensure_ascii=False)}:{value}" for key, value in fields.items()
    )
    return "{" + body + "}"


def reconstruct_log_line(log: EnvironmentLog) -> str:
    """Return one log as a JSON object holding its message, metadata and attributes.

    Attribute values are inserted as raw JSON. Every common timestamp key is
    filled, from a structured timestamp attribute when one exists and from the
    platform timestamp otherwise; ``severity`` is always the log's severity.
    """
    fields: dict[str, str] = {
        "message": _quote(strip_ansi(log.message)),
        "_metadata": _compact_json(log.to_dict()["tags"]),
    }

    for attribute in log.attributes:
        fields[attribute.key] = attribute.value

    timestamp = attributes_has_keys(log.attributes, list(COMMON_TIMESTAMP_ATTRIBUTES))
    if timestamp is None:
        timestamp = _quote(_format_timestamp(log.timestamp))

    for key in COMMON_TIMESTAMP_ATTRIBUTES:
        fields[key] = timestamp

    fields["severity"] = _quote(log.severity)

    return _render_object(fields)


def reconstruct_log_lines(logs: Iterable[EnvironmentLog]) -> str:
    """Return the logs as a JSON array of reconstructed log objects."""
    return "[" + ",".join(reconstruct_log_line(log) for log in logs) + "]"