"""Log records as delivered by the platform, and filters over them."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any

from .util import is_wanted_level, matches_content_filter

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)

_TAG_FIELDS = (
    ("project_id", "projectId"),
    ("project_name", "projectName"),
    ("environment_id", "environmentId"),
    ("environment_name", "environmentName"),
    ("service_id", "serviceId"),
    ("service_name", "serviceName"),
    ("deployment_id", "deploymentId"),
    ("deployment_instance_id", "deploymentInstanceId"),
)


class LogType(StrEnum):
    """Kind of message received on a log subscription."""

    NEXT = "next"
    COMPLETE = "complete"


@dataclass
class Attribute:
    """A structured-log attribute; ``value`` holds raw JSON text."""

    key: str
    value: str


@dataclass
class LogTags:
    """Identifiers and names describing where a log line came from."""

    project_id: str = ""
    project_name: str = ""
    environment_id: str = ""
    environment_name: str = ""
    service_id: str = ""
    service_name: str = ""
    deployment_id: str = ""
    deployment_instance_id: str = ""


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    date, clock, fraction, offset = match.groups()
    micros = (fraction or "")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    return datetime.fromisoformat(f"{date}T{clock}.{micros}{offset}")


def _format_timestamp(moment: datetime) -> str:
    offset = moment.utcoffset() or timedelta(0)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    fraction = f"{moment.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


def _compact_json(obj: Any) -> str:
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


@dataclass
class EnvironmentLog:
    """One log line from an environment."""

    timestamp: datetime = _ZERO_TIME
    message: str = ""
    severity: str = ""
    tags: LogTags = field(default_factory=LogTags)
    attributes: list[Attribute] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnvironmentLog:
        """Build a log from its decoded JSON form."""
        raw_time = data.get("timestamp")
        raw_tags = data.get("tags") or {}
        return cls(
            timestamp=_parse_timestamp(raw_time) if raw_time else _ZERO_TIME,
            message=data.get("message") or "",
            severity=data.get("severity") or "",
            tags=LogTags(**{name: raw_tags.get(key) or "" for name, key in _TAG_FIELDS}),
            attributes=[
                Attribute(key=item.get("key") or "", value=item.get("value") or "")
                for item in data.get("attributes") or []
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of this log."""
        return {
            "timestamp": _format_timestamp(self.timestamp),
            "message": self.message,
            "severity": self.severity,
            "tags": {key: getattr(self.tags, name) for name, key in _TAG_FIELDS},
            "attributes": [{"key": a.key, "value": a.value} for a in self.attributes],
        }


def attributes_has_keys(attributes: list[Attribute], keys: list[str]) -> str | None:
    """Return the value of the first attribute whose key is in ``keys``, or None."""
    wanted = set(keys)
    return next((a.value for a in attributes if a.key in wanted), None)


def filter_logs(
    logs: list[EnvironmentLog], wanted_levels: list[str], content_filter: str
) -> list[EnvironmentLog]:
    """Keep the logs whose level is wanted and whose JSON form matches the filter."""
    if not wanted_levels and not content_filter:
        return logs
    return [
        log
        for log in logs
        if is_wanted_level(wanted_levels, log.severity)
        and matches_content_filter(content_filter, _compact_json(log.to_dict()))
    ]