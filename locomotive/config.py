"""Settings read from the environment, with validation."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

DISCORD_WEBHOOK_PREFIX = "https://discord.com/api/webhooks/"
SLACK_WEBHOOK_PREFIX = "https://hooks.slack.com/services/"
DEFAULT_REPORT_STATUS_EVERY = "10s"

_REQUIRED_VARIABLE = "RAILWAY_API_KEY"

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_MAX_DURATION_NS = 2**63 - 1


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable configuration."""


@dataclass
class Config:
    """Everything the log forwarder needs to run."""

    railway_api_key: str
    project_id: str = ""
    environment_id: str = ""
    train: list[str] = field(default_factory=list)
    legacy_environment_id: str = ""

    discord_webhook_url: str = ""
    discord_pretty_json: bool = False

    slack_webhook_url: str = ""
    slack_pretty_json: bool = False
    slack_tags: list[str] = field(default_factory=list)

    loki_ingest_url: str = ""

    ingest_url: str = ""
    additional_headers: dict[str, str] = field(default_factory=dict)

    report_status_every: timedelta = timedelta(seconds=10)

    logs_filter_global: list[str] = field(default_factory=list)
    logs_filter_discord: list[str] = field(default_factory=list)
    logs_filter_slack: list[str] = field(default_factory=list)
    logs_filter_loki: list[str] = field(default_factory=list)
    logs_filter_webhook: list[str] = field(default_factory=list)

    logs_content_filter_global: str = ""
    logs_content_filter_discord: str = ""
    logs_content_filter_slack: str = ""
    logs_content_filter_loki: str = ""
    logs_content_filter_webhook: str = ""


def parse_additional_headers(value: str) -> dict[str, str]:
    """Parse ``k=v;k=v`` into a header mapping.

    Only the first ``;`` separates pairs; everything after it is the second pair.
    """
    headers: dict[str, str] = {}
    for pair in value.split(";", 1):
        key, sep, val = pair.partition("=")
        if not sep:
            raise ConfigError("header key value pair must be in format k=v")
        headers[key.strip()] = val.strip()
    return headers


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``10s``, ``1h30m`` or ``-1.5ms``."""
    invalid = ValueError(f'time: invalid duration "{text}"')
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise invalid

    total = Decimal(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise invalid
        number, unit = match.groups()
        total += Decimal(number) * _NANOS_PER_UNIT[unit]
        pos = match.end()

    nanos = int(total)
    if nanos > _MAX_DURATION_NS:
        raise invalid
    duration = timedelta(microseconds=nanos // 1000)
    return -duration if negative else duration


def _parse_bool(name: str, value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"invalid boolean value for {name}: {value!r}")


def get_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build and validate a :class:`Config` from ``environ`` (default: ``os.environ``)."""
    env = os.environ if environ is None else environ

    def text(name: str) -> str:
        return env.get(name, "")

    def listing(name: str) -> list[str]:
        value = text(name)
        return value.split(",") if value else []

    def flag(name: str) -> bool:
        return _parse_bool(name, text(name) or "false")

    if _REQUIRED_VARIABLE not in env:
        raise ConfigError(f'required environment variable "{_REQUIRED_VARIABLE}" is not set')

    headers_value = text("ADDITIONAL_HEADERS")
    duration_value = text("REPORT_STATUS_EVERY") or DEFAULT_REPORT_STATUS_EVERY
    try:
        report_status_every = parse_duration(duration_value)
    except ValueError as exc:
        raise ConfigError(f"invalid value for REPORT_STATUS_EVERY: {exc}") from exc

    config = Config(
        railway_api_key=env[_REQUIRED_VARIABLE],
        project_id=text("RAILWAY_PROJECT_ID"),
        environment_id=text("RAILWAY_ENVIRONMENT_ID"),
        train=listing("TRAIN"),
        legacy_environment_id=text("ENVIRONMENT_ID"),
        discord_webhook_url=text("DISCORD_WEBHOOK_URL"),
        discord_pretty_json=flag("DISCORD_PRETTY_JSON"),
        slack_webhook_url=text("SLACK_WEBHOOK_URL"),
        slack_pretty_json=flag("SLACK_PRETTY_JSON"),
        slack_tags=listing("SLACK_TAGS"),
        loki_ingest_url=text("LOKI_INGEST_URL"),
        ingest_url=text("INGEST_URL"),
        additional_headers=parse_additional_headers(headers_value) if headers_value else {},
        report_status_every=report_status_every,
        logs_filter_global=listing("LOGS_FILTER"),
        logs_filter_discord=listing("LOGS_FILTER_DISCORD"),
        logs_filter_slack=listing("LOGS_FILTER_SLACK"),
        logs_filter_loki=listing("LOGS_FILTER_LOKI"),
        logs_filter_webhook=listing("LOGS_FILTER_WEBHOOK"),
        logs_content_filter_global=text("LOGS_CONTENT_FILTER"),
        logs_content_filter_discord=text("LOGS_CONTENT_FILTER_DISCORD"),
        logs_content_filter_slack=text("LOGS_CONTENT_FILTER_SLACK"),
        logs_content_filter_loki=text("LOGS_CONTENT_FILTER_LOKI"),
        logs_content_filter_webhook=text("LOGS_CONTENT_FILTER_WEBHOOK"),
    )

    if not config.environment_id and config.legacy_environment_id:
        config.environment_id = config.legacy_environment_id

    if config.project_id and not config.environment_id:
        raise ConfigError(
            "RAILWAY_ENVIRONMENT_ID is required when RAILWAY_PROJECT_ID is specified"
        )

    if not config.project_id and not config.environment_id:
        raise ConfigError("either RAILWAY_ENVIRONMENT_ID or ENVIRONMENT_ID must be specified")

    if not config.project_id and not config.train:
        raise ConfigError(
            "TRAIN services must be specified when using ENVIRONMENT_ID "
            "(backward compatibility mode)"
        )

    if config.discord_webhook_url and not config.discord_webhook_url.startswith(
        DISCORD_WEBHOOK_PREFIX
    ):
        raise ConfigError("invalid Discord webhook URL")

    if config.slack_webhook_url and not config.slack_webhook_url.startswith(
        SLACK_WEBHOOK_PREFIX
    ):
        raise ConfigError("invalid Slack webhook URL")

    if not (
        config.discord_webhook_url
        or config.ingest_url
        or config.slack_webhook_url
        or config.loki_ingest_url
    ):
        raise ConfigError(
            "specify either a discord webhook url or an ingest url "
            "or a slack webhook url or a loki url"
        )

    return config