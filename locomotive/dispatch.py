"""Fan a batch of logs out to every configured destination at once."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import requests

from . import discord, generic, loki, slack
from .config import Config
from .delivery import WebhookError, create_session
from .logger import LOGGER_NAME
from .models import EnvironmentLog, filter_logs

_log = logging.getLogger(LOGGER_NAME)

Sender = Callable[[Sequence[EnvironmentLog], Config, requests.Session], None]


@dataclass(frozen=True)
class _Destination:
    provider: str
    levels: list[str]
    content_filter: str
    send: Sender


def _destinations(config: Config) -> list[_Destination]:
    candidates = [
        (config.discord_webhook_url, _Destination(
            "discord", config.logs_filter_discord, config.logs_content_filter_discord,
            discord.send_webhook)),
        (config.slack_webhook_url, _Destination(
            "slack", config.logs_filter_slack, config.logs_content_filter_slack,
            slack.send_webhook)),
        (config.loki_ingest_url, _Destination(
            "loki", config.logs_filter_loki, config.logs_content_filter_loki,
            loki.send_webhook)),
        (config.ingest_url, _Destination(
            "webhook", config.logs_filter_webhook, config.logs_content_filter_webhook,
            generic.send_webhook)),
    ]
    return [destination for url, destination in candidates if url]


def _deliver(
    destination: _Destination,
    logs: Sequence[EnvironmentLog],
    config: Config,
    session: requests.Session,
) -> int:
    filtered = filter_logs(list(logs), destination.levels, destination.content_filter)
    if len(logs) > len(filtered):
        _log.debug(
            f"{destination.provider} logs filtered",
            extra={
                "attrs": {
                    "amount filtered": len(logs) - len(filtered),
                    "logs pre filter": len(logs),
                    "logs post filter": len(filtered),
                }
            },
        )
    destination.send(filtered, config, session)
    return len(filtered)


def send_webhooks(
    logs: Sequence[EnvironmentLog],
    config: Config,
    session: requests.Session | None = None,
) -> tuple[int, list[Exception]]:
    """Send the logs to every configured destination concurrently.

    Returns the number of logs delivered across destinations and the errors
    of the destinations that failed.
    """
    destinations = _destinations(config)
    if not destinations:
        return 0, []

    http = session if session is not None else create_session()
    transported = 0
    errors: list[Exception] = []

    with ThreadPoolExecutor(max_workers=len(destinations)) as pool:
        futures = [
            pool.submit(_deliver, destination, logs, config, http)
            for destination in destinations
        ]
        for future in futures:
            try:
                transported += future.result()
            except Exception as exc:
                errors.append(WebhookError(f"ingest error: {exc}"))

    return transported, errors