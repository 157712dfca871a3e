"""Delivery of logs to a Loki push endpoint."""

from __future__ import annotations

from collections.abc import Sequence

import requests

from .config import Config
from .delivery import post_json
from .loki_format import reconstruct_log_lines_loki
from .models import EnvironmentLog

ACCEPTED_STATUS_CODES = frozenset({200, 204, 202, 201})


def send_webhook(
    logs: Sequence[EnvironmentLog], config: Config, session: requests.Session
) -> None:
    """Push the logs as Loki streams to the configured Loki URL."""
    body = reconstruct_log_lines_loki(logs)
    headers = {
        "Content-Type": "application/json",
        "Keep-Alive": "timeout=5, max=1000",
    }
    post_json(session, config.loki_ingest_url, body, headers, ACCEPTED_STATUS_CODES)