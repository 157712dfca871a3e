"""Delivery of logs to a generic JSON ingest endpoint."""

from __future__ import annotations

from collections.abc import Sequence

import requests

from .config import Config
from .delivery import post_json
from .models import EnvironmentLog
from .reconstruct import reconstruct_log_lines

ACCEPTED_STATUS_CODES = frozenset({200, 204, 202, 201})


def send_webhook(
    logs: Sequence[EnvironmentLog], config: Config, session: requests.Session
) -> None:
    """Post the logs as a JSON array to the configured ingest URL."""
    body = reconstruct_log_lines(logs)
    headers = {
        "Content-Type": "application/json",
        "Keep-Alive": "timeout=5, max=1000",
    }
    headers.update(config.additional_headers)
    post_json(session, config.ingest_url, body, headers, ACCEPTED_STATUS_CODES)