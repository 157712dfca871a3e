"""Live log streaming over the platform's GraphQL subscription socket."""

from __future__ import annotations

import contextlib
import json
import logging
import uuid
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from websockets.sync.client import connect as _ws_connect

from .config import Config
from .logger import LOGGER_NAME
from .models import EnvironmentLog, LogType, _format_timestamp
from .railway import (
    ENVIRONMENT_QUERY,
    PROJECT_QUERY,
    STREAM_ENVIRONMENT_LOGS_QUERY,
    GraphQLClient,
    RailwayError,
    _edges,
)
from .util import is_wanted_level, matches_content_filter

CONNECTION_INIT = '{"type":"connection_init"}'
CONNECTION_ACK = '{"type":"connection_ack"}'
SUBPROTOCOL = "graphql-transport-ws"
BEFORE_LIMIT = 500
RESUME_WINDOW = timedelta(minutes=5)
DIAL_TIMEOUT = 10.0
UNDEFINED_NAME = "undefined"

_log = logging.getLogger(LOGGER_NAME)


class Connection(Protocol):
    """The parts of a websocket connection the subscription uses."""

    def send(self, message: str) -> None: ...

    def recv(self) -> str | bytes: ...

    def close(self) -> None: ...


Connector = Callable[[str, dict[str, str]], Connection]


def _open_websocket(url: str, headers: dict[str, str]) -> Connection:
    return _ws_connect(
        url,
        additional_headers=headers,
        subprotocols=[SUBPROTOCOL],  # type: ignore[list-item]
        open_timeout=DIAL_TIMEOUT,
        max_size=None,
    )


def _close_quietly(conn: Connection) -> None:
    with contextlib.suppress(Exception):
        conn.close()


def build_service_filter(service_ids: Iterable[str]) -> str:
    """Return a log filter that matches any of the given services."""
    return " OR ".join(f"@service:{service_id}" for service_id in service_ids)


def build_metadata_map(client: GraphQLClient, config: Config) -> dict[str, str]:
    """Map project, environment and service ids to their names."""
    if not client.base_url:
        raise RailwayError("client is nil")

    if config.project_id:
        project_id = config.project_id
    else:
        data = client.execute(ENVIRONMENT_QUERY, {"id": config.environment_id})
        project_id = (data.get("environment") or {}).get("projectId") or ""

    data = client.execute(PROJECT_QUERY, {"id": project_id})
    project = data.get("project") or {}

    names: dict[str, str] = {}
    for node in _edges(project.get("environments")):
        names[node.get("id") or ""] = node.get("name") or ""
    for node in _edges(project.get("services")):
        names[node.get("id") or ""] = node.get("name") or ""
    names[project.get("id") or ""] = project.get("name") or ""
    return names


def build_subscribe_message(
    config: Config, services: Iterable[str], now: datetime | None = None
) -> dict[str, Any]:
    """Return the ``subscribe`` operation for the environment's log stream.

    Logs from the last five minutes are requested so that a resumed
    subscription does not miss anything.
    """
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return {
        "id": str(uuid.uuid1()),
        "type": "subscribe",
        "payload": {
            "query": STREAM_ENVIRONMENT_LOGS_QUERY,
            "variables": {
                "environmentId": config.environment_id,
                "filter": build_service_filter(services),
                "beforeLimit": BEFORE_LIMIT,
                "beforeDate": _format_timestamp(moment - RESUME_WINDOW),
            },
        },
    }


def select_new_logs(
    logs: Iterable[EnvironmentLog],
    config: Config,
    metadata: Mapping[str, str],
    last_time: datetime,
) -> tuple[list[EnvironmentLog], datetime]:
    """Keep the logs worth forwarding and name their project, environment and service.

    Returns the kept logs and the timestamp of the newest one (or ``last_time``).
    """
    selected: list[EnvironmentLog] = []

    for log in logs:
        # empty logs always carry one attribute, the level
        if not log.message and len(log.attributes) == 1:
            continue

        if not log.tags.deployment_instance_id:
            _log.debug("skipping container log message")
            continue

        if log.timestamp <= last_time:
            continue

        if not is_wanted_level(config.logs_filter_global, log.severity):
            _log.debug(
                "skipping undesired global log level",
                extra={"attrs": {"level": log.severity, "wanted": config.logs_filter_global}},
            )
            continue

        if not matches_content_filter(config.logs_content_filter_global, log.message):
            _log.debug(
                "skipping undesired global log content",
                extra={
                    "attrs": {
                        "content": log.message,
                        "filter": config.logs_content_filter_global,
                    }
                },
            )
            continue

        last_time = log.timestamp

        def name_of(identifier: str, what: str) -> str:
            name = metadata.get(identifier)
            if name is None:
                _log.warning(f"{what} name could not be found")
                return UNDEFINED_NAME
            return name

        tags = replace(
            log.tags,
            service_name=name_of(log.tags.service_id, "service"),
            environment_name=name_of(log.tags.environment_id, "environment"),
            project_name=name_of(log.tags.project_id, "project"),
        )
        selected.append(replace(log, tags=tags))

    return selected, last_time


def _create_subscription(
    client: GraphQLClient, config: Config, connect: Connector
) -> Connection:
    if config.train:
        services = list(config.train)
    elif config.project_id:
        try:
            services = client.get_all_services_in_environment(
                config.project_id, config.environment_id
            )
        except RailwayError as exc:
            raise RailwayError(f"error auto-discovering services: {exc}") from exc
        _log.info(
            "auto-discovered services",
            extra={"attrs": {"services": services, "count": len(services)}},
        )
    else:
        raise RailwayError(
            "either TRAIN services must be specified or RAILWAY_PROJECT_ID "
            "must be provided for auto-discovery"
        )

    message = json.dumps(
        build_subscribe_message(config, services), separators=(",", ":")
    )
    headers = {
        "Authorization": f"Bearer {client.auth_token}",
        "Content-Type": "application/json",
    }

    conn = connect(client.base_subscription_url, headers)
    try:
        conn.send(CONNECTION_INIT)
        ack = conn.recv()
        if isinstance(ack, bytes):
            ack = ack.decode("utf-8", errors="replace")
        if ack != CONNECTION_ACK:
            raise RailwayError("did not receive connection ack from server")
        conn.send(message)
    except BaseException:
        _close_quietly(conn)
        raise
    return conn


def subscribe_to_logs(
    client: GraphQLClient, config: Config, connect: Connector | None = None
) -> Iterator[list[EnvironmentLog]]:
    """Stream batches of new logs, resubscribing whenever the socket drops.

    ``connect(url, headers)`` opens the websocket; by default a real
    connection using the ``graphql-transport-ws`` subprotocol is made.
    """
    opener = connect or _open_websocket

    try:
        metadata = build_metadata_map(client, config)
    except RailwayError as exc:
        raise RailwayError(f"error building metadata map: {exc}") from exc

    conn = _create_subscription(client, config, opener)
    last_time = datetime.now(timezone.utc)

    try:
        while True:
            try:
                raw = conn.recv()
            except Exception as exc:
                _log.debug("resubscribing", extra={"attrs": {"reason": str(exc)}})
                _close_quietly(conn)
                conn = _create_subscription(client, config, opener)
                continue

            message = json.loads(raw)
            if not isinstance(message, dict):
                raise RailwayError("invalid log payload")

            kind = message.get("type") or ""
            if kind != LogType.NEXT:
                _log.debug(
                    "resubscribing",
                    extra={"attrs": {"reason": f"log type not next: {kind}"}},
                )
                _close_quietly(conn)
                conn = _create_subscription(client, config, opener)
                continue

            data = (message.get("payload") or {}).get("data") or {}
            logs = [EnvironmentLog.from_dict(entry) for entry in data.get("environmentLogs") or []]

            selected, last_time = select_new_logs(logs, config, metadata, last_time)
            if selected:
                yield selected
    finally:
        _close_quietly(conn)