# locomotive

locomotive is a library for streaming the logs of a Railway environment over
its GraphQL subscription API and forwarding them to one or more destinations:

- a Discord webhook (one embed per log line, coloured by severity),
- a Slack webhook (section, context and divider blocks per line, optionally
  mentioning users),
- a Grafana Loki push endpoint,
- any HTTP endpoint that accepts a JSON array of log objects.

Each forwarded log is rebuilt as a flat JSON object: the message with ANSI
escape codes removed, a `_metadata` object with the project, environment,
service and deployment identifiers and names, every structured attribute of the
line (inserted as raw JSON), the common timestamp fields (`time`, `_time`,
`timestamp`, `ts`, `datetime`, `dt`) and `severity`.

## Configuration

`locomotive.config.get_config(environ=None)` builds a `Config` from a mapping
(by default `os.environ`) and raises `ConfigError` when the settings are not
usable.

| Variable | Meaning |
| --- | --- |
| `RAILWAY_API_KEY` | API token (required) |
| `RAILWAY_PROJECT_ID` | Project to watch; services are discovered automatically when `TRAIN` is empty |
| `RAILWAY_ENVIRONMENT_ID` | Environment to watch (`ENVIRONMENT_ID` is accepted as a fallback) |
| `TRAIN` | Comma separated service ids; required when no project id is given |
| `DISCORD_WEBHOOK_URL` | Must start with `config.DISCORD_WEBHOOK_PREFIX` |
| `DISCORD_PRETTY_JSON` | Indent the JSON shown in Discord embeds (default `false`) |
| `SLACK_WEBHOOK_URL` | Must start with `config.SLACK_WEBHOOK_PREFIX` |
| `SLACK_PRETTY_JSON` | Indent the JSON shown in Slack messages (default `false`) |
| `SLACK_TAGS` | Comma separated Slack user ids to mention |
| `LOKI_INGEST_URL` | Loki push URL |
| `INGEST_URL` | Generic JSON ingest URL |
| `ADDITIONAL_HEADERS` | Extra headers for the generic ingest, as `key=value;key=value` (only the first `;` separates pairs) |
| `REPORT_STATUS_EVERY` | A duration such as `10s` or `1m30s` (default `10s`), parsed into `Config.report_status_every` |
| `LOGS_FILTER` | Comma separated severities a streamed log must have (`ALL` keeps all) |
| `LOGS_FILTER_DISCORD`, `LOGS_FILTER_SLACK`, `LOGS_FILTER_LOKI`, `LOGS_FILTER_WEBHOOK` | Per destination severity filters |
| `LOGS_CONTENT_FILTER` | Regular expression (or plain text if it is not a valid expression) a streamed message must match |
| `LOGS_CONTENT_FILTER_DISCORD`, `LOGS_CONTENT_FILTER_SLACK`, `LOGS_CONTENT_FILTER_LOKI`, `LOGS_CONTENT_FILTER_WEBHOOK` | Per destination content filters, matched against the log's JSON form |

Boolean variables accept `1`, `t`, `true`, `0`, `f`, `false` and their
upper-case forms. At least one destination must be configured.

## Sending a batch

```python
from locomotive.config import get_config
from locomotive.delivery import create_session
from locomotive.dispatch import send_webhooks
from locomotive.models import EnvironmentLog

config = get_config({
    "RAILWAY_API_KEY": "token",
    "RAILWAY_ENVIRONMENT_ID": "env-1",
    "TRAIN": "service-1",
    "INGEST_URL": "https://ingest.example.com/logs",
})

log = EnvironmentLog.from_dict({
    "timestamp": "2024-01-01T00:00:00Z",
    "message": "hello",
    "severity": "info",
    "tags": {"serviceId": "service-1", "deploymentInstanceId": "instance-1"},
    "attributes": [{"key": "level", "value": "\"info\""}],
})

transported, errors = send_webhooks([log], config, create_session())
```

`send_webhooks` delivers the batch to every configured destination in
parallel, applying each destination's severity and content filters, and
returns the number of log lines delivered together with the errors
(`WebhookError`) of the destinations that failed. Each destination can also be
used on its own through `send_webhook(logs, config, session)` in
`locomotive.discord`, `locomotive.slack`, `locomotive.loki` and
`locomotive.generic`; Discord and Slack also offer `build_payload(logs, config)`.

The log line formats are available directly:

```python
from locomotive.reconstruct import reconstruct_log_line
from locomotive.loki_format import reconstruct_log_lines_loki

line = reconstruct_log_line(log)           # JSON object for generic ingest
push = reconstruct_log_lines_loki([log])   # Loki push request body
```

## Following an environment live

Create a `locomotive.railway.GraphQLClient(auth_token, base_url,
base_subscription_url)` and pass it with the config to
`locomotive.subscribe.subscribe_to_logs(client, config)`. It is a generator
that yields batches of new logs with service, environment and project names
filled in. It skips empty lines, container logs, logs already seen and logs
rejected by `LOGS_FILTER` / `LOGS_CONTENT_FILTER`, and resubscribes whenever
the socket drops or the server ends the stream. An optional `connect(url,
headers)` callable can supply the websocket connection.

```python
for batch in subscribe_to_logs(client, config):
    transported, errors = send_webhooks(batch, config, session)
```

## Logging

`locomotive.logger.configure_logging(debug=None)` sends the package's own log
records to stdout as one JSON object per line. With `debug` unset, the `DEBUG`
environment variable turns on debug output.

## What it does not do

The package has no command-line program or service entry point: starting the
subscription, handing batches to `send_webhooks` and handling errors is left
to the caller's own loop. `REPORT_STATUS_EVERY` is parsed into the config, but
nothing in the package reports status on that interval.