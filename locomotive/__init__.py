"""Stream Railway environment logs and forward them to Discord, Slack, Loki or HTTP ingest."""

__version__ = "0.1.0"