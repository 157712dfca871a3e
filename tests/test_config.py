from datetime import timedelta

import pytest

from locomotive.config import (
    ConfigError,
    get_config,
    parse_additional_headers,
    parse_duration,
)

BASE = {
    "RAILWAY_API_KEY": "token",
    "RAILWAY_ENVIRONMENT_ID": "env-1",
    "TRAIN": "svc-a,svc-b",
    "INGEST_URL": "https://ingest.example.com/logs",
}


def _env(**changes):
    env = dict(BASE)
    for key, value in changes.items():
        if value is None:
            env.pop(key, None)
        else:
            env[key] = value
    return env


def test_defaults():
    cfg = get_config(BASE)
    assert cfg.railway_api_key == "token"
    assert cfg.train == ["svc-a", "svc-b"]
    assert cfg.report_status_every == timedelta(seconds=10)
    assert cfg.discord_pretty_json is False
    assert cfg.additional_headers == {}
    assert cfg.logs_filter_global == []


def test_missing_api_key():
    with pytest.raises(ConfigError, match="RAILWAY_API_KEY"):
        get_config(_env(RAILWAY_API_KEY=None))


def test_legacy_environment_id_fallback():
    cfg = get_config(_env(RAILWAY_ENVIRONMENT_ID=None, ENVIRONMENT_ID="legacy"))
    assert cfg.environment_id == "legacy"


def test_project_without_environment():
    env = {"RAILWAY_API_KEY": "token", "RAILWAY_PROJECT_ID": "p", "INGEST_URL": BASE["INGEST_URL"]}
    with pytest.raises(ConfigError, match="required when RAILWAY_PROJECT_ID"):
        get_config(env)


def test_neither_project_nor_environment():
    with pytest.raises(ConfigError, match="either RAILWAY_ENVIRONMENT_ID or ENVIRONMENT_ID"):
        get_config(_env(RAILWAY_ENVIRONMENT_ID=None))


def test_train_required_without_project():
    with pytest.raises(ConfigError, match="TRAIN services must be specified"):
        get_config(_env(TRAIN=None))


def test_project_allows_auto_discovery():
    cfg = get_config(_env(TRAIN=None, RAILWAY_PROJECT_ID="proj"))
    assert cfg.train == []
    assert cfg.project_id == "proj"


def test_invalid_discord_url():
    with pytest.raises(ConfigError, match="invalid Discord webhook URL"):
        get_config(_env(DISCORD_WEBHOOK_URL="https://example.com/hook"))


def test_valid_discord_url():
    url = "https://discord.com/api/webhooks/1/abc"
    assert get_config(_env(DISCORD_WEBHOOK_URL=url)).discord_webhook_url == url


def test_invalid_slack_url():
    with pytest.raises(ConfigError, match="invalid Slack webhook URL"):
        get_config(_env(SLACK_WEBHOOK_URL="https://example.com/hook"))


def test_no_destination():
    with pytest.raises(ConfigError, match="specify either a discord webhook url"):
        get_config(_env(INGEST_URL=None))


def test_bool_parsing():
    assert get_config(_env(DISCORD_PRETTY_JSON="true")).discord_pretty_json is True
    with pytest.raises(ConfigError):
        get_config(_env(SLACK_PRETTY_JSON="yes"))


def test_report_status_every():
    assert get_config(_env(REPORT_STATUS_EVERY="1m")).report_status_every == timedelta(minutes=1)
    with pytest.raises(ConfigError):
        get_config(_env(REPORT_STATUS_EVERY="bogus"))


def test_lists_and_headers_from_environment():
    cfg = get_config(_env(LOGS_FILTER="error,warn", ADDITIONAL_HEADERS="X-Key=abc"))
    assert cfg.logs_filter_global == ["error", "warn"]
    assert cfg.additional_headers == {"X-Key": "abc"}


def test_parse_headers_trims():
    assert parse_additional_headers(" X-Api = abc ; X-Other=def ") == {
        "X-Api": "abc",
        "X-Other": "def",
    }


def test_parse_headers_splits_only_once():
    assert parse_additional_headers("a=1;b=2;c=3") == {"a": "1", "b": "2;c=3"}


def test_parse_headers_requires_equals():
    with pytest.raises(ConfigError, match="k=v"):
        parse_additional_headers("novalue")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5s", timedelta(seconds=1.5)),
        ("300ms", timedelta(milliseconds=300)),
        ("250us", timedelta(microseconds=250)),
        ("-2m", -timedelta(minutes=2)),
        ("+5s", timedelta(seconds=5)),
        ("0", timedelta(0)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "10", "1x", "h", "1.2.3s", "-"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)