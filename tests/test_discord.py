import json
from datetime import datetime, timezone

import pytest
import responses

from locomotive.config import Config
from locomotive.delivery import WebhookError, create_session
from locomotive.discord import build_payload, get_color, send_webhook
from locomotive.models import Attribute, EnvironmentLog, LogTags
from locomotive.reconstruct import reconstruct_log_line

URL = "https://discord.com/api/webhooks/1/abc"


def make_config(**kwargs):
    return Config(railway_api_key="placeholder", discord_webhook_url=URL, **kwargs)


def make_log(message="hello", severity="info", attributes=None):
    return EnvironmentLog(
        timestamp=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        message=message,
        severity=severity,
        tags=LogTags(service_id="svc", deployment_instance_id="inst"),
        attributes=attributes if attributes is not None else [Attribute("level", '"info"')],
    )


def split_description(description):
    first, second = description.split("\n", 1)
    return first.strip("`"), second.strip("`")


@pytest.mark.parametrize(
    "severity, color",
    [
        ("info", 16777215),
        ("INFO", 16777215),
        ("err", 15548997),
        ("error", 15548997),
        ("warn", 16776960),
        ("debug", 9807270),
        ("other", 2303786),
    ],
)
def test_get_color(severity, color):
    assert get_color(severity) == color


def test_build_payload_structure():
    log = make_log(severity="error")
    payload = build_payload([log, make_log()], make_config())
    assert payload["username"] == "locomotive"
    assert payload["attachments"] is None
    assert len(payload["embeds"]) == 2
    embed = payload["embeds"][0]
    assert embed["title"] == "ERROR"
    assert embed["color"] == get_color("error")
    assert embed["fields"] is None
    assert embed["timestamp"] == "2024-01-02T03:04:05Z"


def test_description_holds_message_and_log_json():
    log = make_log()
    embed = build_payload([log], make_config())["embeds"][0]
    message, raw = split_description(embed["description"])
    assert message == log.message
    assert raw == reconstruct_log_line(log)


def test_pretty_json_description_is_indented():
    log = make_log()
    embed = build_payload([log], make_config(discord_pretty_json=True))["embeds"][0]
    _, raw = split_description(embed["description"])
    assert "\n  " in raw
    assert json.loads(raw) == json.loads(reconstruct_log_line(log))


def test_pretty_json_invalid_attribute_raises():
    log = make_log(attributes=[Attribute("broken", "not json")])
    with pytest.raises(WebhookError, match="failed to indent json log object"):
        build_payload([log], make_config(discord_pretty_json=True))


def test_send_webhook_posts_payload():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=204)
        send_webhook([make_log()], make_config(), create_session())
        request = rsps.calls[0].request
    assert request.headers["Content-Type"] == "application/json; charset=UTF-8"
    body = json.loads(request.body)
    assert body == json.loads(json.dumps(build_payload([make_log()], make_config())))


def test_send_webhook_error_status():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, URL, status=400, body="bad")
        with pytest.raises(WebhookError, match="non success status code: 400; with body: bad"):
            send_webhook([make_log()], make_config(), create_session())