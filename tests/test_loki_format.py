import json
from datetime import datetime, timezone

from locomotive.loki_format import reconstruct_log_line_loki, reconstruct_log_lines_loki
from locomotive.models import Attribute, EnvironmentLog, LogTags


def make_log(**kwargs):
    defaults = dict(
        timestamp=datetime.fromtimestamp(1700000000, tz=timezone.utc),
        message="hello",
        severity="error",
        tags=LogTags(
            project_id="p1",
            project_name="proj",
            environment_id="e1",
            environment_name="production",
            service_id="s1",
            service_name="api",
            deployment_id="dep1",
            deployment_instance_id="inst1",
        ),
        attributes=[
            Attribute("level", '"error"'),
            Attribute("time", '"ignored"'),
            Attribute("count", "5"),
            Attribute("user", '"alice"'),
        ],
    )
    defaults.update(kwargs)
    return EnvironmentLog(**defaults)


def test_stream_labels():
    parsed = json.loads(reconstruct_log_line_loki(make_log()))
    assert parsed["stream"] == {
        "project_id": "p1",
        "project_name": "proj",
        "environment_id": "e1",
        "environment_name": "production",
        "service_id": "s1",
        "service_name": "api",
        "deployment_id": "dep1",
        "deployment_instance_id": "inst1",
        "severity": "error",
        "level": "error",
    }


def test_timestamp_is_unix_nanoseconds_string():
    parsed = json.loads(reconstruct_log_line_loki(make_log()))
    assert parsed["values"][0][0] == "1700000000000000000"


def test_message_is_second_value():
    parsed = json.loads(reconstruct_log_line_loki(make_log(message="\x1b[1mhello\x1b[0m")))
    assert parsed["values"][0][1] == "hello"


def test_already_quoted_message_kept():
    parsed = json.loads(reconstruct_log_line_loki(make_log(message='"quoted"')))
    assert parsed["values"][0][1] == "quoted"


def test_structured_metadata_skips_time_and_level():
    parsed = json.loads(reconstruct_log_line_loki(make_log()))
    metadata = parsed["values"][0][2]
    assert metadata == {"count": "5", "user": "alice"}


def test_single_value_entry():
    parsed = json.loads(reconstruct_log_line_loki(make_log(attributes=[])))
    assert len(parsed["values"]) == 1
    assert parsed["values"][0][2] == {}


def test_lines_empty():
    assert reconstruct_log_lines_loki([]) == '{"streams": []}'


def test_lines_contains_each_stream():
    logs = [make_log(message="one"), make_log(message="two")]
    parsed = json.loads(reconstruct_log_lines_loki(logs))
    assert [s["values"][0][1] for s in parsed["streams"]] == ["one", "two"]
    assert parsed["streams"][0] == json.loads(reconstruct_log_line_loki(logs[0]))