import pytest

from locomotive.ansi import strip_ansi


def test_strips_colour_codes():
    assert strip_ansi("\x1b[31mred\x1b[0m") == "red"


def test_strips_compound_sequence():
    assert strip_ansi("\x1b[1;32mok\x1b[m done") == "ok done"


def test_strips_osc_terminated_by_bell():
    assert strip_ansi("\x1b]0;title\x07text") == "text"


def test_strips_single_byte_csi():
    assert strip_ansi("\x9b2Jclear") == "clear"


def test_plain_text_unchanged():
    text = "plain [text] with; symbols"
    assert strip_ansi(text) == text


@pytest.mark.parametrize(
    "text", ["\x1b[33mwarn\x1b[0m: \x1b[1mbold\x1b[22m", "no escapes", "\x1b[Kline"]
)
def test_idempotent_and_escape_free(text):
    cleaned = strip_ansi(text)
    assert "\x1b" not in cleaned
    assert strip_ansi(cleaned) == cleaned