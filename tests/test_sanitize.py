from datetime import datetime

import pytest

from termchat.util.sanitize import format_timestamp, sanitize


def test_strips_brackets_and_keeps_inner_text():
    assert sanitize("<script>hi</script>", 512) == "scripthi/script"


def test_truncates_before_trimming():
    assert sanitize("abcdefghij", 4) == "abcd"
    # Truncation keeps the leading spaces, trimming removes them afterwards
    assert sanitize("   abcdef", 5) == "ab"


def test_trims_surrounding_whitespace():
    assert sanitize("  \t hello world \n", 512) == "hello world"


def test_empty_and_bracket_only_input():
    assert sanitize("", 16) == ""
    assert sanitize("  <<>>  ", 16) == ""


@pytest.mark.parametrize(
    "text",
    [
        "plain",
        "  padded  ",
        "<b>bold</b>",
        "< > < >",
        "x" * 600,
        " " * 20 + "tail",
        "a<" + " " * 14 + ">b",
        "ünïcödé <3",
    ],
)
@pytest.mark.parametrize("max_len", [1, 16, 512])
def test_sanitize_is_idempotent(text, max_len):
    once = sanitize(text, max_len)
    assert sanitize(once, max_len) == once
    assert len(once) <= max_len


def test_format_timestamp_is_zero_padded():
    assert format_timestamp(datetime(2024, 5, 6, 7, 8, 9)) == "07:08:09"


def test_format_timestamp_defaults_to_now():
    value = format_timestamp()
    assert len(value) == 8
    assert value[2] == ":" and value[5] == ":"
