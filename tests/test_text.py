"""Tests for text helpers."""

import pytest

from snaptrans.utils.text import shorten, text_length


class TestTextLength:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", 0),
            ("hello", 5),
            ("\u4f60\u597d\u4e16\u754c", 4),
            ("cafe\u0301", 4),
            ("n\u0303o\u0308", 2),
            ("\u0915\u093f", 1),
            ("\U0001F44D\U0001F3FD", 1),
            ("\u2764\ufe0f", 1),
            ("\U0001F468\u200d\U0001F469\u200d\U0001F467", 1),
            ("hi \U0001F468\u200d\U0001F469\u200d\U0001F467!", 5),
        ],
    )
    def test_counts_user_perceived_characters(self, text, expected):
        assert text_length(text) == expected

    def test_leading_mark_counts(self):
        assert text_length("\u0301a") == 2


class TestShorten:
    def test_short_text_unchanged(self):
        assert shorten("hello") == "hello"

    def test_long_text_truncated(self):
        assert shorten("x" * 60) == "x" * 50 + "..."

    def test_custom_limit(self):
        assert shorten("abcdef", limit=3) == "abc..."
