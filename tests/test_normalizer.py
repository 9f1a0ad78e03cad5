"""Tests for model output normalization."""

import pytest

from multisub.normalizer import (
    extract_code_block,
    is_srt_block,
    normalize_srt_response,
    normalize_text,
)

BLOCK = "1\n00:00:01,000 --> 00:00:02,000\nHello"


class TestNormalizeText:
    def test_curly_quotes(self):
        assert normalize_text("\u201cHi\u201d \u2018there\u2019") == "\"Hi\" 'there'"

    def test_angle_quotes(self):
        assert normalize_text("\u00abbonjour\u00bb") == '"bonjour"'

    def test_markdown_keeps_inner_text(self):
        text = "**bold** and *it* and __u__ and ~~s~~ and `code`"
        assert normalize_text(text) == "bold and it and u and s and code"

    def test_html_tags(self):
        assert normalize_text('<i>Hello</i> <font color="red">world</font>') == "Hello world"

    def test_less_than_is_not_a_tag(self):
        assert normalize_text("I <3 you") == "I <3 you"

    def test_timecode_arrow_survives(self):
        assert normalize_text(BLOCK.replace("Hello", "<b>Hello</b>")) == BLOCK

    def test_whitespace(self):
        assert normalize_text("  a   b\t\tc  \n  d  ") == "a b c\nd"

    def test_newlines(self):
        assert normalize_text("a\r\n\r\n\r\n\r\nb\rc") == "a\n\nb\nc"

    def test_unicode_spaces(self):
        assert normalize_text("a\u00a0b\u3000c d") == "a b c d"

    def test_bom(self):
        assert normalize_text("\ufeffhello\ufeff") == "hello"

    @pytest.mark.parametrize(
        "text",
        [
            "**<i>bold</i>**",
            "*<i>*x*</i>",
            "\u201c  spaced \u201d\n\n\n\nnext",
            "\u00a0 \u00a0lead\r\ntrail \u3000",
            "~~**`nested`**~~",
            BLOCK + "\n\n\n" + BLOCK,
            "I <3 <b>you</b>",
        ],
    )
    def test_idempotent(self, text):
        once = normalize_text(text)
        assert normalize_text(once) == once


class TestSrtResponse:
    def test_extract_code_block(self):
        assert extract_code_block("```srt\nabc\n```").strip() == "abc"
        assert extract_code_block("no fence") == "no fence"

    def test_is_srt_block(self):
        assert is_srt_block(BLOCK)
        assert not is_srt_block("Here you go:")
        assert not is_srt_block("1\nno timecode")

    def test_plain_response(self):
        assert normalize_srt_response(BLOCK) == BLOCK

    @pytest.mark.parametrize("fence", ["```", "```srt", "```plaintext"])
    def test_fenced_response(self, fence):
        assert normalize_srt_response(f"{fence}\n{BLOCK}\n```") == BLOCK

    def test_commentary_dropped(self):
        second = "2\n00:00:03,000 --> 00:00:04,000\nBye"
        response = f"Sure! Here is the translation:\n\n{BLOCK}\n\n{second}\n\nHope this helps!"
        assert normalize_srt_response(response) == f"{BLOCK}\n\n{second}"

    def test_garbage_gives_empty(self):
        assert normalize_srt_response("I cannot translate this.") == ""
