"""Tests for MEDIA: marker extraction."""

import pytest

from warelay.media.parse import is_media_candidate, split_media_from_output


class TestIsMediaCandidate:
    @pytest.mark.parametrize(
        "token",
        ["https://example.com/a.png", "http://x/y", "/tmp/pic.png", "./out.png", "~/pic.jpg", "file:///tmp/a"],
    )
    def test_accepts(self, token):
        assert is_media_candidate(token)

    @pytest.mark.parametrize("token", ["", "not", "pic.png", "/tmp/my pic.png", "hello:world"])
    def test_rejects(self, token):
        assert not is_media_candidate(token)


class TestSplitMediaFromOutput:
    def test_marker_on_own_line(self):
        result = split_media_from_output("line1\nMEDIA:https://x/y.png\nline2")
        assert result.media_url == "https://x/y.png"
        assert result.text == "line1\nline2"

    def test_space_after_marker(self):
        result = split_media_from_output("hello\nMEDIA: https://example.com/img.jpg\n")
        assert result.media_url == "https://example.com/img.jpg"
        assert result.text == "hello"

    def test_trailing_text_after_token(self):
        result = split_media_from_output("hello\nMEDIA:/tmp/pic.png extra words here\n")
        assert result.media_url == "/tmp/pic.png"
        assert result.text == "hello\nextra words here"

    def test_inline_within_sentence(self):
        result = split_media_from_output("caption before MEDIA:/tmp/pic.png caption after")
        assert result.media_url == "/tmp/pic.png"
        assert result.text == "caption before caption after"

    def test_backticks(self):
        result = split_media_from_output("MEDIA:`/tmp/pic.png` cool")
        assert result.media_url == "/tmp/pic.png"
        assert result.text == "cool"

    def test_trailing_json_characters(self):
        result = split_media_from_output('MEDIA:/tmp/pic.png"} trailing')
        assert result.media_url == "/tmp/pic.png"
        assert result.text == "trailing"

    def test_only_json_artifact(self):
        result = split_media_from_output('MEDIA:/tmp/pic.png"}')
        assert result.media_url == "/tmp/pic.png"
        assert result.text == ""

    def test_quoted_json_value(self):
        result = split_media_from_output('"MEDIA:/tmp/pic.png"}')
        assert result.media_url == "/tmp/pic.png"
        assert result.text == ""

    def test_sentence_period(self):
        result = split_media_from_output("Here you go: MEDIA:https://x.io/a.png.")
        assert result.media_url == "https://x.io/a.png"
        assert result.text == "Here you go:"

    def test_invalid_token_left_untouched(self):
        raw = "hello\nMEDIA: not a url with spaces\nrest"
        result = split_media_from_output(raw)
        assert result.media_url is None
        assert result.text == raw

    def test_backticked_token_with_space_left_untouched(self):
        raw = "MEDIA:`/tmp/my pic.png` done"
        result = split_media_from_output(raw)
        assert result.media_url is None
        assert result.text == raw

    def test_first_valid_token_wins(self):
        result = split_media_from_output("MEDIA:/tmp/a.png\nMEDIA:/tmp/b.png")
        assert result.media_url == "/tmp/a.png"
        assert result.text == "MEDIA:/tmp/b.png"

    def test_skips_invalid_then_takes_valid(self):
        result = split_media_from_output("MEDIA: nope\nMEDIA:/tmp/b.png")
        assert result.media_url == "/tmp/b.png"
        assert result.text == "MEDIA: nope"

    def test_no_marker(self):
        result = split_media_from_output("just text\n")
        assert result.media_url is None
        assert result.text == "just text\n"

    def test_preserves_paragraphs(self):
        result = split_media_from_output("para one\n\npara two\nMEDIA:/tmp/x.png\n\npara three")
        assert result.media_url == "/tmp/x.png"
        assert result.text == "para one\n\npara two\n\npara three"

    def test_insertion_roundtrip(self):
        before, url, after = "Look at this ", "https://cdn.example.com/p.jpg", " nice, right?"
        result = split_media_from_output(f"{before}MEDIA:{url}{after}")
        assert result.media_url == url
        assert result.text == "Look at this nice, right?"
