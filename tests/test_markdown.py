import re

import pytest

from linear_assets.markdown import append_image, replace_image_links
from linear_assets.utils import sanitize_name

SANITIZE_SAMPLES = [
    "",
    "simple.png",
    "with spaces and/slashes?.png",
    "ünïcödé 画像.jpg",
    "https://uploads.linear.app/a/b/c.png?x=1&y=2",
    "x" * 500,
    "é" * 300,
    "already_safe-name.v2.tar.gz",
]


class TestAppendImage:
    def test_empty_document_and_alt(self):
        assert append_image("", "http://x/a.png", "") == "![image](http://x/a.png)"

    def test_whitespace_document_is_treated_as_empty(self):
        assert append_image("  \n\t", "http://x/a.png", "cat") == "![cat](http://x/a.png)"

    def test_appends_after_blank_line(self):
        assert append_image("body text", "http://x/a.png", "cat") == "body text\n\n![cat](http://x/a.png)"

    def test_original_content_untouched(self):
        document = "# Title\n\nsome text  \n"

        result = append_image(document, "http://x/a.png")

        assert result.startswith(document)
        assert result == document + "\n\n![image](http://x/a.png)"

    def test_control_separators_are_not_blank(self):
        assert append_image("\x1c\x1f", "http://x/a.png") == "\x1c\x1f\n\n![image](http://x/a.png)"

    def test_unicode_spaces_are_blank(self):
        assert append_image("\u3000\xa0\n", "http://x/a.png") == "![image](http://x/a.png)"


class TestSanitizeName:
    @pytest.mark.parametrize("raw", SANITIZE_SAMPLES)
    def test_idempotent(self, raw):
        assert sanitize_name(sanitize_name(raw)) == sanitize_name(raw)

    @pytest.mark.parametrize("raw", SANITIZE_SAMPLES)
    def test_only_safe_characters_within_limit(self, raw):
        result = sanitize_name(raw)

        assert len(result) <= 200
        assert re.fullmatch(r"[A-Za-z0-9._-]*", result)

    def test_replaces_each_character(self):
        assert sanitize_name("a b/c?.png") == "a_b_c_.png"
        assert sanitize_name("画像.png") == "__.png"

    def test_truncates_to_200(self):
        assert sanitize_name("a" * 250) == "a" * 200


def test_replace_image_links():
    document = "![a](http://x/1.png) and ![b](http://x/2.png)"

    result = replace_image_links(document, {"http://x/1.png": "images/1.png"})

    assert result == "![a](images/1.png) and ![b](http://x/2.png)"
    assert replace_image_links(document, {}) == document
