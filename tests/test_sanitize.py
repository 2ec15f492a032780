import pytest

from src.block_feedback.engine.sanitize import sanitize_markup, sanitize_text, strip_tags


class TestStripTags:
    def test_removes_markup(self):
        assert strip_tags("<p>Hello <b>world</b></p>") == "Hello world"

    def test_drops_script_content(self):
        assert strip_tags("Hi<script>alert('x')</script> there") == "Hi there"

    def test_collapses_whitespace(self):
        assert strip_tags("  a \n\n b\t c ") == "a b c"

    def test_empty(self):
        assert strip_tags("") == ""


class TestSanitizeText:
    def test_plain_text_unchanged(self):
        assert sanitize_text("Add supporting evidence", 50) == "Add supporting evidence"

    def test_escapes_special_characters(self):
        assert sanitize_text("a < b & c", 50) == "a &lt; b & c"

    def test_ampersand_title_stays_within_cap(self):
        title = "Q & A " + "x" * 44
        result = sanitize_text(title, 50)
        assert result == title
        assert len(result) == 50

    def test_tags_removed_not_escaped(self):
        assert sanitize_text("<em>Fix</em> intro", 50) == "Fix intro"

    def test_truncates_with_ellipsis(self):
        assert sanitize_text("x" * 60, 50) == "x" * 47 + "..."

    def test_exact_length_kept(self):
        assert sanitize_text("x" * 50, 50) == "x" * 50


class TestSanitizeMarkup:
    def test_keeps_allowed_tags(self):
        value = "Use <strong>active</strong> voice, <em>not</em> <code>passive</code>."
        assert sanitize_markup(value, 300) == value

    def test_strips_attributes(self):
        assert sanitize_markup('<b class="x" style="color:red">hi</b>', 300) == "<b>hi</b>"

    def test_unwraps_disallowed_tags(self):
        assert sanitize_markup('<div><a href="http://evil">click</a></div>', 300) == "click"

    @pytest.mark.parametrize(
        "value",
        [
            "ok<script>alert(1)</script>",
            "ok<style>body{}</style>",
            '<iframe src="x"></iframe>ok',
            "ok<!-- hidden -->",
        ],
    )
    def test_drops_dangerous_content(self, value):
        assert sanitize_markup(value, 300) == "ok"

    def test_event_handler_removed(self):
        result = sanitize_markup('<img src=x onerror="alert(1)">Look', 300)
        assert "onerror" not in result
        assert "<img" not in result
        assert result == "Look"

    def test_escapes_text(self):
        assert sanitize_markup("a < b", 300) == "a &lt; b"

    def test_truncates_visible_text(self):
        result = sanitize_markup("<strong>" + "a" * 20 + "</strong>" + "b" * 20, 30)
        assert result == "<strong>" + "a" * 20 + "</strong>" + "b" * 7 + "..."

    def test_truncation_inside_tag_keeps_markup_balanced(self):
        result = sanitize_markup("<em>" + "a" * 40 + "</em> tail", 20)
        assert result == "<em>" + "a" * 17 + "...</em>"

    def test_short_value_not_truncated(self):
        assert sanitize_markup("short", 10) == "short"

    def test_empty(self):
        assert sanitize_markup("", 10) == ""

    @pytest.mark.parametrize(
        "value",
        [
            '<p onclick="x()">Intro <b>bold</b> &amp; <i>more</i></p><script>bad()</script>',
            "<strong>" + "word " * 100 + "</strong>",
            "Line one<br>Line two",
            "a < b > c & d",
        ],
    )
    def test_idempotent(self, value):
        once = sanitize_markup(value, 300)
        assert sanitize_markup(once, 300) == once

    def test_text_idempotent(self):
        once = sanitize_text("<b>Tom & Jerry</b> " + "x" * 60, 50)
        assert once.startswith("Tom & Jerry")
        assert sanitize_text(once, 50) == once
