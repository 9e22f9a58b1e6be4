"""Tests for input sanitization."""

from __future__ import annotations

from sima.core.sanitize import (
    sanitize_email,
    sanitize_html,
    sanitize_object,
    sanitize_phone,
    sanitize_string,
)


class TestSanitizeString:
    def test_strips_script_and_quotes(self):
        assert sanitize_string("Juan<script>alert(1)</script> \"O'Hara\"") == "Juan OHara"

    def test_collapses_control_characters(self):
        assert sanitize_string("a\tb\n\nc") == "a b c"

    def test_non_strings_untouched(self):
        assert sanitize_string(42) == 42
        assert sanitize_string(None) is None


class TestSanitizeHtml:
    def test_keeps_markup_removes_active_content(self):
        dirty = '<b>nota</b><a href="javascript:x()">l</a><iframe src="x"></iframe>'
        clean = sanitize_html(dirty)
        assert "<b>nota</b>" in clean
        assert "javascript:" not in clean
        assert "iframe" not in clean

    def test_removes_form_controls(self):
        assert sanitize_html('antes<input type="text">despues') == "antesdespues"


class TestSanitizeObject:
    def test_html_fields_and_skip_fields(self):
        data = {
            "nombre": " <script>x</script>Ana ",
            "observaciones": "<i>ok</i>",
            "token": "'raw'",
            "edad": 30,
        }
        out = sanitize_object(data, html_fields=["observaciones"], skip_fields=["token"])
        assert out == {"nombre": "Ana", "observaciones": "<i>ok</i>", "token": "'raw'", "edad": 30}

    def test_max_length_and_nesting(self):
        out = sanitize_object({"a": "x" * 50, "b": {"c": "y" * 50}, "l": ["z" * 50]}, max_length=10)
        assert out == {"a": "x" * 10, "b": {"c": "y" * 10}, "l": ["z" * 10]}


class TestEmailAndPhone:
    def test_email_normalized(self):
        assert sanitize_email("  Ana@Example.COM ") == "ana@example.com"

    def test_email_invalid(self):
        assert sanitize_email("no-es-un-mail") is None

    def test_phone_keeps_allowed_characters(self):
        assert sanitize_phone("+54 (11) 4444-5555 int") == "+54 (11) 4444-5555"

    def test_phone_too_short(self):
        assert sanitize_phone("12-34") is None
