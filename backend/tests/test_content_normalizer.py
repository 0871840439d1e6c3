"""
Unit Tests for Description Normalization

Usage:
    cd backend && pytest tests/test_content_normalizer.py -v
"""

import os
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app import content_normalizer
from app.content_normalizer import MAX_DESCRIPTION_CHARS, normalize_description


class TestNormalizeDescription:
    """Tests for HTML to text conversion."""

    def test_strips_inline_markup(self):
        assert normalize_description("<p>Hello <b>World</b></p>") == "Hello World"

    def test_paragraphs_become_blank_line_separated(self):
        assert normalize_description("<p>One</p><p>Two</p>") == "One\n\nTwo"

    def test_list_items_become_bullets(self):
        html = "<ul><li>Python</li><li>SQL</li></ul>"
        assert normalize_description(html) == "- Python\n- SQL"

    def test_br_becomes_newline(self):
        assert normalize_description("Line one<br>Line two") == "Line one\nLine two"

    def test_entities_unescaped(self):
        assert normalize_description("Fish &amp; Chips&nbsp;Ltd") == "Fish & Chips Ltd"

    def test_script_and_style_dropped(self):
        html = "<style>p{color:red}</style><p>Apply now</p><script>alert(1)</script>"
        assert normalize_description(html) == "Apply now"

    def test_plain_text_whitespace_collapsed(self):
        assert normalize_description("  Senior   engineer\t role  ") == "Senior engineer role"

    def test_no_markup_survives(self):
        html = '<div class="x"><h2>Role</h2><a href="https://x.example.com">Apply</a></div>'
        result = normalize_description(html)
        assert "<" not in result and ">" not in result
        assert "Role" in result and "Apply" in result

    def test_empty_and_none(self):
        assert normalize_description("") == ""
        assert normalize_description(None) == ""

    def test_length_capped(self):
        assert len(normalize_description("x" * (MAX_DESCRIPTION_CHARS + 500))) == MAX_DESCRIPTION_CHARS


class TestNormalizeFallback:
    """Parsing failures must never cost the listing."""

    def test_returns_original_text_on_failure(self, monkeypatch):
        def boom(raw):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(content_normalizer, "_html_to_text", boom)
        assert normalize_description("<p>Keep me</p>") == "<p>Keep me</p>"
