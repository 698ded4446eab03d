"""
Tests for HTML input parsing helpers.
"""

import pytest

from docx_converter.exceptions import InvalidArgumentError
from docx_converter.parser.html_parser import css_color_to_hex, find_body, parse_html, parse_style, tag_name


class TestParseHtml:
    """Test cases for parse_html."""

    def test_strict_xhtml(self):
        root = parse_html('<html xmlns="http://www.w3.org/1999/xhtml"><body><p>Hi</p></body></html>')
        body = find_body(root)
        assert tag_name(body) == "body"
        assert tag_name(body[0]) == "p"

    def test_lenient_html(self):
        root = parse_html("<p>One<p>Two &nbsp; <br> three")
        body = find_body(root)
        assert [tag_name(child) for child in body] == ["p", "p"]

    def test_bytes_input(self):
        root = parse_html("<p>café</p>".encode("utf-8"))
        assert "café" in "".join(find_body(root).itertext())

    def test_fragment_returns_root(self):
        root = parse_html("<p>Alone</p>")
        assert tag_name(find_body(root)) in ("p", "body")

    @pytest.mark.parametrize("markup", ["", "   ", None])
    def test_empty_input(self, markup):
        with pytest.raises(InvalidArgumentError):
            parse_html(markup)


class TestStyleHelpers:
    """Test cases for inline style helpers."""

    def test_parse_style(self):
        assert parse_style("Color: red; font-weight:bold;;bad") == {"color": "red", "font-weight": "bold"}
        assert parse_style(None) == {}

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("#f00", "FF0000"),
            ("#00ff00", "00FF00"),
            ("rgb(0, 0, 255)", "0000FF"),
            ("Navy", "000080"),
            ("not-a-color", None),
            (None, None),
        ],
    )
    def test_css_color_to_hex(self, value, expected):
        assert css_color_to_hex(value) == expected
