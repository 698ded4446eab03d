"""
HTML input parsing for the HTML to WML builder.

Well-formed XHTML is parsed strictly with ``lxml.etree``; anything else
(tag soup, HTML entities, fragments with several roots) goes through the
lenient ``lxml.html`` parser.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Union

import lxml.html
from lxml import etree

from ..exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

_NAMED_COLORS = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "008000",
    "lime": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "cyan": "00FFFF",
    "aqua": "00FFFF",
    "magenta": "FF00FF",
    "fuchsia": "FF00FF",
    "gray": "808080",
    "grey": "808080",
    "silver": "C0C0C0",
    "maroon": "800000",
    "navy": "000080",
    "olive": "808000",
    "purple": "800080",
    "teal": "008080",
    "orange": "FFA500",
}

_RGB = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")

_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def tag_name(element) -> str:
    """Lower-case local name of an HTML element ('' for comments and PIs)."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].lower()


def parse_html(markup: Union[str, bytes]):
    """
    Parse XHTML or HTML markup into an element tree.

    Args:
        markup: Document or fragment markup

    Returns:
        Root element (``html`` for documents; a synthetic ``html`` for fragments)

    Raises:
        InvalidArgumentError: If ``markup`` is empty or not text/bytes
    """
    if isinstance(markup, bytes):
        markup = markup.decode("utf-8-sig")
    if not isinstance(markup, str) or not markup.strip():
        raise InvalidArgumentError("HTML input must be a non-empty string")
    try:
        return etree.fromstring(markup.strip().encode("utf-8"), parser=_XML_PARSER)
    except etree.XMLSyntaxError as exc:
        logger.debug(f"Input is not well-formed XML, using the HTML parser: {exc}")
    return lxml.html.document_fromstring(markup)


def find_body(root):
    """Return the ``body`` element, or ``root`` itself for bare fragments."""
    if tag_name(root) == "body":
        return root
    for element in root.iter():
        if tag_name(element) == "body":
            return element
    return root


def parse_style(style: Optional[str]) -> Dict[str, str]:
    """Split an inline ``style`` attribute into lower-cased property names and values."""
    declarations: Dict[str, str] = {}
    if not style:
        return declarations
    for declaration in style.split(";"):
        if ":" not in declaration:
            continue
        prop, value = declaration.split(":", 1)
        prop = prop.strip().lower()
        value = value.strip()
        if prop and value:
            declarations[prop] = value
    return declarations


def css_color_to_hex(value: Optional[str]) -> Optional[str]:
    """CSS color (``#rgb``, ``#rrggbb``, ``rgb()``, basic names) -> ``RRGGBB``."""
    if not value:
        return None
    token = value.strip().lower()
    if token in _NAMED_COLORS:
        return _NAMED_COLORS[token]
    match = _RGB.match(token)
    if match:
        return "".join(f"{min(255, int(part)):02X}" for part in match.groups())
    if token.startswith("#"):
        token = token[1:]
    if len(token) == 3 and all(ch in "0123456789abcdef" for ch in token):
        token = "".join(ch * 2 for ch in token)
    if len(token) == 6 and all(ch in "0123456789abcdef" for ch in token):
        return token.upper()
    return None
