"""
XML helpers shared by the WML readers and writers.

Wraps ``lxml.etree`` with the namespace table used across the package and a
handful of attribute accessors for WordprocessingML markup.
"""

import logging
from typing import Dict, Iterator, Optional, Union

from lxml import etree

from ..exceptions import XmlParseError

logger = logging.getLogger(__name__)

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
WP_NS = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
PIC_NS = "http://schemas.openxmlformats.org/drawingml/2006/picture"
ASVG_NS = "http://schemas.microsoft.com/office/drawing/2016/SVG/main"
V_NS = "urn:schemas-microsoft-com:vml"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
XML_NS = "http://www.w3.org/XML/1998/namespace"

NS: Dict[str, str] = {
    "w": W_NS,
    "r": R_NS,
    "wp": WP_NS,
    "a": A_NS,
    "pic": PIC_NS,
    "asvg": ASVG_NS,
    "v": V_NS,
}

_OFF_VALUES = {"0", "false", "off", "none"}

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def w(local: str) -> str:
    """Return the Clark-notation name of a WML element or attribute."""
    return f"{{{W_NS}}}{local}"


def qn(prefixed: str) -> str:
    """Expand a ``prefix:local`` name using :data:`NS`."""
    prefix, _, local = prefixed.partition(":")
    return f"{{{NS[prefix]}}}{local}"


def local_name(node) -> str:
    tag = node.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def namespace_of(node) -> str:
    tag = node.tag
    if isinstance(tag, str) and tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""


def is_w(node, name: str) -> bool:
    return isinstance(node.tag, str) and node.tag == w(name)


def element_children(node) -> Iterator:
    """Iterate element children, skipping comments and processing instructions."""
    for child in node:
        if isinstance(child.tag, str):
            yield child


def first_child_w(node, name: str):
    if node is None:
        return None
    return node.find(w(name))


def w_attr(node, name: str, default: Optional[str] = None) -> Optional[str]:
    """Read a ``w:``-qualified attribute, tolerating unqualified spellings."""
    if node is None:
        return default
    value = node.get(w(name))
    if value is None:
        value = node.get(name)
    return value if value is not None else default


def w_val(node, default: Optional[str] = None) -> Optional[str]:
    return w_attr(node, "val", default)


def to_int(value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def on_off(node) -> Optional[bool]:
    """Interpret a toggle property element: present means on unless ``w:val`` turns it off."""
    if node is None:
        return None
    value = w_val(node)
    if value is None:
        return True
    return value.strip().lower() not in _OFF_VALUES


def normalize_color(value: Optional[str]) -> Optional[str]:
    """Return ``#RRGGBB`` for a WML hex color, ``None`` for ``auto``/invalid tokens."""
    if value in (None, "", "auto", "Auto", "AUTO", "none", "None"):
        return None
    token = str(value).strip()
    if token.startswith("#"):
        token = token[1:]
    if len(token) == 3 and all(ch in "0123456789abcdefABCDEF" for ch in token):
        token = "".join(ch * 2 for ch in token)
    if len(token) == 6 and all(ch in "0123456789abcdefABCDEF" for ch in token):
        return f"#{token.upper()}"
    return None


def parse_xml(data: Union[bytes, str], part_name: str = "<xml>"):
    """
    Parse an XML payload into an element tree root.

    Args:
        data: Raw XML bytes or text
        part_name: Part path used in error messages

    Returns:
        Root element

    Raises:
        XmlParseError: If the payload is not well-formed XML
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, parser=_PARSER)
    except etree.XMLSyntaxError as exc:
        raise XmlParseError(f"Invalid XML in {part_name}", details=str(exc)) from exc


def serialize_xml(root) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)
