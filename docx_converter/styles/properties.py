"""
Parsers for WML property containers.

Each parser turns a property element (``w:pPr``, ``w:rPr``, ``w:tblPr``,
``w:tcPr``) into a flat dict. Absent properties are omitted, so layering two
dicts with ``dict.update`` overrides property by property.
"""

from typing import Any, Dict, Optional

from ..utils.xml_utils import first_child_w, normalize_color, on_off, to_int, w, w_attr, w_val

BORDER_SIDES = ("top", "left", "bottom", "right")
TABLE_BORDER_SIDES = ("top", "left", "bottom", "right", "insideH", "insideV")

_RUN_TOGGLES = {
    "b": "bold",
    "i": "italic",
    "strike": "strike",
    "dstrike": "strike",
    "caps": "caps",
    "smallCaps": "small_caps",
    "rtl": "rtl",
    "vanish": "hidden",
}


def parse_border(node) -> Optional[Dict[str, Any]]:
    """Parse a border element into ``{"style", "size", "color", "space"}``.

    ``nil``/``none`` borders are kept as ``{"style": "none"}`` so they can
    override an inherited border.
    """
    if node is None:
        return None
    style = w_val(node) or "single"
    if style in ("nil", "none"):
        return {"style": "none"}
    return {
        "style": style,
        "size": to_int(w_attr(node, "sz"), 4),
        "color": normalize_color(w_attr(node, "color")) or "#000000",
        "space": to_int(w_attr(node, "space"), 0),
    }


def parse_shading(node) -> Optional[str]:
    if node is None:
        return None
    return normalize_color(w_attr(node, "fill"))


def _parse_borders(container, sides, prefix: str, props: Dict[str, Any]) -> None:
    if container is None:
        return
    for side in sides:
        node = first_child_w(container, side)
        if node is None and side == "left":
            node = first_child_w(container, "start")
        if node is None and side == "right":
            node = first_child_w(container, "end")
        border = parse_border(node)
        if border is not None:
            props[f"{prefix}{side}"] = border


def parse_paragraph_properties(ppr) -> Dict[str, Any]:
    """
    Parse ``w:pPr`` into a paragraph property map.

    Args:
        ppr: Paragraph properties element or ``None``

    Returns:
        Dict with only the properties that are explicitly present
    """
    props: Dict[str, Any] = {}
    if ppr is None:
        return props

    style = first_child_w(ppr, "pStyle")
    if style is not None and w_val(style):
        props["style_id"] = w_val(style)

    jc = first_child_w(ppr, "jc")
    if jc is not None and w_val(jc):
        props["justification"] = w_val(jc)

    spacing = first_child_w(ppr, "spacing")
    if spacing is not None:
        for attr, key in (("before", "spacing_before"), ("after", "spacing_after"), ("line", "line")):
            value = to_int(w_attr(spacing, attr))
            if value is not None:
                props[key] = value
        if w_attr(spacing, "lineRule"):
            props["line_rule"] = w_attr(spacing, "lineRule")

    ind = first_child_w(ppr, "ind")
    if ind is not None:
        for attrs, key in (
            (("left", "start"), "ind_left"),
            (("right", "end"), "ind_right"),
            (("firstLine",), "ind_first_line"),
            (("hanging",), "ind_hanging"),
        ):
            for attr in attrs:
                value = to_int(w_attr(ind, attr))
                if value is not None:
                    props[key] = value
                    break

    num_pr = first_child_w(ppr, "numPr")
    if num_pr is not None:
        num_id = w_val(first_child_w(num_pr, "numId"))
        if num_id is not None:
            props["num_id"] = num_id
        ilvl = first_child_w(num_pr, "ilvl")
        props["ilvl"] = to_int(w_val(ilvl), 0) if ilvl is not None else props.get("ilvl", 0)

    for tag, key in (("bidi", "bidi"), ("pageBreakBefore", "page_break_before"), ("keepNext", "keep_next")):
        value = on_off(first_child_w(ppr, tag))
        if value is not None:
            props[key] = value

    outline = first_child_w(ppr, "outlineLvl")
    if outline is not None:
        level = to_int(w_val(outline))
        if level is not None:
            props["outline_level"] = level

    shading = first_child_w(ppr, "shd")
    if shading is not None:
        props["shading"] = parse_shading(shading)

    _parse_borders(first_child_w(ppr, "pBdr"), BORDER_SIDES, "border_", props)
    return props


def parse_run_properties(rpr) -> Dict[str, Any]:
    """
    Parse ``w:rPr`` into a run property map.

    Args:
        rpr: Run properties element or ``None``

    Returns:
        Dict with only the properties that are explicitly present
    """
    props: Dict[str, Any] = {}
    if rpr is None:
        return props

    style = first_child_w(rpr, "rStyle")
    if style is not None and w_val(style):
        props["style_id"] = w_val(style)

    for tag, key in _RUN_TOGGLES.items():
        value = on_off(first_child_w(rpr, tag))
        if value is not None:
            if key == "strike" and props.get("strike") and not value:
                continue
            props[key] = value

    underline = first_child_w(rpr, "u")
    if underline is not None:
        props["underline"] = (w_val(underline) or "single") != "none"

    color = first_child_w(rpr, "color")
    if color is not None:
        value = normalize_color(w_val(color))
        if value:
            props["color"] = value

    size = to_int(w_val(first_child_w(rpr, "sz")))
    if size is not None:
        props["size"] = size

    fonts = first_child_w(rpr, "rFonts")
    if fonts is not None:
        font = w_attr(fonts, "ascii") or w_attr(fonts, "hAnsi")
        if font:
            props["font"] = font

    highlight = first_child_w(rpr, "highlight")
    if highlight is not None and w_val(highlight) and w_val(highlight) != "none":
        props["highlight"] = w_val(highlight)

    vert_align = first_child_w(rpr, "vertAlign")
    if vert_align is not None and w_val(vert_align):
        props["vert_align"] = w_val(vert_align)

    lang = first_child_w(rpr, "lang")
    if lang is not None:
        value = w_val(lang) or w_attr(lang, "bidi")
        if value:
            props["lang"] = value

    shading = first_child_w(rpr, "shd")
    if shading is not None:
        props["shading"] = parse_shading(shading)
    return props


def parse_table_properties(tblpr) -> Dict[str, Any]:
    """Parse ``w:tblPr``: borders, shading, alignment, width and cell margins."""
    props: Dict[str, Any] = {}
    if tblpr is None:
        return props
    style = first_child_w(tblpr, "tblStyle")
    if style is not None and w_val(style):
        props["style_id"] = w_val(style)
    _parse_borders(first_child_w(tblpr, "tblBorders"), TABLE_BORDER_SIDES, "border_", props)
    shading = first_child_w(tblpr, "shd")
    if shading is not None:
        props["shading"] = parse_shading(shading)
    jc = first_child_w(tblpr, "jc")
    if jc is not None and w_val(jc):
        props["justification"] = w_val(jc)
    width = first_child_w(tblpr, "tblW")
    if width is not None:
        props["width"] = (to_int(w_attr(width, "w"), 0), w_attr(width, "type") or "dxa")
    margins = first_child_w(tblpr, "tblCellMar")
    if margins is not None:
        for side in BORDER_SIDES:
            node = first_child_w(margins, side)
            if node is not None:
                props[f"cell_margin_{side}"] = to_int(w_attr(node, "w"), 0)
    return props


def parse_cell_properties(tcpr) -> Dict[str, Any]:
    """Parse ``w:tcPr`` presentation properties (spans are read by the grid builder)."""
    props: Dict[str, Any] = {}
    if tcpr is None:
        return props
    _parse_borders(first_child_w(tcpr, "tcBorders"), BORDER_SIDES, "border_", props)
    shading = first_child_w(tcpr, "shd")
    if shading is not None:
        props["shading"] = parse_shading(shading)
    v_align = first_child_w(tcpr, "vAlign")
    if v_align is not None and w_val(v_align):
        props["v_align"] = w_val(v_align)
    margins = first_child_w(tcpr, "tcMar")
    if margins is not None:
        for side in BORDER_SIDES:
            node = first_child_w(margins, side)
            if node is None and side == "left":
                node = first_child_w(margins, "start")
            if node is None and side == "right":
                node = first_child_w(margins, "end")
            if node is not None:
                props[f"margin_{side}"] = (to_int(w_attr(node, "w"), 0), w_attr(node, "type") or "dxa")
    width = first_child_w(tcpr, "tcW")
    if width is not None:
        props["width"] = (to_int(w_attr(width, "w"), 0), w_attr(width, "type") or "dxa")
    return props


def has_visible_border(props: Dict[str, Any]) -> bool:
    return any(
        key.startswith("border_") and isinstance(value, dict) and value.get("style") != "none"
        for key, value in props.items()
    )


def is_header_row(tr) -> bool:
    trpr = first_child_w(tr, "trPr")
    return bool(on_off(first_child_w(trpr, "tblHeader"))) if trpr is not None else False


__all__ = [
    "BORDER_SIDES",
    "TABLE_BORDER_SIDES",
    "has_visible_border",
    "is_header_row",
    "parse_border",
    "parse_cell_properties",
    "parse_paragraph_properties",
    "parse_run_properties",
    "parse_shading",
    "parse_table_properties",
]
