"""
CSS generation for the HTML renderer.

Property maps produced by :mod:`docx_converter.styles.properties` are turned
into ``name:value`` declarations; generated rules are collected in a
:class:`CssRegistry` and emitted in insertion order.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..utils.units import eighths_to_pt, format_number, half_points_to_pt, twips_to_pt

logger = logging.getLogger(__name__)

_JUSTIFICATION = {
    "left": "left",
    "start": "left",
    "center": "center",
    "right": "right",
    "end": "right",
    "both": "justify",
    "distribute": "justify",
}

_BORDER_STYLES = {
    "single": "solid",
    "thick": "solid",
    "dotted": "dotted",
    "dashed": "dashed",
    "dashSmallGap": "dashed",
    "dotDash": "dashed",
    "dotDotDash": "dotted",
    "double": "double",
    "triple": "double",
    "inset": "inset",
    "outset": "outset",
}

HIGHLIGHT_COLORS = {
    "black": "#000000",
    "blue": "#0000FF",
    "cyan": "#00FFFF",
    "green": "#00FF00",
    "magenta": "#FF00FF",
    "red": "#FF0000",
    "yellow": "#FFFF00",
    "white": "#FFFFFF",
    "darkBlue": "#000080",
    "darkCyan": "#008080",
    "darkGreen": "#008000",
    "darkMagenta": "#800080",
    "darkRed": "#800000",
    "darkYellow": "#808000",
    "darkGray": "#808080",
    "lightGray": "#C0C0C0",
}

_V_ALIGN = {"top": "top", "center": "middle", "bottom": "bottom"}

_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lower-case, hyphen-separated class-name fragment for a style id."""
    slug = _SLUG.sub("-", value.lower()).strip("-")
    return slug or "style"


def join_declarations(declarations: List[str]) -> str:
    return ";".join(declarations)


def _pt(twips: Any) -> str:
    return f"{format_number(twips_to_pt(twips))}pt"


def border_css(spec: Optional[Dict[str, Any]]) -> Optional[str]:
    """``{"style", "size", "color"}`` -> ``1pt solid #FF0000``; ``None`` for nil/none."""
    if not spec or spec.get("style") in (None, "none", "nil"):
        return None
    width = format_number(eighths_to_pt(spec.get("size") or 4))
    style = _BORDER_STYLES.get(spec["style"], "solid")
    color = spec.get("color") or "#000000"
    return f"{width}pt {style} {color}"


def _border_declarations(props: Dict[str, Any], sides=("top", "right", "bottom", "left")) -> List[str]:
    declarations = []
    for side in sides:
        value = border_css(props.get(f"border_{side}"))
        if value:
            declarations.append(f"border-{side}:{value}")
    return declarations


def paragraph_declarations(props: Dict[str, Any]) -> List[str]:
    """Paragraph property map -> CSS declarations."""
    declarations: List[str] = []
    align = _JUSTIFICATION.get(props.get("justification") or "")
    if align:
        declarations.append(f"text-align:{align}")
    if props.get("spacing_before") is not None:
        declarations.append(f"margin-top:{_pt(props['spacing_before'])}")
    if props.get("spacing_after") is not None:
        declarations.append(f"margin-bottom:{_pt(props['spacing_after'])}")
    line = props.get("line")
    if line:
        rule = props.get("line_rule") or "auto"
        if rule == "auto":
            declarations.append(f"line-height:{format_number(line / 240)}")
        else:
            declarations.append(f"line-height:{_pt(line)}")
    if props.get("ind_left"):
        declarations.append(f"margin-left:{_pt(props['ind_left'])}")
    if props.get("ind_right"):
        declarations.append(f"margin-right:{_pt(props['ind_right'])}")
    if props.get("ind_hanging"):
        declarations.append(f"text-indent:-{_pt(props['ind_hanging'])}")
    elif props.get("ind_first_line"):
        declarations.append(f"text-indent:{_pt(props['ind_first_line'])}")
    if props.get("shading"):
        declarations.append(f"background-color:{props['shading']}")
    declarations.extend(_border_declarations(props))
    if props.get("page_break_before"):
        declarations.append("page-break-before:always")
    return declarations


def run_declarations(props: Dict[str, Any]) -> List[str]:
    """Run property map -> CSS declarations (flags rendered as tags are excluded)."""
    declarations: List[str] = []
    if props.get("color"):
        declarations.append(f"color:{props['color']}")
    if props.get("size"):
        declarations.append(f"font-size:{format_number(half_points_to_pt(props['size']))}pt")
    if props.get("font"):
        font = props["font"]
        declarations.append(f"font-family:'{font}'" if " " in font else f"font-family:{font}")
    background = HIGHLIGHT_COLORS.get(props.get("highlight") or "") or props.get("shading")
    if background:
        declarations.append(f"background-color:{background}")
    if props.get("caps"):
        declarations.append("text-transform:uppercase")
    if props.get("small_caps"):
        declarations.append("font-variant:small-caps")
    return declarations


def _measure(value) -> Optional[str]:
    if not value:
        return None
    amount, unit = value
    if not amount:
        return None
    if unit == "pct":
        return f"{format_number(amount / 50)}%"
    if unit in ("dxa", None):
        return _pt(amount)
    return None


def table_declarations(props: Dict[str, Any]) -> List[str]:
    """Table property map -> declarations for the ``table`` element."""
    declarations = _border_declarations(props)
    if declarations:
        declarations.insert(0, "border-collapse:collapse")
    width = _measure(props.get("width"))
    if width:
        declarations.append(f"width:{width}")
    if props.get("justification") == "center":
        declarations.extend(["margin-left:auto", "margin-right:auto"])
    elif props.get("justification") in ("right", "end"):
        declarations.append("margin-left:auto")
    if props.get("shading"):
        declarations.append(f"background-color:{props['shading']}")
    return declarations


def cell_declarations(props: Dict[str, Any], table_props: Optional[Dict[str, Any]] = None) -> List[str]:
    """
    Cell property map -> declarations for a ``td``/``th``.

    Inside borders of the table apply to every cell side the cell does not
    set itself.
    """
    merged = dict(props)
    if table_props:
        inside_h = table_props.get("border_insideH")
        inside_v = table_props.get("border_insideV")
        for side, inside in (("top", inside_h), ("bottom", inside_h), ("left", inside_v), ("right", inside_v)):
            if inside and f"border_{side}" not in merged:
                merged[f"border_{side}"] = inside
    declarations = _border_declarations(merged)
    if props.get("shading"):
        declarations.append(f"background-color:{props['shading']}")
    v_align = _V_ALIGN.get(props.get("v_align") or "")
    if v_align:
        declarations.append(f"vertical-align:{v_align}")
    for side in ("top", "right", "bottom", "left"):
        margin = props.get(f"margin_{side}")
        if margin and margin[1] in ("dxa", None) and margin[0]:
            declarations.append(f"padding-{side}:{_pt(margin[0])}")
    width = _measure(props.get("width"))
    if width:
        declarations.append(f"width:{width}")
    return declarations


class CssRegistry:
    """Ordered, idempotent set of generated CSS rules."""

    def __init__(self):
        self._rules: Dict[str, List[str]] = {}

    def add(self, selector: str, declarations: List[str]) -> None:
        if selector in self._rules:
            return
        self._rules[selector] = list(declarations)

    def __contains__(self, selector: str) -> bool:
        return selector in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def to_css(self) -> str:
        return "\n".join(
            f"{selector}{{{join_declarations(declarations)}}}" for selector, declarations in self._rules.items()
        )
