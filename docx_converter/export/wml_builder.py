"""
HTML to WML builder.

Walks an HTML tree and emits WML block elements plus the auxiliary data a
package needs: numbering definitions, relationships and media parts. Tables
run through the shared grid builder so every emitted row is rectangular.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Set, Tuple

from lxml import etree
from PIL import Image, UnidentifiedImageError

from ..config import HtmlToWmlSettings
from ..engine.table_grid import CELL, CONTINUATION, CellSpec, RowSpec, build_grid_from_specs
from ..models import MISSING_IMAGE, UNSUPPORTED_HTML_ELEMENT, ConversionWarning
from ..parser.html_parser import css_color_to_hex, find_body, parse_style, tag_name
from ..parser.relationships import RT_HYPERLINK, RT_IMAGE
from ..utils.units import parse_css_length_px, px_to_emu
from ..utils.xml_utils import A_NS, PIC_NS, R_NS, W_NS, WP_NS, XML_NS, is_w, w

logger = logging.getLogger(__name__)

WML_NSMAP = {"w": W_NS, "r": R_NS, "wp": WP_NS, "a": A_NS, "pic": PIC_NS}

BLOCK_TAGS = {
    "p", "div", "section", "article", "header", "footer", "main", "nav", "aside", "address",
    "blockquote", "figure", "figcaption", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol",
    "table", "hr", "pre", "li", "dl", "dt", "dd", "form", "fieldset", "center",
}
SKIPPED_TAGS = {"head", "title", "meta", "link", "script", "style", "template", "noscript"}
CODE_TAGS = {"code", "kbd", "samp", "tt"}

LIST_FORMATS = {"1": "decimal", "a": "lowerLetter", "A": "upperLetter", "i": "lowerRoman", "I": "upperRoman"}
CSS_LIST_FORMATS = {
    "decimal": "decimal",
    "lower-alpha": "lowerLetter",
    "lower-latin": "lowerLetter",
    "upper-alpha": "upperLetter",
    "upper-latin": "upperLetter",
    "lower-roman": "lowerRoman",
    "upper-roman": "upperRoman",
    "disc": "bullet",
    "circle": "bullet",
    "square": "bullet",
    "none": "none",
}
BULLETS = ("•", "o", "▪")

IMAGE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}

DEFAULT_TEXT_WIDTH_TWIPS = 9360

_WHITESPACE = re.compile(r"[ \t\r\n\f]+")
_DATA_URL = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?),(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class RunFormat:
    """Character formatting inherited down the inline walk."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    vert_align: Optional[str] = None
    color: Optional[str] = None
    code: bool = False
    style_id: Optional[str] = None

    def merged_with_element(self, element) -> "RunFormat":
        name = tag_name(element)
        fmt = self
        if name in ("strong", "b"):
            fmt = replace(fmt, bold=True)
        elif name in ("em", "i", "cite", "var", "dfn"):
            fmt = replace(fmt, italic=True)
        elif name in ("u", "ins"):
            fmt = replace(fmt, underline=True)
        elif name in ("s", "strike", "del"):
            fmt = replace(fmt, strike=True)
        elif name == "sup":
            fmt = replace(fmt, vert_align="superscript")
        elif name == "sub":
            fmt = replace(fmt, vert_align="subscript")
        elif name in CODE_TAGS:
            fmt = replace(fmt, code=True)
        elif name == "font" and element.get("color"):
            fmt = replace(fmt, color=css_color_to_hex(element.get("color")) or fmt.color)
        return fmt.merged_with_style(parse_style(element.get("style")))

    def merged_with_style(self, declarations: Dict[str, str]) -> "RunFormat":
        fmt = self
        weight = declarations.get("font-weight", "").lower()
        if weight in ("bold", "bolder") or (weight.isdigit() and int(weight) >= 600):
            fmt = replace(fmt, bold=True)
        elif weight in ("normal", "lighter") or (weight.isdigit() and int(weight) < 600):
            fmt = replace(fmt, bold=False)
        font_style = declarations.get("font-style", "").lower()
        if font_style in ("italic", "oblique"):
            fmt = replace(fmt, italic=True)
        elif font_style == "normal":
            fmt = replace(fmt, italic=False)
        decoration = declarations.get("text-decoration", "") + " " + declarations.get("text-decoration-line", "")
        if "underline" in decoration:
            fmt = replace(fmt, underline=True)
        if "line-through" in decoration:
            fmt = replace(fmt, strike=True)
        vertical = declarations.get("vertical-align", "").lower()
        if vertical in ("super", "sub"):
            fmt = replace(fmt, vert_align="superscript" if vertical == "super" else "subscript")
        color = css_color_to_hex(declarations.get("color"))
        if color:
            fmt = replace(fmt, color=color)
        return fmt


@dataclass
class ParagraphTemplate:
    """
    Paragraph properties for paragraphs created from one HTML block.

    ``numbering`` and ``bookmark`` are consumed by the first paragraph only.
    """

    style_id: Optional[str] = None
    justification: Optional[str] = None
    numbering: Optional[Tuple[str, int]] = None
    indent_left: Optional[int] = None
    border_bottom: bool = False
    preserve_space: bool = False
    bookmark: Optional[str] = None
    run_format: RunFormat = field(default_factory=RunFormat)

    def child(self, **changes) -> "ParagraphTemplate":
        values = dict(self.__dict__)
        values.update(numbering=None, bookmark=None, border_bottom=False)
        values.update(changes)
        return ParagraphTemplate(**values)


class NumberingBuilder:
    """Allocates one abstract definition and one instance per HTML list element."""

    def __init__(self, first_abstract_id: int = 0, first_num_id: int = 1):
        self._next_abstract = first_abstract_id
        self._next_num = first_num_id
        self.abstract_elements: List[Any] = []
        self.num_elements: List[Any] = []

    def __bool__(self) -> bool:
        return bool(self.num_elements)

    def add_list(self, num_format: str, level: int, start: int = 1) -> str:
        abstract_id = str(self._next_abstract)
        num_id = str(self._next_num)
        self._next_abstract += 1
        self._next_num += 1

        abstract = etree.Element(w("abstractNum"), nsmap={"w": W_NS})
        abstract.set(w("abstractNumId"), abstract_id)
        multi = etree.SubElement(abstract, w("multiLevelType"))
        multi.set(w("val"), "hybridMultilevel")
        for ilvl in range(9):
            lvl = etree.SubElement(abstract, w("lvl"))
            lvl.set(w("ilvl"), str(ilvl))
            fmt = num_format if ilvl == level else ("bullet" if num_format == "bullet" else "decimal")
            etree.SubElement(lvl, w("start")).set(w("val"), str(start if ilvl == level else 1))
            etree.SubElement(lvl, w("numFmt")).set(w("val"), fmt)
            if fmt == "bullet":
                text = BULLETS[ilvl % len(BULLETS)]
            elif fmt == "none":
                text = ""
            else:
                text = f"%{ilvl + 1}."
            etree.SubElement(lvl, w("lvlText")).set(w("val"), text)
            etree.SubElement(lvl, w("lvlJc")).set(w("val"), "left")
            ppr = etree.SubElement(lvl, w("pPr"))
            ind = etree.SubElement(ppr, w("ind"))
            ind.set(w("left"), str(720 * (ilvl + 1)))
            ind.set(w("hanging"), "360")
        self.abstract_elements.append(abstract)

        num = etree.Element(w("num"), nsmap={"w": W_NS})
        num.set(w("numId"), num_id)
        etree.SubElement(num, w("abstractNumId")).set(w("val"), abstract_id)
        if start != 1:
            override = etree.SubElement(num, w("lvlOverride"))
            override.set(w("ilvl"), str(level))
            etree.SubElement(override, w("startOverride")).set(w("val"), str(start))
        self.num_elements.append(num)
        return num_id

    def to_element(self):
        root = etree.Element(w("numbering"), nsmap={"w": W_NS})
        for element in self.abstract_elements + self.num_elements:
            root.append(element)
        return root


@dataclass
class BuildResult:
    blocks: List[Any]
    relationships: List[Tuple[str, str, str, Optional[str]]]
    media: Dict[str, bytes]
    numbering: NumberingBuilder
    warnings: List[ConversionWarning]


class WmlBuilder:
    """
    Builds WML body content from an HTML tree.

    Args:
        settings: Import settings
        reserved_rel_ids: Relationship ids already used by the target document part
        numbering: Numbering allocator (ids offset past any existing definitions)
        reserved_media: Media part names already present in the target package
    """

    def __init__(
        self,
        settings: Optional[HtmlToWmlSettings] = None,
        reserved_rel_ids: Optional[Set[str]] = None,
        numbering: Optional[NumberingBuilder] = None,
        reserved_media: Optional[Set[str]] = None,
    ):
        self.settings = settings or HtmlToWmlSettings()
        self.numbering = numbering or NumberingBuilder()
        self.relationships: List[Tuple[str, str, str, Optional[str]]] = []
        self.media: Dict[str, bytes] = {}
        self.warnings: List[ConversionWarning] = []
        self._reserved_rel_ids = set(reserved_rel_ids or ())
        self._reserved_media = set(reserved_media or ())
        self._rel_counter = 0
        self._hyperlink_ids: Dict[str, str] = {}
        self._bookmark_id = 0
        self._drawing_id = 0
        self._media_counter = 0

    # ------------------------------------------------------------------
    # bookkeeping

    def _warn(self, code: str, message: str) -> None:
        logger.warning(f"{code}: {message}")
        self.warnings.append(ConversionWarning(code, message, "/word/document.xml"))

    def next_rel_id(self) -> str:
        while True:
            self._rel_counter += 1
            rel_id = f"rId{self._rel_counter}"
            if rel_id not in self._reserved_rel_ids:
                self._reserved_rel_ids.add(rel_id)
                return rel_id

    def _hyperlink_rel(self, href: str) -> str:
        if href not in self._hyperlink_ids:
            rel_id = self.next_rel_id()
            self.relationships.append((rel_id, RT_HYPERLINK, href, "External"))
            self._hyperlink_ids[href] = rel_id
        return self._hyperlink_ids[href]

    def _next_bookmark_id(self) -> str:
        self._bookmark_id += 1
        return str(self._bookmark_id)

    # ------------------------------------------------------------------
    # entry point

    def build(self, root) -> BuildResult:
        """
        Convert an HTML tree into WML blocks.

        Args:
            root: Parsed HTML root element

        Returns:
            Blocks plus the relationships, media and numbering they reference
        """
        body = find_body(root)
        holder = etree.Element(w("body"), nsmap=WML_NSMAP)
        if tag_name(body) in ("body", "html"):
            self.process_container(body, holder, ParagraphTemplate())
        else:
            self.process_nodes([body], holder, ParagraphTemplate())
        blocks = list(holder)
        logger.info(f"Built {len(blocks)} WML block(s) from HTML")
        return BuildResult(blocks, list(self.relationships), dict(self.media), self.numbering, list(self.warnings))

    # ------------------------------------------------------------------
    # blocks

    def process_container(self, element, out, template: ParagraphTemplate) -> None:
        """Process the children of an HTML container, grouping loose inline content into paragraphs."""
        items: List[Any] = []
        if element.text:
            items.append(element.text)
        for child in element:
            if isinstance(child.tag, str):
                items.append(child)
            if child.tail:
                items.append(child.tail)
        self.process_nodes(items, out, template)

    def process_nodes(self, items: List[Any], out, template: ParagraphTemplate) -> None:
        pending: List[Any] = []
        state = {"template": template}

        def flush():
            if pending:
                self._paragraph_from_inline(list(pending), out, state["template"])
                if self._inline_has_content(pending):
                    state["template"] = state["template"].child()
                pending.clear()

        for item in items:
            if isinstance(item, str):
                pending.append(item)
                continue
            name = tag_name(item)
            if not name or name in SKIPPED_TAGS:
                continue
            if name in BLOCK_TAGS:
                flush()
                self.process_block(item, out, state["template"])
                state["template"] = state["template"].child()
            else:
                pending.append(item)
        flush()

    def _block_template(self, element, template: ParagraphTemplate) -> ParagraphTemplate:
        declarations = parse_style(element.get("style"))
        align = (declarations.get("text-align") or element.get("align") or "").lower()
        result = template.child(
            numbering=template.numbering,
            bookmark=element.get("id") or template.bookmark,
            run_format=template.run_format.merged_with_style(declarations),
        )
        if align in ("left", "center", "right", "justify"):
            result.justification = "both" if align == "justify" else align
        return result

    def process_block(self, element, out, template: ParagraphTemplate) -> None:
        name = tag_name(element)
        if name in ("ul", "ol"):
            self.process_list(element, out, template, level=0)
        elif name == "table":
            self.process_table(element, out)
        elif name == "hr":
            p = etree.SubElement(out, w("p"))
            ppr = etree.SubElement(p, w("pPr"))
            border = etree.SubElement(etree.SubElement(ppr, w("pBdr")), w("bottom"))
            for attr, value in (("val", "single"), ("sz", "6"), ("space", "1"), ("color", "auto")):
                border.set(w(attr), value)
        elif name in ("h1", "h2", "h3", "h4", "h5", "h6"):
            block = self._block_template(element, template)
            block.style_id = f"Heading{name[1]}"
            self.process_container(element, out, block)
        elif name == "pre":
            block = self._block_template(element, template)
            block.preserve_space = True
            block.run_format = replace(block.run_format, code=True)
            self.process_container(element, out, block)
        elif name == "blockquote":
            block = self._block_template(element, template)
            block.indent_left = (template.indent_left or 0) + 720
            self.process_container(element, out, block)
        elif name == "li":
            self.process_container(element, out, self._block_template(element, template))
        else:
            self.process_container(element, out, self._block_template(element, template))

    def _list_format(self, element) -> str:
        style_type = parse_style(element.get("style")).get("list-style-type", "").lower()
        if style_type in CSS_LIST_FORMATS:
            return CSS_LIST_FORMATS[style_type]
        if tag_name(element) == "ul":
            return "bullet"
        return LIST_FORMATS.get(element.get("type") or "1", "decimal")

    def process_list(self, element, out, template: ParagraphTemplate, level: int) -> None:
        """Emit list paragraphs for a ``ul``/``ol``; every list element gets its own numbering instance."""
        level = min(level, 8)
        start = 1
        if tag_name(element) == "ol":
            try:
                start = int(element.get("start", "1"))
            except ValueError:
                start = 1
        num_id = self.numbering.add_list(self._list_format(element), level, start)
        for child in element:
            name = tag_name(child)
            if name == "li":
                item_template = self._block_template(child, template.child())
                item_template.numbering = (num_id, level)
                self._process_list_item(child, out, item_template, level)
            elif name in ("ul", "ol"):
                self.process_list(child, out, template, level + 1)
            elif name:
                self.process_block(child, out, template.child())

    def _process_list_item(self, li, out, template: ParagraphTemplate, level: int) -> None:
        items: List[Any] = []
        if li.text:
            items.append(li.text)
        state = {"template": template, "emitted": False}
        for child in li:
            name = tag_name(child)
            if name in ("ul", "ol"):
                self._flush_item(items, out, state)
                self.process_list(child, out, template.child(indent_left=720 * (level + 1)), level + 1)
            elif isinstance(child.tag, str):
                items.append(child)
            if child.tail:
                items.append(child.tail)
        self._flush_item(items, out, state)

    def _flush_item(self, items: List[Any], out, state: Dict[str, Any]) -> None:
        if not items and state["emitted"]:
            return
        template = state["template"]
        if not items:
            self._paragraph_from_inline([], out, template)
        else:
            self.process_nodes(list(items), out, template)
        items.clear()
        state["emitted"] = True
        state["template"] = template.child(indent_left=720 * (template.numbering[1] + 1) if template.numbering else None)

    # ------------------------------------------------------------------
    # paragraphs and runs

    @staticmethod
    def _inline_has_content(items: List[Any]) -> bool:
        for item in items:
            if isinstance(item, str):
                if item.strip():
                    return True
            elif tag_name(item) in ("img", "br"):
                return True
            elif "".join(item.itertext()).strip():
                return True
            elif any(tag_name(node) in ("img", "br") for node in item.iter()):
                return True
        return False

    def _paragraph_from_inline(self, items: List[Any], out, template: ParagraphTemplate) -> None:
        if items and not self._inline_has_content(items) and not template.preserve_space:
            return
        p = etree.SubElement(out, w("p"))
        self._paragraph_properties(p, template)
        if template.bookmark:
            bookmark_id = self._next_bookmark_id()
            start = etree.SubElement(p, w("bookmarkStart"))
            start.set(w("id"), bookmark_id)
            start.set(w("name"), template.bookmark)
            end = etree.SubElement(p, w("bookmarkEnd"))
            end.set(w("id"), bookmark_id)
        for item in items:
            if isinstance(item, str):
                self._text_runs(p, item, template.run_format, template.preserve_space)
            else:
                self.render_inline(item, p, template.run_format, template.preserve_space)
        if not template.preserve_space:
            normalize_whitespace(p)

    def _paragraph_properties(self, p, template: ParagraphTemplate) -> None:
        if not any((template.style_id, template.justification, template.numbering, template.indent_left, template.border_bottom)):
            return
        ppr = etree.SubElement(p, w("pPr"))
        if template.style_id:
            etree.SubElement(ppr, w("pStyle")).set(w("val"), template.style_id)
        if template.numbering:
            num_pr = etree.SubElement(ppr, w("numPr"))
            etree.SubElement(num_pr, w("ilvl")).set(w("val"), str(template.numbering[1]))
            etree.SubElement(num_pr, w("numId")).set(w("val"), template.numbering[0])
        if template.indent_left and not template.numbering:
            etree.SubElement(ppr, w("ind")).set(w("left"), str(template.indent_left))
        if template.justification:
            etree.SubElement(ppr, w("jc")).set(w("val"), template.justification)

    def render_inline(self, element, out, fmt: RunFormat, preserve: bool) -> None:
        name = tag_name(element)
        if not name or name in SKIPPED_TAGS:
            return
        if name == "br":
            etree.SubElement(self._new_run(out, fmt), w("br"))
        elif name == "img":
            self._image(element, out)
        elif name == "a":
            self._anchor(element, out, fmt, preserve)
        else:
            if name in BLOCK_TAGS:
                self._warn(UNSUPPORTED_HTML_ELEMENT, f"Block element <{name}> inside inline content was flattened")
            child_fmt = fmt.merged_with_element(element)
            self._render_children(element, out, child_fmt, preserve)

    def _render_children(self, element, out, fmt: RunFormat, preserve: bool) -> None:
        if element.text:
            self._text_runs(out, element.text, fmt, preserve)
        for child in element:
            if isinstance(child.tag, str):
                self.render_inline(child, out, fmt, preserve)
            if child.tail:
                self._text_runs(out, child.tail, fmt, preserve)

    def _anchor(self, element, out, fmt: RunFormat, preserve: bool) -> None:
        href = (element.get("href") or "").strip()
        name = element.get("id") or element.get("name")
        child_fmt = fmt.merged_with_element(element)
        bookmark_id = None
        if name:
            bookmark_id = self._next_bookmark_id()
            start = etree.SubElement(out, w("bookmarkStart"))
            start.set(w("id"), bookmark_id)
            start.set(w("name"), name)
        if href:
            link = etree.SubElement(out, w("hyperlink"))
            if href.startswith("#"):
                link.set(w("anchor"), href[1:])
            else:
                link.set(f"{{{R_NS}}}id", self._hyperlink_rel(href))
            link.set(w("history"), "1")
            self._render_children(element, link, replace(child_fmt, style_id="Hyperlink"), preserve)
        else:
            self._render_children(element, out, child_fmt, preserve)
        if bookmark_id is not None:
            end = etree.SubElement(out, w("bookmarkEnd"))
            end.set(w("id"), bookmark_id)

    def _new_run(self, out, fmt: RunFormat):
        run = etree.SubElement(out, w("r"))
        rpr = run_properties(fmt)
        if rpr is not None:
            run.append(rpr)
        return run

    def _text_runs(self, out, text: str, fmt: RunFormat, preserve: bool) -> None:
        if not text:
            return
        if not preserve:
            text = _WHITESPACE.sub(" ", text)
            self._text_run(out, text, fmt)
            return
        lines = text.replace("\r\n", "\n").split("\n")
        for index, line in enumerate(lines):
            if index:
                etree.SubElement(self._new_run(out, fmt), w("br"))
            if line:
                self._text_run(out, line, fmt)

    def _text_run(self, out, text: str, fmt: RunFormat) -> None:
        run = self._new_run(out, fmt)
        node = etree.SubElement(run, w("t"))
        node.text = text
        set_space_preserve(node)

    # ------------------------------------------------------------------
    # images

    def _image(self, element, out) -> None:
        src = (element.get("src") or "").strip()
        match = _DATA_URL.match(src)
        if not match or ";base64" not in (match.group("params") or ""):
            self._warn(MISSING_IMAGE, f"Skipped image that is not an embedded data: URL ({src[:40]})")
            return
        content_type = (match.group("type") or "image/png").lower()
        try:
            data = base64.b64decode(match.group("data"), validate=False)
        except (binascii.Error, ValueError) as exc:
            self._warn(MISSING_IMAGE, f"Could not decode embedded image: {exc}")
            return
        extension = IMAGE_EXTENSIONS.get(content_type, content_type.rsplit("/", 1)[-1])
        part_name = self._next_media_name(extension)
        self.media[part_name] = data
        rel_id = self.next_rel_id()
        self.relationships.append((rel_id, RT_IMAGE, part_name[len("word/"):], None))

        width, height = self._image_size(element, data)
        self._drawing_id += 1
        run = etree.SubElement(out, w("r"))
        run.append(build_inline_drawing(rel_id, self._drawing_id, px_to_emu(width), px_to_emu(height), element.get("alt") or ""))

    def _next_media_name(self, extension: str) -> str:
        while True:
            self._media_counter += 1
            name = f"word/media/image{self._media_counter}.{extension}"
            if name not in self._reserved_media:
                self._reserved_media.add(name)
                return name

    def _image_size(self, element, data: bytes) -> Tuple[float, float]:
        declarations = parse_style(element.get("style"))
        width = parse_css_length_px(declarations.get("width") or element.get("width"))
        height = parse_css_length_px(declarations.get("height") or element.get("height"))
        if width and height:
            return width, height
        intrinsic = intrinsic_size(data)
        if intrinsic:
            natural_w, natural_h = intrinsic
            if width:
                return width, width * natural_h / natural_w
            if height:
                return height * natural_w / natural_h, height
            return float(natural_w), float(natural_h)
        default = float(self.settings.default_image_size_px)
        return width or default, height or default

    # ------------------------------------------------------------------
    # tables

    def _table_rows(self, table) -> List[Tuple[Any, bool]]:
        rows: List[Tuple[Any, bool]] = []
        for child in table:
            name = tag_name(child)
            if name == "tr":
                rows.append((child, False))
            elif name in ("thead", "tbody", "tfoot"):
                for tr in child:
                    if tag_name(tr) == "tr":
                        rows.append((tr, name == "thead"))
        return rows

    @staticmethod
    def _span(value: Optional[str]) -> int:
        try:
            return max(1, int(value or 1))
        except ValueError:
            return 1

    def process_table(self, table, out) -> None:
        """Emit a rectangular ``w:tbl`` with explicit span markers and merge placeholders."""
        specs = []
        for tr, in_head in self._table_rows(table):
            cells = [child for child in tr if tag_name(child) in ("td", "th")]
            is_header = in_head or (bool(cells) and all(tag_name(cell) == "th" for cell in cells))
            specs.append(
                RowSpec(
                    cells=[CellSpec(cell, self._span(cell.get("colspan")), None, self._span(cell.get("rowspan"))) for cell in cells],
                    source=tr,
                    is_header=is_header,
                )
            )
        grid = build_grid_from_specs(specs)
        if not grid.rows or grid.column_count == 0:
            return

        tbl = etree.SubElement(out, w("tbl"))
        tblpr = etree.SubElement(tbl, w("tblPr"))
        tblw = etree.SubElement(tblpr, w("tblW"))
        tblw.set(w("w"), "0")
        tblw.set(w("type"), "auto")
        if (table.get("border") or "0") != "0" or "border" in parse_style(table.get("style")):
            borders = etree.SubElement(tblpr, w("tblBorders"))
            for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
                border = etree.SubElement(borders, w(side))
                for attr, value in (("val", "single"), ("sz", "4"), ("space", "0"), ("color", "auto")):
                    border.set(w(attr), value)
        column_width = DEFAULT_TEXT_WIDTH_TWIPS // grid.column_count
        tbl_grid = etree.SubElement(tbl, w("tblGrid"))
        for _ in range(grid.column_count):
            etree.SubElement(tbl_grid, w("gridCol")).set(w("w"), str(column_width))

        for row in grid.rows:
            tr = etree.SubElement(tbl, w("tr"))
            if row.is_header:
                etree.SubElement(etree.SubElement(tr, w("trPr")), w("tblHeader"))
            for cell in row.cells:
                tc = etree.SubElement(tr, w("tc"))
                tcpr = etree.SubElement(tc, w("tcPr"))
                tcw = etree.SubElement(tcpr, w("tcW"))
                tcw.set(w("w"), str(column_width * cell.colspan))
                tcw.set(w("type"), "dxa")
                if cell.colspan > 1:
                    etree.SubElement(tcpr, w("gridSpan")).set(w("val"), str(cell.colspan))
                if cell.kind == CELL and cell.rowspan > 1:
                    etree.SubElement(tcpr, w("vMerge")).set(w("val"), "restart")
                elif cell.kind == CONTINUATION:
                    etree.SubElement(tcpr, w("vMerge"))
                if cell.kind == CELL:
                    base = RunFormat(bold=tag_name(cell.source) == "th")
                    self.process_container(cell.source, tc, ParagraphTemplate(run_format=base))
                if not any(is_w(child, "p") or is_w(child, "tbl") for child in tc) or is_w(tc[-1], "tbl"):
                    etree.SubElement(tc, w("p"))


def run_properties(fmt: RunFormat):
    """``RunFormat`` -> ``w:rPr`` in schema order, or ``None`` when plain."""
    children = []
    if fmt.style_id:
        children.append(("rStyle", fmt.style_id))
    if fmt.code:
        children.append(("rFonts", None))
    if fmt.bold:
        children.append(("b", None))
    if fmt.italic:
        children.append(("i", None))
    if fmt.strike:
        children.append(("strike", None))
    if fmt.color:
        children.append(("color", fmt.color))
    if fmt.underline:
        children.append(("u", "single"))
    if fmt.vert_align:
        children.append(("vertAlign", fmt.vert_align))
    if not children:
        return None
    rpr = etree.Element(w("rPr"), nsmap={"w": W_NS})
    for name, value in children:
        node = etree.SubElement(rpr, w(name))
        if name == "rFonts":
            node.set(w("ascii"), "Courier New")
            node.set(w("hAnsi"), "Courier New")
        elif value is not None:
            node.set(w("val"), value)
    return rpr


def set_space_preserve(node) -> None:
    text = node.text or ""
    if text != text.strip() or "  " in text or "\t" in text:
        node.set(f"{{{XML_NS}}}space", "preserve")
    elif f"{{{XML_NS}}}space" in node.attrib:
        del node.attrib[f"{{{XML_NS}}}space"]


def normalize_whitespace(p) -> None:
    """Collapse HTML inter-run whitespace: no leading, trailing or doubled spaces."""
    texts = []
    previous_space = True
    for node in p.iter(w("t"), w("br"), w("drawing")):
        if is_w(node, "t"):
            text = node.text or ""
            if previous_space and text.startswith(" "):
                text = text[1:]
            node.text = text
            if text:
                previous_space = text.endswith(" ")
                texts.append(node)
        else:
            if is_w(node, "br") and texts and (texts[-1].text or "").endswith(" "):
                texts[-1].text = texts[-1].text[:-1]
            previous_space = is_w(node, "br")
    if texts and (texts[-1].text or "").endswith(" "):
        texts[-1].text = texts[-1].text[:-1]
    for node in list(p.iter(w("t"))):
        set_space_preserve(node)
        if not node.text:
            run = node.getparent()
            run.remove(node)
            if all(is_w(child, "rPr") for child in run):
                run.getparent().remove(run)


def intrinsic_size(data: bytes) -> Optional[Tuple[int, int]]:
    """Pixel size of an image probed with Pillow; ``None`` when the format is not recognized."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None
    if width <= 0 or height <= 0:
        return None
    return width, height


def build_inline_drawing(rel_id: str, drawing_id: int, cx: int, cy: int, alt: str = ""):
    """Minimal ``w:drawing/wp:inline`` picture fragment referencing ``rel_id``."""
    drawing = etree.Element(w("drawing"), nsmap=WML_NSMAP)
    inline = etree.SubElement(drawing, f"{{{WP_NS}}}inline")
    for attr in ("distT", "distB", "distL", "distR"):
        inline.set(attr, "0")
    extent = etree.SubElement(inline, f"{{{WP_NS}}}extent")
    extent.set("cx", str(cx))
    extent.set("cy", str(cy))
    doc_pr = etree.SubElement(inline, f"{{{WP_NS}}}docPr")
    doc_pr.set("id", str(drawing_id))
    doc_pr.set("name", f"Picture {drawing_id}")
    if alt:
        doc_pr.set("descr", alt)
    frame = etree.SubElement(inline, f"{{{WP_NS}}}cNvGraphicFramePr")
    etree.SubElement(frame, f"{{{A_NS}}}graphicFrameLocks").set("noChangeAspect", "1")
    graphic = etree.SubElement(inline, f"{{{A_NS}}}graphic")
    data = etree.SubElement(graphic, f"{{{A_NS}}}graphicData")
    data.set("uri", PIC_NS)
    pic = etree.SubElement(data, f"{{{PIC_NS}}}pic")
    nv = etree.SubElement(pic, f"{{{PIC_NS}}}nvPicPr")
    c_nv = etree.SubElement(nv, f"{{{PIC_NS}}}cNvPr")
    c_nv.set("id", str(drawing_id))
    c_nv.set("name", f"image{drawing_id}")
    etree.SubElement(nv, f"{{{PIC_NS}}}cNvPicPr")
    fill = etree.SubElement(pic, f"{{{PIC_NS}}}blipFill")
    etree.SubElement(fill, f"{{{A_NS}}}blip").set(f"{{{R_NS}}}embed", rel_id)
    etree.SubElement(etree.SubElement(fill, f"{{{A_NS}}}stretch"), f"{{{A_NS}}}fillRect")
    sp_pr = etree.SubElement(pic, f"{{{PIC_NS}}}spPr")
    xfrm = etree.SubElement(sp_pr, f"{{{A_NS}}}xfrm")
    off = etree.SubElement(xfrm, f"{{{A_NS}}}off")
    off.set("x", "0")
    off.set("y", "0")
    ext = etree.SubElement(xfrm, f"{{{A_NS}}}ext")
    ext.set("cx", str(cx))
    ext.set("cy", str(cy))
    geom = etree.SubElement(sp_pr, f"{{{A_NS}}}prstGeom")
    geom.set("prst", "rect")
    etree.SubElement(geom, f"{{{A_NS}}}avLst")
    return drawing
