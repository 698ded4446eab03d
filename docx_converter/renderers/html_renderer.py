"""
WML to HTML renderer.

Single top-down walk over the main document: sections, then blocks, then
inline content. Formatting comes from the style resolver, tables from the
grid builder, lists from the numbering resolver and its open-list stack.
Recoverable content problems become warnings on the context; nothing in the
walk raises for them.
"""

import base64
import copy
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import lxml.html
from lxml import etree

from ..engine.context import ConversionContext
from ..engine.numbering import ListFormat, ListStack, default_list_item_text, expand_level_text
from ..engine.table_grid import CELL, CONTINUATION, FILLER, build_grid
from ..layout.section import split_sections
from ..models import (
    LIST_LANG_UNSUPPORTED,
    MISSING_IMAGE,
    MISSING_NOTE,
    MISSING_NUMBERING_PART,
    MISSING_PART,
    MISSING_RELATIONSHIP,
    ORPHAN_MERGE_CONTINUATION,
    UNACCEPTED_REVISION,
    UNSUPPORTED_ELEMENT,
    UNSUPPORTED_NUMBERING_FORMAT,
    UNSUPPORTED_RUN_CHILD,
    HtmlConversionResult,
    ImageInfo,
)
from ..styles.properties import (
    has_visible_border,
    parse_cell_properties,
    parse_paragraph_properties,
    parse_run_properties,
    parse_table_properties,
)
from ..utils.units import emu_to_px
from ..utils.xml_utils import (
    A_NS,
    ASVG_NS,
    R_NS,
    V_NS,
    W_NS,
    WP_NS,
    element_children,
    first_child_w,
    is_w,
    local_name,
    namespace_of,
    qn,
    to_int,
    w,
    w_attr,
)
from .css import (
    join_declarations,
    paragraph_declarations,
    run_declarations,
    slugify,
    table_declarations,
    cell_declarations,
)

logger = logging.getLogger(__name__)

MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"

HEADING_STYLE = re.compile(r"^heading\s*([1-6])$", re.IGNORECASE)

REVISION_WRAPPERS = {"ins", "del", "moveTo", "moveFrom"}

# run children that carry no visible content of their own
SILENT_RUN_CHILDREN = {
    "rPr",
    "fldChar",
    "instrText",
    "delText",
    "delInstrText",
    "lastRenderedPageBreak",
    "footnoteRef",
    "endnoteRef",
    "annotationRef",
    "separator",
    "continuationSeparator",
    "proofErr",
}

# paragraph-level markers skipped without output
SILENT_INLINE = {
    "pPr",
    "bookmarkEnd",
    "proofErr",
    "permStart",
    "permEnd",
    "commentRangeStart",
    "commentRangeEnd",
    "moveFromRangeStart",
    "moveFromRangeEnd",
    "moveToRangeStart",
    "moveToRangeEnd",
}

SILENT_BLOCKS = {"sectPr", "bookmarkEnd", "proofErr", "permStart", "permEnd", "commentRangeStart", "commentRangeEnd"}

# wrapper order, outermost first
RUN_WRAPPERS = (("vert", None), ("strike", "s"), ("bold", "strong"), ("italic", "em"), ("underline", "u"))

LIST_INDENT_KEYS = ("ind_left", "ind_right", "ind_first_line", "ind_hanging")


@dataclass
class InlineState:
    """Inline walk state for one paragraph."""

    part: str
    paragraph_style_id: Optional[str]


def append_text(element, text: str) -> None:
    """Append text after the last child of ``element`` (lxml keeps it in ``tail``)."""
    if not text:
        return
    if len(element):
        last = element[-1]
        last.tail = (last.tail or "") + text
    else:
        element.text = (element.text or "") + text


def _has_content(element) -> bool:
    return bool(element.text) or len(element) > 0


class HtmlRenderer:
    """
    Renders a loaded WML package to an HTML document tree.

    One renderer serves one conversion; all mutable state lives on the
    :class:`ConversionContext` it is given.
    """

    def __init__(self, context: ConversionContext):
        self.context = context
        self.settings = context.settings
        self.prefix = context.settings.css_class_prefix

    # ------------------------------------------------------------------
    # document

    def render(self) -> HtmlConversionResult:
        """
        Render the whole document.

        Returns:
            Conversion result with the serialized HTML, the stylesheet text and warnings
        """
        ctx = self.context
        html = etree.Element("html")
        head = etree.SubElement(html, "head")
        meta = etree.SubElement(head, "meta")
        meta.set("charset", "utf-8")
        title = etree.SubElement(head, "title")
        title.text = self.settings.page_title
        style = etree.SubElement(head, "style")
        body = etree.SubElement(html, "body")

        self._register_defaults()

        doc_body = first_child_w(ctx.main_root, "body")
        for section in split_sections(doc_body, ctx.warnings, f"/{ctx.main_part}"):
            section_el = etree.SubElement(body, "div")
            section_el.set("class", f"{self.prefix}section")
            if section.header_id:
                header = self.render_header_footer(section.header_id, "header")
                if header is not None:
                    section_el.append(header)
            self.render_blocks(section.blocks, section_el, ctx.main_part)
            if section.footer_id:
                footer = self.render_header_footer(section.footer_id, "footer")
                if footer is not None:
                    section_el.append(footer)

        self.render_notes(body, "footnote", ctx.footnotes)
        self.render_notes(body, "endnote", ctx.endnotes)
        if self.settings.include_comments:
            self.render_notes(body, "comment", ctx.comments)

        css_text = "\n".join(
            chunk for chunk in (self.settings.general_css, ctx.css.to_css(), self.settings.additional_css) if chunk
        )
        style.text = css_text

        markup = lxml.html.tostring(html, doctype="<!DOCTYPE html>", encoding="unicode", method="html")
        logger.info(f"Rendered {ctx.main_part} to HTML with {len(ctx.warnings)} warning(s)")
        return HtmlConversionResult(
            html=markup,
            css_text=css_text,
            warnings=list(ctx.warnings),
            html_element=html if self.settings.wants_element else None,
        )

    def _register_defaults(self) -> None:
        styles = self.context.styles
        body_rules = run_declarations(styles.default_run_properties)
        if body_rules:
            self.context.css.add("body", body_rules)
        paragraph_rules = paragraph_declarations(styles.default_paragraph_properties)
        if paragraph_rules:
            self.context.css.add("p", paragraph_rules)

    def render_header_footer(self, rel_id: str, kind: str):
        """Render a header/footer part once per relationship id and return a fresh copy."""
        ctx = self.context
        cache_key = f"{kind}:{rel_id}"
        if cache_key not in ctx.header_footer_cache:
            ctx.header_footer_cache[cache_key] = self._build_header_footer(rel_id, kind)
        cached = ctx.header_footer_cache[cache_key]
        return copy.deepcopy(cached) if cached is not None else None

    def _build_header_footer(self, rel_id: str, kind: str):
        ctx = self.context
        rels = ctx.relationships_for(ctx.main_part)
        part_name = rels.target_part(rel_id)
        if part_name is None:
            ctx.warn(MISSING_RELATIONSHIP, f"No relationship {rel_id} for {kind}", ctx.main_part)
            return None
        loaded = ctx.parts.get(part_name)
        if loaded is None or loaded.root is None:
            ctx.warn(MISSING_PART, f"{kind.capitalize()} part {part_name} is missing", ctx.main_part)
            return None
        container = etree.Element("div")
        container.set("class", f"{self.prefix}{kind}")
        self.render_blocks(list(element_children(loaded.root)), container, part_name)
        return container

    def render_notes(self, body, kind: str, table) -> None:
        """Append the ordered list of notes referenced during the walk."""
        ctx = self.context
        order = ctx.note_order.get(kind)
        if not order:
            return
        plural = f"{kind}s"
        ol = etree.SubElement(body, "ol")
        ol.set("class", f"{self.prefix}{plural}")
        index = 0
        while index < len(order):
            note_id = order[index]
            index += 1
            note = table.get(note_id)
            li = etree.SubElement(ol, "li")
            li.set("id", f"{self.prefix}{kind}-{note_id}")
            if kind == "comment" and w_attr(note, "author"):
                li.set("data-author", w_attr(note, "author"))
            self.render_blocks(list(element_children(note)), li, table.part_name or ctx.main_part)

    # ------------------------------------------------------------------
    # blocks

    def render_blocks(self, nodes: List[Any], parent, part: str) -> None:
        """Render block-level nodes into ``parent`` with a list stack of their own."""
        stack = ListStack(parent, self.context.counters)
        for node in nodes:
            self.render_block(node, parent, stack, part)

    def render_block(self, node, parent, stack: ListStack, part: str) -> None:
        ctx = self.context
        if not isinstance(node.tag, str):
            return
        if namespace_of(node) == MC_NS:
            for child in self._alternate_content(node):
                self.render_block(child, parent, stack, part)
            return
        if namespace_of(node) != W_NS:
            ctx.warn(UNSUPPORTED_ELEMENT, f"Unsupported block element {node.tag}", part)
            return

        name = local_name(node)
        if name == "p":
            self.render_paragraph(node, parent, stack, part)
        elif name == "tbl":
            stack.close_all()
            self.render_table(node, parent, part)
        elif name == "sdt":
            content = first_child_w(node, "sdtContent")
            if content is not None:
                for child in element_children(content):
                    self.render_block(child, parent, stack, part)
        elif name == "customXml":
            for child in element_children(node):
                self.render_block(child, parent, stack, part)
        elif name == "bookmarkStart":
            self._bookmark(node, parent)
        elif name in REVISION_WRAPPERS:
            ctx.warn(UNACCEPTED_REVISION, f"Skipped unaccepted revision w:{name}", part, once_key=part)
        elif name in SILENT_BLOCKS:
            return
        else:
            ctx.warn(UNSUPPORTED_ELEMENT, f"Unsupported block element w:{name}", part)

    def _alternate_content(self, node) -> List[Any]:
        choice = node.find(f"{{{MC_NS}}}Choice")
        fallback = node.find(f"{{{MC_NS}}}Fallback")
        for branch in (choice, fallback):
            if branch is not None and branch.find(f".//{{{W_NS}}}drawing") is not None:
                return list(element_children(branch))
        branch = fallback if fallback is not None else choice
        return list(element_children(branch)) if branch is not None else []

    def _heading_level(self, style_id: Optional[str], props: Dict[str, Any]) -> Optional[int]:
        record = self.context.styles.get_record(style_id)
        for candidate in (style_id, record.name if record else None):
            match = HEADING_STYLE.match(candidate or "")
            if match:
                return int(match.group(1))
        outline = props.get("outline_level")
        if outline is not None and 0 <= outline <= 5:
            return outline + 1
        return None

    def _paragraph_class(self, style_id: Optional[str]) -> Optional[str]:
        styles = self.context.styles
        style = styles.resolve("paragraph", style_id)
        if style is None:
            return None
        class_name = f"{self.prefix}p-{slugify(style_id)}"
        self.context.css.add(
            f".{class_name}",
            paragraph_declarations(style.paragraph) + run_declarations(style.run),
        )
        return class_name

    def render_paragraph(self, p, parent, stack: ListStack, part: str) -> None:
        ctx = self.context
        styles = ctx.styles
        direct = parse_paragraph_properties(first_child_w(p, "pPr"))
        style_id = styles.paragraph_style_id(direct)
        effective = styles.effective_paragraph(style_id, direct)
        num_id = effective.get("num_id")

        if num_id and num_id != "0":
            element = self._list_item(p, num_id, effective.get("ilvl") or 0, stack, style_id, part)
            # nesting of the HTML lists stands in for numbering indents
            self._format_paragraph(element, direct, style_id, effective, skip=LIST_INDENT_KEYS)
        else:
            stack.close_all()
            level = self._heading_level(style_id, effective)
            element = etree.SubElement(parent, f"h{level}" if level else "p")
            self._format_paragraph(element, direct, style_id, effective)

        state = InlineState(part=part, paragraph_style_id=style_id)
        self.render_inline(p, element, state)

    def _format_paragraph(self, element, direct, style_id, effective, skip=()) -> None:
        """Set the class, inline style and direction of a ``p``, heading or ``li``."""
        skip = set(skip) | {"style_id", "num_id", "ilvl"}
        if self.settings.fabricate_css_classes:
            declared = {key: value for key, value in direct.items() if key not in skip}
            class_name = self._paragraph_class(style_id) if style_id else None
            if class_name:
                element.set("class", class_name)
        else:
            style = self.context.styles.resolve("paragraph", style_id)
            declared = dict(style.paragraph) if style is not None else {}
            declared.update(direct)
            declared = {key: value for key, value in declared.items() if key not in skip}
        declarations = paragraph_declarations(declared)
        if declarations:
            element.set("style", join_declarations(declarations))
        if effective.get("bidi"):
            element.set("dir", "rtl")

    def _list_format(self, num_id: str, level: int) -> ListFormat:
        ctx = self.context
        fmt = ctx.numbering.list_format(num_id, level)
        if not fmt.recognized and self.settings.restrict_to_supported_numbering_formats:
            ctx.warn(
                UNSUPPORTED_NUMBERING_FORMAT,
                f"Numbering format '{fmt.num_format}' is not supported; using decimal",
                ctx.main_part,
                once_key=fmt.num_format,
            )
        return fmt

    def _paragraph_language(self, p, style_id: Optional[str]) -> str:
        for run in p.iter(w("r")):
            lang = parse_run_properties(first_child_w(run, "rPr")).get("lang")
            if lang:
                return lang
        return self.context.styles.effective_run(style_id, None, {}).get("lang") or self.settings.default_language

    def _list_item(self, p, num_id: str, level: int, stack: ListStack, style_id: Optional[str], part: str):
        ctx = self.context
        if not ctx.numbering_part_present:
            ctx.warn(MISSING_NUMBERING_PART, "Paragraphs use numbering but the package has no numbering part", part, once_key="numbering")
        frame = stack.add_item(num_id, level, lambda lvl: self._list_format(num_id, lvl))
        item = frame.item

        implementations = self.settings.list_item_implementations
        if implementations is not None or self.settings.restrict_to_supported_languages:
            language = self._paragraph_language(p, style_id)
            supported = implementations if implementations is not None else {self.settings.default_language: default_list_item_text}
            implementation = supported.get(language)
            if implementation is None:
                if self.settings.restrict_to_supported_languages:
                    ctx.warn(
                        LIST_LANG_UNSUPPORTED,
                        f"No list item implementation for language '{language}'",
                        part,
                        once_key=language,
                    )
                implementation = default_list_item_text
            if implementations is not None:
                level_text = expand_level_text(frame.format.level_text, level, stack.marker_values())
                item.set("data-pt-marker", implementation(level_text, frame.counter, frame.format.num_format))
        return item

    def _bookmark(self, node, parent) -> None:
        name = w_attr(node, "name")
        if not name or name == "_GoBack":
            return
        anchor = etree.SubElement(parent, "a")
        anchor.set("id", name)

    # ------------------------------------------------------------------
    # inline content

    def render_inline(self, container, element, state: InlineState) -> None:
        ctx = self.context
        for child in element_children(container):
            if namespace_of(child) == MC_NS:
                holder = etree.Element("span")
                for alt in self._alternate_content(child):
                    holder.append(copy.deepcopy(alt))
                self.render_inline(holder, element, state)
                continue
            if namespace_of(child) != W_NS:
                ctx.warn(UNSUPPORTED_ELEMENT, f"Unsupported inline element {child.tag}", state.part)
                continue
            name = local_name(child)
            if name == "r":
                self.render_run(child, element, state)
            elif name == "hyperlink":
                self._hyperlink(child, element, state)
            elif name == "bookmarkStart":
                self._bookmark(child, element)
            elif name in ("fldSimple", "smartTag", "customXml", "dir", "bdo"):
                self.render_inline(child, element, state)
            elif name == "sdt":
                content = first_child_w(child, "sdtContent")
                if content is not None:
                    self.render_inline(content, element, state)
            elif name in REVISION_WRAPPERS:
                ctx.warn(UNACCEPTED_REVISION, f"Skipped unaccepted revision w:{name}", state.part, once_key=state.part)
            elif name in SILENT_INLINE:
                continue
            else:
                ctx.warn(UNSUPPORTED_ELEMENT, f"Unsupported paragraph content w:{name}", state.part)

    def _hyperlink(self, node, element, state: InlineState) -> None:
        ctx = self.context
        anchor = etree.SubElement(element, "a")
        href = None
        rel_id = node.get(f"{{{R_NS}}}id")
        if rel_id:
            rel = ctx.relationships_for(state.part).get(rel_id)
            if rel is None:
                ctx.warn(MISSING_RELATIONSHIP, f"No relationship {rel_id} for hyperlink", state.part)
            else:
                href = rel.target
        fragment = w_attr(node, "anchor")
        if fragment:
            href = f"{href or ''}#{fragment}"
        if href:
            anchor.set("href", href)
        self.render_inline(node, anchor, state)

    def _run_wrappers(self, effective: Dict[str, Any], notes_only: bool) -> List[str]:
        tags = []
        for key, tag in RUN_WRAPPERS:
            if key == "vert":
                vert = effective.get("vert_align")
                if vert in ("superscript", "subscript") and not notes_only:
                    tags.append("sup" if vert == "superscript" else "sub")
            elif effective.get(key):
                tags.append(tag)
        return tags

    def render_run(self, run, element, state: InlineState) -> None:
        ctx = self.context
        styles = ctx.styles
        direct = parse_run_properties(first_child_w(run, "rPr"))
        character_style = direct.get("style_id")
        effective = styles.effective_run(state.paragraph_style_id, character_style, direct)
        if effective.get("hidden"):
            return

        holder = etree.Element("span")
        notes_only = self._render_run_content(run, holder, state)
        if not _has_content(holder):
            return

        span = etree.SubElement(element, "span")
        if self.settings.fabricate_css_classes:
            inline = {key: value for key, value in direct.items() if key != "style_id"}
            character = styles.resolve("character", character_style)
            if character is not None:
                class_name = f"{self.prefix}r-{slugify(character_style)}"
                ctx.css.add(f".{class_name}", run_declarations(character.run))
                span.set("class", class_name)
        else:
            inline = styles.style_run(state.paragraph_style_id, character_style)
            inline.update(direct)
        declarations = run_declarations(inline)
        if declarations:
            span.set("style", join_declarations(declarations))
        if effective.get("rtl"):
            span.set("dir", "rtl")

        target = span
        for tag in self._run_wrappers(effective, notes_only):
            target = etree.SubElement(target, tag)
        target.text = holder.text
        for child in list(holder):
            target.append(child)

    def _render_run_content(self, run, holder, state: InlineState) -> bool:
        """Render run children into ``holder``; return True when the run held only note references."""
        ctx = self.context
        references = 0
        other = 0
        for child in element_children(run):
            if namespace_of(child) == MC_NS:
                for alt in self._alternate_content(child):
                    if is_w(alt, "drawing") or is_w(alt, "pict"):
                        self._image(alt, holder, state)
                        other += 1
                continue
            if namespace_of(child) != W_NS:
                ctx.warn(UNSUPPORTED_RUN_CHILD, f"Unsupported run child {child.tag}", state.part)
                continue
            name = local_name(child)
            if name in SILENT_RUN_CHILDREN:
                continue
            other += 1
            if name == "t":
                append_text(holder, child.text or "")
            elif name in ("tab", "ptab"):
                append_text(holder, "\t")
            elif name == "br":
                self._break(child, holder)
            elif name == "cr":
                etree.SubElement(holder, "br")
            elif name == "noBreakHyphen":
                append_text(holder, "\u2011")
            elif name == "softHyphen":
                append_text(holder, "\u00ad")
            elif name == "sym":
                append_text(holder, self._symbol(child))
            elif name in ("footnoteReference", "endnoteReference", "commentReference"):
                other -= 1
                if self._note_reference(child, name[: -len("Reference")], holder, state):
                    references += 1
            elif name in ("drawing", "pict", "object"):
                self._image(child, holder, state)
            else:
                ctx.warn(UNSUPPORTED_RUN_CHILD, f"Unsupported run child w:{name}", state.part)
        return references > 0 and other == 0

    def _break(self, node, holder) -> None:
        br = etree.SubElement(holder, "br")
        if w_attr(node, "type") == "page":
            class_name = f"{self.prefix}page-break"
            br.set("class", class_name)
            self.context.css.add(f".{class_name}", ["page-break-before:always"])

    @staticmethod
    def _symbol(node) -> str:
        code = None
        raw = w_attr(node, "char")
        if raw:
            try:
                code = int(raw, 16)
            except ValueError:
                code = None
        if code is None:
            return ""
        if code >= 0xF000:
            code -= 0xF000
        return chr(code)

    def _note_reference(self, node, kind: str, holder, state: InlineState) -> bool:
        ctx = self.context
        if kind == "comment" and not self.settings.include_comments:
            return False
        note_id = w_attr(node, "id")
        table = {"footnote": ctx.footnotes, "endnote": ctx.endnotes, "comment": ctx.comments}[kind]
        sup = etree.SubElement(holder, "sup")
        if note_id is None or note_id not in table:
            ctx.warn(MISSING_NOTE, f"No {kind} with id {note_id}", state.part)
            sup.text = f"[{note_id}]"
            return True
        number = ctx.note_number(kind, note_id)
        link = etree.SubElement(sup, "a")
        link.set("href", f"#{self.prefix}{kind}-{note_id}")
        link.text = str(number)
        return True

    # ------------------------------------------------------------------
    # images

    def _image(self, node, holder, state: InlineState) -> None:
        if is_w(node, "drawing"):
            self._drawing(node, holder, state)
        else:
            self._vml_image(node, holder, state)

    def _drawing(self, drawing, holder, state: InlineState) -> None:
        blip = drawing.find(f".//{{{A_NS}}}blip")
        if blip is None:
            self.context.warn(UNSUPPORTED_RUN_CHILD, "Drawing without a picture", state.part)
            return
        svg = blip.find(f".//{{{ASVG_NS}}}svgBlip")
        rel_id = None
        if svg is not None:
            rel_id = svg.get(qn("r:embed"))
        rel_id = rel_id or blip.get(qn("r:embed"))
        link_id = blip.get(qn("r:link"))
        doc_pr = drawing.find(f".//{{{WP_NS}}}docPr")
        alt = None
        if doc_pr is not None:
            alt = doc_pr.get("descr") or doc_pr.get("title")
        extent = drawing.find(f".//{{{WP_NS}}}extent")
        width = height = None
        if extent is not None:
            cx = to_int(extent.get("cx"))
            cy = to_int(extent.get("cy"))
            width = emu_to_px(cx) if cx else None
            height = emu_to_px(cy) if cy else None
        self._emit_image(rel_id, link_id, alt, width, height, holder, state)

    def _vml_image(self, node, holder, state: InlineState) -> None:
        imagedata = node.find(f".//{{{V_NS}}}imagedata")
        if imagedata is None:
            self.context.warn(UNSUPPORTED_RUN_CHILD, f"Unsupported run child w:{local_name(node)}", state.part)
            return
        alt = imagedata.get("{urn:schemas-microsoft-com:office:office}title")
        self._emit_image(imagedata.get(qn("r:id")), None, alt, None, None, holder, state)

    def _emit_image(self, rel_id, link_id, alt, width, height, holder, state: InlineState) -> None:
        ctx = self.context
        rels = ctx.relationships_for(state.part)
        if not rel_id and link_id:
            rel = rels.get(link_id)
            if rel is not None:
                self._img(holder, {"src": rel.target}, alt, width, height)
            return
        rel = rels.get(rel_id)
        if rel is None:
            ctx.warn(MISSING_RELATIONSHIP, f"No relationship {rel_id} for image", state.part)
            return
        if rel.is_external:
            self._img(holder, {"src": rel.target}, alt, width, height)
            return
        part_name = rel.resolve_target(rels.source_part)
        data = ctx.package.read_part(part_name)
        if data is None:
            ctx.warn(MISSING_IMAGE, f"Image part {part_name} is missing", state.part)
            return
        content_type = ctx.content_types.content_type_for(part_name) or "application/octet-stream"
        attributes: Optional[Dict[str, str]] = None
        if self.settings.image_handler is not None:
            info = ImageInfo(content_type, data, alt, f"/{part_name}", width, height)
            handled = self.settings.image_handler(info)
            if isinstance(handled, str):
                attributes = {"src": handled}
            elif isinstance(handled, Mapping):
                attributes = {str(key): str(value) for key, value in handled.items() if value is not None}
        if not attributes or "src" not in attributes:
            encoded = base64.b64encode(data).decode("ascii")
            attributes = {"src": f"data:{content_type};base64,{encoded}", **(attributes or {})}
        self._img(holder, attributes, alt, width, height)

    @staticmethod
    def _img(holder, attributes: Dict[str, str], alt, width, height) -> None:
        img = etree.SubElement(holder, "img")
        img.set("src", attributes["src"])
        for key, value in attributes.items():
            if key != "src":
                img.set(key, value)
        if "alt" not in attributes:
            img.set("alt", alt or "")
        if width and "width" not in attributes:
            img.set("width", str(int(round(width))))
        if height and "height" not in attributes:
            img.set("height", str(int(round(height))))

    # ------------------------------------------------------------------
    # tables

    def render_table(self, tbl, parent, part: str) -> None:
        ctx = self.context
        grid = build_grid(tbl)
        for anomaly in grid.anomalies:
            ctx.warn(ORPHAN_MERGE_CONTINUATION, anomaly, part)

        direct = parse_table_properties(first_child_w(tbl, "tblPr"))
        style_id = direct.get("style_id") or ctx.styles.default_table_style_id
        style = ctx.styles.resolve("table", style_id)
        props = dict(style.table) if style is not None else {}
        props.update({key: value for key, value in direct.items() if key != "style_id"})

        table = etree.SubElement(parent, "table")
        declarations = table_declarations(props)
        if has_visible_border(props) and "border-collapse:collapse" not in declarations:
            declarations.insert(0, "border-collapse:collapse")
        if declarations:
            table.set("style", join_declarations(declarations))

        head_rows = 0
        for row in grid.rows:
            if not row.is_header:
                break
            head_rows += 1
        if head_rows:
            thead = etree.SubElement(table, "thead")
            tbody = etree.SubElement(table, "tbody") if head_rows < len(grid.rows) else None
        else:
            thead = tbody = None

        for index, row in enumerate(grid.rows):
            in_head = index < head_rows
            container = thead if in_head else (tbody if tbody is not None else table)
            tr = etree.SubElement(container, "tr")
            last_visible = max(
                (position for position, cell in enumerate(row.cells) if cell.kind in (CELL, CONTINUATION)),
                default=-1,
            )
            for position, cell in enumerate(row.cells):
                if cell.kind == CONTINUATION:
                    continue
                if cell.kind == FILLER:
                    if position < last_visible:
                        filler = etree.SubElement(tr, "td")
                        if cell.colspan > 1:
                            filler.set("colspan", str(cell.colspan))
                    continue
                td = etree.SubElement(tr, "th" if in_head else "td")
                if cell.colspan > 1:
                    td.set("colspan", str(cell.colspan))
                if cell.rowspan > 1:
                    td.set("rowspan", str(cell.rowspan))
                cell_props = parse_cell_properties(first_child_w(cell.source, "tcPr"))
                cell_css = cell_declarations(cell_props, props)
                if cell_css:
                    td.set("style", join_declarations(cell_css))
                content = [child for child in element_children(cell.source) if not is_w(child, "tcPr")]
                self.render_blocks(content, td, part)
