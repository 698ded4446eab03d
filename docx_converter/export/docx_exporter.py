"""
DOCX exporter - packs WML produced from HTML into a word-processing package.

Without a template a minimal package is assembled: ``[Content_Types].xml``,
root and document relationships, a small style sheet, the main document and
(only when lists were emitted) a numbering part. With a template every
template part is kept; the main document body is replaced and relationships,
numbering definitions, styles and media are merged in with ids that do not
collide with the template's.
"""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
from typing import Dict, List, Optional, Set, Tuple

from lxml import etree

from ..config import HtmlToWmlSettings
from ..exceptions import PackageError
from ..models import ConversionWarning
from ..parser.package_reader import CONTENT_TYPES_PART, PackageReader, normalize_part_name
from ..parser.relationships import RT_NUMBERING, RT_OFFICE_DOCUMENT, RT_STYLES, rels_part_for
from ..utils.xml_utils import CT_NS, PKG_REL_NS, W_NS, is_w, parse_xml, serialize_xml, to_int, w
from .wml_builder import WML_NSMAP, BuildResult, NumberingBuilder, WmlBuilder

logger = logging.getLogger(__name__)

CT_DOCUMENT = "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
CT_STYLES = "application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml"
CT_NUMBERING = "application/vnd.openxmlformats-officedocument.wordprocessingml.numbering+xml"
CT_RELATIONSHIPS = "application/vnd.openxmlformats-package.relationships+xml"
CT_XML = "application/xml"

MEDIA_CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}

HEADING_SIZES = (32, 28, 26, 24, 22, 22)

Relationships = List[Tuple[str, str, str, Optional[str]]]


def _set(node, **attrs) -> None:
    for name, value in attrs.items():
        node.set(w(name), str(value))


def minimal_styles_element():
    """Style sheet with Normal, Heading1-6, the default character style and Hyperlink."""
    root = etree.Element(w("styles"), nsmap={"w": W_NS})
    defaults = etree.SubElement(root, w("docDefaults"))
    rpr = etree.SubElement(etree.SubElement(defaults, w("rPrDefault")), w("rPr"))
    _set(etree.SubElement(rpr, w("rFonts")), ascii="Calibri", hAnsi="Calibri", cs="Calibri")
    _set(etree.SubElement(rpr, w("sz")), val=22)
    ppr = etree.SubElement(etree.SubElement(defaults, w("pPrDefault")), w("pPr"))
    _set(etree.SubElement(ppr, w("spacing")), after=160, line=259, lineRule="auto")

    normal = etree.SubElement(root, w("style"))
    _set(normal, type="paragraph", default=1, styleId="Normal")
    _set(etree.SubElement(normal, w("name")), val="Normal")
    etree.SubElement(normal, w("qFormat"))

    default_font = etree.SubElement(root, w("style"))
    _set(default_font, type="character", default=1, styleId="DefaultParagraphFont")
    _set(etree.SubElement(default_font, w("name")), val="Default Paragraph Font")
    etree.SubElement(default_font, w("semiHidden"))

    for level, size in enumerate(HEADING_SIZES, start=1):
        style = etree.SubElement(root, w("style"))
        _set(style, type="paragraph", styleId=f"Heading{level}")
        _set(etree.SubElement(style, w("name")), val=f"heading {level}")
        _set(etree.SubElement(style, w("basedOn")), val="Normal")
        _set(etree.SubElement(style, w("next")), val="Normal")
        etree.SubElement(style, w("qFormat"))
        ppr = etree.SubElement(style, w("pPr"))
        etree.SubElement(ppr, w("keepNext"))
        _set(etree.SubElement(ppr, w("spacing")), before=240, after=60)
        _set(etree.SubElement(ppr, w("outlineLvl")), val=level - 1)
        rpr = etree.SubElement(style, w("rPr"))
        etree.SubElement(rpr, w("b"))
        _set(etree.SubElement(rpr, w("sz")), val=size)

    hyperlink = etree.SubElement(root, w("style"))
    _set(hyperlink, type="character", styleId="Hyperlink")
    _set(etree.SubElement(hyperlink, w("name")), val="Hyperlink")
    _set(etree.SubElement(hyperlink, w("basedOn")), val="DefaultParagraphFont")
    rpr = etree.SubElement(hyperlink, w("rPr"))
    _set(etree.SubElement(rpr, w("color")), val="0563C1")
    _set(etree.SubElement(rpr, w("u")), val="single")
    return root


def section_properties(settings: HtmlToWmlSettings):
    sect_pr = etree.Element(w("sectPr"), nsmap={"w": W_NS})
    _set(etree.SubElement(sect_pr, w("pgSz")), w=settings.page_width_twips, h=settings.page_height_twips)
    margin = settings.margin_twips
    _set(
        etree.SubElement(sect_pr, w("pgMar")),
        top=margin, right=margin, bottom=margin, left=margin, header=720, footer=720, gutter=0,
    )
    return sect_pr


def rewrite_package(source: bytes, replacements: Dict[str, Optional[bytes]]) -> bytes:
    """
    Copy a package, replacing, adding or (with ``None``) removing parts.

    Args:
        source: Original package bytes
        replacements: Part name -> new content, or ``None`` to drop the part

    Returns:
        New package bytes
    """
    pending = {normalize_part_name(name): data for name, data in replacements.items()}
    output = io.BytesIO()
    try:
        with zipfile.ZipFile(io.BytesIO(source)) as src, zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as dst:
            for info in src.infolist():
                name = normalize_part_name(info.filename)
                if name in pending:
                    data = pending.pop(name)
                    if data is not None:
                        dst.writestr(info.filename, data)
                    continue
                dst.writestr(info, src.read(info.filename))
            for name, data in pending.items():
                if data is not None:
                    dst.writestr(name, data)
    except zipfile.BadZipFile as exc:
        raise PackageError("Package is not a valid ZIP archive", details=str(exc)) from exc
    return output.getvalue()


class DocxExporter:
    """
    Builds a ``.docx`` package from an HTML tree.

    Args:
        settings: Import settings (page size and margins for new packages)
        template: Optional template package bytes whose parts are kept
    """

    def __init__(self, settings: Optional[HtmlToWmlSettings] = None, template: Optional[bytes] = None):
        self.settings = settings or HtmlToWmlSettings()
        self.template = template
        self.warnings: List[ConversionWarning] = []
        self._parts: Dict[str, bytes] = {}
        self._relationships: Dict[str, Relationships] = {}
        self._content_types: Dict[str, str] = {}

    def export(self, html_root) -> bytes:
        """
        Convert an HTML tree and return the package bytes.

        Raises:
            PackageError: If the template is not a readable package
            MissingMainDocumentError: If the template has no main document
        """
        if self.template is None:
            data = self._export_new(html_root)
        else:
            data = self._export_into_template(html_root)
        logger.info(f"Exported package ({len(data)} bytes, {len(self.warnings)} warning(s))")
        return data

    # ------------------------------------------------------------------
    # new package

    def _export_new(self, html_root) -> bytes:
        builder = WmlBuilder(self.settings, reserved_rel_ids={"rId1", "rId2"})
        result = builder.build(html_root)
        self.warnings = result.warnings

        document = etree.Element(w("document"), nsmap=WML_NSMAP)
        body = etree.SubElement(document, w("body"))
        for block in result.blocks:
            body.append(block)
        body.append(section_properties(self.settings))

        self._content_types = {
            "*.rels": CT_RELATIONSHIPS,
            "*.xml": CT_XML,
            "word/document.xml": CT_DOCUMENT,
            "word/styles.xml": CT_STYLES,
        }
        self._parts = {
            "word/document.xml": serialize_xml(document),
            "word/styles.xml": serialize_xml(minimal_styles_element()),
        }
        document_rels: Relationships = [("rId1", RT_STYLES, "styles.xml", None)]
        if result.numbering:
            self._parts["word/numbering.xml"] = serialize_xml(result.numbering.to_element())
            self._content_types["word/numbering.xml"] = CT_NUMBERING
            document_rels.append(("rId2", RT_NUMBERING, "numbering.xml", None))
        document_rels.extend(result.relationships)
        self._relationships = {
            "_rels/.rels": [("rId1", RT_OFFICE_DOCUMENT, "word/document.xml", None)],
            rels_part_for("word/document.xml"): document_rels,
        }
        self._add_media(result)
        return self._write_package()

    def _add_media(self, result: BuildResult) -> None:
        for part_name, data in result.media.items():
            self._parts[part_name] = data
            extension = posixpath.splitext(part_name)[1].lstrip(".").lower()
            self._content_types.setdefault(f"*.{extension}", MEDIA_CONTENT_TYPES.get(extension, "application/octet-stream"))

    def _write_package(self) -> bytes:
        """Zip content types, relationships, parts and media in that order."""
        files_to_write: Dict[str, bytes] = {CONTENT_TYPES_PART: self._generate_content_types_xml()}
        files_to_write["_rels/.rels"] = self._generate_relationships_xml(self._relationships["_rels/.rels"])
        files_to_write.update(self._parts)
        for rels_path, rels in self._relationships.items():
            if rels_path != "_rels/.rels" and rels:
                files_to_write[rels_path] = self._generate_relationships_xml(rels)

        output = io.BytesIO()
        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as zip_file:
            for file_name, content in files_to_write.items():
                zip_file.writestr(file_name, content)
        return output.getvalue()

    def _generate_content_types_xml(self) -> bytes:
        root = etree.Element(f"{{{CT_NS}}}Types", nsmap={None: CT_NS})
        for key, content_type in self._content_types.items():
            if key.startswith("*."):
                default = etree.SubElement(root, f"{{{CT_NS}}}Default")
                default.set("Extension", key[2:])
                default.set("ContentType", content_type)
        for key, content_type in self._content_types.items():
            if not key.startswith("*."):
                override = etree.SubElement(root, f"{{{CT_NS}}}Override")
                override.set("PartName", f"/{key}")
                override.set("ContentType", content_type)
        return serialize_xml(root)

    @staticmethod
    def _generate_relationships_xml(relationships: Relationships) -> bytes:
        root = etree.Element(f"{{{PKG_REL_NS}}}Relationships", nsmap={None: PKG_REL_NS})
        for rel_id, rel_type, target, target_mode in relationships:
            rel = etree.SubElement(root, f"{{{PKG_REL_NS}}}Relationship")
            rel.set("Id", rel_id)
            rel.set("Type", rel_type)
            rel.set("Target", target)
            if target_mode == "External":
                rel.set("TargetMode", "External")
        return serialize_xml(root)

    # ------------------------------------------------------------------
    # template merge

    def _export_into_template(self, html_root) -> bytes:
        with PackageReader(self.template) as reader:
            main_part = reader.main_document_part
            document = reader.read_xml(main_part)
            rels = reader.relationships_for(main_part)
            existing: Relationships = [(rel.id, rel.type, rel.target, rel.target_mode) for rel in rels]
            reserved_ids: Set[str] = {rel.id for rel in rels}
            part_names = set(reader.part_names)
            main_dir = posixpath.dirname(main_part)

            numbering_rel = rels.first_of_type(RT_NUMBERING)
            numbering_part = numbering_rel.resolve_target(main_part) if numbering_rel is not None else None
            numbering_root = reader.read_xml(numbering_part) if numbering_part and reader.has_part(numbering_part) else None
            styles_rel = rels.first_of_type(RT_STYLES)
            styles_part = styles_rel.resolve_target(main_part) if styles_rel is not None else None
            styles_root = reader.read_xml(styles_part) if styles_part and reader.has_part(styles_part) else None
            content_types_root = parse_xml(reader.read_part(CONTENT_TYPES_PART) or f"<Types xmlns=\"{CT_NS}\"/>".encode(), CONTENT_TYPES_PART)

        numbering = NumberingBuilder(*self._next_numbering_ids(numbering_root))
        builder = WmlBuilder(
            self.settings,
            reserved_rel_ids=reserved_ids,
            numbering=numbering,
            reserved_media=set(part_names),
        )
        result = builder.build(html_root)
        self.warnings = result.warnings
        new_rels: Relationships = list(result.relationships)
        replacements: Dict[str, Optional[bytes]] = {}
        overrides: Dict[str, str] = {}
        defaults: Dict[str, str] = {}

        self._replace_body(document, result)
        replacements[main_part] = serialize_xml(document)

        if result.numbering:
            if numbering_root is not None:
                merge_numbering(numbering_root, result.numbering)
                replacements[numbering_part] = serialize_xml(numbering_root)
            else:
                numbering_part = posixpath.join(main_dir, "numbering.xml")
                replacements[numbering_part] = serialize_xml(result.numbering.to_element())
                new_rels.append((builder.next_rel_id(), RT_NUMBERING, "numbering.xml", None))
                overrides[numbering_part] = CT_NUMBERING

        if styles_root is not None:
            if merge_styles(styles_root, minimal_styles_element()):
                replacements[styles_part] = serialize_xml(styles_root)
        else:
            styles_part = posixpath.join(main_dir, "styles.xml")
            replacements[styles_part] = serialize_xml(minimal_styles_element())
            new_rels.append((builder.next_rel_id(), RT_STYLES, "styles.xml", None))
            overrides[styles_part] = CT_STYLES

        for part_name, data in result.media.items():
            replacements[part_name] = data
            extension = posixpath.splitext(part_name)[1].lstrip(".").lower()
            defaults[extension] = MEDIA_CONTENT_TYPES.get(extension, "application/octet-stream")

        if new_rels:
            replacements[rels_part_for(main_part)] = self._generate_relationships_xml(existing + new_rels)
        if overrides or defaults:
            ensure_content_types(content_types_root, defaults, overrides)
            replacements[CONTENT_TYPES_PART] = serialize_xml(content_types_root)
        logger.debug(f"Merging {len(replacements)} part(s) into template")
        return rewrite_package(self.template, replacements)

    @staticmethod
    def _next_numbering_ids(numbering_root) -> Tuple[int, int]:
        if numbering_root is None:
            return 0, 1
        abstract_ids = [to_int(node.get(w("abstractNumId")), -1) for node in numbering_root if is_w(node, "abstractNum")]
        num_ids = [to_int(node.get(w("numId")), 0) for node in numbering_root if is_w(node, "num")]
        return max(abstract_ids, default=-1) + 1, max(num_ids, default=0) + 1

    def _replace_body(self, document, result: BuildResult) -> None:
        body = document.find(w("body"))
        if body is None:
            body = etree.SubElement(document, w("body"))
        final_sect_pr = body[-1] if len(body) and is_w(body[-1], "sectPr") else None
        for child in list(body):
            body.remove(child)
        for block in result.blocks:
            body.append(block)
        body.append(final_sect_pr if final_sect_pr is not None else section_properties(self.settings))


def merge_numbering(numbering_root, numbering: NumberingBuilder) -> None:
    """Insert new abstract definitions after the existing ones and new instances after the last ``w:num``."""
    children = list(numbering_root)
    abstract_positions = [i for i, node in enumerate(children) if is_w(node, "abstractNum")]
    num_positions = [i for i, node in enumerate(children) if is_w(node, "num")]
    if abstract_positions:
        insert_at = abstract_positions[-1] + 1
    elif num_positions:
        insert_at = num_positions[0]
    else:
        insert_at = len(children)
    for offset, element in enumerate(numbering.abstract_elements):
        numbering_root.insert(insert_at + offset, element)
    children = list(numbering_root)
    num_positions = [i for i, node in enumerate(children) if is_w(node, "num")]
    abstract_positions = [i for i, node in enumerate(children) if is_w(node, "abstractNum")]
    insert_at = (num_positions or abstract_positions or [len(children) - 1])[-1] + 1
    for offset, element in enumerate(numbering.num_elements):
        numbering_root.insert(insert_at + offset, element)


def merge_styles(styles_root, additions) -> bool:
    """Append styles from ``additions`` whose ids the sheet lacks; return whether anything changed."""
    known = {node.get(w("styleId")) for node in styles_root if is_w(node, "style")}
    changed = False
    for style in list(additions):
        if is_w(style, "style") and style.get(w("styleId")) not in known:
            if style.get(w("default")) is not None:
                del style.attrib[w("default")]
            styles_root.append(style)
            changed = True
    return changed


def ensure_content_types(root, defaults: Dict[str, str], overrides: Dict[str, str]) -> None:
    """Add ``Default``/``Override`` entries missing from a ``[Content_Types].xml`` tree."""
    known_defaults = {node.get("Extension", "").lower() for node in root.iter(f"{{{CT_NS}}}Default")}
    known_overrides = {node.get("PartName", "").lower() for node in root.iter(f"{{{CT_NS}}}Override")}
    first_override = root.find(f"{{{CT_NS}}}Override")
    for extension, content_type in defaults.items():
        if extension.lower() in known_defaults:
            continue
        default = etree.Element(f"{{{CT_NS}}}Default")
        default.set("Extension", extension)
        default.set("ContentType", content_type)
        if first_override is not None:
            first_override.addprevious(default)
        else:
            root.append(default)
    for part_name, content_type in overrides.items():
        name = f"/{normalize_part_name(part_name)}"
        if name.lower() in known_overrides:
            continue
        override = etree.SubElement(root, f"{{{CT_NS}}}Override")
        override.set("PartName", name)
        override.set("ContentType", content_type)
