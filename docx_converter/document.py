"""
In-memory word-processing document.

``WmlDocument`` wraps the package bytes. Every editing operation returns a new
document; the original bytes are never modified.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from lxml import etree

from .config import MarkupSimplifierSettings
from .exceptions import InvalidArgumentError, PackageError, PartNotFoundError
from .export.docx_exporter import rewrite_package
from .models import ConversionWarning, DocumentText, HtmlConversionResult
from .parser.package_reader import PackageReader, normalize_part_name
from .parser.relationships import RT_COMMENTS, RT_ENDNOTES, RT_FOOTER, RT_FOOTNOTES, RT_HEADER
from .preprocess import (
    accept_revisions_tree,
    has_tracked_revisions_tree,
    search_and_replace_tree,
    simplify_markup_tree,
)
from .utils.xml_utils import is_w, parse_xml, serialize_xml, w

logger = logging.getLogger(__name__)

CONTENT_PART_TYPES = (RT_HEADER, RT_FOOTER, RT_FOOTNOTES, RT_ENDNOTES, RT_COMMENTS)


def paragraph_text(paragraph) -> str:
    """Visible text of a ``w:p``: text nodes, tabs and breaks."""
    chunks: List[str] = []
    for node in paragraph.iter():
        if not isinstance(node.tag, str):
            continue
        if is_w(node, "t"):
            chunks.append(node.text or "")
        elif is_w(node, "tab") and is_w(node.getparent(), "r"):
            chunks.append("\t")
        elif is_w(node, "br") or is_w(node, "cr"):
            chunks.append("\n")
        elif is_w(node, "noBreakHyphen"):
            chunks.append("-")
    return "".join(chunks)


class WmlDocument:
    """
    A ``.docx`` package held in memory.

    Args:
        data: Package bytes
        file_name: Name used when the document is saved or reported

    Raises:
        PackageError: If ``data`` is not a ZIP package
    """

    def __init__(self, data: Union[bytes, bytearray], file_name: Optional[str] = None):
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidArgumentError("Document data must be bytes", details=type(data).__name__)
        self._data = bytes(data)
        self.file_name = file_name or "document.docx"
        self.warnings: List[ConversionWarning] = []
        with self._reader():
            pass

    def __repr__(self) -> str:
        return f"WmlDocument(file_name={self.file_name!r}, size={len(self._data)})"

    # ------------------------------------------------------------------
    # construction and serialization

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray], file_name: Optional[str] = None) -> "WmlDocument":
        return cls(data, file_name)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "WmlDocument":
        path = Path(path)
        if not path.exists():
            raise PackageError("DOCX file not found", details=str(path))
        return cls(path.read_bytes(), path.name)

    @classmethod
    def from_base64(cls, text: str, file_name: Optional[str] = None) -> "WmlDocument":
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise InvalidArgumentError("Invalid base64 document data", details=str(exc)) from exc
        return cls(data, file_name)

    def to_bytes(self) -> bytes:
        return self._data

    def to_base64(self) -> str:
        return base64.b64encode(self._data).decode("ascii")

    def save(self, path: Union[str, Path]) -> Path:
        """Write the package to ``path`` and return the path."""
        path = Path(path)
        path.write_bytes(self._data)
        logger.info(f"Saved {self.file_name} to {path}")
        return path

    def _reader(self) -> PackageReader:
        return PackageReader(self._data)

    def _derive(self, data: bytes) -> "WmlDocument":
        return WmlDocument(data, self.file_name)

    # ------------------------------------------------------------------
    # part access

    @property
    def main_document_part(self) -> str:
        with self._reader() as reader:
            return reader.main_document_part

    def detect_type(self) -> str:
        """Package kind: ``docx``, ``xlsx``, ``pptx``, ``opc`` or ``unknown``."""
        with self._reader() as reader:
            return reader.detect_type()

    @property
    def part_names(self) -> List[str]:
        with self._reader() as reader:
            return reader.part_names

    def get_part_bytes(self, part_name: str) -> Optional[bytes]:
        """Raw bytes of a part, or ``None`` when the package lacks it."""
        with self._reader() as reader:
            return reader.read_part(part_name)

    def get_part_text(self, part_name: str) -> Optional[str]:
        with self._reader() as reader:
            return reader.read_text(part_name)

    def get_main_document_xml(self):
        """
        Parsed root of the main document part.

        Raises:
            MissingMainDocumentError: If the package has no main document
            XmlParseError: If the part is malformed
        """
        with self._reader() as reader:
            return reader.read_xml(reader.main_document_part)

    def get_main_document_text(self) -> DocumentText:
        """Plain text of every paragraph in the main document body, tables included."""
        root = self.get_main_document_xml()
        body = root.find(w("body"))
        paragraphs = tuple(paragraph_text(p) for p in body.iter(w("p"))) if body is not None else ()
        return DocumentText(paragraphs, "\n".join(paragraphs))

    def content_parts(self) -> List[str]:
        """Main document plus the header, footer, note and comment parts it references."""
        with self._reader() as reader:
            main_part = reader.main_document_part
            names = [main_part]
            for rel in reader.relationships_for(main_part):
                if rel.type in CONTENT_PART_TYPES and not rel.is_external:
                    target = rel.resolve_target(main_part)
                    if reader.has_part(target) and target not in names:
                        names.append(target)
        return names

    # ------------------------------------------------------------------
    # editing

    def replace_parts(self, parts: Mapping[str, Any]) -> "WmlDocument":
        """
        Return a copy with the given parts replaced or added.

        Args:
            parts: Part name -> bytes, text or an lxml element (``None`` removes the part)
        """
        replacements: Dict[str, Optional[bytes]] = {}
        for name, content in parts.items():
            if content is None or isinstance(content, bytes):
                replacements[normalize_part_name(name)] = content
            elif isinstance(content, str):
                replacements[normalize_part_name(name)] = content.encode("utf-8")
            elif isinstance(content, etree._Element):
                replacements[normalize_part_name(name)] = serialize_xml(content)
            else:
                raise InvalidArgumentError(f"Unsupported content for part {name}", details=type(content).__name__)
        return self._derive(rewrite_package(self._data, replacements))

    def replace_part_xml(self, part_name: str, xml: Any) -> "WmlDocument":
        """
        Return a copy with one XML part replaced.

        Raises:
            PartNotFoundError: If the package has no such part
            XmlParseError: If ``xml`` is text or bytes that is not well-formed
        """
        with self._reader() as reader:
            if not reader.has_part(part_name):
                raise PartNotFoundError("Part not found", details=part_name)
        if isinstance(xml, (str, bytes)):
            xml = parse_xml(xml, part_name)
        return self.replace_parts({part_name: xml})

    def _transform_parts(self, parts: List[str], transform: Callable[[Any], Any]) -> "WmlDocument":
        replacements: Dict[str, Any] = {}
        with self._reader() as reader:
            for name in parts:
                replacements[name] = transform(reader.read_xml(name))
        return self.replace_parts(replacements)

    def accept_revisions(self) -> "WmlDocument":
        """Return a copy with tracked insertions kept and deletions and property changes dropped."""
        return self._transform_parts(self.content_parts(), accept_revisions_tree)

    def has_tracked_revisions(self) -> bool:
        with self._reader() as reader:
            return any(has_tracked_revisions_tree(reader.read_xml(name)) for name in self.content_parts())

    def simplify_markup(
        self, settings: Union[MarkupSimplifierSettings, Mapping[str, Any], None] = None
    ) -> "WmlDocument":
        simplifier = MarkupSimplifierSettings.coerce(settings)
        return self._transform_parts(self.content_parts(), lambda root: simplify_markup_tree(root, simplifier))

    def search_and_replace(self, search: str, replace: str, match_case: bool = False) -> "WmlDocument":
        """Return a copy with ``search`` replaced in the main document, across run boundaries."""
        main_part = self.main_document_part
        return self._transform_parts(
            [main_part], lambda root: search_and_replace_tree(root, search, replace, match_case)
        )

    # ------------------------------------------------------------------
    # conversion

    def convert_to_html(self, settings: Any = None, **overrides: Any) -> HtmlConversionResult:
        from .converter import convert_to_html

        return convert_to_html(self, settings, **overrides)
