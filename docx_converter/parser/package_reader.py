"""
Package reader for DOCX files.

Gives typed access to the parts of an in-memory OPC package: raw bytes,
decoded text, parsed XML, the content-type table and per-part relationship
tables.
"""

import io
import logging
import mimetypes
import posixpath
import threading
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..exceptions import MissingMainDocumentError, PackageError, PartNotFoundError, XmlParseError
from ..utils.xml_utils import CT_NS, parse_xml
from .relationships import RT_OFFICE_DOCUMENT, RelationshipTable, rels_part_for

logger = logging.getLogger(__name__)

CONTENT_TYPES_PART = "[Content_Types].xml"
DEFAULT_MAIN_DOCUMENT = "word/document.xml"

OFFICE_DOCUMENT_KINDS = {
    "word/document.xml": "docx",
    "xl/workbook.xml": "xlsx",
    "ppt/presentation.xml": "pptx",
}


def normalize_part_name(part_name: str) -> str:
    return part_name.replace("\\", "/").lstrip("/")


class ContentTypeTable:
    """``[Content_Types].xml``: per-part overrides and per-extension defaults."""

    def __init__(self, overrides: Optional[Dict[str, str]] = None, defaults: Optional[Dict[str, str]] = None):
        self.overrides = {normalize_part_name(k).lower(): v for k, v in (overrides or {}).items()}
        self.defaults = {k.lower(): v for k, v in (defaults or {}).items()}

    @classmethod
    def from_xml(cls, data: Optional[bytes]) -> "ContentTypeTable":
        if not data:
            return cls()
        root = parse_xml(data, CONTENT_TYPES_PART)
        overrides = {}
        defaults = {}
        for node in root.iter(f"{{{CT_NS}}}Override"):
            part_name = node.get("PartName", "")
            content_type = node.get("ContentType", "")
            if part_name and content_type:
                overrides[part_name] = content_type
        for node in root.iter(f"{{{CT_NS}}}Default"):
            extension = node.get("Extension", "")
            content_type = node.get("ContentType", "")
            if extension and content_type:
                defaults[extension] = content_type
        return cls(overrides, defaults)

    def content_type_for(self, part_name: str) -> Optional[str]:
        """Return the declared content type, falling back to the extension guess."""
        key = normalize_part_name(part_name).lower()
        if key in self.overrides:
            return self.overrides[key]
        extension = posixpath.splitext(key)[1].lstrip(".")
        if extension in self.defaults:
            return self.defaults[extension]
        guessed, _ = mimetypes.guess_type(key)
        return guessed


class PackageReader:
    """
    Reads and manages DOCX package contents.

    Archive access is serialized with a lock, so auxiliary parts can be
    fetched from worker threads. Decoded parts and relationship tables are
    cached for the lifetime of the reader.
    """

    def __init__(self, source: Union[bytes, bytearray, str, Path, io.BytesIO]):
        """
        Initialize package reader.

        Args:
            source: Package bytes, a file-like object or a path to a ``.docx`` file

        Raises:
            PackageError: If the source is not a readable ZIP container
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise PackageError("DOCX file not found", details=str(path))
            data = path.read_bytes()
        elif isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif hasattr(source, "read"):
            data = source.read()
        else:
            raise PackageError("Unsupported package source", details=type(source).__name__)

        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data), "r")
        except zipfile.BadZipFile as exc:
            raise PackageError("Not a ZIP package", details=str(exc)) from exc

        self._lock = threading.Lock()
        self._names = {normalize_part_name(name).lower(): name for name in self._zip.namelist() if not name.endswith("/")}
        self._bytes_cache: Dict[str, bytes] = {}
        self._rels_cache: Dict[str, RelationshipTable] = {}
        self._content_types: Optional[ContentTypeTable] = None
        self._main_document_part: Optional[str] = None
        logger.debug(f"Opened package with {len(self._names)} parts")

    @property
    def part_names(self) -> List[str]:
        return [normalize_part_name(name) for name in self._names.values()]

    def has_part(self, part_name: str) -> bool:
        return normalize_part_name(part_name).lower() in self._names

    def read_part(self, part_name: str) -> Optional[bytes]:
        """Return raw part bytes, or ``None`` when the part does not exist."""
        key = normalize_part_name(part_name).lower()
        archive_name = self._names.get(key)
        if archive_name is None:
            return None
        with self._lock:
            cached = self._bytes_cache.get(key)
            if cached is None:
                try:
                    cached = self._zip.read(archive_name)
                except (zipfile.BadZipFile, KeyError, OSError) as exc:
                    raise PackageError(f"Cannot read part {part_name}", details=str(exc)) from exc
                self._bytes_cache[key] = cached
        return cached

    def require_part(self, part_name: str) -> bytes:
        data = self.read_part(part_name)
        if data is None:
            raise PartNotFoundError("Part not found", details=part_name)
        return data

    def read_text(self, part_name: str) -> Optional[str]:
        data = self.read_part(part_name)
        if data is None:
            return None
        return data.decode("utf-8-sig")

    def read_xml(self, part_name: str):
        """Parse a part as XML; ``None`` when the part is absent."""
        data = self.read_part(part_name)
        if data is None:
            return None
        return parse_xml(data, part_name)

    @property
    def content_types(self) -> ContentTypeTable:
        if self._content_types is None:
            self._content_types = ContentTypeTable.from_xml(self.read_part(CONTENT_TYPES_PART))
        return self._content_types

    def relationships_for(self, part_name: str) -> RelationshipTable:
        """Return the relationship table declared by ``part_name`` (``""`` for the package root)."""
        source = normalize_part_name(part_name)
        table = self._rels_cache.get(source)
        if table is None:
            table = RelationshipTable.from_xml(source, self.read_part(rels_part_for(source)))
            self._rels_cache[source] = table
        return table

    @property
    def main_document_part(self) -> str:
        """
        Locate the main document part via the package-root relationships.

        Raises:
            MissingMainDocumentError: If no main document part exists
        """
        if self._main_document_part is None:
            candidate = None
            rel = self.relationships_for("").first_of_type(RT_OFFICE_DOCUMENT)
            if rel is not None:
                candidate = rel.resolve_target("")
            if candidate is None or not self.has_part(candidate):
                candidate = DEFAULT_MAIN_DOCUMENT
            if not self.has_part(candidate):
                raise MissingMainDocumentError("Package has no main document part")
            self._main_document_part = normalize_part_name(candidate)
        return self._main_document_part

    def detect_type(self) -> str:
        """
        Classify the package by the target of its ``officeDocument`` relationship.

        Returns:
            ``"docx"``, ``"xlsx"`` or ``"pptx"`` for the known main parts,
            ``"opc"`` for any other package with content types and root
            relationships, ``"unknown"`` otherwise
        """
        try:
            rel = self.relationships_for("").first_of_type(RT_OFFICE_DOCUMENT)
        except XmlParseError as exc:
            logger.debug(f"Root relationships are unreadable: {exc}")
            return "unknown"
        if rel is not None and not rel.is_external:
            target = rel.resolve_target("")
            kind = OFFICE_DOCUMENT_KINDS.get(target.lower())
            if kind:
                return kind
            return "opc"
        if self.has_part(CONTENT_TYPES_PART) and self.has_part(rels_part_for("")):
            return "opc"
        return "unknown"

    def close(self) -> None:
        with self._lock:
            self._zip.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
