"""
Per-conversion state.

:func:`load_context` fetches every auxiliary part the walk may need
(styles, numbering, notes, comments, headers and footers with their
relationships) as one scatter-gather on a thread pool, then hands the
renderer a :class:`ConversionContext` keyed by part name. The context is
owned by a single conversion call.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config import HtmlConversionSettings
from ..exceptions import XmlParseError
from ..models import MISSING_PART, ConversionWarning
from ..parser.notes_parser import NoteTable, parse_notes
from ..parser.numbering_parser import parse_numbering
from ..parser.package_reader import ContentTypeTable, PackageReader
from ..parser.relationships import (
    RT_COMMENTS,
    RT_ENDNOTES,
    RT_FOOTER,
    RT_FOOTNOTES,
    RT_HEADER,
    RT_NUMBERING,
    RT_STYLES,
    RelationshipTable,
)
from ..preprocess import accept_revisions_tree, simplify_markup_tree
from ..renderers.css import CssRegistry
from ..styles.style_resolver import StyleResolver
from .numbering import ListCounters, NumberingResolver

logger = logging.getLogger(__name__)

MAX_FETCH_WORKERS = 4

# relationship type -> conventional part path used when no relationship exists
AUXILIARY_PARTS = {
    "styles": (RT_STYLES, "word/styles.xml"),
    "numbering": (RT_NUMBERING, "word/numbering.xml"),
    "footnotes": (RT_FOOTNOTES, "word/footnotes.xml"),
    "endnotes": (RT_ENDNOTES, "word/endnotes.xml"),
    "comments": (RT_COMMENTS, "word/comments.xml"),
}


@dataclass
class LoadedPart:
    name: str
    root: Any
    relationships: RelationshipTable


@dataclass
class ConversionContext:
    """Everything one WML to HTML conversion needs, keyed by part name."""

    settings: HtmlConversionSettings
    package: PackageReader
    main_part: str
    main_root: Any
    content_types: ContentTypeTable
    parts: Dict[str, LoadedPart]
    styles: StyleResolver
    numbering: NumberingResolver
    numbering_part_present: bool
    footnotes: NoteTable
    endnotes: NoteTable
    comments: NoteTable
    css: CssRegistry = field(default_factory=CssRegistry)
    counters: ListCounters = field(default_factory=ListCounters)
    warnings: List[ConversionWarning] = field(default_factory=list)
    header_footer_cache: Dict[str, Any] = field(default_factory=dict)
    note_numbers: Dict[Tuple[str, str], int] = field(default_factory=dict)
    note_order: Dict[str, List[str]] = field(default_factory=dict)
    _warned: Set[Tuple[str, str]] = field(default_factory=set)

    def warn(self, code: str, message: str, part: Optional[str] = None, once_key: Optional[str] = None) -> None:
        """Record a structured warning; ``once_key`` suppresses repeats of the same code."""
        if once_key is not None:
            key = (code, once_key)
            if key in self._warned:
                return
            self._warned.add(key)
        warning = ConversionWarning(code, message, f"/{part}" if part and not part.startswith("/") else part)
        logger.debug(f"{warning.code}: {warning.message} ({warning.part})")
        self.warnings.append(warning)

    def relationships_for(self, part_name: str) -> RelationshipTable:
        loaded = self.parts.get(part_name)
        if loaded is not None:
            return loaded.relationships
        return self.package.relationships_for(part_name)

    def note_number(self, kind: str, note_id: str) -> int:
        key = (kind, note_id)
        if key not in self.note_numbers:
            order = self.note_order.setdefault(kind, [])
            order.append(note_id)
            self.note_numbers[key] = len(order)
        return self.note_numbers[key]


def preprocess_root(root, settings: HtmlConversionSettings):
    if root is None:
        return None
    if settings.preprocess.accept_revisions:
        root = accept_revisions_tree(root)
    if settings.preprocess.simplify_markup:
        root = simplify_markup_tree(root, settings.preprocess.simplifier)
    return root


def _locate(relationships: RelationshipTable, package: PackageReader, rel_type: str, fallback: str) -> Tuple[Optional[str], bool]:
    """Return ``(part name, referenced by a relationship)``."""
    rel = relationships.first_of_type(rel_type)
    if rel is not None and not rel.is_external:
        return rel.resolve_target(relationships.source_part), True
    if package.has_part(fallback):
        return fallback, False
    return None, False


def _fetch(package: PackageReader, part_name: str) -> LoadedPart:
    root = package.read_xml(part_name)
    return LoadedPart(part_name, root, package.relationships_for(part_name))


def load_context(package: PackageReader, settings: HtmlConversionSettings) -> ConversionContext:
    """
    Build the conversion context for a package.

    Args:
        package: Open package reader
        settings: Conversion settings

    Returns:
        Context with every auxiliary part parsed and preprocessed

    Raises:
        MissingMainDocumentError: If the package has no main document part
        XmlParseError: If the main document part is malformed
    """
    main_part = package.main_document_part
    main_root = preprocess_root(package.read_xml(main_part), settings)
    main_rels = package.relationships_for(main_part)
    warnings: List[ConversionWarning] = []

    wanted: Dict[str, str] = {}
    for key, (rel_type, fallback) in AUXILIARY_PARTS.items():
        if key == "comments" and not settings.include_comments:
            continue
        name, referenced = _locate(main_rels, package, rel_type, fallback)
        if name is None:
            continue
        if referenced and not package.has_part(name):
            warnings.append(ConversionWarning(MISSING_PART, f"Referenced {key} part {name} is missing", f"/{main_part}"))
            continue
        wanted[key] = name
    for rel in main_rels:
        if rel.type in (RT_HEADER, RT_FOOTER) and not rel.is_external:
            name = rel.resolve_target(main_part)
            if package.has_part(name):
                wanted[f"rel:{rel.id}"] = name

    parts: Dict[str, LoadedPart] = {}
    with ThreadPoolExecutor(max_workers=MAX_FETCH_WORKERS) as executor:
        futures = {key: executor.submit(_fetch, package, name) for key, name in wanted.items()}
        for key, future in futures.items():
            name = wanted[key]
            try:
                loaded = future.result()
            except XmlParseError as exc:
                warnings.append(ConversionWarning(MISSING_PART, f"Part {name} could not be parsed: {exc}", f"/{name}"))
                continue
            parts[name] = loaded
    logger.debug(f"Fetched {len(parts)} auxiliary part(s) for {main_part}")

    for loaded in parts.values():
        loaded.root = preprocess_root(loaded.root, settings)
    parts[main_part] = LoadedPart(main_part, main_root, main_rels)

    def root_of(key: str):
        name = wanted.get(key)
        loaded = parts.get(name) if name else None
        return loaded.root if loaded is not None else None

    context = ConversionContext(
        settings=settings,
        package=package,
        main_part=main_part,
        main_root=main_root,
        content_types=package.content_types,
        parts=parts,
        styles=StyleResolver(root_of("styles")),
        numbering=NumberingResolver(parse_numbering(root_of("numbering"))),
        numbering_part_present=root_of("numbering") is not None,
        footnotes=parse_notes(root_of("footnotes"), "footnote", wanted.get("footnotes")),
        endnotes=parse_notes(root_of("endnotes"), "endnote", wanted.get("endnotes")),
        comments=parse_notes(root_of("comments"), "comment", wanted.get("comments")),
    )
    context.warnings.extend(warnings)
    return context
