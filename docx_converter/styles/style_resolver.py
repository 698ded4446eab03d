"""
Style resolver for DOCX documents.

Resolves a style id to merged formatting by walking the ``w:basedOn`` chain
of ``word/styles.xml``. Results are cached per (kind, style id) for the
lifetime of the resolver.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..utils.xml_utils import first_child_w, w, w_attr, w_val
from .properties import parse_paragraph_properties, parse_run_properties, parse_table_properties

logger = logging.getLogger(__name__)

STYLE_KINDS = ("paragraph", "character", "table", "numbering")


@dataclass(frozen=True)
class StyleRecord:
    """A ``w:style`` entry with its raw property subtrees."""

    style_id: str
    kind: str
    parent_id: Optional[str] = None
    name: Optional[str] = None
    is_default: bool = False
    paragraph_properties: Any = None
    run_properties: Any = None
    table_properties: Any = None


@dataclass(frozen=True)
class ResolvedStyle:
    """Formatting of a style after its inheritance chain has been merged."""

    style_id: str
    kind: str
    name: Optional[str] = None
    paragraph: Dict[str, Any] = field(default_factory=dict)
    run: Dict[str, Any] = field(default_factory=dict)
    table: Dict[str, Any] = field(default_factory=dict)
    chain: Tuple[str, ...] = ()


def parse_style_records(root) -> Dict[str, StyleRecord]:
    """Collect ``w:style`` records from a ``w:styles`` root."""
    records: Dict[str, StyleRecord] = {}
    if root is None:
        return records
    for node in root.iter(w("style")):
        style_id = w_attr(node, "styleId")
        if not style_id:
            continue
        records[style_id] = StyleRecord(
            style_id=style_id,
            kind=w_attr(node, "type") or "paragraph",
            parent_id=w_val(first_child_w(node, "basedOn")),
            name=w_val(first_child_w(node, "name")),
            is_default=(w_attr(node, "default") or "").lower() in ("1", "true", "on"),
            paragraph_properties=first_child_w(node, "pPr"),
            run_properties=first_child_w(node, "rPr"),
            table_properties=first_child_w(node, "tblPr"),
        )
    return records


class StyleResolver:
    """
    Resolves styles and their inheritance.

    Provides:
    - Chain resolution with a visited-set guard (cycles degrade to the prefix
      collected so far)
    - Field-by-field merging, most specific style last
    - Effective paragraph/run formatting layered over document defaults
    """

    def __init__(self, styles_root=None):
        """
        Initialize style resolver.

        Args:
            styles_root: Parsed ``w:styles`` element, or ``None`` for an empty sheet
        """
        self.records: Dict[str, StyleRecord] = parse_style_records(styles_root)
        self.style_cache: Dict[Tuple[str, str], Optional[ResolvedStyle]] = {}
        self.default_run_properties: Dict[str, Any] = {}
        self.default_paragraph_properties: Dict[str, Any] = {}
        self._load_doc_defaults(styles_root)
        self.default_paragraph_style_id: Optional[str] = self._find_default("paragraph")
        self.default_table_style_id: Optional[str] = self._find_default("table")
        logger.debug(f"Loaded {len(self.records)} style records")

    def _load_doc_defaults(self, styles_root) -> None:
        if styles_root is None:
            return
        defaults = first_child_w(styles_root, "docDefaults")
        if defaults is None:
            return
        rpr_default = first_child_w(defaults, "rPrDefault")
        if rpr_default is not None:
            self.default_run_properties = parse_run_properties(first_child_w(rpr_default, "rPr"))
        ppr_default = first_child_w(defaults, "pPrDefault")
        if ppr_default is not None:
            self.default_paragraph_properties = parse_paragraph_properties(first_child_w(ppr_default, "pPr"))

    def _find_default(self, kind: str) -> Optional[str]:
        for record in self.records.values():
            if record.kind == kind and record.is_default:
                return record.style_id
        return None

    def get_record(self, style_id: Optional[str]) -> Optional[StyleRecord]:
        if not style_id:
            return None
        return self.records.get(style_id)

    def _collect_chain(self, style_id: str) -> List[StyleRecord]:
        chain: List[StyleRecord] = []
        seen = set()
        current: Optional[str] = style_id
        while current:
            if current in seen:
                logger.warning(f"Style inheritance cycle at '{current}' while resolving '{style_id}'")
                break
            record = self.records.get(current)
            if record is None:
                break
            seen.add(current)
            chain.append(record)
            current = record.parent_id
        return chain

    def resolve(self, kind: str, style_id: Optional[str]) -> Optional[ResolvedStyle]:
        """
        Resolve a style to its merged formatting.

        Args:
            kind: ``paragraph``, ``character`` or ``table``
            style_id: Style id to resolve

        Returns:
            Resolved style, or ``None`` for unknown ids or a kind mismatch
        """
        if not style_id:
            return None
        key = (kind, style_id)
        if key in self.style_cache:
            return self.style_cache[key]

        record = self.records.get(style_id)
        if record is None or record.kind != kind:
            self.style_cache[key] = None
            return None

        chain = self._collect_chain(style_id)
        paragraph: Dict[str, Any] = {}
        run: Dict[str, Any] = {}
        table: Dict[str, Any] = {}
        for item in reversed(chain):
            paragraph.update(parse_paragraph_properties(item.paragraph_properties))
            run.update(parse_run_properties(item.run_properties))
            table.update(parse_table_properties(item.table_properties))
        paragraph.pop("style_id", None)
        run.pop("style_id", None)
        table.pop("style_id", None)

        resolved = ResolvedStyle(
            style_id=style_id,
            kind=kind,
            name=record.name,
            paragraph=paragraph,
            run=run,
            table=table,
            chain=tuple(item.style_id for item in chain),
        )
        self.style_cache[key] = resolved
        return resolved

    def paragraph_style_id(self, direct: Dict[str, Any]) -> Optional[str]:
        """Return the explicit paragraph style or the sheet's default paragraph style."""
        return direct.get("style_id") or self.default_paragraph_style_id

    def effective_paragraph(self, style_id: Optional[str], direct: Dict[str, Any]) -> Dict[str, Any]:
        """Direct paragraph properties overridden onto style and document defaults."""
        merged = dict(self.default_paragraph_properties)
        style = self.resolve("paragraph", style_id)
        if style is not None:
            merged.update(style.paragraph)
        merged.update(direct)
        return merged

    def style_run(self, paragraph_style_id: Optional[str], character_style_id: Optional[str]) -> Dict[str, Any]:
        """Run formatting contributed by styles only (no document defaults, no direct formatting)."""
        merged: Dict[str, Any] = {}
        paragraph_style = self.resolve("paragraph", paragraph_style_id)
        if paragraph_style is not None:
            merged.update(paragraph_style.run)
        character_style = self.resolve("character", character_style_id)
        if character_style is not None:
            merged.update(character_style.run)
        return merged

    def effective_run(
        self,
        paragraph_style_id: Optional[str],
        character_style_id: Optional[str],
        direct: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Direct run properties over character style over paragraph style over document defaults."""
        merged = dict(self.default_run_properties)
        merged.update(self.style_run(paragraph_style_id, character_style_id))
        merged.update(direct)
        return merged
