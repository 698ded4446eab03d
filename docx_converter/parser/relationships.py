"""
Relationship tables for package parts.

A ``.rels`` part maps relationship ids referenced from markup (``r:id``,
``r:embed``) to target parts or external URIs.
"""

import logging
import posixpath
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from ..utils.xml_utils import PKG_REL_NS, parse_xml

logger = logging.getLogger(__name__)

RT_BASE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
RT_OFFICE_DOCUMENT = f"{RT_BASE}/officeDocument"
RT_STYLES = f"{RT_BASE}/styles"
RT_NUMBERING = f"{RT_BASE}/numbering"
RT_FOOTNOTES = f"{RT_BASE}/footnotes"
RT_ENDNOTES = f"{RT_BASE}/endnotes"
RT_COMMENTS = f"{RT_BASE}/comments"
RT_HEADER = f"{RT_BASE}/header"
RT_FOOTER = f"{RT_BASE}/footer"
RT_IMAGE = f"{RT_BASE}/image"
RT_HYPERLINK = f"{RT_BASE}/hyperlink"


def rels_part_for(part_name: str) -> str:
    """
    Return the relationship part path for a source part.

    ``word/document.xml`` -> ``word/_rels/document.xml.rels``; the package
    root (``""``) -> ``_rels/.rels``.
    """
    part_name = part_name.lstrip("/")
    directory, file_name = posixpath.split(part_name)
    if directory:
        return f"{directory}/_rels/{file_name}.rels"
    return f"_rels/{file_name}.rels"


@dataclass(frozen=True)
class Relationship:
    """One ``<Relationship>`` entry."""

    id: str
    type: str
    target: str
    target_mode: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return (self.target_mode or "").lower() == "external"

    @property
    def type_name(self) -> str:
        return self.type.rsplit("/", 1)[-1]

    def resolve_target(self, source_part: str) -> str:
        """Resolve the target to an absolute part path (without a leading slash)."""
        if self.is_external:
            return self.target
        if self.target.startswith("/"):
            return posixpath.normpath(self.target).lstrip("/")
        base = posixpath.dirname(source_part.lstrip("/"))
        return posixpath.normpath(posixpath.join(base, self.target)).lstrip("/")


class RelationshipTable:
    """Relationships declared by one source part."""

    def __init__(self, source_part: str, relationships: Optional[List[Relationship]] = None):
        self.source_part = source_part.lstrip("/")
        self._by_id: Dict[str, Relationship] = {}
        for rel in relationships or []:
            self._by_id[rel.id] = rel

    @classmethod
    def from_xml(cls, source_part: str, data: Optional[bytes]) -> "RelationshipTable":
        if not data:
            return cls(source_part)
        root = parse_xml(data, rels_part_for(source_part))
        relationships = []
        for node in root.iter(f"{{{PKG_REL_NS}}}Relationship"):
            rel_id = node.get("Id")
            target = node.get("Target")
            if not rel_id or target is None:
                continue
            relationships.append(
                Relationship(
                    id=rel_id,
                    type=node.get("Type", ""),
                    target=target,
                    target_mode=node.get("TargetMode"),
                )
            )
        logger.debug(f"Parsed {len(relationships)} relationships for {source_part or '/'}")
        return cls(source_part, relationships)

    def __iter__(self) -> Iterator[Relationship]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, rel_id: str) -> bool:
        return rel_id in self._by_id

    def get(self, rel_id: Optional[str]) -> Optional[Relationship]:
        if not rel_id:
            return None
        return self._by_id.get(rel_id)

    def first_of_type(self, rel_type: str) -> Optional[Relationship]:
        for rel in self._by_id.values():
            if rel.type == rel_type or rel.type_name == rel_type.rsplit("/", 1)[-1]:
                return rel
        return None

    def target_part(self, rel_id: Optional[str]) -> Optional[str]:
        rel = self.get(rel_id)
        if rel is None or rel.is_external:
            return None
        return rel.resolve_target(self.source_part)
