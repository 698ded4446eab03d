"""Section splitting for DOCX document bodies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models import AMBIGUOUS_HEADER_FOOTER, ConversionWarning
from ..utils.xml_utils import R_NS, element_children, first_child_w, is_w, w, w_attr

logger = logging.getLogger(__name__)

REFERENCE_PREFERENCE = ("default", "first", "even")


@dataclass
class Section:
    """A run of body content sharing one ``w:sectPr``.

    ``properties`` is ``None`` only for an implicit trailing section.
    """

    blocks: List[Any] = field(default_factory=list)
    properties: Any = None
    header_id: Optional[str] = None
    footer_id: Optional[str] = None
    header_inherited: bool = False
    footer_inherited: bool = False


def collect_references(sect_pr, kind: str) -> Dict[str, str]:
    """Map reference type (``default``/``first``/``even``) to relationship id."""
    refs: Dict[str, str] = {}
    if sect_pr is None:
        return refs
    for node in sect_pr.findall(w(f"{kind}Reference")):
        rel_id = node.get(f"{{{R_NS}}}id")
        if rel_id:
            refs.setdefault(w_attr(node, "type") or "default", rel_id)
    return refs


def pick_reference(refs: Dict[str, str]) -> Optional[str]:
    for ref_type in REFERENCE_PREFERENCE:
        if ref_type in refs:
            return refs[ref_type]
    return None


def _section_break(node):
    if not is_w(node, "p"):
        return None
    ppr = first_child_w(node, "pPr")
    return first_child_w(ppr, "sectPr") if ppr is not None else None


def split_sections(
    body,
    warnings: Optional[List[ConversionWarning]] = None,
    part_name: Optional[str] = None,
) -> List[Section]:
    """
    Partition a ``w:body`` into sections.

    A boundary is a ``w:sectPr`` directly under the body or inside a
    paragraph's properties; the boundary paragraph belongs to the section it
    closes. Content after the last boundary forms an implicit section with
    no properties. A section without header/footer references reuses the
    previous section's resolved ones.

    Args:
        body: ``w:body`` element (``None`` yields no sections)
        warnings: Optional list receiving header/footer fallback warnings
        part_name: Part path recorded on warnings

    Returns:
        Ordered list of sections
    """
    if body is None:
        return []

    sections: List[Section] = []
    current: List[Any] = []
    for child in element_children(body):
        if is_w(child, "sectPr"):
            sections.append(Section(blocks=current, properties=child))
            current = []
            continue
        current.append(child)
        sect_pr = _section_break(child)
        if sect_pr is not None:
            sections.append(Section(blocks=current, properties=sect_pr))
            current = []
    if current or not sections:
        sections.append(Section(blocks=current, properties=None))

    previous: Optional[Section] = None
    for index, section in enumerate(sections):
        for kind in ("header", "footer"):
            refs = collect_references(section.properties, kind)
            chosen = pick_reference(refs)
            if chosen is not None and "default" not in refs and warnings is not None:
                warnings.append(
                    ConversionWarning(
                        AMBIGUOUS_HEADER_FOOTER,
                        f"Section {index + 1} has no default {kind}; using the "
                        f"'{next(t for t in REFERENCE_PREFERENCE if t in refs)}' {kind}",
                        part_name,
                    )
                )
            inherited = False
            if chosen is None and previous is not None:
                chosen = getattr(previous, f"{kind}_id")
                inherited = chosen is not None
            setattr(section, f"{kind}_id", chosen)
            setattr(section, f"{kind}_inherited", inherited)
        previous = section

    logger.debug(f"Split body into {len(sections)} section(s)")
    return sections
