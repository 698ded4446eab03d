"""
Numbering parser for DOCX documents.

Reads ``word/numbering.xml`` into abstract definitions (``w:abstractNum``)
and numbering instances (``w:num``) with their level overrides.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..utils.xml_utils import first_child_w, to_int, w, w_attr, w_val

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelDefinition:
    """One ``w:lvl`` entry."""

    ilvl: int
    format: str = "decimal"
    level_text: str = "%1."
    start: int = 1


@dataclass
class NumberingInstance:
    """A ``w:num`` with its abstract definition id and per-level overrides."""

    num_id: str
    abstract_num_id: Optional[str]
    start_overrides: Dict[int, int] = field(default_factory=dict)
    level_overrides: Dict[int, LevelDefinition] = field(default_factory=dict)


@dataclass
class NumberingDefinitions:
    abstract_numberings: Dict[str, Dict[int, LevelDefinition]] = field(default_factory=dict)
    numbering_instances: Dict[str, NumberingInstance] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.numbering_instances)


def parse_level(lvl) -> LevelDefinition:
    ilvl = to_int(w_attr(lvl, "ilvl"), 0)
    start = to_int(w_val(first_child_w(lvl, "start")), 1)
    num_fmt = w_val(first_child_w(lvl, "numFmt")) or "decimal"
    level_text = w_val(first_child_w(lvl, "lvlText"))
    if level_text is None:
        level_text = f"%{ilvl + 1}."
    return LevelDefinition(ilvl=ilvl, format=num_fmt, level_text=level_text, start=start)


def parse_numbering(root) -> NumberingDefinitions:
    """
    Parse numbering definitions from a ``w:numbering`` root.

    Args:
        root: Parsed numbering part, or ``None``

    Returns:
        Numbering definitions (empty when ``root`` is ``None``)
    """
    definitions = NumberingDefinitions()
    if root is None:
        return definitions

    for abstract in root.iter(w("abstractNum")):
        abstract_id = w_attr(abstract, "abstractNumId")
        if abstract_id is None:
            continue
        levels = {}
        for lvl in abstract.findall(w("lvl")):
            level = parse_level(lvl)
            levels[level.ilvl] = level
        definitions.abstract_numberings[abstract_id] = levels

    for num in root.iter(w("num")):
        num_id = w_attr(num, "numId")
        if num_id is None:
            continue
        instance = NumberingInstance(
            num_id=num_id,
            abstract_num_id=w_val(first_child_w(num, "abstractNumId")),
        )
        for override in num.findall(w("lvlOverride")):
            ilvl = to_int(w_attr(override, "ilvl"), 0)
            start_override = first_child_w(override, "startOverride")
            if start_override is not None:
                instance.start_overrides[ilvl] = to_int(w_val(start_override), 1)
            lvl = first_child_w(override, "lvl")
            if lvl is not None:
                level = parse_level(lvl)
                instance.level_overrides[ilvl] = LevelDefinition(
                    ilvl=ilvl, format=level.format, level_text=level.level_text, start=level.start
                )
        definitions.numbering_instances[num_id] = instance

    logger.debug(
        f"Parsed {len(definitions.abstract_numberings)} abstract numberings and "
        f"{len(definitions.numbering_instances)} numbering instances"
    )
    return definitions
