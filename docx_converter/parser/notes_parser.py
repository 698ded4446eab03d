"""
Footnote, endnote and comment parts.

Each part is a flat list of block containers keyed by ``w:id``. Separator
and continuation-separator notes are skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..utils.xml_utils import w, w_attr

logger = logging.getLogger(__name__)

_SKIPPED_NOTE_TYPES = {"separator", "continuationSeparator", "continuationNotice"}


@dataclass
class NoteTable:
    """Notes or comments of one kind, keyed by id."""

    kind: str
    part_name: Optional[str] = None
    entries: Dict[str, object] = field(default_factory=dict)

    def get(self, note_id: Optional[str]):
        if note_id is None:
            return None
        return self.entries.get(note_id)

    def __contains__(self, note_id: str) -> bool:
        return note_id in self.entries


def parse_notes(root, kind: str, part_name: Optional[str] = None) -> NoteTable:
    """
    Collect note bodies from a notes/comments part.

    Args:
        root: Parsed ``w:footnotes``, ``w:endnotes`` or ``w:comments`` root
        kind: ``footnote``, ``endnote`` or ``comment``
        part_name: Source part path, recorded for warnings

    Returns:
        Table of note elements keyed by ``w:id``
    """
    table = NoteTable(kind=kind, part_name=part_name)
    if root is None:
        return table
    for node in root.iter(w(kind)):
        if w_attr(node, "type") in _SKIPPED_NOTE_TYPES:
            continue
        note_id = w_attr(node, "id")
        if note_id is not None:
            table.entries[note_id] = node
    logger.debug(f"Parsed {len(table.entries)} {kind}(s) from {part_name}")
    return table
