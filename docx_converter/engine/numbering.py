"""
List numbering resolution and the open-list stack used while rendering.

:class:`NumberingResolver` maps ``(numId, ilvl)`` to a level definition and
an HTML list format. :class:`ListStack` tracks the lists opened inside one
block container; running counters live in a :class:`ListCounters` shared by
the whole conversion so a list interrupted by other content resumes its
numbering.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Tuple

from lxml import etree

from ..parser.numbering_parser import LevelDefinition, NumberingDefinitions

logger = logging.getLogger(__name__)

# numFmt -> (list tag, HTML type hint)
FORMAT_MAP: Dict[str, Tuple[str, Optional[str]]] = {
    "bullet": ("ul", None),
    "none": ("ul", None),
    "decimal": ("ol", "1"),
    "decimalZero": ("ol", "1"),
    "lowerLetter": ("ol", "a"),
    "upperLetter": ("ol", "A"),
    "lowerRoman": ("ol", "i"),
    "upperRoman": ("ol", "I"),
}

_PLACEHOLDER = re.compile(r"%([1-9])")

_ROMAN = (
    (1000, "m"), (900, "cm"), (500, "d"), (400, "cd"), (100, "c"), (90, "xc"),
    (50, "l"), (40, "xl"), (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"),
)


@dataclass(frozen=True)
class ListFormat:
    """HTML rendering of a numbering level."""

    tag: str
    type_hint: Optional[str]
    num_format: str
    level_text: str
    start: int
    recognized: bool = True


def to_roman(value: int) -> str:
    if value <= 0:
        return str(value)
    result = []
    for number, numeral in _ROMAN:
        while value >= number:
            result.append(numeral)
            value -= number
    return "".join(result)


def to_letters(value: int) -> str:
    if value <= 0:
        return str(value)
    letters = ""
    while value > 0:
        value, remainder = divmod(value - 1, 26)
        letters = chr(ord("a") + remainder) + letters
    return letters


def format_counter(counter: int, num_format: str) -> str:
    """Format one counter value in a WML number format."""
    if num_format == "lowerRoman":
        return to_roman(counter)
    if num_format == "upperRoman":
        return to_roman(counter).upper()
    if num_format == "lowerLetter":
        return to_letters(counter)
    if num_format == "upperLetter":
        return to_letters(counter).upper()
    if num_format == "decimalZero":
        return f"{counter:02d}"
    if num_format in ("bullet", "none"):
        return ""
    return str(counter)


def default_list_item_text(level_text: str, counter: int, num_format: str) -> str:
    """Marker text for a list item: ``%N`` placeholders replaced by the counter."""
    if num_format == "bullet":
        return level_text
    return _PLACEHOLDER.sub(lambda match: format_counter(counter, num_format), level_text)


class NumberingResolver:
    """Resolves numbering instances to level definitions and list formats."""

    def __init__(self, definitions: Optional[NumberingDefinitions] = None):
        self.definitions = definitions or NumberingDefinitions()

    @property
    def has_definitions(self) -> bool:
        return bool(self.definitions)

    def get_level(self, num_id: str, ilvl: int) -> Optional[LevelDefinition]:
        """
        Resolve ``(numId, ilvl)`` through the abstract definition.

        ``w:lvlOverride`` replaces the whole level when it carries a ``w:lvl``;
        ``w:startOverride`` replaces only the start value.
        """
        instance = self.definitions.numbering_instances.get(num_id)
        if instance is None:
            return None
        level = instance.level_overrides.get(ilvl)
        if level is None:
            levels = self.definitions.abstract_numberings.get(instance.abstract_num_id or "", {})
            level = levels.get(ilvl)
        if ilvl in instance.start_overrides:
            level = replace(level or LevelDefinition(ilvl=ilvl), start=instance.start_overrides[ilvl])
        return level

    def list_format(self, num_id: str, ilvl: int) -> ListFormat:
        """Return the HTML list format; unknown or missing metadata falls back to ordered/decimal."""
        level = self.get_level(num_id, ilvl)
        if level is None:
            return ListFormat("ol", "1", "decimal", f"%{ilvl + 1}.", 1)
        mapped = FORMAT_MAP.get(level.format)
        if mapped is None:
            return ListFormat("ol", "1", level.format, level.level_text, level.start, recognized=False)
        return ListFormat(mapped[0], mapped[1], level.format, level.level_text, level.start)


class ListCounters:
    """Running counters per ``(numId, ilvl)`` for one conversion."""

    def __init__(self):
        self._values: Dict[Tuple[str, int], int] = {}

    def next_value(self, num_id: str, ilvl: int, start: int) -> int:
        previous = self._values.get((num_id, ilvl))
        return start if previous is None else previous + 1

    def record(self, num_id: str, ilvl: int, value: int) -> None:
        self._values[(num_id, ilvl)] = value
        for key in [key for key in self._values if key[0] == num_id and key[1] > ilvl]:
            del self._values[key]

    def reset(self, num_id: str, ilvl: int) -> None:
        """Forget the counter of ``(num_id, ilvl)`` and its deeper levels."""
        for key in [key for key in self._values if key[0] == num_id and key[1] >= ilvl]:
            del self._values[key]

    def value(self, num_id: str, ilvl: int) -> Optional[int]:
        return self._values.get((num_id, ilvl))


@dataclass
class ListLevelState:
    list_id: str
    level: int
    counter: int
    format: ListFormat
    element: object
    item: object = None


@dataclass
class ListStack:
    """
    Open HTML lists of one block container.

    Deeper levels are always closed before a shallower item is added, and a
    depth jump opens intermediate lists so nesting stays well-formed.
    """

    container: object
    counters: ListCounters
    frames: List[ListLevelState] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return bool(self.frames)

    def close_all(self) -> None:
        self.frames.clear()

    def _open(self, list_id: str, level: int, fmt: ListFormat, counter: int) -> ListLevelState:
        if self.frames:
            parent_frame = self.frames[-1]
            if parent_frame.item is None:
                parent_frame.item = etree.SubElement(parent_frame.element, "li")
            parent = parent_frame.item
        else:
            parent = self.container
        element = etree.SubElement(parent, fmt.tag)
        if fmt.tag == "ol":
            if fmt.type_hint and fmt.type_hint != "1":
                element.set("type", fmt.type_hint)
            if counter != 1:
                element.set("start", str(counter))
        elif fmt.num_format == "none":
            element.set("style", "list-style-type:none")
        frame = ListLevelState(list_id, level, counter - 1, fmt, element)
        self.frames.append(frame)
        return frame

    def add_item(self, list_id: str, level: int, format_for: Callable[[int], ListFormat]) -> ListLevelState:
        """
        Append a list item for ``(list_id, level)`` and return its frame.

        Args:
            list_id: Numbering instance id
            level: Zero-based nesting level
            format_for: Callback returning the list format of a level of ``list_id``

        Returns:
            Frame whose ``item`` is the new ``li`` and ``counter`` its number
        """
        while self.frames and self.frames[-1].level > level:
            self.frames.pop()
        if self.frames and self.frames[-1].level == level:
            top = self.frames[-1]
            if top.list_id != list_id:
                # another list took over this depth
                self.frames.pop()
                self.counters.reset(list_id, level)
            elif top.format.tag != format_for(level).tag:
                self.frames.pop()
        while not self.frames or self.frames[-1].level < level:
            next_level = self.frames[-1].level + 1 if self.frames else 0
            if next_level < level:
                fmt = format_for(next_level)
                start = self.counters.value(list_id, next_level) or fmt.start
                frame = self._open(list_id, next_level, fmt, start)
                frame.counter = start
                frame.item = etree.SubElement(frame.element, "li")
                frame.item.set("style", "list-style-type:none")
                continue
            fmt = format_for(level)
            self._open(list_id, level, fmt, self.counters.next_value(list_id, level, fmt.start))

        top = self.frames[-1]
        top.counter += 1
        self.counters.record(list_id, level, top.counter)
        top.item = etree.SubElement(top.element, "li")
        return top

    def marker_values(self) -> Dict[int, Tuple[int, str]]:
        """Current counter and format per open level, for multi-level marker text."""
        return {frame.level: (frame.counter, frame.format.num_format) for frame in self.frames}


def expand_level_text(level_text: str, own_level: int, values: Dict[int, Tuple[int, str]]) -> str:
    """Substitute ancestor placeholders, leaving the item's own ``%N`` for the marker function."""

    def substitute(match):
        index = int(match.group(1)) - 1
        if index == own_level or index not in values:
            return match.group(0)
        counter, num_format = values[index]
        return format_counter(counter, num_format)

    return _PLACEHOLDER.sub(substitute, level_text)
