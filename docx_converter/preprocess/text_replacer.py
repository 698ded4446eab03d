"""Search and replace across run boundaries in WML paragraphs."""

import copy
import logging
from typing import List, Optional

from lxml import etree

from ..exceptions import InvalidArgumentError
from ..utils.xml_utils import XML_NS, element_children, first_child_w, is_w, w

logger = logging.getLogger(__name__)


def _make_text_run(template_run, rpr, text: str):
    run = etree.Element(template_run.tag, nsmap=template_run.nsmap)
    if rpr is not None:
        run.append(copy.deepcopy(rpr))
    node = etree.SubElement(run, w("t"))
    node.text = text
    if text != text.strip() or "  " in text:
        node.set(f"{{{XML_NS}}}space", "preserve")
    return run


def _split_run(run) -> List:
    """One run per character of text content and one per other run child."""
    rpr = first_child_w(run, "rPr")
    pieces = []
    for child in element_children(run):
        if child is rpr:
            continue
        if is_w(child, "t"):
            for char in child.text or "":
                pieces.append(_make_text_run(run, rpr, char))
        else:
            piece = etree.Element(run.tag, nsmap=run.nsmap)
            if rpr is not None:
                piece.append(copy.deepcopy(rpr))
            piece.append(copy.deepcopy(child))
            pieces.append(piece)
    return pieces


def _run_char(node) -> Optional[str]:
    if not is_w(node, "r"):
        return None
    children = [child for child in element_children(node) if not is_w(child, "rPr")]
    if len(children) != 1 or not is_w(children[0], "t"):
        return None
    text = children[0].text or ""
    return text if len(text) == 1 else None


def _rpr_key(run) -> bytes:
    rpr = first_child_w(run, "rPr")
    return etree.tostring(rpr, method="c14n") if rpr is not None else b""


def _text_only(run) -> bool:
    children = [child for child in element_children(run) if not is_w(child, "rPr")]
    return bool(children) and all(is_w(child, "t") for child in children)


def _consolidate(nodes: List) -> List:
    result: List = []
    for node in nodes:
        previous = result[-1] if result else None
        if (
            previous is not None
            and is_w(node, "r")
            and is_w(previous, "r")
            and _text_only(node)
            and _text_only(previous)
            and _rpr_key(node) == _rpr_key(previous)
        ):
            text = "".join(t.text or "" for t in previous.findall(w("t"))) + "".join(
                t.text or "" for t in node.findall(w("t"))
            )
            result[-1] = _make_text_run(previous, first_child_w(previous, "rPr"), text)
            continue
        result.append(node)
    return result


def _replace_in_paragraph(paragraph, search: str, replace: str, match_case: bool) -> bool:
    expanded = []
    for child in element_children(paragraph):
        if is_w(child, "r"):
            expanded.extend(_split_run(child))
        else:
            expanded.append(copy.deepcopy(child))

    chars = [_run_char(node) for node in expanded]
    size = len(search)

    def matches_at(start: int) -> bool:
        if start + size > len(expanded):
            return False
        for offset in range(size):
            char = chars[start + offset]
            if char is None:
                return False
            expected = search[offset]
            if not match_case:
                char, expected = char.upper(), expected.upper()
            if char != expected:
                return False
        return True

    output = []
    found = False
    index = 0
    while index < len(expanded):
        if not matches_at(index):
            output.append(expanded[index])
            index += 1
            continue
        first = expanded[index]
        output.append(_make_text_run(first, first_child_w(first, "rPr"), replace))
        found = True
        index += size

    if not found:
        return False
    for child in list(paragraph):
        if isinstance(child.tag, str):
            paragraph.remove(child)
    for node in _consolidate(output):
        paragraph.append(node)
    return True


def search_and_replace_tree(root, search: str, replace: str, match_case: bool = False):
    """
    Return a copy of a WML part with ``search`` replaced in every paragraph.

    Raises:
        InvalidArgumentError: If ``search`` is empty or ``replace`` is not a string
    """
    if not isinstance(search, str) or not search:
        raise InvalidArgumentError("search must be a non-empty string")
    if not isinstance(replace, str):
        raise InvalidArgumentError("replace must be a string")
    result = copy.deepcopy(root)
    count = 0
    for paragraph in list(result.iter(w("p"))):
        if _replace_in_paragraph(paragraph, search, replace, match_case):
            count += 1
    logger.debug(f"Replaced '{search}' in {count} paragraph(s)")
    return result
