"""
Filter-and-copy tree rewriting.

A rule inspects one element and returns ``None`` to keep it (its children are
visited), or one of three outcomes:

* :class:`Replace` - put another node in its place,
* :class:`Delete` - drop it,
* :class:`Splice` - put the transformed children of ``source`` in its place.

Rules run on a deep copy; the input tree is never modified.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union


@dataclass(frozen=True)
class Replace:
    node: Any


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class Splice:
    source: Any


Outcome = Union[Replace, Delete, Splice, None]
Rule = Callable[[Any], Outcome]


def _apply(rule: Rule, element) -> List[Any]:
    outcome = rule(element)
    if outcome is None:
        transform_children(rule, element)
        return [element]
    if isinstance(outcome, Delete):
        return []
    if isinstance(outcome, Replace):
        return [outcome.node]
    if isinstance(outcome, Splice):
        nodes: List[Any] = []
        for child in list(outcome.source):
            if isinstance(child.tag, str):
                nodes.extend(_apply(rule, child))
        return nodes
    raise TypeError(f"Unsupported transform outcome: {outcome!r}")


def _keep_tail(parent, index: int, tail: Optional[str]) -> None:
    if not tail:
        return
    if index > 0:
        previous = parent[index - 1]
        previous.tail = (previous.tail or "") + tail
    else:
        parent.text = (parent.text or "") + tail


def transform_children(rule: Rule, parent) -> None:
    """Apply ``rule`` to every element child of ``parent`` in place."""
    for child in list(parent):
        if not isinstance(child.tag, str):
            continue
        replacement = _apply(rule, child)
        if len(replacement) == 1 and replacement[0] is child:
            continue
        index = parent.index(child)
        tail = child.tail
        parent.remove(child)
        for offset, node in enumerate(replacement):
            parent.insert(index + offset, node)
        _keep_tail(parent, index + len(replacement), tail)


def transform_tree(root, rule: Rule):
    """Return a transformed deep copy of ``root``; the root element itself is always kept."""
    result = copy.deepcopy(root)
    transform_children(rule, result)
    return result
