"""Accept tracked revisions in WML parts."""

import logging

from ..utils.xml_utils import W_NS, first_child_w, is_w, local_name, namespace_of
from .transform import Delete, Splice, transform_tree

logger = logging.getLogger(__name__)

SPLICED = {"ins", "moveTo"}

DELETED = {
    "del",
    "moveFrom",
    "delText",
    "delInstrText",
    "moveFromRangeStart",
    "moveFromRangeEnd",
    "moveToRangeStart",
    "moveToRangeEnd",
    "customXmlInsRangeStart",
    "customXmlInsRangeEnd",
    "customXmlDelRangeStart",
    "customXmlDelRangeEnd",
    "customXmlMoveFromRangeStart",
    "customXmlMoveFromRangeEnd",
    "customXmlMoveToRangeStart",
    "customXmlMoveToRangeEnd",
    "rPrChange",
    "pPrChange",
    "sectPrChange",
    "tblPrChange",
    "tblPrExChange",
    "tblGridChange",
    "trPrChange",
    "tcPrChange",
    "numberingChange",
    "cellIns",
    "cellDel",
    "cellMerge",
}

REVISION_TAGS = SPLICED | DELETED


def _is_deleted_row(element) -> bool:
    if not is_w(element, "tr"):
        return False
    trpr = first_child_w(element, "trPr")
    return trpr is not None and first_child_w(trpr, "del") is not None


def _accept_rule(element):
    if namespace_of(element) != W_NS:
        return None
    name = local_name(element)
    if _is_deleted_row(element):
        return Delete()
    if name in SPLICED:
        return Splice(element)
    if name in DELETED:
        return Delete()
    return None


def accept_revisions_tree(root):
    """
    Return a copy of a WML part with all tracked revisions accepted.

    Insertions and move destinations are unwrapped into their parent;
    deletions, move sources, range markers and property-change records are
    dropped.
    """
    return transform_tree(root, _accept_rule)


def has_tracked_revisions_tree(root) -> bool:
    if root is None:
        return False
    for element in root.iter(f"{{{W_NS}}}*"):
        if local_name(element) in REVISION_TAGS:
            return True
    return False
