"""Markup simplification for WML parts."""

import logging

from lxml import etree

from ..config import MarkupSimplifierSettings
from ..utils.xml_utils import W_NS, XML_NS, first_child_w, is_w, local_name, namespace_of, w, w_attr
from .transform import Delete, Replace, Splice, transform_tree

logger = logging.getLogger(__name__)

_COMMENT_TAGS = {"commentRangeStart", "commentRangeEnd", "commentReference", "annotationRef"}
_RSID_ATTRS = {"rsidR", "rsidRPr", "rsidRDefault", "rsidP", "rsidDel", "rsidSect", "rsidTr"}


def _go_back_ids(root):
    ids = set()
    for node in root.iter(w("bookmarkStart")):
        if w_attr(node, "name") == "_GoBack":
            ids.add(w_attr(node, "id"))
    return ids


def simplify_markup_tree(root, settings: MarkupSimplifierSettings = None):
    """
    Return a simplified copy of a WML part.

    Args:
        root: Part root element
        settings: Which simplifications to apply (defaults if ``None``)

    Returns:
        New root element
    """
    settings = settings or MarkupSimplifierSettings()
    go_back = _go_back_ids(root) if settings.remove_go_back_bookmark else set()

    def rule(element):
        if settings.remove_rsid_info:
            for attr in list(element.attrib):
                if attr.startswith(f"{{{W_NS}}}") and attr[len(W_NS) + 2:] in _RSID_ATTRS:
                    del element.attrib[attr]
        if namespace_of(element) != W_NS:
            return None
        name = local_name(element)
        if settings.remove_smart_tags and name == "smartTag":
            return Splice(element)
        if settings.remove_content_controls and name == "sdt":
            content = first_child_w(element, "sdtContent")
            return Splice(content) if content is not None else Delete()
        if settings.remove_last_rendered_page_break and name == "lastRenderedPageBreak":
            return Delete()
        if settings.remove_comments and name in _COMMENT_TAGS:
            return Delete()
        if name in ("bookmarkStart", "bookmarkEnd"):
            if settings.remove_bookmarks or w_attr(element, "id") in go_back:
                return Delete()
        if settings.remove_soft_hyphens and name == "softHyphen":
            return Delete()
        if settings.replace_tabs_with_spaces and name == "tab" and is_w(element.getparent(), "r"):
            text = etree.Element(w("t"))
            text.set(f"{{{XML_NS}}}space", "preserve")
            text.text = " "
            return Replace(text)
        if settings.remove_rsid_info and name == "rsids":
            return Delete()
        return None

    return transform_tree(root, rule)
