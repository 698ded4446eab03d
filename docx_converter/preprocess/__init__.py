"""Structural filters applied to WML parts before conversion."""

from .markup_simplifier import simplify_markup_tree
from .revision_accepter import accept_revisions_tree, has_tracked_revisions_tree
from .text_replacer import search_and_replace_tree
from .transform import Delete, Replace, Splice, transform_tree

__all__ = [
    "Delete",
    "Replace",
    "Splice",
    "accept_revisions_tree",
    "has_tracked_revisions_tree",
    "search_and_replace_tree",
    "simplify_markup_tree",
    "transform_tree",
]
