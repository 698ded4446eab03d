"""Style sheet parsing and inheritance resolution."""

from .style_resolver import ResolvedStyle, StyleRecord, StyleResolver

__all__ = ["ResolvedStyle", "StyleRecord", "StyleResolver"]
