"""Document layout model: sections and their header/footer references."""

from .section import Section, split_sections

__all__ = ["Section", "split_sections"]
