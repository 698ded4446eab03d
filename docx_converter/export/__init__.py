"""HTML to WML export: the tree builder and the package assembler."""

from .docx_exporter import DocxExporter, rewrite_package
from .wml_builder import BuildResult, NumberingBuilder, WmlBuilder

__all__ = ["BuildResult", "DocxExporter", "NumberingBuilder", "WmlBuilder", "rewrite_package"]
