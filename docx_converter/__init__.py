"""
DOCX Converter - WordprocessingML to HTML conversion and back.

Converts the WML markup inside ``.docx`` packages into complete HTML
documents (styles, lists, tables, sections with headers and footers, notes,
comments and images) and builds ``.docx`` packages from XHTML.

Main Components:
- WmlDocument: In-memory package with editing helpers
- convert_to_html / convert_html_to_wml: Conversion entry points
- Parser: Package, relationship, numbering, note and HTML input parsing
- Styles: Style cascade resolution
- Engine: Table grid, list numbering and per-conversion context
- Layout: Section splitting with header/footer inheritance
- Renderers: HTML and CSS generation
- Export: HTML to WML builder and package assembly
- Preprocess: Revision acceptance, markup simplification, text replacement
"""

from .config import (
    HtmlConversionSettings,
    HtmlToWmlSettings,
    MarkupSimplifierSettings,
    PreprocessSettings,
)
from .converter import convert_html_to_wml, convert_to_html
from .document import WmlDocument
from .exceptions import (
    ConversionError,
    DocxConverterError,
    InvalidArgumentError,
    MissingMainDocumentError,
    PackageError,
    PartNotFoundError,
    XmlParseError,
)
from .models import ConversionWarning, DocumentText, HtmlConversionResult, ImageInfo
from .utils.logger import configure_logging, get_logger, set_log_level

__version__ = "1.0.0"
__author__ = "DOCX Converter Team"

__all__ = [
    "ConversionError",
    "ConversionWarning",
    "DocumentText",
    "DocxConverterError",
    "HtmlConversionResult",
    "HtmlConversionSettings",
    "HtmlToWmlSettings",
    "ImageInfo",
    "InvalidArgumentError",
    "MarkupSimplifierSettings",
    "MissingMainDocumentError",
    "PackageError",
    "PartNotFoundError",
    "PreprocessSettings",
    "WmlDocument",
    "XmlParseError",
    "configure_logging",
    "convert_html_to_wml",
    "convert_to_html",
    "get_logger",
    "set_log_level",
]
