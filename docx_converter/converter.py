"""
Conversion entry points.

``convert_to_html`` renders a word-processing package to a complete HTML
document; ``convert_html_to_wml`` builds a package from XHTML, optionally on
top of a template package.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Union

from .config import HtmlConversionSettings, HtmlToWmlSettings
from .document import WmlDocument
from .engine.context import load_context
from .exceptions import InvalidArgumentError
from .export.docx_exporter import DocxExporter
from .models import HtmlConversionResult
from .parser.html_parser import parse_html
from .parser.package_reader import PackageReader
from .renderers.html_renderer import HtmlRenderer

logger = logging.getLogger(__name__)

DocumentSource = Union[WmlDocument, bytes, bytearray]


def _document_bytes(document: DocumentSource, argument: str = "document") -> bytes:
    if isinstance(document, WmlDocument):
        return document.to_bytes()
    if isinstance(document, (bytes, bytearray)):
        return bytes(document)
    raise InvalidArgumentError(f"{argument} must be a WmlDocument or bytes", details=type(document).__name__)


def convert_to_html(
    document: DocumentSource,
    settings: Union[HtmlConversionSettings, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> HtmlConversionResult:
    """
    Convert a word-processing document to HTML.

    Args:
        document: ``WmlDocument`` or raw package bytes
        settings: Settings instance or mapping
        **overrides: Individual settings overriding ``settings``

    Returns:
        HTML text, generated CSS, warnings and (on request) the HTML element tree

    Raises:
        PackageError: If the package cannot be opened
        MissingMainDocumentError: If the package has no main document part
        XmlParseError: If the main document part is malformed
    """
    settings = HtmlConversionSettings.coerce(settings, **overrides)
    started = time.perf_counter()
    with PackageReader(_document_bytes(document)) as package:
        context = load_context(package, settings)
        result = HtmlRenderer(context).render()
    elapsed = time.perf_counter() - started
    logger.info(f"Converted document to HTML in {elapsed:.3f}s with {len(result.warnings)} warning(s)")
    return result


def convert_html_to_wml(
    xhtml: Union[str, bytes],
    settings: Union[HtmlToWmlSettings, Mapping[str, Any], None] = None,
    template: Optional[DocumentSource] = None,
) -> WmlDocument:
    """
    Build a word-processing document from XHTML.

    Args:
        xhtml: XHTML (or lenient HTML) markup
        settings: Settings instance or mapping
        template: Optional package whose parts, styles and final section properties are kept

    Returns:
        New document; builder warnings are available on ``document.warnings``

    Raises:
        InvalidArgumentError: If the markup is empty or the template has the wrong type
        PackageError: If the template cannot be opened
    """
    settings = HtmlToWmlSettings.coerce(settings)
    root = parse_html(xhtml)
    template_bytes = _document_bytes(template, "template") if template is not None else None
    exporter = DocxExporter(settings, template_bytes)
    data = exporter.export(root)
    document = WmlDocument(data, settings.file_name)
    document.warnings = list(exporter.warnings)
    return document
