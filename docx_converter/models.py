"""Result and value types shared across the conversion pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Warning codes attached to recoverable content issues.
MISSING_PART = "MISSING_PART"
MISSING_NUMBERING_PART = "MISSING_NUMBERING_PART"
MISSING_RELATIONSHIP = "MISSING_RELATIONSHIP"
MISSING_IMAGE = "MISSING_IMAGE"
MISSING_NOTE = "MISSING_NOTE"
UNSUPPORTED_RUN_CHILD = "UNSUPPORTED_RUN_CHILD"
UNSUPPORTED_ELEMENT = "UNSUPPORTED_ELEMENT"
UNACCEPTED_REVISION = "UNACCEPTED_REVISION"
ORPHAN_MERGE_CONTINUATION = "ORPHAN_MERGE_CONTINUATION"
UNSUPPORTED_NUMBERING_FORMAT = "UNSUPPORTED_NUMBERING_FORMAT"
LIST_LANG_UNSUPPORTED = "LIST_LANG_UNSUPPORTED"
AMBIGUOUS_HEADER_FOOTER = "AMBIGUOUS_HEADER_FOOTER"
UNSUPPORTED_HTML_ELEMENT = "UNSUPPORTED_HTML_ELEMENT"


@dataclass(frozen=True)
class ConversionWarning:
    """A recoverable anomaly found while converting."""

    code: str
    message: str
    part: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "part": self.part}


@dataclass(frozen=True)
class ImageInfo:
    """
    Image payload handed to a custom ``image_handler``.

    Attributes:
        content_type: MIME type from the package content-type table.
        data: Raw image bytes.
        alt_text: Description taken from the drawing properties.
        part_name: Package part the image was read from.
        width_px: Display width from the drawing extent, when known.
        height_px: Display height from the drawing extent, when known.
    """

    content_type: str
    data: bytes
    alt_text: Optional[str] = None
    part_name: Optional[str] = None
    width_px: Optional[float] = None
    height_px: Optional[float] = None


@dataclass
class HtmlConversionResult:
    """Output of a WML to HTML conversion."""

    html: str
    css_text: str
    warnings: List[ConversionWarning] = field(default_factory=list)
    html_element: Any = None

    def warning_codes(self) -> List[str]:
        return [item.code for item in self.warnings]


@dataclass(frozen=True)
class DocumentText:
    """Plain-text view of the main document."""

    paragraphs: Tuple[str, ...]
    text: str
