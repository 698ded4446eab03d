"""
Configuration objects for DOCX Converter.

All settings are frozen dataclasses. Public entry points accept either an
instance, a plain mapping of field names, or ``None`` for the defaults; see
the ``coerce`` classmethods.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .exceptions import InvalidArgumentError

ListItemImplementation = Callable[[str, int, str], str]
ImageHandler = Callable[[Any], Any]

DEFAULT_GENERAL_CSS = "span { white-space: pre-wrap; }"

OUTPUT_FORMATS = ("string", "element", "xml")


def _coerce(cls, value):
    if value is None:
        return cls()
    if isinstance(value, cls):
        return value
    if isinstance(value, Mapping):
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(value) - known)
        if unknown:
            raise InvalidArgumentError(
                f"Unknown {cls.__name__} option(s)", details=", ".join(unknown)
            )
        return cls(**dict(value))
    raise InvalidArgumentError(
        f"Expected {cls.__name__} or mapping", details=type(value).__name__
    )


@dataclass(frozen=True)
class MarkupSimplifierSettings:
    """
    Switches for the markup simplification pass.

    Attributes:
        remove_smart_tags: Unwrap ``w:smartTag`` elements.
        remove_content_controls: Unwrap ``w:sdt`` elements, keeping their content.
        remove_last_rendered_page_break: Drop ``w:lastRenderedPageBreak``.
        remove_comments: Drop comment ranges and references.
        remove_bookmarks: Drop all bookmarks.
        remove_go_back_bookmark: Drop only the ``_GoBack`` bookmark.
        remove_rsid_info: Strip revision-session id attributes.
        remove_soft_hyphens: Drop ``w:softHyphen``.
        replace_tabs_with_spaces: Turn run-level ``w:tab`` into a space.
    """

    remove_smart_tags: bool = True
    remove_content_controls: bool = True
    remove_last_rendered_page_break: bool = True
    remove_comments: bool = False
    remove_bookmarks: bool = False
    remove_go_back_bookmark: bool = True
    remove_rsid_info: bool = True
    remove_soft_hyphens: bool = False
    replace_tabs_with_spaces: bool = False

    @classmethod
    def coerce(cls, value: Union["MarkupSimplifierSettings", Mapping[str, Any], None]) -> "MarkupSimplifierSettings":
        return _coerce(cls, value)


@dataclass(frozen=True)
class PreprocessSettings:
    """Structural filters applied to WML parts before rendering."""

    accept_revisions: bool = True
    simplify_markup: bool = False
    simplifier: MarkupSimplifierSettings = field(default_factory=MarkupSimplifierSettings)

    @classmethod
    def coerce(cls, value: Union["PreprocessSettings", Mapping[str, Any], None]) -> "PreprocessSettings":
        if isinstance(value, Mapping) and "simplifier" in value:
            value = dict(value)
            value["simplifier"] = MarkupSimplifierSettings.coerce(value["simplifier"])
        return _coerce(cls, value)


@dataclass(frozen=True)
class HtmlConversionSettings:
    """
    Options for WML to HTML conversion.

    Attributes:
        page_title: Text of the ``<title>`` element.
        css_class_prefix: Prefix for every generated class name.
        fabricate_css_classes: Emit style-derived classes and rules instead of
            inlining style formatting only.
        general_css: CSS emitted before the generated rules.
        additional_css: CSS appended after the generated rules.
        restrict_to_supported_numbering_formats: Warn on unknown numbering formats.
        restrict_to_supported_languages: Warn when a list paragraph's language
            has no entry in ``list_item_implementations``.
        list_item_implementations: Locale to marker-text function table; each
            function receives ``(level_text, counter, num_format)``.
        default_language: Language assumed for runs without ``w:lang``.
        image_handler: Callback receiving an :class:`~docx_converter.models.ImageInfo`
            and returning a ``src`` string, a mapping of ``img`` attributes, or
            ``None`` to use the default data URI.
        include_comments: Render comment references and a trailing comment list.
        preprocess: Filters applied before rendering.
        output_format: ``"string"`` or ``"element"`` (alias ``"xml"``) to also
            return the lxml tree.
    """

    page_title: str = "Document"
    css_class_prefix: str = "pt-"
    fabricate_css_classes: bool = False
    general_css: str = DEFAULT_GENERAL_CSS
    additional_css: str = ""
    restrict_to_supported_numbering_formats: bool = False
    restrict_to_supported_languages: bool = False
    list_item_implementations: Optional[Dict[str, ListItemImplementation]] = None
    default_language: str = "en-US"
    image_handler: Optional[ImageHandler] = None
    include_comments: bool = False
    preprocess: PreprocessSettings = field(default_factory=PreprocessSettings)
    output_format: str = "string"

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise InvalidArgumentError("Unsupported output_format", details=str(self.output_format))

    @property
    def wants_element(self) -> bool:
        return self.output_format in ("element", "xml")

    @classmethod
    def coerce(
        cls,
        value: Union["HtmlConversionSettings", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "HtmlConversionSettings":
        if isinstance(value, Mapping) and "preprocess" in value:
            value = dict(value)
            value["preprocess"] = PreprocessSettings.coerce(value["preprocess"])
        settings = _coerce(cls, value)
        if overrides:
            if "preprocess" in overrides:
                overrides["preprocess"] = PreprocessSettings.coerce(overrides["preprocess"])
            known = {item.name for item in fields(cls)}
            unknown = sorted(set(overrides) - known)
            if unknown:
                raise InvalidArgumentError("Unknown HtmlConversionSettings option(s)", details=", ".join(unknown))
            settings = replace(settings, **overrides)
        return settings


@dataclass(frozen=True)
class HtmlToWmlSettings:
    """
    Options for HTML to WML conversion.

    Attributes:
        file_name: Name recorded on the produced document.
        default_image_size_px: Edge length used when an image has no known size.
        page_width_twips: Page width for the generated section properties.
        page_height_twips: Page height for the generated section properties.
        margin_twips: Page margin on all four sides.
    """

    file_name: str = "document.docx"
    default_image_size_px: int = 96
    page_width_twips: int = 12240
    page_height_twips: int = 15840
    margin_twips: int = 1440

    @classmethod
    def coerce(cls, value: Union["HtmlToWmlSettings", Mapping[str, Any], None]) -> "HtmlToWmlSettings":
        return _coerce(cls, value)
