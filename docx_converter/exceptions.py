"""Custom exceptions for DOCX Converter."""

from typing import Optional


class DocxConverterError(Exception):
    """Base exception for DOCX Converter errors.

    Every subclass carries a stable ``code`` so callers can branch on the
    failure kind without matching message text.
    """

    code = "CONVERSION_FAILED"

    def __init__(self, message: str, details: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code:
            self.code = code

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class PackageError(DocxConverterError):
    """Exception raised when the package container cannot be read."""

    code = "INVALID_DOCX"


class PartNotFoundError(DocxConverterError):
    """Exception raised when a required part is absent from the package."""

    code = "PART_NOT_FOUND"


class MissingMainDocumentError(PackageError):
    """Exception raised when the package has no main document part."""

    code = "MISSING_MAIN_DOCUMENT"


class XmlParseError(DocxConverterError):
    """Exception raised when a part is not well-formed XML."""

    code = "XML_INVALID"


class InvalidArgumentError(DocxConverterError, ValueError):
    """Exception raised for invalid API arguments or settings."""

    code = "INVALID_ARGUMENT"


class ConversionError(DocxConverterError):
    """Exception raised when a conversion cannot be completed."""

    code = "CONVERSION_FAILED"
