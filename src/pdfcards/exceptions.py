"""Custom exceptions for pdfcards."""


class PdfCardsError(Exception):
    """Base exception for pdfcards."""


class ConfigError(PdfCardsError):
    """Raised when configuration is missing or invalid."""


class LLMError(PdfCardsError):
    """Raised when LLM API calls fail."""


class CaptureError(PdfCardsError):
    """Raised when a highlight cannot be captured from the viewer."""
