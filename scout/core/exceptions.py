"""
Custom exceptions for the Scout research service.

Provides a hierarchy of exceptions so the HTTP boundary can map every
failure class onto a structured JSON response.
"""

from typing import Any, Dict, Optional

RAW_EXCERPT_CHARS = 500


class ScoutError(Exception):
    """Base exception for all Scout errors."""

    status_code: int = 500
    error_label: str = "Internal server error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ScoutError):
    """Raised when required configuration (e.g. the LLM credential) is missing."""

    status_code = 500
    error_label = "API configuration error"


class ValidationError(ScoutError):
    """Bad or missing request input."""

    status_code = 400
    error_label = "Invalid request"


class UrlValidationError(ValidationError):
    """A raw string could not be normalised into an absolute http(s) URL."""

    error_label = "Invalid URL format"

    def __init__(self, raw: str, reason: str = "not a valid URL"):
        super().__init__(f"Invalid URL {raw!r}: {reason}", details={"input": raw})
        self.raw = raw
        self.reason = reason


class CSVParsingError(ValidationError):
    """CSV text could not be parsed as header + delimited rows."""

    error_label = "Invalid CSV"


class ExtractionError(ScoutError):
    """LLM reply could not be parsed into the requested record."""

    status_code = 500
    error_label = "Extraction failed"

    def __init__(self, message: str, raw_response: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_excerpt = (raw_response or "")[:RAW_EXCERPT_CHARS]
        self.details.setdefault("raw_excerpt", self.raw_excerpt)


class LLMServiceError(ScoutError):
    """The model provider call itself failed (transport, auth, quota)."""

    status_code = 502
    error_label = "LLM service error"


class SynthesisError(ScoutError):
    """The stage synthesis call raised instead of returning text."""

    status_code = 500
    error_label = "Research failed"
