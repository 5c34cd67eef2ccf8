"""Exception hierarchy and the extraction error taxonomy."""

from enum import Enum
from typing import Dict, List, Optional


class ExtractionErrorCategory(str, Enum):
    """Categories a failed extraction is tagged with."""

    API_KEY = "api_key"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN_MODEL = "unknown_model"
    SCHEMA_MISSING = "schema_missing"
    API_ERROR = "api_error"


ERROR_SUGGESTIONS: Dict[ExtractionErrorCategory, List[str]] = {
    ExtractionErrorCategory.API_KEY: [
        "Add a valid API key in Settings.",
        "Check your API key or switch models.",
    ],
    ExtractionErrorCategory.RATE_LIMIT: [
        "Too many requests. Please wait and try again.",
        "Set a higher rate limit with your AI provider or switch models.",
    ],
    ExtractionErrorCategory.SERVER_ERROR: [
        "The AI provider is having problems. Try again in a few minutes.",
        "Switch to a model from another provider.",
    ],
    ExtractionErrorCategory.TIMEOUT: [
        "The provider did not answer in time. Try again.",
        "Use a faster model or split large documents.",
    ],
    ExtractionErrorCategory.INVALID_RESPONSE: [
        "The model answered in an unexpected format. Try again or switch models.",
        "Add custom instructions describing the table layout.",
    ],
    ExtractionErrorCategory.UNKNOWN_MODEL: [
        "Pick one of the available models in Settings.",
    ],
    ExtractionErrorCategory.SCHEMA_MISSING: [
        "Publish a schema for this document type to control extracted fields.",
    ],
    ExtractionErrorCategory.API_ERROR: [
        "The provider rejected the request. Check the document and try again.",
        "A system error occurred. Contact support if it persists.",
    ],
}


def error_suggestions(category: Optional[ExtractionErrorCategory]) -> List[str]:
    """Return actionable suggestions for an error category."""
    if category is None:
        return []
    return list(ERROR_SUGGESTIONS.get(category, []))


def category_for_status(status_code: int) -> ExtractionErrorCategory:
    """Map a non-2xx provider status code to an error category."""
    if status_code in (401, 403):
        return ExtractionErrorCategory.API_KEY
    if status_code == 429:
        return ExtractionErrorCategory.RATE_LIMIT
    if status_code >= 500:
        return ExtractionErrorCategory.SERVER_ERROR
    return ExtractionErrorCategory.API_ERROR


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when a provider API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.response_body = response_body

    @property
    def category(self) -> ExtractionErrorCategory:
        if self.status_code is None:
            return ExtractionErrorCategory.API_ERROR
        return category_for_status(self.status_code)


class InvalidResponseError(APIClientError):
    """Raised when a provider answers 2xx with a body that is not the expected JSON."""

    @property
    def category(self) -> ExtractionErrorCategory:
        return ExtractionErrorCategory.INVALID_RESPONSE


class APITimeoutError(APIClientError):
    """Raised when a provider API call times out."""

    @property
    def category(self) -> ExtractionErrorCategory:
        return ExtractionErrorCategory.TIMEOUT


class DatabaseError(AppError):
    """Raised when a database operation fails."""


class ValidationError(AppError):
    """Raised when input validation fails."""


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""

    def __init__(self, resource: str, identifier: object):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class ExtractionRoutingError(AppError):
    """Raised when an extraction cannot be routed to a model and key."""

    def __init__(
        self,
        category: ExtractionErrorCategory,
        message: str,
        model_id: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.category = category
        self.model_id = model_id
        self.provider = provider

    @property
    def suggestions(self) -> List[str]:
        return error_suggestions(self.category)
