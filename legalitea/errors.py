"""Exception types raised by the LegaliTea services and mapped to HTTP errors."""

from __future__ import annotations

from typing import List, Optional


class LegaliTeaError(Exception):
    """Base class for errors that carry an HTTP status code."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[List[str]] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailedError(LegaliTeaError):
    status_code = 400
    default_message = "Validation failed"


class DocumentExtractionError(LegaliTeaError):
    status_code = 400
    default_message = "Could not extract text from document."


class NotFoundError(LegaliTeaError):
    status_code = 404
    default_message = "Not found"


class PayloadTooLargeError(LegaliTeaError):
    status_code = 413
    default_message = "File too large"


class RateLimitExceededError(LegaliTeaError):
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, message: Optional[str] = None, *, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class AIServiceUnavailableError(LegaliTeaError):
    """The model could not be reached or did not return a usable answer."""

    status_code = 503
    default_message = "AI service temporarily unavailable"


class AIResponseError(AIServiceUnavailableError):
    """The model answered with text that is not the expected JSON document."""


__all__ = [
    "LegaliTeaError",
    "ValidationFailedError",
    "DocumentExtractionError",
    "NotFoundError",
    "PayloadTooLargeError",
    "RateLimitExceededError",
    "AIServiceUnavailableError",
    "AIResponseError",
]
