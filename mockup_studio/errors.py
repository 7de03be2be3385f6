"""Exception types and provider-error classification."""

from __future__ import annotations

from enum import Enum

# Substrings the Gemini API uses when a key is invalid or lacks access.
KEY_REJECTED_MARKERS = (
    "API_KEY_INVALID",
    "API key not valid",
    "PERMISSION_DENIED",
    "403",
)

# Usually a bad model id, sometimes a key without access to that model.
ENTITY_NOT_FOUND_MARKER = "Requested entity was not found"


class MockupStudioError(Exception):
    """Base class for all errors raised by mockup_studio."""


class MissingApiKeyError(MockupStudioError):
    """Raised when a provider client is requested and no key is available."""

    def __init__(self, message: str = "API Key is missing. Please provide a valid Gemini API Key.") -> None:
        super().__init__(message)


class InvalidApiKeyError(MockupStudioError):
    """A manually entered key failed local validation."""


class GenerationError(MockupStudioError):
    """A provider call failed. ``message`` is the provider's own text."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoImageDataError(GenerationError):
    """The provider answered but no inline image was found."""

    def __init__(self, message: str = "No image data found in response") -> None:
        super().__init__(message)


class ErrorKind(str, Enum):
    KEY_REJECTED = "key_rejected"
    MODEL_NOT_FOUND = "model_not_found"
    EMPTY_RESULT = "empty_result"
    PROVIDER = "provider"


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised at the provider boundary onto an ErrorKind."""
    if isinstance(exc, NoImageDataError):
        return ErrorKind.EMPTY_RESULT
    message = str(exc)
    if ENTITY_NOT_FOUND_MARKER in message:
        return ErrorKind.MODEL_NOT_FOUND
    if any(marker in message for marker in KEY_REJECTED_MARKERS):
        return ErrorKind.KEY_REJECTED
    return ErrorKind.PROVIDER
