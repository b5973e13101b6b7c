"""Exception taxonomy for the prediction pipeline.

Errors that reach the client derive from ``ServiceError`` and carry an HTTP
status plus a message that is safe to return verbatim. Pipeline errors carry
internal detail and are only ever logged; the request handler converts them
into a ``PredictionError`` before responding.
"""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for errors rendered as a ``{"status": "fail"}`` response."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """The upload is missing, of the wrong type, or otherwise unacceptable."""


class PayloadTooLargeError(ValidationError):
    """The upload exceeds the configured size cap."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    def __init__(self, max_size: int) -> None:
        super().__init__(f"Payload content length greater than maximum allowed: {max_size}")
        self.max_size = max_size


class PredictionError(ServiceError):
    """A pipeline stage failed after the upload was accepted."""

    DEFAULT_MESSAGE = "An error occurred while making the prediction"

    def __init__(self, message: str = DEFAULT_MESSAGE) -> None:
        super().__init__(message)


class PipelineError(Exception):
    """Internal failure of one pipeline stage."""


class DecodeError(PipelineError):
    """The uploaded bytes are not a decodable JPEG or PNG image."""


class InferenceError(PipelineError):
    """The model call failed."""


class PolicyError(PipelineError):
    """The score vector cannot be turned into a decision."""


class PersistenceError(PipelineError):
    """The prediction log could not be read or written."""


class ModelLoadError(Exception):
    """The model artifact could not be loaded at startup."""
