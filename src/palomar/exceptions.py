"""Custom exception hierarchy for Palomar.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations

from typing import Optional


class PalomarError(Exception):
    """Base class for all Palomar exceptions."""


class ConfigError(PalomarError):
    """Raised when configuration loading or validation fails."""


class InvalidParams(PalomarError):
    """Raised when size/offset parameters are out of bounds.

    Always raised before any backend call; the caller must fix the request.
    """


class IdentityError(PalomarError):
    """Raised when a handle cannot be resolved to a DID."""


class SearchExecutionError(PalomarError):
    """Base class for failures while sending a compiled query to the backend."""


class SerializationError(SearchExecutionError):
    """Raised when a compiled query cannot be serialized. Indicates a programming error."""


class TransportError(SearchExecutionError):
    """Raised when the backend could not be reached or the deadline expired.

    Safe to retry with backoff at a higher layer.
    """


class BackendError(SearchExecutionError):
    """Raised when the backend rejected the query with a non-2xx status."""

    def __init__(self, status_code: int, body: Optional[str] = None) -> None:
        super().__init__(f"search query error, code={status_code}")
        self.status_code = status_code
        self.body = body


class DecodeError(SearchExecutionError):
    """Raised when a successful backend response body cannot be decoded."""
