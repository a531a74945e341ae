"""Proof blob error types."""

from ..exceptions import SemaphoreError


class ProtocolError(SemaphoreError):
    """Base error for proof blob issues."""


class SchemaError(ProtocolError):
    """Raised when a proof blob fails schema validation."""


class SizeLimitError(ProtocolError):
    """Raised when a proof blob exceeds configured size limits."""
