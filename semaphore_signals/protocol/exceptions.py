"""
Custom exceptions for the semaphore signal protocol.

Precondition violations abort the current call; every state change made by
the call is rolled back before the exception reaches the caller. Proof
verification outcomes are plain values and never raise.
"""

from __future__ import annotations


class SemaphoreError(Exception):
    """Base exception for semaphore protocol errors."""

    pass


class ConfigurationError(SemaphoreError):
    """Configuration error (deployment file, shard table, policy)."""

    pass


class PreconditionError(SemaphoreError):
    """A fatal precondition of an entrypoint was violated."""

    reason = "precondition failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class GroupAlreadyExistsError(PreconditionError):
    reason = "already exists"


class DepthTooLargeError(PreconditionError):
    reason = "too large"


class GroupNotFoundError(PreconditionError):
    reason = "does not exist"


class NotGroupAdminError(PreconditionError):
    reason = "only admin"


class AlreadyMemberError(PreconditionError):
    reason = "already in group"


class InvalidProofError(PreconditionError):
    reason = "invalid proof"


class NullifierAlreadyUsedError(PreconditionError):
    reason = "nullifier already used"


class TreeFullError(PreconditionError):
    reason = "tree is full"


class UnsupportedDepthError(PreconditionError):
    reason = "unsupported depth"
