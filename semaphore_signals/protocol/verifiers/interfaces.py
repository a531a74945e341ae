"""
Verifier capability consumed by the signal protocol.

A verifier takes a tree depth and an opaque proof blob and either accepts,
returning the public inputs the proof commits to, or rejects with a short
reason. Rejection is a normal outcome and is returned, never raised. A depth
the verifier does not serve is a routing bug and raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..exceptions import UnsupportedDepthError

ERR_MALFORMED = "malformed proof"
ERR_DEPTH_MISMATCH = "depth mismatch"
ERR_INVALID_PROOF = "invalid proof"
ERR_BACKEND_UNAVAILABLE = "backend unavailable"


@dataclass(frozen=True)
class VerificationResult:
    """Result of a shard-level verification."""

    ok: bool
    public_inputs: Tuple[int, ...] = ()
    error: Optional[str] = None

    @classmethod
    def accept(cls, public_inputs: Iterable[int]) -> "VerificationResult":
        return cls(ok=True, public_inputs=tuple(public_inputs))

    @classmethod
    def reject(cls, reason: str) -> "VerificationResult":
        return cls(ok=False, error=reason)


class Verifier(ABC):
    """
    Depth-tagged proof verifier.

    Subclasses serve a fixed sub-range of depths and implement ``_verify``.
    """

    def __init__(self, identity: str, supported_depths: Iterable[int]) -> None:
        depths = tuple(sorted(set(supported_depths)))
        if not depths:
            raise ValueError("verifier must support at least one depth")
        self._identity = str(identity)
        self._supported_depths = depths

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def supported_depths(self) -> Tuple[int, ...]:
        return self._supported_depths

    def verify(self, depth: int, proof_blob: bytes) -> VerificationResult:
        if depth not in self._supported_depths:
            raise UnsupportedDepthError(
                f"unsupported depth: {depth} (verifier {self._identity} "
                f"serves {self._supported_depths})"
            )
        return self._verify(depth, proof_blob)

    @abstractmethod
    def _verify(self, depth: int, proof_blob: bytes) -> VerificationResult:
        """Verify a proof for a depth already known to be supported."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(identity={self._identity!r}, "
            f"depths={self._supported_depths!r})"
        )
