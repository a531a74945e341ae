"""
Mock verifier shard.

WARNING: no cryptographic security. A "proof" is a SHA-256 tag over the
depth and public inputs, so anyone can forge one. Intended for tests, the
CLI demo and local development only.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Iterable, Sequence

from ..config import DOMAIN_SEPARATORS, PROOF_BLOB_VERSION
from ..hashing import field_to_bytes
from .errors import ProtocolError
from .interfaces import (
    ERR_DEPTH_MISMATCH,
    ERR_INVALID_PROOF,
    ERR_MALFORMED,
    VerificationResult,
    Verifier,
)
from .proof_blob import ProofBlob, decode_proof_blob, encode_proof_blob


def mock_proof_tag(depth: int, public_inputs: Sequence[int]) -> bytes:
    hasher = hashlib.sha256(DOMAIN_SEPARATORS["mock_proof"])
    hasher.update(depth.to_bytes(1, "big"))
    for value in public_inputs:
        hasher.update(field_to_bytes(value))
    return hasher.digest()


def make_mock_proof(depth: int, public_inputs: Iterable[int]) -> bytes:
    """Build a proof blob the mock shard accepts for these public inputs."""
    inputs = tuple(public_inputs)
    return encode_proof_blob(
        ProofBlob(
            v=PROOF_BLOB_VERSION,
            d=depth,
            public_inputs=inputs,
            proof=mock_proof_tag(depth, inputs),
        )
    )


class MockVerifierShard(Verifier):
    """Accepts blobs produced by ``make_mock_proof``."""

    def _verify(self, depth: int, proof_blob: bytes) -> VerificationResult:
        try:
            blob = decode_proof_blob(proof_blob)
        except ProtocolError:
            return VerificationResult.reject(ERR_MALFORMED)

        if blob.d != depth:
            return VerificationResult.reject(ERR_DEPTH_MISMATCH)

        expected = mock_proof_tag(depth, blob.public_inputs)
        if not hmac.compare_digest(expected, blob.proof):
            return VerificationResult.reject(ERR_INVALID_PROOF)

        return VerificationResult.accept(blob.public_inputs)
