"""Verifier shard implementations and the proof blob codec."""

from .errors import ProtocolError, SchemaError, SizeLimitError
from .groth16 import Groth16VerifierShard
from .interfaces import VerificationResult, Verifier
from .mock import MockVerifierShard, make_mock_proof
from .proof_blob import ProofBlob, decode_proof_blob, encode_proof_blob

__all__ = [
    "Verifier",
    "VerificationResult",
    "MockVerifierShard",
    "Groth16VerifierShard",
    "make_mock_proof",
    "ProofBlob",
    "encode_proof_blob",
    "decode_proof_blob",
    "ProtocolError",
    "SchemaError",
    "SizeLimitError",
]
