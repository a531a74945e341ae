"""CBOR encoding for depth-tagged proof blobs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import cbor2

from ..config import (
    FIELD_ELEMENT_BYTES,
    MAX_PROOF_BLOB_BYTES,
    MAX_PUBLIC_INPUTS,
    MAX_TREE_DEPTH,
    MIN_TREE_DEPTH,
    PROOF_BLOB_VERSION,
)
from ..hashing import field_to_bytes, is_field_element
from .errors import SchemaError, SizeLimitError


def _require_bytes(value: Any, field: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise SchemaError(f"{field} must be bytes")
    return bytes(value)


def _require_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{field} must be an int")
    return value


@dataclass(frozen=True)
class ProofBlob:
    v: int
    d: int
    public_inputs: Tuple[int, ...]
    proof: bytes

    def validate(self) -> None:
        if self.v != PROOF_BLOB_VERSION:
            raise SchemaError("unsupported proof blob version")
        if not MIN_TREE_DEPTH <= self.d <= MAX_TREE_DEPTH:
            raise SchemaError("depth out of range")
        if len(self.public_inputs) > MAX_PUBLIC_INPUTS:
            raise SizeLimitError("too many public inputs")
        for idx, value in enumerate(self.public_inputs):
            if not is_field_element(value):
                raise SchemaError(f"public_inputs[{idx}] is not a field element")
        if not isinstance(self.proof, (bytes, bytearray)) or not self.proof:
            raise SchemaError("proof must be non-empty bytes")


def encode_proof_blob(blob: ProofBlob) -> bytes:
    blob.validate()
    payload = {
        "v": blob.v,
        "d": blob.d,
        "public_inputs": [field_to_bytes(value) for value in blob.public_inputs],
        "proof": bytes(blob.proof),
    }
    encoded = cbor2.dumps(payload)
    if len(encoded) > MAX_PROOF_BLOB_BYTES:
        raise SizeLimitError("proof blob too large")
    return encoded


def decode_proof_blob(data: bytes) -> ProofBlob:
    if not isinstance(data, (bytes, bytearray)):
        raise SchemaError("proof blob must be bytes")
    data = bytes(data)
    if len(data) > MAX_PROOF_BLOB_BYTES:
        raise SizeLimitError("proof blob too large")

    try:
        payload = cbor2.loads(data)
    except Exception as exc:  # noqa: BLE001
        raise SchemaError("proof blob is not valid CBOR") from exc
    if not isinstance(payload, dict):
        raise SchemaError("proof blob payload must be a dict")

    raw_inputs = payload.get("public_inputs", [])
    if not isinstance(raw_inputs, list):
        raise SchemaError("public_inputs must be a list")
    if len(raw_inputs) > MAX_PUBLIC_INPUTS:
        raise SizeLimitError("too many public inputs")

    public_inputs = []
    for idx, raw in enumerate(raw_inputs):
        raw = _require_bytes(raw, f"public_inputs[{idx}]")
        if len(raw) != FIELD_ELEMENT_BYTES:
            raise SchemaError(f"public_inputs[{idx}] must be {FIELD_ELEMENT_BYTES} bytes")
        public_inputs.append(int.from_bytes(raw, "big"))

    blob = ProofBlob(
        v=_require_int(payload.get("v", -1), "v"),
        d=_require_int(payload.get("d", -1), "d"),
        public_inputs=tuple(public_inputs),
        proof=_require_bytes(payload.get("proof", b""), "proof"),
    )
    blob.validate()
    return blob
