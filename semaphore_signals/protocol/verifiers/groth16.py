"""
Groth16 verifier shard.

The pairing check itself lives outside this package. A shard either gets
one injected as a callable, or uses the optional native extension
``semaphore_groth16_py`` (``verify_groth16_bytes(vk, public_inputs, proof)``).
This class only resolves the depth-specific verifying key, frames the
public inputs and maps every failure onto a rejection.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from ..hashing import field_to_bytes
from .assets import resolve_vk
from .errors import ProtocolError
from .interfaces import (
    ERR_BACKEND_UNAVAILABLE,
    ERR_DEPTH_MISMATCH,
    ERR_INVALID_PROOF,
    ERR_MALFORMED,
    VerificationResult,
    Verifier,
)
from .proof_blob import decode_proof_blob

logger = logging.getLogger(__name__)

PairingCheck = Callable[[bytes, bytes, bytes], bool]

_NATIVE_MODULE = "semaphore_groth16_py"
_NATIVE_FUNCTION = "verify_groth16_bytes"


def load_native_pairing_check() -> Optional[PairingCheck]:
    try:
        module = importlib.import_module(_NATIVE_MODULE)
    except ImportError:
        return None
    check = getattr(module, _NATIVE_FUNCTION, None)
    return check if callable(check) else None


class Groth16VerifierShard(Verifier):
    """Verifies Groth16 proofs for its depth range."""

    def __init__(
        self,
        identity: str,
        supported_depths: Iterable[int],
        *,
        params_dir: str | Path | None = None,
        pairing_check: Optional[PairingCheck] = None,
    ) -> None:
        super().__init__(identity, supported_depths)
        self._params_dir = params_dir
        self._pairing_check = pairing_check
        self._vk_cache: Dict[int, bytes] = {}

    def _load_vk(self, depth: int) -> Optional[bytes]:
        if depth in self._vk_cache:
            return self._vk_cache[depth]
        try:
            vk = resolve_vk(depth, self._params_dir).read_bytes()
        except OSError as exc:
            logger.warning("No verifying key for depth %d: %s", depth, exc)
            return None
        self._vk_cache[depth] = vk
        return vk

    def _resolve_check(self) -> Optional[PairingCheck]:
        if self._pairing_check is None:
            self._pairing_check = load_native_pairing_check()
        return self._pairing_check

    def _verify(self, depth: int, proof_blob: bytes) -> VerificationResult:
        try:
            blob = decode_proof_blob(proof_blob)
        except ProtocolError:
            return VerificationResult.reject(ERR_MALFORMED)

        if blob.d != depth:
            return VerificationResult.reject(ERR_DEPTH_MISMATCH)

        vk = self._load_vk(depth)
        check = self._resolve_check()
        if vk is None or check is None:
            return VerificationResult.reject(ERR_BACKEND_UNAVAILABLE)

        public_inputs = b"".join(field_to_bytes(value) for value in blob.public_inputs)
        try:
            accepted = bool(check(vk, public_inputs, blob.proof))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Pairing check raised for depth %d: %s", depth, exc)
            return VerificationResult.reject(ERR_INVALID_PROOF)

        if not accepted:
            return VerificationResult.reject(ERR_INVALID_PROOF)
        return VerificationResult.accept(blob.public_inputs)
