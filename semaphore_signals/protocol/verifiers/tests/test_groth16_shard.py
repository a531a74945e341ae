"""
Unit tests for the Groth16 verifier shard with an injected pairing check.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from semaphore_signals.protocol.verifiers import groth16
from semaphore_signals.protocol.verifiers.assets import resolve_vk
from semaphore_signals.protocol.verifiers.groth16 import Groth16VerifierShard
from semaphore_signals.protocol.verifiers.interfaces import (
    ERR_BACKEND_UNAVAILABLE,
    ERR_DEPTH_MISMATCH,
    ERR_INVALID_PROOF,
    ERR_MALFORMED,
)
from semaphore_signals.protocol.verifiers.proof_blob import ProofBlob, encode_proof_blob

INPUTS = (1, 2, 3, 4)
PROOF = b"\xaa" * 192


def _blob(depth: int, inputs=INPUTS) -> bytes:
    return encode_proof_blob(ProofBlob(v=1, d=depth, public_inputs=inputs, proof=PROOF))


def _write_vk(base: Path, depth: int, content: bytes = b"vk") -> Path:
    path = base / "semaphore" / f"depth-{depth}" / "vk.bin"
    path.parent.mkdir(parents=True)
    path.write_bytes(content)
    return path


class _Recorder:
    def __init__(self, answer=True):
        self.answer = answer
        self.calls = []

    def __call__(self, vk, public_inputs, proof):
        self.calls.append((vk, public_inputs, proof))
        return self.answer


def test_accepts_when_pairing_check_passes(tmp_path: Path) -> None:
    _write_vk(tmp_path, 10, b"vk-10")
    check = _Recorder()
    shard = Groth16VerifierShard("0x4", (10, 11, 12), params_dir=tmp_path, pairing_check=check)

    result = shard.verify(10, _blob(10))

    assert result.ok
    assert result.public_inputs == INPUTS
    vk, public_inputs, proof = check.calls[0]
    assert vk == b"vk-10"
    assert public_inputs == b"".join(v.to_bytes(32, "big") for v in INPUTS)
    assert proof == PROOF


def test_rejects_when_pairing_check_fails(tmp_path: Path) -> None:
    _write_vk(tmp_path, 10)
    shard = Groth16VerifierShard(
        "0x4", (10,), params_dir=tmp_path, pairing_check=_Recorder(answer=False)
    )
    assert shard.verify(10, _blob(10)).error == ERR_INVALID_PROOF


def test_raising_pairing_check_is_rejection(tmp_path: Path) -> None:
    _write_vk(tmp_path, 10)

    def broken(vk, public_inputs, proof):
        raise RuntimeError("bad point encoding")

    shard = Groth16VerifierShard("0x4", (10,), params_dir=tmp_path, pairing_check=broken)
    assert shard.verify(10, _blob(10)).error == ERR_INVALID_PROOF


def test_missing_vk_is_backend_unavailable(tmp_path: Path) -> None:
    check = _Recorder()
    shard = Groth16VerifierShard("0x4", (10,), params_dir=tmp_path, pairing_check=check)
    assert shard.verify(10, _blob(10)).error == ERR_BACKEND_UNAVAILABLE
    assert check.calls == []


def test_missing_native_backend(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_vk(tmp_path, 10)
    monkeypatch.setattr(groth16, "load_native_pairing_check", lambda: None)
    shard = Groth16VerifierShard("0x4", (10,), params_dir=tmp_path)
    assert shard.verify(10, _blob(10)).error == ERR_BACKEND_UNAVAILABLE


def test_depth_mismatch_and_malformed(tmp_path: Path) -> None:
    shard = Groth16VerifierShard(
        "0x4", (10, 11), params_dir=tmp_path, pairing_check=_Recorder()
    )
    assert shard.verify(10, _blob(11)).error == ERR_DEPTH_MISMATCH
    assert shard.verify(10, b"nonsense").error == ERR_MALFORMED


def test_vk_is_cached(tmp_path: Path) -> None:
    path = _write_vk(tmp_path, 10, b"first")
    check = _Recorder()
    shard = Groth16VerifierShard("0x4", (10,), params_dir=tmp_path, pairing_check=check)

    shard.verify(10, _blob(10))
    path.write_bytes(b"second")
    shard.verify(10, _blob(10))

    assert [call[0] for call in check.calls] == [b"first", b"first"]


def test_resolve_vk_fallback_layout(tmp_path: Path) -> None:
    flat = tmp_path / "semaphore_depth7_vk.bin"
    flat.write_bytes(b"vk")
    assert resolve_vk(7, tmp_path) == flat

    nested = _write_vk(tmp_path, 7)
    assert resolve_vk(7, tmp_path) == nested

    with pytest.raises(FileNotFoundError, match="depth-8"):
        resolve_vk(8, tmp_path)


def test_params_dir_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_vk(tmp_path, 3)
    monkeypatch.setenv("SEMAPHORE_PARAMS_DIR", str(tmp_path))
    assert resolve_vk(3) == tmp_path / "semaphore" / "depth-3" / "vk.bin"
