"""
Unit tests for the mock verifier shard.
"""

import cbor2
import pytest

from semaphore_signals.protocol.exceptions import UnsupportedDepthError
from semaphore_signals.protocol.verifiers.interfaces import (
    ERR_DEPTH_MISMATCH,
    ERR_INVALID_PROOF,
    ERR_MALFORMED,
)
from semaphore_signals.protocol.verifiers.mock import (
    MockVerifierShard,
    make_mock_proof,
    mock_proof_tag,
)

INPUTS = (11, 22, 33, 44)


@pytest.fixture
def shard():
    return MockVerifierShard("0xshard", (4, 5, 6))


def test_accepts_matching_tag(shard) -> None:
    result = shard.verify(5, make_mock_proof(5, INPUTS))
    assert result.ok
    assert result.public_inputs == INPUTS
    assert result.error is None


def test_rejects_tampered_inputs(shard) -> None:
    payload = cbor2.loads(make_mock_proof(5, INPUTS))
    payload["public_inputs"][1] = (23).to_bytes(32, "big")
    result = shard.verify(5, cbor2.dumps(payload))
    assert not result.ok
    assert result.error == ERR_INVALID_PROOF


def test_tag_binds_depth() -> None:
    assert mock_proof_tag(4, INPUTS) != mock_proof_tag(5, INPUTS)


def test_rejects_blob_for_other_depth(shard) -> None:
    result = shard.verify(5, make_mock_proof(6, INPUTS))
    assert result.error == ERR_DEPTH_MISMATCH


def test_malformed_blob_is_rejected_not_raised(shard) -> None:
    assert shard.verify(4, b"\x00garbage").error == ERR_MALFORMED
    assert shard.verify(4, b"").error == ERR_MALFORMED


def test_unsupported_depth_raises(shard) -> None:
    with pytest.raises(UnsupportedDepthError, match="unsupported depth: 7"):
        shard.verify(7, make_mock_proof(7, INPUTS))


def test_identity_and_depths() -> None:
    shard = MockVerifierShard("0xabc", [6, 4, 5, 4])
    assert shard.identity == "0xabc"
    assert shard.supported_depths == (4, 5, 6)
    assert "0xabc" in repr(shard)
    with pytest.raises(ValueError):
        MockVerifierShard("0xabc", [])
