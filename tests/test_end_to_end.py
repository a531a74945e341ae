"""
End-to-end scenarios across accumulator, router and signal protocol.

These tests drive a deployment file through to accepted and rejected
signals on the mock backend, and through the groth16 backend with an
injected pairing check.
"""

from pathlib import Path

import pytest
import yaml

from semaphore_signals.protocol import merkle
from semaphore_signals.protocol.deployment import build_protocol, load_deployment
from semaphore_signals.protocol.events import GroupCreated, MemberAdded, Signal
from semaphore_signals.protocol.exceptions import (
    InvalidProofError,
    NullifierAlreadyUsedError,
)
from semaphore_signals.protocol.hashing import hash_node, to_field
from semaphore_signals.protocol.registry import LedgerState
from semaphore_signals.protocol.semaphore import SemaphoreProtocol
from semaphore_signals.protocol.verifiers.mock import make_mock_proof
from semaphore_signals.protocol.verifiers.proof_blob import ProofBlob, encode_proof_blob

ADMIN = "0xadmin"


def _deployment(tmp_path, shard_ids, **settings):
    path = tmp_path / "deployment.yaml"
    path.write_text(yaml.safe_dump({"verifier_shards": shard_ids, **settings}))
    return load_deployment(path)


def test_mock_deployment_full_flow(tmp_path, shard_ids):
    """Create, enroll, signal and replay on a deployment loaded from YAML."""
    print("\n" + "=" * 70)
    print("TEST: Mock deployment end to end")
    print("=" * 70)

    protocol = build_protocol(_deployment(tmp_path, shard_ids))
    commitments = [hash_node(i, 1) for i in range(1, 6)]

    protocol.create_group(ADMIN, 42, 20)
    protocol.add_members(ADMIN, 42, commitments)

    group_root = protocol.get_root(42)
    assert group_root == merkle.compute_root(commitments, 20)
    siblings, bits = merkle.build_path(commitments, 3, 20)
    assert merkle.verify(group_root, commitments[3], siblings, bits)
    print("✓ Membership path verifies against the on-ledger root")

    shard = protocol.get_verifier_shard(20)
    assert shard.identity == shard_ids[6]

    nullifier = hash_node(commitments[3], 42)
    message = to_field(b"vote: yes")
    proof = make_mock_proof(20, (group_root, nullifier, message, 42))
    protocol.signal(42, group_root, nullifier, message, 42, proof)
    print("✓ Signal accepted")

    with pytest.raises(NullifierAlreadyUsedError):
        protocol.signal(42, group_root, nullifier, message, 42, proof)
    print("✓ Replay rejected")

    kinds = [type(event) for event in protocol.events.events]
    assert kinds == [GroupCreated] + [MemberAdded] * 5 + [Signal]


def test_groups_at_every_depth_route_to_their_shard(protocol, mock_shards):
    for depth in range(1, 33):
        protocol.create_group(ADMIN, depth, depth)
        protocol.add_member(ADMIN, depth, depth)
        group_root = protocol.get_root(depth)
        proof = make_mock_proof(depth, (group_root, 1000 + depth, 7, 7))
        protocol.signal(depth, group_root, 1000 + depth, 7, 7, proof)

    assert len(protocol.events.of_type(Signal)) == 32
    assert protocol.get_verifier_shard(1) is mock_shards[0]
    assert protocol.get_verifier_shard(32) is mock_shards[11]


def test_groth16_deployment_with_injected_check(tmp_path, shard_ids):
    vk_path = tmp_path / "params" / "semaphore" / "depth-10" / "vk.bin"
    vk_path.parent.mkdir(parents=True)
    vk_path.write_bytes(b"depth-10-vk")
    seen = []

    def pairing_check(vk, public_inputs, proof):
        seen.append(vk)
        return proof == b"valid"

    config = _deployment(
        tmp_path,
        shard_ids,
        verifier_backend="groth16",
        params_dir=str(tmp_path / "params"),
    )
    protocol = build_protocol(config, pairing_check=pairing_check)
    protocol.create_group(ADMIN, 1, 10)
    protocol.add_member(ADMIN, 1, 12345)
    group_root = protocol.get_root(1)

    def blob(proof):
        return encode_proof_blob(
            ProofBlob(v=1, d=10, public_inputs=(group_root, 5, 6, 7), proof=proof)
        )

    with pytest.raises(InvalidProofError):
        protocol.signal(1, group_root, 5, 6, 7, blob(b"forged"))
    assert not protocol.is_nullifier_used(5)

    protocol.signal(1, group_root, 5, 6, 7, blob(b"valid"))
    assert protocol.is_nullifier_used(5)
    assert seen == [b"depth-10-vk", b"depth-10-vk"]


def test_groth16_without_keys_rejects_every_proof(tmp_path, shard_ids):
    config = _deployment(
        tmp_path, shard_ids, verifier_backend="groth16", params_dir=str(tmp_path)
    )
    protocol = build_protocol(config, pairing_check=lambda vk, inputs, proof: True)
    protocol.create_group(ADMIN, 1, 4)
    group_root = protocol.get_root(1)
    blob = encode_proof_blob(
        ProofBlob(v=1, d=4, public_inputs=(group_root, 1, 2, 3), proof=b"p")
    )
    assert protocol.verify_proof(1, group_root, 1, 2, 3, blob) is False


def test_snapshot_survives_restart(tmp_path, mock_shards):
    protocol = SemaphoreProtocol(mock_shards, root_policy="historical")
    protocol.create_group(ADMIN, 9, 8)
    protocol.add_members(ADMIN, 9, [101, 102, 103])
    old_root = protocol.get_root(9)
    protocol.add_member(ADMIN, 9, 104)

    snapshot = Path(tmp_path) / "ledger.cbor"
    snapshot.write_bytes(protocol.state.to_bytes())

    restarted = SemaphoreProtocol(
        mock_shards,
        root_policy="historical",
        state=LedgerState.from_bytes(snapshot.read_bytes()),
    )
    proof = make_mock_proof(8, (old_root, 55, 66, 77))
    restarted.signal(9, old_root, 55, 66, 77, proof)

    assert restarted.get_root(9) == merkle.compute_root([101, 102, 103, 104], 8)
    assert restarted.get_group_size(9) == 4
