"""Public API for the semaphore signal protocol."""

from __future__ import annotations

from .deployment import DeploymentConfig, build_protocol, load_deployment
from .events import EventLog, GroupCreated, MemberAdded, Signal
from .exceptions import (
    AlreadyMemberError,
    ConfigurationError,
    DepthTooLargeError,
    GroupAlreadyExistsError,
    GroupNotFoundError,
    InvalidProofError,
    NotGroupAdminError,
    NullifierAlreadyUsedError,
    PreconditionError,
    SemaphoreError,
    TreeFullError,
    UnsupportedDepthError,
)
from .factory import build_verifier_shards
from .hashing import hash_node, to_field
from .merkle import IncrementalMerkleTree, calculate_root, verify, zero_values
from .registry import Group, LedgerState
from .router import VerifierRouter, depths_for_shard, shard_index_for_depth
from .semaphore import SemaphoreProtocol
from .verifiers import (
    Groth16VerifierShard,
    MockVerifierShard,
    VerificationResult,
    Verifier,
    make_mock_proof,
)

__all__ = [
    "SemaphoreProtocol",
    "LedgerState",
    "Group",
    "EventLog",
    "GroupCreated",
    "MemberAdded",
    "Signal",
    "IncrementalMerkleTree",
    "calculate_root",
    "verify",
    "zero_values",
    "hash_node",
    "to_field",
    "VerifierRouter",
    "shard_index_for_depth",
    "depths_for_shard",
    "Verifier",
    "VerificationResult",
    "MockVerifierShard",
    "Groth16VerifierShard",
    "make_mock_proof",
    "build_verifier_shards",
    "DeploymentConfig",
    "load_deployment",
    "build_protocol",
    "SemaphoreError",
    "ConfigurationError",
    "PreconditionError",
    "GroupAlreadyExistsError",
    "DepthTooLargeError",
    "GroupNotFoundError",
    "NotGroupAdminError",
    "AlreadyMemberError",
    "InvalidProofError",
    "NullifierAlreadyUsedError",
    "TreeFullError",
    "UnsupportedDepthError",
]
