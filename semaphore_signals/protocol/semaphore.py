"""
Group membership and anonymous signaling.

Entrypoints mirror what the ledger exposes: an admin creates a group with a
fixed tree depth and enrolls identity commitments; any member can then
broadcast a signal by presenting a proof that binds (root, nullifier,
message, scope). A nullifier is accepted once, across all groups.

State-changing entrypoints are all-or-nothing: a precondition failure
raises and leaves no trace in state or in the event log.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence

from . import merkle
from .config import MAX_TREE_DEPTH, MIN_TREE_DEPTH, PUBLIC_INPUT_COUNT
from .events import Event, EventLog, GroupCreated, MemberAdded, Signal
from .exceptions import (
    AlreadyMemberError,
    ConfigurationError,
    DepthTooLargeError,
    GroupAlreadyExistsError,
    GroupNotFoundError,
    InvalidProofError,
    NotGroupAdminError,
    NullifierAlreadyUsedError,
)
from .feature_flags import ROOT_POLICY_HISTORICAL, ROOT_POLICY_STRICT, get_root_policy
from .hashing import HashFunction, hash_node, is_field_element, short_hex
from .registry import Group, LedgerState
from .router import VerifierRouter
from .verifiers.interfaces import Verifier

logger = logging.getLogger(__name__)


def _require_field(value: int, label: str) -> int:
    if not is_field_element(value):
        raise ValueError(f"{label} must be a field element")
    return value


class SemaphoreProtocol:
    """
    Protocol state machine over a ``LedgerState``.

    Args:
        verifier_shards: Exactly twelve verifiers, in shard-index order.
        root_policy: ``"strict"`` (claimed root must be the live root) or
            ``"historical"`` (any root the group has had). Defaults to the
            ``SEMAPHORE_ROOT_POLICY`` feature flag.
        hash_fn: Node hash for the accumulators (default SHA-256 field hash).
        state: Existing state to operate on (e.g. a restored snapshot).
        events: Event log to publish to.

    Raises:
        ConfigurationError: On a wrong shard count or an unknown policy.
    """

    def __init__(
        self,
        verifier_shards: Sequence[Verifier],
        *,
        root_policy: Optional[str] = None,
        hash_fn: Optional[HashFunction] = None,
        state: Optional[LedgerState] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self._router = VerifierRouter(verifier_shards)
        try:
            self._root_policy = get_root_policy(root_policy)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        self._hash_fn = hash_fn or hash_node
        self._zeros = merkle.zero_values(self._hash_fn)
        self._state = state if state is not None else LedgerState()
        self._events = events if events is not None else EventLog()

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def root_policy(self) -> str:
        return self._root_policy

    @property
    def router(self) -> VerifierRouter:
        return self._router

    @contextmanager
    def _call(self) -> Iterator[List[Event]]:
        pending: List[Event] = []
        with self._state.transaction():
            yield pending
        self._events.publish(pending)

    def _require_group(self, group_id: int) -> Group:
        group = self._state.get_group(group_id)
        if group is None:
            raise GroupNotFoundError(f"group {group_id} does not exist")
        return group

    # ------------------------------------------------------------------
    # State-changing entrypoints
    # ------------------------------------------------------------------

    def create_group(self, caller: str, group_id: int, depth: int) -> Group:
        """
        Create an empty group administered by ``caller``.

        Raises:
            GroupAlreadyExistsError: If the id is taken.
            DepthTooLargeError: If depth is outside 1..32.
        """
        if self._state.get_group(group_id) is not None:
            raise GroupAlreadyExistsError(f"group {group_id} already exists")
        if (
            isinstance(depth, bool)
            or not isinstance(depth, int)
            or not MIN_TREE_DEPTH <= depth <= MAX_TREE_DEPTH
        ):
            raise DepthTooLargeError(f"depth {depth!r} too large")

        group = Group(
            group_id=group_id,
            admin=caller,
            depth=depth,
            size=0,
            root=self._zeros[depth],
        )
        with self._call() as emit:
            self._state.create_group(group, list(self._zeros[:depth]))
            emit.append(GroupCreated(group_id=group_id, depth=depth, admin=caller))

        logger.info("Created group %d (depth %d) for %s", group_id, depth, caller)
        return group

    def add_member(self, caller: str, group_id: int, identity_commitment: int) -> int:
        """
        Enroll an identity commitment and return its leaf index.

        Raises:
            GroupNotFoundError, NotGroupAdminError, AlreadyMemberError,
            TreeFullError
        """
        with self._call() as emit:
            return self._add_member(caller, group_id, identity_commitment, emit)

    def add_members(
        self, caller: str, group_id: int, identity_commitments: Iterable[int]
    ) -> List[int]:
        """Enroll several commitments atomically; either all join or none."""
        with self._call() as emit:
            return [
                self._add_member(caller, group_id, commitment, emit)
                for commitment in identity_commitments
            ]

    def _add_member(
        self,
        caller: str,
        group_id: int,
        identity_commitment: int,
        emit: List[Event],
    ) -> int:
        group = self._require_group(group_id)
        if caller != group.admin:
            raise NotGroupAdminError(f"only admin can add members to group {group_id}")
        _require_field(identity_commitment, "identity_commitment")
        if self._state.is_member(group_id, identity_commitment):
            raise AlreadyMemberError(
                f"{short_hex(identity_commitment)} already in group {group_id}"
            )

        result = merkle.insert(
            identity_commitment,
            group.depth,
            group.size,
            self._state.frontier(group_id),
            self._zeros,
            self._hash_fn,
        )
        for level, node in result.updates:
            self._state.set_frontier_node(group_id, level, node)
        index = group.size
        self._state.update_group(group_id, size=index + 1, root=result.root)
        self._state.add_member(group_id, identity_commitment)

        emit.append(
            MemberAdded(
                group_id=group_id,
                index=index,
                identity_commitment=identity_commitment,
                root=result.root,
            )
        )
        logger.info(
            "Added member %d to group %d, root %s",
            index,
            group_id,
            short_hex(result.root),
        )
        return index

    def signal(
        self,
        group_id: int,
        claimed_root: int,
        nullifier: int,
        message: int,
        scope: int,
        proof: bytes,
    ) -> Signal:
        """
        Broadcast a message after checking the proof and the nullifier.

        Raises:
            InvalidProofError: If ``verify_proof`` rejects.
            NullifierAlreadyUsedError: If the nullifier was consumed before.
        """
        if not self.verify_proof(group_id, claimed_root, nullifier, message, scope, proof):
            raise InvalidProofError(f"invalid proof for group {group_id}")
        if self._state.is_nullifier_used(nullifier):
            raise NullifierAlreadyUsedError(
                f"nullifier already used: {short_hex(nullifier)}"
            )

        event = Signal(
            group_id=group_id,
            root=claimed_root,
            nullifier=nullifier,
            message=message,
            scope=scope,
        )
        with self._call() as emit:
            self._state.consume_nullifier(nullifier)
            emit.append(event)

        logger.info("Signal in group %d, nullifier %s", group_id, short_hex(nullifier))
        return event

    # ------------------------------------------------------------------
    # Read-only entrypoints
    # ------------------------------------------------------------------

    def verify_proof(
        self,
        group_id: int,
        claimed_root: int,
        nullifier: int,
        message: int,
        scope: int,
        proof: bytes,
    ) -> bool:
        """
        Check a membership proof against caller-supplied public values.

        Returns False for an unknown group, a root the root policy does not
        accept, a shard rejection, or public inputs that differ from
        ``[claimed_root, nullifier, message, scope]``.
        """
        group = self._state.get_group(group_id)
        if group is None:
            logger.debug("Proof for unknown group %d", group_id)
            return False

        if self._root_policy == ROOT_POLICY_STRICT:
            root_ok = claimed_root == group.root
        else:
            root_ok = self._state.has_root(group_id, claimed_root)
        if not root_ok:
            logger.warning(
                "Claimed root not accepted for group %d (%s policy)",
                group_id,
                self._root_policy,
            )
            return False

        result = self._router.verify(group.depth, proof)
        if not result.ok:
            logger.warning("Proof rejected for group %d: %s", group_id, result.error)
            return False

        if len(result.public_inputs) != PUBLIC_INPUT_COUNT:
            logger.warning(
                "Proof for group %d carries %d public inputs",
                group_id,
                len(result.public_inputs),
            )
            return False

        expected = (claimed_root, nullifier, message, scope)
        if tuple(result.public_inputs) != expected:
            logger.warning("Public inputs mismatch for group %d", group_id)
            return False
        return True

    def get_root(self, group_id: int) -> int:
        return self._require_group(group_id).root

    def get_group_admin(self, group_id: int) -> str:
        return self._require_group(group_id).admin

    def get_group_depth(self, group_id: int) -> int:
        """Depth of the group; 0 means the group does not exist."""
        return self._state.group_depth(group_id)

    def get_group_size(self, group_id: int) -> int:
        return self._require_group(group_id).size

    def get_verifier_shard(self, depth: int) -> Verifier:
        return self._router.shard_for(depth)

    def group_exists(self, group_id: int) -> bool:
        return self._state.group_depth(group_id) != 0

    def is_member(self, group_id: int, identity_commitment: int) -> bool:
        return self._state.is_member(group_id, identity_commitment)

    def is_nullifier_used(self, nullifier: int) -> bool:
        return self._state.is_nullifier_used(nullifier)

    def zero_values(self) -> Sequence[int]:
        return self._zeros


__all__ = [
    "SemaphoreProtocol",
    "ROOT_POLICY_STRICT",
    "ROOT_POLICY_HISTORICAL",
]
