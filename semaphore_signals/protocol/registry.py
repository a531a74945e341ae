"""
Durable protocol state: groups, frontiers, membership, nullifiers.

Every write goes through ``LedgerState`` and, inside ``transaction()``, is
journalled together with how to undo it. If the transaction body raises,
the journal is replayed backwards and the state is exactly what it was
before the call started. Nested transactions join the outer one.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import cbor2

from .config import MAX_TREE_DEPTH, MIN_TREE_DEPTH
from .hashing import is_field_element

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
MAX_GROUP_ID = 2**256


@dataclass(frozen=True)
class Group:
    """Per-group record. ``depth`` and ``admin`` never change after creation."""

    group_id: int
    admin: str
    depth: int
    size: int
    root: int


def _check_group_id(group_id: int) -> int:
    if isinstance(group_id, bool) or not isinstance(group_id, int):
        raise TypeError("group_id must be an int")
    if not 0 <= group_id < MAX_GROUP_ID:
        raise ValueError("group_id must fit in 256 bits")
    return group_id


class LedgerState:
    """In-process stand-in for the host ledger's storage."""

    def __init__(self) -> None:
        self._groups: Dict[int, Group] = {}
        self._frontiers: Dict[int, List[int]] = {}
        self._members: Dict[int, Set[int]] = {}
        self._root_history: Dict[int, Set[int]] = {}
        self._nullifiers: Set[int] = set()
        self._journal: Optional[List[Callable[[], None]]] = None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["LedgerState"]:
        if self._journal is not None:
            yield self
            return

        self._journal = []
        try:
            yield self
        except BaseException:
            undo_log, self._journal = self._journal, None
            for undo in reversed(undo_log):
                undo()
            logger.debug("Rolled back %d state writes", len(undo_log))
            raise
        self._journal = None

    @property
    def in_transaction(self) -> bool:
        return self._journal is not None

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal is None:
            raise RuntimeError("state writes require an open transaction")
        self._journal.append(undo)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_group(self, group_id: int) -> Optional[Group]:
        return self._groups.get(group_id)

    def group_depth(self, group_id: int) -> int:
        """Depth of the group, 0 when it does not exist."""
        group = self._groups.get(group_id)
        return group.depth if group is not None else 0

    def frontier(self, group_id: int) -> Tuple[int, ...]:
        return tuple(self._frontiers.get(group_id, ()))

    def is_member(self, group_id: int, identity_commitment: int) -> bool:
        return identity_commitment in self._members.get(group_id, ())

    def has_root(self, group_id: int, root: int) -> bool:
        return root in self._root_history.get(group_id, ())

    def is_nullifier_used(self, nullifier: int) -> bool:
        return nullifier in self._nullifiers

    def group_ids(self) -> List[int]:
        return sorted(self._groups)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_group(self, group: Group, initial_frontier: List[int]) -> None:
        group_id = _check_group_id(group.group_id)
        if group_id in self._groups:
            raise KeyError(f"group {group_id} already stored")

        self._record(lambda: self._drop_group(group_id))
        self._groups[group_id] = group
        self._frontiers[group_id] = list(initial_frontier)
        self._members[group_id] = set()
        self._root_history[group_id] = {group.root}

    def _drop_group(self, group_id: int) -> None:
        self._groups.pop(group_id, None)
        self._frontiers.pop(group_id, None)
        self._members.pop(group_id, None)
        self._root_history.pop(group_id, None)

    def update_group(self, group_id: int, *, size: int, root: int) -> Group:
        previous = self._groups[group_id]
        updated = replace(previous, size=size, root=root)
        self._record(lambda: self._groups.__setitem__(group_id, previous))
        self._groups[group_id] = updated

        history = self._root_history[group_id]
        if root not in history:
            self._record(lambda: history.discard(root))
            history.add(root)
        return updated

    def set_frontier_node(self, group_id: int, level: int, node: int) -> None:
        frontier = self._frontiers[group_id]
        previous = frontier[level]
        self._record(lambda: frontier.__setitem__(level, previous))
        frontier[level] = node

    def add_member(self, group_id: int, identity_commitment: int) -> None:
        members = self._members[group_id]
        if identity_commitment in members:
            return
        self._record(lambda: members.discard(identity_commitment))
        members.add(identity_commitment)

    def consume_nullifier(self, nullifier: int) -> None:
        if nullifier in self._nullifiers:
            return
        self._record(lambda: self._nullifiers.discard(nullifier))
        self._nullifiers.add(nullifier)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        """Serialize the whole state as CBOR."""
        if self.in_transaction:
            raise RuntimeError("cannot snapshot inside a transaction")

        groups = []
        for group_id in self.group_ids():
            group = self._groups[group_id]
            groups.append(
                {
                    "id": group.group_id,
                    "admin": group.admin,
                    "depth": group.depth,
                    "size": group.size,
                    "root": group.root,
                    "frontier": list(self._frontiers[group_id]),
                    "members": sorted(self._members[group_id]),
                    "roots": sorted(self._root_history[group_id]),
                }
            )
        payload = {
            "v": SNAPSHOT_VERSION,
            "groups": groups,
            "nullifiers": sorted(self._nullifiers),
        }
        return cbor2.dumps(payload)

    @classmethod
    def from_bytes(cls, data: bytes) -> "LedgerState":
        """
        Restore a state produced by ``to_bytes``.

        Every group is checked against the same invariants the protocol
        maintains: depth in 1..32, at most 2**depth members, one frontier
        node per level, the live root present in the root history, and
        field elements everywhere a node or commitment is stored.

        Raises:
            ValueError: If the snapshot is malformed or inconsistent.
        """
        try:
            payload = cbor2.loads(data)
        except Exception as exc:  # noqa: BLE001
            raise ValueError("snapshot is not valid CBOR") from exc
        if not isinstance(payload, dict) or payload.get("v") != SNAPSHOT_VERSION:
            raise ValueError("unsupported snapshot format")

        state = cls()
        try:
            for entry in _require_list(payload["groups"], "groups"):
                state._restore_group(entry)
            state._nullifiers = {
                _require_int(n, "nullifier")
                for n in _require_list(payload["nullifiers"], "nullifiers")
            }
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed snapshot: {exc}") from exc
        return state

    def _restore_group(self, entry: Dict) -> None:
        group_id = _check_group_id(entry["id"])
        if group_id in self._groups:
            raise ValueError(f"group {group_id} appears twice")
        label = f"group {group_id}"

        admin = entry["admin"]
        if not isinstance(admin, str):
            raise ValueError(f"{label} admin must be a str")
        depth = _require_int(entry["depth"], f"{label} depth")
        if not MIN_TREE_DEPTH <= depth <= MAX_TREE_DEPTH:
            raise ValueError(
                f"{label} depth {depth} outside {MIN_TREE_DEPTH}..{MAX_TREE_DEPTH}"
            )
        size = _require_int(entry["size"], f"{label} size")
        if not 0 <= size <= 1 << depth:
            raise ValueError(f"{label} size {size} does not fit depth {depth}")
        root = _require_field(entry["root"], f"{label} root")

        frontier = [
            _require_field(node, f"{label} frontier node")
            for node in _require_list(entry["frontier"], f"{label} frontier")
        ]
        if len(frontier) != depth:
            raise ValueError(f"{label} frontier length mismatch")

        member_list = _require_list(entry["members"], f"{label} members")
        members = {_require_field(m, f"{label} member") for m in member_list}
        if len(members) != len(member_list) or len(members) != size:
            raise ValueError(f"{label} member count mismatch")

        roots = {
            _require_field(r, f"{label} root history entry")
            for r in _require_list(entry["roots"], f"{label} roots")
        }
        if root not in roots:
            raise ValueError(f"{label} root history is missing the live root")

        self._groups[group_id] = Group(
            group_id=group_id, admin=admin, depth=depth, size=size, root=root
        )
        self._frontiers[group_id] = frontier
        self._members[group_id] = members
        self._root_history[group_id] = roots


def _require_list(value: Any, field: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{field} must be a list")
    return value


def _require_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an int")
    return value


def _require_field(value: Any, field: str) -> int:
    if not is_field_element(value):
        raise ValueError(f"{field} is not a field element")
    return value
