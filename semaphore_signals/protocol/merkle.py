"""
Incremental Merkle accumulator for group membership.

A group's tree has a fixed depth and is filled left to right. Instead of
storing leaves, a group keeps a frontier: for every level, the most recent
left node still waiting for its right sibling. Inserting a leaf walks from
the leaf to the root once, so each enrollment costs O(depth) hashes and
O(depth) storage per group, regardless of how many members exist.

Unfilled positions are padded with the zero-value table, where Z[0] is the
empty leaf and Z[i + 1] = H(Z[i], Z[i]) is the root of an empty subtree of
height i + 1.
"""

from __future__ import annotations

import functools
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import MAX_TREE_DEPTH, MIN_TREE_DEPTH, ZERO_VALUE_BASE
from .exceptions import TreeFullError
from .hashing import HashFunction, hash_node

FrontierUpdate = Tuple[int, int]

# Tables for non-default hash functions are kept LRU; the default one is pinned.
CUSTOM_ZERO_TABLE_CACHE_SIZE = 16

_ZERO_TABLES_LOCK = threading.Lock()
_default_zeros: Optional[Tuple[int, ...]] = None


def _build_zero_table(hash_fn: HashFunction) -> Tuple[int, ...]:
    values = [ZERO_VALUE_BASE]
    for _ in range(MAX_TREE_DEPTH):
        values.append(hash_fn(values[-1], values[-1]))
    return tuple(values)


_custom_zero_table = functools.lru_cache(maxsize=CUSTOM_ZERO_TABLE_CACHE_SIZE)(
    _build_zero_table
)


def zero_values(hash_fn: Optional[HashFunction] = None) -> Tuple[int, ...]:
    """
    Return the zero-value table Z[0..MAX_TREE_DEPTH].

    The default table is computed once and kept for the lifetime of the
    process; every group shares it. Tables for custom hash functions are
    cached per callable, keeping only the most recently used ones, so pass
    a module-level function rather than a fresh lambda per call.

    Example:
        zeros = zero_values()
        empty_root = zeros[depth]
    """
    global _default_zeros

    if hash_fn is None or hash_fn is hash_node:
        if _default_zeros is None:
            with _ZERO_TABLES_LOCK:
                if _default_zeros is None:
                    _default_zeros = _build_zero_table(hash_node)
        return _default_zeros

    with _ZERO_TABLES_LOCK:
        return _custom_zero_table(hash_fn)


@dataclass(frozen=True)
class InsertResult:
    """Outcome of a single incremental insertion."""

    root: int
    updates: List[FrontierUpdate] = field(default_factory=list)


def _check_depth(depth: int) -> None:
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise TypeError("depth must be an int")
    if not MIN_TREE_DEPTH <= depth <= MAX_TREE_DEPTH:
        raise ValueError(
            f"depth must be in {MIN_TREE_DEPTH}..{MAX_TREE_DEPTH}, got {depth}"
        )


def insert(
    leaf: int,
    depth: int,
    current_size: int,
    frontier: Sequence[int],
    zeros: Sequence[int],
    hash_fn: Optional[HashFunction] = None,
) -> InsertResult:
    """
    Compute the root after appending ``leaf`` at position ``current_size``.

    Args:
        leaf: New leaf value
        depth: Tree depth (number of levels above the leaves)
        current_size: Number of leaves already in the tree (index of the new leaf)
        frontier: Stored left nodes, one per level (read only)
        zeros: Zero-value table, at least ``depth`` entries
        hash_fn: Node hash (defaults to ``hash_node``)

    Returns:
        InsertResult with the new root and the (level, node) pairs to write
        back into the frontier. Only levels where the path goes left produce
        an update.

    Raises:
        TreeFullError: If the tree already holds 2**depth leaves.
        ValueError: If frontier or zeros are shorter than depth.
    """
    _check_depth(depth)
    hash_fn = hash_fn or hash_node

    if current_size < 0:
        raise ValueError("current_size must be non-negative")
    if current_size >= 1 << depth:
        raise TreeFullError(f"tree is full: depth {depth}")
    if len(frontier) < depth or len(zeros) < depth:
        raise ValueError("frontier and zeros must cover every level")

    index = current_size
    node = leaf
    updates: List[FrontierUpdate] = []

    for level in range(depth):
        if index & 1:
            # Right child: the stored left node is its sibling
            node = hash_fn(frontier[level], node)
        else:
            # Left child: remember it, pad the right with an empty subtree
            updates.append((level, node))
            node = hash_fn(node, zeros[level])
        index >>= 1

    return InsertResult(root=node, updates=updates)


def apply_updates(frontier: List[int], updates: Sequence[FrontierUpdate]) -> None:
    """Write insertion updates into a frontier list in place."""
    for level, node in updates:
        frontier[level] = node


def calculate_root(
    leaf: int,
    siblings: Sequence[int],
    path_is_right: Sequence[bool],
    hash_fn: Optional[HashFunction] = None,
) -> int:
    """
    Recompute a root from a leaf and its authentication path.

    Args:
        leaf: Leaf value
        siblings: Sibling at each level, leaf level first
        path_is_right: True where the current node is the right child

    Returns:
        Root implied by the path
    """
    if len(path_is_right) < len(siblings):
        raise ValueError("path_is_right must cover every sibling")
    hash_fn = hash_fn or hash_node

    current = leaf
    for sibling, is_right in zip(siblings, path_is_right):
        if is_right:
            # Sibling is on left, current on right
            current = hash_fn(sibling, current)
        else:
            # Sibling is on right, current on left
            current = hash_fn(current, sibling)
    return current


def verify(
    root: int,
    leaf: int,
    siblings: Sequence[int],
    path_is_right: Sequence[bool],
    hash_fn: Optional[HashFunction] = None,
) -> bool:
    """
    Verify a Merkle authentication path.

    Example:
        if verify(root, my_leaf, siblings, bits):
            print("Leaf is in tree")
    """
    return calculate_root(leaf, siblings, path_is_right, hash_fn) == root


def compute_root(
    leaves: Sequence[int],
    depth: int,
    zeros: Optional[Sequence[int]] = None,
    hash_fn: Optional[HashFunction] = None,
) -> int:
    """
    Rebuild a root from all leaves, zero-padded to 2**depth.

    Empty suffixes are filled from the zero table level by level, so the
    full 2**depth leaf layer is never materialised.
    """
    _check_depth(depth)
    hash_fn = hash_fn or hash_node
    zeros = zeros if zeros is not None else zero_values(hash_fn)

    if len(leaves) > 1 << depth:
        raise TreeFullError(
            f"tree is full: {len(leaves)} leaves do not fit depth {depth}"
        )
    if not leaves:
        return zeros[depth]

    nodes = list(leaves)
    for level in range(depth):
        if len(nodes) % 2:
            nodes.append(zeros[level])
        nodes = [hash_fn(nodes[i], nodes[i + 1]) for i in range(0, len(nodes), 2)]
    return nodes[0]


def build_path(
    leaves: Sequence[int],
    index: int,
    depth: int,
    zeros: Optional[Sequence[int]] = None,
    hash_fn: Optional[HashFunction] = None,
) -> Tuple[List[int], List[bool]]:
    """
    Build the authentication path for ``leaves[index]``.

    Returns:
        (siblings, path_is_right), leaf level first. Feeding them to
        ``calculate_root`` with the leaf yields ``compute_root(leaves, depth)``.
    """
    _check_depth(depth)
    hash_fn = hash_fn or hash_node
    zeros = zeros if zeros is not None else zero_values(hash_fn)

    if not 0 <= index < len(leaves):
        raise IndexError(f"leaf index {index} out of range")
    if len(leaves) > 1 << depth:
        raise TreeFullError(
            f"tree is full: {len(leaves)} leaves do not fit depth {depth}"
        )

    siblings: List[int] = []
    path_is_right: List[bool] = []
    nodes = list(leaves)
    position = index

    for level in range(depth):
        if len(nodes) % 2:
            nodes.append(zeros[level])
        siblings.append(nodes[position ^ 1])
        path_is_right.append(bool(position & 1))
        nodes = [hash_fn(nodes[i], nodes[i + 1]) for i in range(0, len(nodes), 2)]
        position >>= 1

    return siblings, path_is_right


class IncrementalMerkleTree:
    """
    In-memory accumulator for member-side tooling and tests.

    Holds the same state a group keeps on the ledger (depth, size, root and
    frontier) and nothing else.
    """

    def __init__(self, depth: int, hash_fn: Optional[HashFunction] = None) -> None:
        _check_depth(depth)
        self.depth = depth
        self.hash_fn = hash_fn or hash_node
        self.zeros = zero_values(self.hash_fn)
        self.frontier: List[int] = list(self.zeros[:depth])
        self.size = 0
        self.root = self.zeros[depth]

    def insert(self, leaf: int) -> int:
        """Append a leaf and return its index."""
        result = insert(
            leaf, self.depth, self.size, self.frontier, self.zeros, self.hash_fn
        )
        apply_updates(self.frontier, result.updates)
        self.root = result.root
        self.size += 1
        return self.size - 1

    def __len__(self) -> int:
        return self.size
