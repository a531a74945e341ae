"""
Depth to verifier-shard routing.

Verification circuits for all 32 depths do not fit a single verifier, so
they are spread over twelve shards. The assignment below must be identical
everywhere a shard is located (deployment, protocol, tooling):

    depths  1..24 -> shards 1..8,  three depths per shard
    depths 25..32 -> shards 9..12, two depths per shard
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

from .config import (
    DENSE_DEPTH_LIMIT,
    DENSE_DEPTHS_PER_SHARD,
    DENSE_SHARD_COUNT,
    MAX_TREE_DEPTH,
    MIN_TREE_DEPTH,
    SPARSE_DEPTHS_PER_SHARD,
    VERIFIER_SHARD_COUNT,
)
from .exceptions import ConfigurationError, UnsupportedDepthError
from .verifiers.interfaces import VerificationResult, Verifier

logger = logging.getLogger(__name__)


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def shard_index_for_depth(depth: int) -> int:
    """
    Map a tree depth to its 1-based verifier shard index.

    Raises:
        UnsupportedDepthError: If depth is not an int in 1..32.
    """
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise UnsupportedDepthError(f"unsupported depth: {depth!r}")
    if not MIN_TREE_DEPTH <= depth <= MAX_TREE_DEPTH:
        raise UnsupportedDepthError(f"unsupported depth: {depth}")

    if depth <= DENSE_DEPTH_LIMIT:
        return _ceil_div(depth, DENSE_DEPTHS_PER_SHARD)
    return DENSE_SHARD_COUNT + _ceil_div(
        depth - DENSE_DEPTH_LIMIT, SPARSE_DEPTHS_PER_SHARD
    )


def depths_for_shard(index: int) -> Tuple[int, ...]:
    """
    Depths served by the shard with the given 1-based index.

    Raises:
        ConfigurationError: If index is outside 1..12.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise ConfigurationError(f"invalid shard index: {index!r}")
    if not 1 <= index <= VERIFIER_SHARD_COUNT:
        raise ConfigurationError(f"invalid shard index: {index}")

    if index <= DENSE_SHARD_COUNT:
        first = (index - 1) * DENSE_DEPTHS_PER_SHARD + 1
        return tuple(range(first, first + DENSE_DEPTHS_PER_SHARD))

    offset = (index - DENSE_SHARD_COUNT - 1) * SPARSE_DEPTHS_PER_SHARD
    first = DENSE_DEPTH_LIMIT + offset + 1
    return tuple(range(first, first + SPARSE_DEPTHS_PER_SHARD))


class VerifierRouter:
    """Fixed table of twelve verifier shards, selected by depth."""

    def __init__(self, shards: Sequence[Verifier]) -> None:
        shards = tuple(shards)
        if len(shards) != VERIFIER_SHARD_COUNT:
            raise ConfigurationError(
                f"expected {VERIFIER_SHARD_COUNT} verifier shards, got {len(shards)}"
            )
        for position, shard in enumerate(shards, start=1):
            if not isinstance(shard, Verifier):
                raise ConfigurationError(
                    f"shard {position} does not implement Verifier: {shard!r}"
                )
        self._shards = shards

    @property
    def shards(self) -> Tuple[Verifier, ...]:
        return self._shards

    def shard_for(self, depth: int) -> Verifier:
        return self._shards[shard_index_for_depth(depth) - 1]

    def verify(self, depth: int, proof_blob: bytes) -> VerificationResult:
        """
        Dispatch a depth-tagged proof to its shard.

        A rejection is returned as-is; nothing is retried.
        """
        shard = self.shard_for(depth)
        result = shard.verify(depth, proof_blob)
        if not result.ok:
            logger.debug(
                "Shard %s rejected depth-%d proof: %s",
                shard.identity,
                depth,
                result.error,
            )
        return result
