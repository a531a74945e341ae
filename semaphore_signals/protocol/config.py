"""
Protocol configuration for semaphore group signaling.

Constants shared by the accumulator, the verifier router and the signal
protocol. Changing any of these changes roots, shard assignment or proof
encoding, so they are treated as part of the wire format.
"""

# ============================================================================
# FIELD PARAMETERS
# ============================================================================

# BN254 scalar field (the field the membership circuits are defined over)
SNARK_SCALAR_FIELD = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
FIELD_ELEMENT_BYTES = 32

# ============================================================================
# TREE PARAMETERS
# ============================================================================

MIN_TREE_DEPTH = 1
MAX_TREE_DEPTH = 32

# Z[0]: empty leaf, the additive identity of the field
ZERO_VALUE_BASE = 0

# ============================================================================
# VERIFIER SHARDING
# ============================================================================

VERIFIER_SHARD_COUNT = 12

# Depths 1..24 pack three per shard (shards 1..8),
# depths 25..32 pack two per shard (shards 9..12).
DENSE_DEPTH_LIMIT = 24
DENSE_DEPTHS_PER_SHARD = 3
SPARSE_DEPTHS_PER_SHARD = 2
DENSE_SHARD_COUNT = DENSE_DEPTH_LIMIT // DENSE_DEPTHS_PER_SHARD

# [root, nullifier, message, scope]
PUBLIC_INPUT_COUNT = 4

# ============================================================================
# HASHING / DOMAIN SEPARATION
# ============================================================================

DOMAIN_SEPARATOR_PREFIX = b"SEMAPHORE_"

DOMAIN_SEPARATORS = {
    "merkle_node": DOMAIN_SEPARATOR_PREFIX + b"MERKLE_NODE_V1",
    "mock_proof": DOMAIN_SEPARATOR_PREFIX + b"MOCK_PROOF_V1",
}

# ============================================================================
# PROOF BLOB ENCODING
# ============================================================================

PROOF_BLOB_VERSION = 1
MAX_PROOF_BLOB_BYTES = 16 * 1024
MAX_PUBLIC_INPUTS = 16

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert SNARK_SCALAR_FIELD.bit_length() == 254, "Unexpected field size"
    assert SNARK_SCALAR_FIELD < 2 ** (8 * FIELD_ELEMENT_BYTES), "Field too large"
    assert 0 <= ZERO_VALUE_BASE < SNARK_SCALAR_FIELD, "Zero value outside field"
    assert 1 <= MIN_TREE_DEPTH <= MAX_TREE_DEPTH, "Invalid depth bounds"
    assert DENSE_DEPTH_LIMIT % DENSE_DEPTHS_PER_SHARD == 0, "Uneven dense split"

    sparse_depths = MAX_TREE_DEPTH - DENSE_DEPTH_LIMIT
    assert sparse_depths % SPARSE_DEPTHS_PER_SHARD == 0, "Uneven sparse split"
    assert (
        DENSE_SHARD_COUNT + sparse_depths // SPARSE_DEPTHS_PER_SHARD
        == VERIFIER_SHARD_COUNT
    ), "Shard split does not cover all shards"

    assert PUBLIC_INPUT_COUNT <= MAX_PUBLIC_INPUTS, "Public input limit too small"
    return True


# Auto-validate on import
validate_config()
