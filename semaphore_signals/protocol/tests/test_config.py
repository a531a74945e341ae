"""
Unit tests for protocol constants.
"""

from semaphore_signals.protocol import config


def test_validate_config() -> None:
    assert config.validate_config() is True


def test_shard_split_covers_all_depths() -> None:
    dense = config.DENSE_DEPTH_LIMIT // config.DENSE_DEPTHS_PER_SHARD
    sparse = (config.MAX_TREE_DEPTH - config.DENSE_DEPTH_LIMIT) // config.SPARSE_DEPTHS_PER_SHARD
    assert dense == config.DENSE_SHARD_COUNT == 8
    assert dense + sparse == config.VERIFIER_SHARD_COUNT == 12


def test_domain_separators_are_distinct() -> None:
    separators = list(config.DOMAIN_SEPARATORS.values())
    assert len(set(separators)) == len(separators)
    assert all(s.startswith(config.DOMAIN_SEPARATOR_PREFIX) for s in separators)


def test_field_fits_in_element_bytes() -> None:
    assert config.SNARK_SCALAR_FIELD < 1 << (8 * config.FIELD_ELEMENT_BYTES)
    assert config.ZERO_VALUE_BASE == 0
