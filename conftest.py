"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from semaphore_signals.protocol import feature_flags
from semaphore_signals.protocol.factory import build_verifier_shards
from semaphore_signals.protocol.semaphore import SemaphoreProtocol

SHARD_IDS = [f"0x{index:040x}" for index in range(1, 13)]

_FLAG_ENV_VARS = ("SEMAPHORE_VERIFIER_BACKEND", "SEMAPHORE_ROOT_POLICY")


@pytest.fixture(autouse=True)
def reset_feature_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    feature_flags.set_backend_type(None)
    feature_flags.set_root_policy(None)
    for name in _FLAG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    feature_flags.set_backend_type(None)
    feature_flags.set_root_policy(None)


@pytest.fixture
def shard_ids() -> list[str]:
    return list(SHARD_IDS)


@pytest.fixture
def mock_shards(shard_ids):
    return build_verifier_shards(shard_ids, override="mock")


@pytest.fixture
def protocol(mock_shards) -> SemaphoreProtocol:
    return SemaphoreProtocol(mock_shards, root_policy="strict")
