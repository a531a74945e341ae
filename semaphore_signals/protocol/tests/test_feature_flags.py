"""
Unit tests for feature flag backend and root policy selection.
"""

import pytest

from semaphore_signals.protocol import feature_flags


def test_default_backend_is_mock() -> None:
    assert feature_flags.get_backend_type() == "mock"


def test_env_var_controls_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_VERIFIER_BACKEND", "groth16")
    assert feature_flags.get_backend_type() == "groth16"


def test_prefer_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_VERIFIER_BACKEND", "groth16")
    assert feature_flags.get_backend_type(prefer="mock") == "mock"


def test_set_backend_type_overrides_and_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_VERIFIER_BACKEND", "mock")
    feature_flags.set_backend_type("groth16")
    assert feature_flags.get_backend_type() == "groth16"
    feature_flags.set_backend_type(None)
    assert feature_flags.get_backend_type() == "mock"


def test_empty_env_var_treated_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_VERIFIER_BACKEND", "")
    assert feature_flags.get_backend_type() == "mock"


def test_invalid_backend_raises() -> None:
    with pytest.raises(ValueError, match="Invalid verifier backend"):
        feature_flags.get_backend_type(prefer="pedersen")
    with pytest.raises(ValueError, match="Invalid verifier backend"):
        feature_flags.set_backend_type("pedersen")


def test_default_root_policy_is_strict() -> None:
    assert feature_flags.get_root_policy() == feature_flags.ROOT_POLICY_STRICT


def test_env_var_controls_root_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_ROOT_POLICY", "historical")
    assert feature_flags.get_root_policy() == "historical"
    feature_flags.set_root_policy("strict")
    assert feature_flags.get_root_policy() == "strict"


def test_invalid_root_policy_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_ROOT_POLICY", "lenient")
    with pytest.raises(ValueError, match="Invalid root policy"):
        feature_flags.get_root_policy()


def test_flags_are_independent() -> None:
    feature_flags.set_backend_type("groth16")
    assert feature_flags.get_root_policy() == "strict"
    assert feature_flags.env_var_for(feature_flags.ROOT_POLICY) == "SEMAPHORE_ROOT_POLICY"
