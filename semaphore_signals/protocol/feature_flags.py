"""
Feature flags for verifier backend and root-binding policy selection.

WARNING: the mock backend accepts forgeable proofs; selecting it affects
security assumptions.
"""

from __future__ import annotations

import os
from typing import Dict, Final, Optional, Tuple

VERIFIER_BACKEND: Final[str] = "verifier_backend"
ROOT_POLICY: Final[str] = "root_policy"

ROOT_POLICY_STRICT: Final[str] = "strict"
ROOT_POLICY_HISTORICAL: Final[str] = "historical"

# flag -> (valid values, default, env var)
_FLAGS: Final[Dict[str, Tuple[Tuple[str, ...], str, str]]] = {
    VERIFIER_BACKEND: (("mock", "groth16"), "mock", "SEMAPHORE_VERIFIER_BACKEND"),
    ROOT_POLICY: (
        (ROOT_POLICY_STRICT, ROOT_POLICY_HISTORICAL),
        ROOT_POLICY_STRICT,
        "SEMAPHORE_ROOT_POLICY",
    ),
}

_overrides: Dict[str, Optional[str]] = {flag: None for flag in _FLAGS}


def _format_valid_options(flag: str) -> str:
    return ", ".join(_FLAGS[flag][0])


def _normalize(flag: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None

    if not isinstance(value, str) or (value and value not in _FLAGS[flag][0]):
        raise ValueError(
            f"Invalid {flag.replace('_', ' ')}: {value!r}. "
            f"Valid options: {_format_valid_options(flag)}"
        )

    return value or None


def _resolve(flag: str, prefer: Optional[str]) -> str:
    preferred = _normalize(flag, prefer)
    if preferred is not None:
        return preferred

    override = _overrides[flag]
    if override is not None:
        return override

    _, default, env_var = _FLAGS[flag]
    env_value = _normalize(flag, os.getenv(env_var))
    if env_value is not None:
        return env_value

    return default


def get_backend_type(prefer: Optional[str] = None) -> str:
    """
    Resolve the verifier backend in precedence order.

    Args:
        prefer: Optional preferred backend type.

    Returns:
        Backend type string.

    Raises:
        ValueError: If a provided backend value is invalid.
    """
    return _resolve(VERIFIER_BACKEND, prefer)


def set_backend_type(value: Optional[str]) -> None:
    """Set in-memory backend override (testing only). None clears it."""
    _overrides[VERIFIER_BACKEND] = _normalize(VERIFIER_BACKEND, value)


def get_root_policy(prefer: Optional[str] = None) -> str:
    """Resolve the root-binding policy in precedence order."""
    return _resolve(ROOT_POLICY, prefer)


def set_root_policy(value: Optional[str]) -> None:
    """Set in-memory root policy override (testing only). None clears it."""
    _overrides[ROOT_POLICY] = _normalize(ROOT_POLICY, value)


def env_var_for(flag: str) -> str:
    return _FLAGS[flag][2]
