"""
Verifier shard factory.

Builds the twelve shards a protocol instance routes to. Shard classes are
registered by dotted path and imported only when selected. The mock backend
is for testing only and must not be used in production.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Final, List, Optional, Sequence

from .config import VERIFIER_SHARD_COUNT
from .exceptions import ConfigurationError
from .feature_flags import get_backend_type
from .router import depths_for_shard
from .verifiers.interfaces import Verifier

logger = logging.getLogger(__name__)

BACKEND_REGISTRY: Final[dict[str, str]] = {
    "mock": "semaphore_signals.protocol.verifiers.mock.MockVerifierShard",
    "groth16": "semaphore_signals.protocol.verifiers.groth16.Groth16VerifierShard",
}


def _format_valid_options() -> str:
    return ", ".join(sorted(BACKEND_REGISTRY.keys()))


def _normalize_backend_name(value: str | None, *, source: str) -> str | None:
    if value is None or value == "":
        return None

    if not isinstance(value, str) or value not in BACKEND_REGISTRY:
        raise ValueError(
            f"Invalid backend name from {source}: {value!r}. "
            f"Valid options: {_format_valid_options()}"
        )

    return value


def _load_shard_class(backend_name: str) -> type[Verifier]:
    import_path = BACKEND_REGISTRY[backend_name]
    module_path, _, class_name = import_path.rpartition(".")
    if not module_path or not class_name:
        raise ValueError(
            f"Invalid backend import path for {backend_name!r}: {import_path!r}"
        )

    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import backend module {module_path!r} for {backend_name!r}"
        ) from exc

    try:
        shard_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Backend class {class_name!r} not found in module {module_path!r}"
        ) from exc

    if not isinstance(shard_cls, type) or not issubclass(shard_cls, Verifier):
        raise TypeError(f"Backend reference {import_path!r} is not a Verifier class")

    return shard_cls


def resolve_backend_name(
    *, prefer: str | None = None, override: str | None = None
) -> str:
    resolved_override = _normalize_backend_name(override, source="override")
    if resolved_override is not None:
        return resolved_override

    resolved_prefer = _normalize_backend_name(prefer, source="prefer")
    if resolved_prefer is not None:
        return resolved_prefer

    resolved_flag = get_backend_type()
    if resolved_flag not in BACKEND_REGISTRY:
        raise ValueError(
            f"Invalid backend name from feature flags: {resolved_flag!r}. "
            f"Valid options: {_format_valid_options()}"
        )
    return resolved_flag


def build_verifier_shards(
    identities: Sequence[str],
    *,
    prefer: Optional[str] = None,
    override: Optional[str] = None,
    **shard_options: Any,
) -> List[Verifier]:
    """
    Instantiate one shard per identity, in shard-index order.

    Args:
        identities: Exactly twelve shard identities (addresses or handles).
        prefer: Optional backend name hint.
        override: Optional backend name override (testing only).
        **shard_options: Extra keyword arguments for the shard class
            (e.g. ``params_dir`` or ``pairing_check`` for groth16).

    Raises:
        ConfigurationError: If the identity count is wrong.
        ValueError: If a backend name is invalid.
        ImportError: If the shard class cannot be imported.
    """
    identities = list(identities)
    if len(identities) != VERIFIER_SHARD_COUNT:
        raise ConfigurationError(
            f"expected {VERIFIER_SHARD_COUNT} verifier shard identities, "
            f"got {len(identities)}"
        )

    backend_name = resolve_backend_name(prefer=prefer, override=override)
    shard_cls = _load_shard_class(backend_name)
    logger.debug("Building %d %s verifier shards", len(identities), backend_name)

    return [
        shard_cls(identity, depths_for_shard(index), **shard_options)
        for index, identity in enumerate(identities, start=1)
    ]
