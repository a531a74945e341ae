"""
Deployment configuration.

A deployment lists the twelve verifier shard identities in shard-index
order (shard 1 first) and optionally pins the verifier backend, the root
policy and, for groth16, where verifying keys live:

    verifier_backend: groth16
    root_policy: strict
    params_dir: ./params
    verifier_shards:
      - "0x0123..."
      ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from .config import VERIFIER_SHARD_COUNT
from .exceptions import ConfigurationError
from .factory import build_verifier_shards
from .feature_flags import get_backend_type, get_root_policy
from .semaphore import SemaphoreProtocol

_KNOWN_KEYS = frozenset(
    {"verifier_backend", "root_policy", "params_dir", "verifier_shards"}
)


@dataclass(frozen=True)
class DeploymentConfig:
    verifier_shards: Tuple[str, ...]
    verifier_backend: Optional[str] = None
    root_policy: Optional[str] = None
    params_dir: Optional[Path] = None

    def validate(self) -> None:
        if len(self.verifier_shards) != VERIFIER_SHARD_COUNT:
            raise ConfigurationError(
                f"expected {VERIFIER_SHARD_COUNT} verifier shards, "
                f"got {len(self.verifier_shards)}"
            )
        if len(set(self.verifier_shards)) != len(self.verifier_shards):
            raise ConfigurationError("verifier shard identities must be unique")
        for position, identity in enumerate(self.verifier_shards, start=1):
            if not identity:
                raise ConfigurationError(f"verifier shard {position} is empty")
        try:
            get_backend_type(self.verifier_backend)
            get_root_policy(self.root_policy)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc


def parse_deployment(data: Any) -> DeploymentConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("deployment must be a mapping")

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"unknown deployment keys: {', '.join(unknown)}")

    shards = data.get("verifier_shards")
    if not isinstance(shards, list):
        raise ConfigurationError("verifier_shards must be a list")

    params_dir = data.get("params_dir")
    config = DeploymentConfig(
        verifier_shards=tuple(str(identity) for identity in shards),
        verifier_backend=data.get("verifier_backend"),
        root_policy=data.get("root_policy"),
        params_dir=Path(params_dir) if params_dir else None,
    )
    config.validate()
    return config


def load_deployment(path: str | Path) -> DeploymentConfig:
    """
    Load and validate a deployment YAML file.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigurationError(f"cannot read deployment file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
    return parse_deployment(data)


def build_protocol(config: DeploymentConfig, **shard_options: Any) -> SemaphoreProtocol:
    """Wire a protocol instance from a validated deployment."""
    config.validate()
    backend = get_backend_type(config.verifier_backend)
    if backend == "groth16" and config.params_dir is not None:
        shard_options.setdefault("params_dir", config.params_dir)

    shards = build_verifier_shards(
        config.verifier_shards, prefer=backend, **shard_options
    )
    return SemaphoreProtocol(shards, root_policy=config.root_policy)
