"""Resolve per-depth verifying keys with layout fallbacks."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

PARAMS_DIR_ENV = "SEMAPHORE_PARAMS_DIR"


def resolve_vk(depth: int, base_dir: str | Path | None = None) -> Path:
    """
    Locate the verifying key for a depth.

    Checked in order:
        <base>/semaphore/depth-<d>/vk.bin
        <base>/semaphore_depth<d>_vk.bin

    Raises:
        FileNotFoundError: If no candidate exists.
    """
    base = Path(base_dir) if base_dir else default_params_dir()
    candidates = [
        base / "semaphore" / f"depth-{depth}" / "vk.bin",
        base / f"semaphore_depth{depth}_vk.bin",
    ]
    return _first_existing(candidates, f"semaphore depth-{depth} vk")


def default_params_dir() -> Path:
    return Path(os.getenv(PARAMS_DIR_ENV, Path.cwd() / "params"))


def _first_existing(candidates: Iterable[Path], label: str) -> Path:
    candidates = list(candidates)
    for path in candidates:
        if path.exists():
            return path
    raise FileNotFoundError(
        f"Unable to resolve {label}. Checked: {', '.join(str(p) for p in candidates)}"
    )
