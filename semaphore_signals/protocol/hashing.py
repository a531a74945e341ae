"""
Field hashing for the membership accumulator.

The accumulator only needs a binary, order-sensitive compression function
over the scalar field. The default here is SHA-256 with domain separation,
reduced into the field; any ``(int, int) -> int`` callable can be passed
instead wherever a ``hash_fn`` argument is accepted (e.g. a Poseidon
implementation matching a deployed circuit).
"""

from __future__ import annotations

import hashlib
from typing import Callable, Union

from .config import DOMAIN_SEPARATORS, FIELD_ELEMENT_BYTES, SNARK_SCALAR_FIELD

HashFunction = Callable[[int, int], int]
FieldLike = Union[int, bytes, bytearray, str]


def is_field_element(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < SNARK_SCALAR_FIELD
    )


def to_field(value: FieldLike, label: str = "value") -> int:
    """
    Coerce an int, big-endian bytes or hex string into a field element.

    Raises:
        TypeError: If the value has an unsupported type.
        ValueError: If the value does not fit in the field.
    """
    if isinstance(value, bool):
        raise TypeError(f"{label} must be int, bytes or hex str")

    if isinstance(value, (bytes, bytearray)):
        if len(value) > FIELD_ELEMENT_BYTES:
            raise ValueError(f"{label} must be at most {FIELD_ELEMENT_BYTES} bytes")
        value = int.from_bytes(bytes(value), "big")
    elif isinstance(value, str):
        text = value[2:] if value.lower().startswith("0x") else value
        try:
            value = int(text, 16)
        except ValueError as exc:
            raise ValueError(f"{label} is not a hex string: {value!r}") from exc
    elif not isinstance(value, int):
        raise TypeError(f"{label} must be int, bytes or hex str")

    if not 0 <= value < SNARK_SCALAR_FIELD:
        raise ValueError(f"{label} is outside the scalar field")
    return value


def field_to_bytes(value: int) -> bytes:
    """Fixed-width (32 byte) big-endian encoding of a field element."""
    return value.to_bytes(FIELD_ELEMENT_BYTES, "big")


def hash_node(left: int, right: int) -> int:
    """
    Hash two child nodes into their parent.

    Args:
        left: Left child (field element)
        right: Right child (field element)

    Returns:
        Parent node as a field element

    Note:
        Uses fixed left||right ordering (no sorting).
        Domain separation applied.
    """
    if not is_field_element(left):
        raise ValueError("left child is not a field element")
    if not is_field_element(right):
        raise ValueError("right child is not a field element")

    digest = hashlib.sha256(
        DOMAIN_SEPARATORS["merkle_node"] + field_to_bytes(left) + field_to_bytes(right)
    ).digest()
    return int.from_bytes(digest, "big") % SNARK_SCALAR_FIELD


def short_hex(value: int) -> str:
    """Abbreviated hex for log lines."""
    text = f"{value:064x}"
    return f"0x{text[:10]}..."
