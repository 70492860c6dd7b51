"""ABI helpers shared by the action encoder and the simulated contracts."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, is_address, keccak, to_checksum_address

from .constants import MAX_UINT256

__all__ = [
    "WORD_SIZE",
    "decode_args",
    "derive_address",
    "encode_call",
    "from_word",
    "normalize_address",
    "selector",
    "signature_types",
    "split_types",
    "to_word",
]

WORD_SIZE = 32


def selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


def split_types(inner: str) -> tuple[str, ...]:
    """Split a comma separated ABI type list, keeping tuple types intact."""
    if not inner:
        return ()
    parts: list[str] = []
    depth = 0
    start = 0
    for idx, char in enumerate(inner):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced parentheses in type list '{inner}'")
        elif char == "," and depth == 0:
            parts.append(inner[start:idx])
            start = idx + 1
    if depth != 0:
        raise ValueError(f"Unbalanced parentheses in type list '{inner}'")
    parts.append(inner[start:])
    return tuple(part.strip() for part in parts)


def signature_types(signature: str) -> tuple[str, ...]:
    """Return the argument types of a function signature like ``execute(address,bytes)``."""
    open_idx = signature.find("(")
    if open_idx <= 0 or not signature.endswith(")"):
        raise ValueError(f"Invalid function signature '{signature}'")
    return split_types(signature[open_idx + 1 : -1])


def encode_call(signature: str, args: Sequence[Any] = ()) -> bytes:
    types = signature_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} expects {len(types)} argument(s), got {len(args)}")
    return selector(signature) + (encode(list(types), list(args)) if types else b"")


def decode_args(types: Sequence[str], data: bytes) -> tuple[Any, ...]:
    if not types:
        return ()
    return tuple(decode(list(types), data))


def normalize_address(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)) and len(value) == 20:
        return to_checksum_address(bytes(value))
    if isinstance(value, str) and is_address(value):
        return to_checksum_address(value)
    raise ValueError(f"Invalid address: {value!r}")


def derive_address(label: str) -> str:
    """Deterministic address for simulated deployments."""
    return to_checksum_address(keccak(text=label)[-20:])


def to_word(value: int | str | bytes | None) -> bytes:
    """Encode a return value as a 32-byte big-endian word."""
    if value is None:
        return b"\x00" * WORD_SIZE
    if isinstance(value, bool):
        return int(value).to_bytes(WORD_SIZE, "big")
    if isinstance(value, int):
        if value < 0 or value > MAX_UINT256:
            raise ValueError(f"Value {value} does not fit in a 256-bit word")
        return value.to_bytes(WORD_SIZE, "big")
    if isinstance(value, str):
        return bytes.fromhex(normalize_address(value)[2:]).rjust(WORD_SIZE, b"\x00")
    if len(value) > WORD_SIZE:
        raise ValueError("Byte value longer than one word")
    return bytes(value).rjust(WORD_SIZE, b"\x00")


def from_word(word: bytes, abi_type: str) -> Any:
    """Interpret a 32-byte word as a value of *abi_type*."""
    if len(word) != WORD_SIZE:
        raise ValueError(f"Expected a {WORD_SIZE}-byte word, got {len(word)} bytes")
    if abi_type.startswith("uint"):
        bits = int(abi_type[4:] or 256)
        value = int.from_bytes(word, "big")
        if value >= 2**bits:
            raise ValueError(f"Word does not fit {abi_type}")
        return value
    if abi_type == "address":
        return to_checksum_address(word[-20:])
    if abi_type == "bytes32":
        return bytes(word)
    raise ValueError(f"Cannot substitute a word for ABI type '{abi_type}'")
