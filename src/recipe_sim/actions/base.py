"""Typed action descriptors and their call-data encoding."""
from __future__ import annotations

import re
from abc import ABC
from dataclasses import fields
from typing import Any, ClassVar

from eth_abi import encode
from eth_utils import is_address, keccak, to_checksum_address

from ..abi import encode_call
from ..constants import MAX_UINT256, ZERO_ADDRESS
from ..errors import ActionEncodingError

__all__ = [
    "EXECUTE_ACTION_DIRECT_SIG",
    "EXECUTE_ACTION_SIG",
    "MAX_REFERENCE",
    "Action",
    "action_id",
    "parse_reference",
]

EXECUTE_ACTION_SIG = "executeAction(bytes,bytes32[],uint8[],bytes32[])"
EXECUTE_ACTION_DIRECT_SIG = "executeActionDirect(bytes)"

# Param mappings travel as uint8.
MAX_REFERENCE = 255

_REFERENCE_RE = re.compile(r"^\$(\d+)$")


def action_id(name: str) -> bytes:
    """Registry id of a named contract: the first 4 bytes of keccak256(name)."""
    return keccak(text=name)[:4]


def parse_reference(value: Any) -> int | None:
    """Return ``n`` for a ``"$n"`` placeholder, ``None`` for a literal."""
    if not isinstance(value, str):
        return None
    match = _REFERENCE_RE.match(value.strip())
    if match is None:
        return None
    index = int(match.group(1))
    if index < 1 or index > MAX_REFERENCE:
        raise ActionEncodingError(f"Reference '{value}' must point to an action index between 1 and {MAX_REFERENCE}")
    return index


class Action(ABC):
    """Base for the closed set of action kinds.

    Subclasses are frozen dataclasses whose fields, in order, are the
    action's parameters. ``PARAM_TYPES`` gives the ABI type of each field.
    Any parameter may be a ``"$n"`` reference to the output of the n-th
    action (1-based) of the enclosing recipe.
    """

    action_name: ClassVar[str] = ""
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        names = self.param_names()
        if len(names) != len(self.PARAM_TYPES):
            raise TypeError(f"{type(self).__name__} declares {len(self.PARAM_TYPES)} ABI types for {len(names)} fields")
        for name, abi_type in zip(names, self.PARAM_TYPES):
            value = getattr(self, name)
            if parse_reference(value) is not None:
                object.__setattr__(self, name, value.strip())
                continue
            object.__setattr__(self, name, _validate_literal(self.action_name, name, abi_type, value))

    @classmethod
    def param_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))  # type: ignore[arg-type]

    @classmethod
    def abi_types(cls) -> tuple[str, ...]:
        return cls.PARAM_TYPES

    @property
    def action_id(self) -> bytes:
        return action_id(self.action_name)

    def arguments(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self.param_names())

    def param_mapping(self) -> tuple[int, ...]:
        return tuple(parse_reference(value) or 0 for value in self.arguments())

    def references(self) -> tuple[int, ...]:
        return tuple(ref for ref in self.param_mapping() if ref)

    def encode_call_data(self) -> bytes:
        """ABI-encode the parameter tuple; references are encoded as zero values."""
        values = [
            _zero_value(abi_type) if parse_reference(value) is not None else value
            for value, abi_type in zip(self.arguments(), self.PARAM_TYPES)
        ]
        return encode(list(self.PARAM_TYPES), values)

    def encode_for_proxy_call(self) -> bytes:
        """Calldata for running this action on its own through a proxy."""
        if self.references():
            raise ActionEncodingError(f"{self.action_name}: a direct action cannot use output references")
        return encode_call(EXECUTE_ACTION_DIRECT_SIG, [self.encode_call_data()])

    def describe(self) -> dict[str, Any]:
        return {
            "action": self.action_name,
            "args": {name: value for name, value in zip(self.param_names(), self.arguments())},
        }


def _zero_value(abi_type: str) -> Any:
    if abi_type == "address":
        return ZERO_ADDRESS
    return 0


def _validate_literal(action_name: str, param: str, abi_type: str, value: Any) -> Any:
    if abi_type.startswith("uint"):
        bits = int(abi_type[4:] or 256)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ActionEncodingError(
                f"{action_name}.{param} must be an integer or '$n' reference, got {type(value).__name__}"
            )
        upper = MAX_UINT256 if bits == 256 else 2**bits - 1
        if value < 0 or value > upper:
            raise ActionEncodingError(f"{action_name}.{param}={value} does not fit {abi_type}")
        return value
    if abi_type == "address":
        if not isinstance(value, str) or not is_address(value):
            raise ActionEncodingError(f"{action_name}.{param} must be a hex address, got {value!r}")
        return to_checksum_address(value)
    raise ActionEncodingError(f"{action_name}.{param}: unsupported ABI type '{abi_type}'")
