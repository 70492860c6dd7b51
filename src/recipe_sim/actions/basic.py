"""Basic utility actions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .base import Action

__all__ = [
    "AutomationV2UnsubAction",
    "ChangeProxyOwnerAction",
    "PullTokenAction",
    "SellAction",
    "SendTokenAction",
    "SubInputsAction",
    "SumInputsAction",
    "UnwrapEthAction",
    "WrapEthAction",
]

# Amount parameters accept an int or a "$n" reference.
Amount = int | str


@dataclass(frozen=True, slots=True)
class WrapEthAction(Action):
    """Wrap the proxy's native balance into the wrapped native token."""

    action_name: ClassVar[str] = "WrapEth"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("uint256",)

    amount: Amount


@dataclass(frozen=True, slots=True)
class UnwrapEthAction(Action):
    """Unwrap the proxy's wrapped native token and send the native value to ``to``."""

    action_name: ClassVar[str] = "UnwrapEth"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("uint256", "address")

    amount: Amount
    to: str


@dataclass(frozen=True, slots=True)
class SendTokenAction(Action):
    action_name: ClassVar[str] = "SendToken"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("address", "address", "uint256")

    token: str
    to: str
    amount: Amount


@dataclass(frozen=True, slots=True)
class PullTokenAction(Action):
    """Pull tokens into the proxy from an account that approved it."""

    action_name: ClassVar[str] = "PullToken"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("address", "address", "uint256")

    token: str
    from_addr: str
    amount: Amount


@dataclass(frozen=True, slots=True)
class SumInputsAction(Action):
    action_name: ClassVar[str] = "SumInputs"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("uint256", "uint256")

    a: Amount
    b: Amount


@dataclass(frozen=True, slots=True)
class SubInputsAction(Action):
    action_name: ClassVar[str] = "SubInputs"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("uint256", "uint256")

    a: Amount
    b: Amount


@dataclass(frozen=True, slots=True)
class ChangeProxyOwnerAction(Action):
    action_name: ClassVar[str] = "ChangeProxyOwner"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("address",)

    new_owner: str


@dataclass(frozen=True, slots=True)
class AutomationV2UnsubAction(Action):
    """Unsubscribe from legacy automation.

    ``protocol`` selects the subscriptions contract: 0 for vaults (keyed by
    ``cdp_id``), 1 for compound and 2 for aave (keyed by the calling proxy).
    """

    action_name: ClassVar[str] = "AutomationV2Unsub"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("uint8", "uint256")

    protocol: int | str
    cdp_id: Amount = 0


@dataclass(frozen=True, slots=True)
class SellAction(Action):
    """Market sell ``amount`` of ``src_token`` through an allow-listed exchange wrapper."""

    action_name: ClassVar[str] = "DFSSell"
    PARAM_TYPES: ClassVar[tuple[str, ...]] = ("address", "address", "uint256", "address", "address", "address")

    src_token: str
    dest_token: str
    amount: Amount
    wrapper: str
    from_addr: str
    to: str
