"""Ledger state models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..constants import ZERO_ADDRESS

__all__ = ["Event", "LedgerState", "Subscription", "TxReceipt"]


@dataclass(slots=True)
class Subscription:
    owner: str
    position: int = 0
    subscribed: bool = True

    def clone(self) -> Subscription:
        return Subscription(owner=self.owner, position=self.position, subscribed=self.subscribed)


@dataclass(slots=True, frozen=True)
class Event:
    address: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class TxReceipt:
    block_number: int
    sender: str
    to: str
    value: int = 0
    return_value: Any = None
    events: tuple[Event, ...] = ()

    def events_named(self, name: str) -> list[Event]:
        return [event for event in self.events if event.name == name]


@dataclass(slots=True)
class LedgerState:
    block_number: int = 0
    nonce: int = 0

    # (token, holder) -> amount; the native asset uses ETH_ADDR as token.
    balances: dict[tuple[str, str], int] = field(default_factory=dict)
    # (token, owner, spender) -> amount
    allowances: dict[tuple[str, str, str], int] = field(default_factory=dict)
    # address -> contract logic; logic objects are stateless and shared between clones.
    code: dict[str, Any] = field(default_factory=dict)

    proxy_owners: dict[str, str] = field(default_factory=dict)
    proxies: dict[str, str] = field(default_factory=dict)

    registry: dict[bytes, str] = field(default_factory=dict)
    registry_owner: str = ZERO_ADDRESS

    exchange_wrappers: set[str] = field(default_factory=set)
    exchange_rates: dict[tuple[str, str, str], tuple[int, int]] = field(default_factory=dict)

    # subscriptions contract -> key (vault id or proxy address) -> entry
    subscriptions: dict[str, dict[Any, Subscription]] = field(default_factory=dict)

    def clone(self) -> LedgerState:
        return LedgerState(
            block_number=self.block_number,
            nonce=self.nonce,
            balances=dict(self.balances),
            allowances=dict(self.allowances),
            code=dict(self.code),
            proxy_owners=dict(self.proxy_owners),
            proxies=dict(self.proxies),
            registry=dict(self.registry),
            registry_owner=self.registry_owner,
            exchange_wrappers=set(self.exchange_wrappers),
            exchange_rates=dict(self.exchange_rates),
            subscriptions={
                contract: {key: entry.clone() for key, entry in entries.items()}
                for contract, entries in self.subscriptions.items()
            },
        )
