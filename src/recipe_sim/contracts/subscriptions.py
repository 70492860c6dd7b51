"""Legacy automation subscription books."""
from __future__ import annotations

from typing import Any

from ..abi import normalize_address
from ..errors import RevertedExecution, Unauthorized
from .base import Contract, Env

__all__ = ["ProxySubscriptions", "VaultSubscriptions"]


class _Subscriptions(Contract):
    def _book(self, env: Env) -> dict[Any, Any]:
        return env.state.subscriptions.setdefault(env.address, {})

    def _position(self, env: Env, key: Any) -> tuple[int, bool]:
        entry = self._book(env).get(key)
        if entry is None:
            return (0, False)
        return (entry.position, entry.subscribed)

    def _unsubscribe(self, env: Env, key: Any) -> None:
        entry = self._book(env).get(key)
        if entry is None or not entry.subscribed:
            raise RevertedExecution(f"{self.name}: {key} is not subscribed")
        if entry.owner != env.sender:
            raise Unauthorized(f"{self.name}: {env.sender} does not own subscription {key}")
        entry.subscribed = False
        env.emit("Unsubscribed", key=key, owner=entry.owner)


class VaultSubscriptions(_Subscriptions):
    """Subscriptions keyed by vault id; only the vault's proxy may unsubscribe."""

    name = "McdSubscriptions"
    METHODS = {
        "subscribersPos(uint256)": "subscribers_pos",
        "unsubscribe(uint256)": "unsubscribe",
    }

    def subscribers_pos(self, env: Env, cdp_id: int) -> tuple[int, bool]:
        return self._position(env, cdp_id)

    def unsubscribe(self, env: Env, cdp_id: int) -> None:
        self._unsubscribe(env, cdp_id)


class ProxySubscriptions(_Subscriptions):
    """Subscriptions keyed by the subscribing proxy's address."""

    METHODS = {
        "subscribersPos(address)": "subscribers_pos",
        "unsubscribe()": "unsubscribe",
    }

    def __init__(self, name: str) -> None:
        self.name = name

    def subscribers_pos(self, env: Env, proxy: str) -> tuple[int, bool]:
        return self._position(env, normalize_address(proxy))

    def unsubscribe(self, env: Env) -> None:
        self._unsubscribe(env, env.sender)
