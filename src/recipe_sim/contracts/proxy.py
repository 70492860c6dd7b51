"""Owned execution proxies and the proxy registry."""
from __future__ import annotations

import logging

from ..abi import derive_address, normalize_address
from ..chain.state import LedgerState
from ..constants import ZERO_ADDRESS
from ..errors import RevertedExecution, Unauthorized
from .base import Contract, Env

__all__ = ["DSProxy", "ProxyRegistry", "create_proxy"]

logger = logging.getLogger(__name__)


class DSProxy(Contract):
    """Per-user proxy: runs target logic with the proxy's own custody.

    ``execute`` and ``setOwner`` are restricted to the owner or the proxy
    itself, so a ``ChangeProxyOwner`` action delegated through ``execute``
    may re-point ownership.
    """

    name = "DSProxy"
    METHODS = {
        "execute(address,bytes)": "execute",
        "setOwner(address)": "set_owner",
        "owner()": "owner",
    }

    def receive(self, env: Env) -> None:
        return None

    def owner(self, env: Env) -> str:
        return env.state.proxy_owners[env.address]

    def execute(self, env: Env, target: str, data: bytes) -> object:
        self._auth(env)
        target = normalize_address(target)
        if target == ZERO_ADDRESS or target not in env.state.code:
            raise RevertedExecution("ds-proxy-target-address-required")
        return env.delegate(target, data)

    def set_owner(self, env: Env, new_owner: str) -> None:
        self._auth(env)
        new_owner = normalize_address(new_owner)
        env.state.proxy_owners[env.address] = new_owner
        env.emit("LogSetOwner", owner=new_owner)

    def _auth(self, env: Env) -> None:
        owner = env.state.proxy_owners.get(env.address)
        if env.sender != env.address and env.sender != owner:
            raise Unauthorized(f"ds-auth-unauthorized: {env.sender} is not the owner of proxy {env.address}")


_PROXY_LOGIC = DSProxy()


def create_proxy(state: LedgerState, owner: str) -> str:
    owner = normalize_address(owner)
    address = derive_address(f"DSProxy:{owner}:{state.nonce}")
    state.nonce += 1
    state.code[address] = _PROXY_LOGIC
    state.proxy_owners[address] = owner
    state.proxies[owner] = address
    logger.debug("created proxy %s for %s", address, owner)
    return address


class ProxyRegistry(Contract):
    name = "ProxyRegistry"
    METHODS = {
        "build()": "build",
        "proxies(address)": "proxies",
    }

    def proxies(self, env: Env, owner: str) -> str:
        return env.state.proxies.get(normalize_address(owner), ZERO_ADDRESS)

    def build(self, env: Env) -> str:
        existing = env.state.proxies.get(env.sender)
        if existing is not None and env.state.proxy_owners.get(existing) == env.sender:
            raise RevertedExecution(f"proxy-registry: {env.sender} already owns proxy {existing}")
        address = create_proxy(env.state, env.sender)
        env.emit("Created", sender=env.sender, owner=env.sender, proxy=address)
        return address
