"""Per-scenario fixtures and the helper operations tests drive the node with."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

from .abi import encode_call, normalize_address
from .actions import RECIPE_EXECUTOR, Action, AutomationV2UnsubAction, ChangeProxyOwnerAction, Recipe, action_id
from .chain.fork import ForkController
from .chain.genesis import DFS_REGISTRY_ADDR, PROXY_REGISTRY_ADDR, WRAPPER_REGISTRY_ADDR, build_fork_state
from .chain.node import ChainNode
from .chain.state import TxReceipt
from .config import HarnessConfig
from .constants import ETH_ADDR, MAX_UINT256, WETH_ADDRESS, ZERO_ADDRESS

__all__ = [
    "Fixture",
    "ProxyHandle",
    "approve",
    "automation_v2_unsub",
    "balance_of",
    "build_fixture",
    "change_proxy_owner",
    "deposit_to_weth",
    "execute_action",
    "get_addr_from_registry",
    "get_proxy",
    "send",
    "send_ether",
    "set_new_exchange_wrapper",
    "subscription",
]

logger = logging.getLogger(__name__)


class ProxyHandle:
    """A proxy bound to the account that signs its calls."""

    def __init__(self, node: ChainNode, address: str, signer: str) -> None:
        self.node = node
        self.address = normalize_address(address)
        self.signer = normalize_address(signer)

    def __repr__(self) -> str:
        return f"ProxyHandle(address={self.address}, signer={self.signer})"

    def connect(self, signer: str) -> ProxyHandle:
        return ProxyHandle(self.node, self.address, signer)

    def owner(self) -> str:
        return self.node.call(self.address, encode_call("owner()"))

    def execute(self, target: str, data: bytes, value: int = 0) -> TxReceipt:
        return self.node.send_transaction(
            self.signer,
            self.address,
            encode_call("execute(address,bytes)", [normalize_address(target), data]),
            value=value,
        )

    def execute_action(self, name: str, data: bytes, value: int = 0) -> TxReceipt:
        """Execute *data* against the logic registered under *name*."""
        return self.execute(get_addr_from_registry(self.node, name), data, value=value)

    def execute_recipe(self, recipe: Recipe, value: int = 0) -> TxReceipt:
        logger.info("executing recipe %s (%d action(s)) via %s", recipe.name, len(recipe), self.address)
        return self.execute_action(RECIPE_EXECUTOR, recipe.encode_for_proxy_call(), value=value)

    def execute_direct(self, action: Action, value: int = 0) -> TxReceipt:
        return self.execute_action(action.action_name, action.encode_for_proxy_call(), value=value)

    def change_owner(self, new_owner: str) -> TxReceipt:
        return self.execute_direct(ChangeProxyOwnerAction(new_owner))


@dataclass(slots=True)
class Fixture:
    config: HarnessConfig
    node: ChainNode
    fork: ForkController
    sender: str
    proxy: ProxyHandle


def build_fixture(config: HarnessConfig | None = None, *, signer_index: int = 0) -> Fixture:
    """Fresh node, fork controller, sender and the sender's proxy; nothing is shared."""
    config = config or HarnessConfig()
    if not 0 <= signer_index < config.signer_count:
        raise ValueError(f"signer_index must be between 0 and {config.signer_count - 1}, got {signer_index}")
    baseline = partial(build_fork_state, signers=config.signers, signer_balance=config.signer_balance)
    node = ChainNode(baseline(config.fork_block), signers=config.signers)
    fork = ForkController(node, baseline)
    sender = config.signers[signer_index]
    return Fixture(config=config, node=node, fork=fork, sender=sender, proxy=get_proxy(node, sender))


def get_addr_from_registry(node: ChainNode, name: str) -> str:
    address = node.call(DFS_REGISTRY_ADDR, encode_call("getAddr(bytes4)", [action_id(name)]))
    if address == ZERO_ADDRESS:
        raise LookupError(f"'{name}' is not in the registry")
    return address


def get_proxy(node: ChainNode, owner: str) -> ProxyHandle:
    """Return *owner*'s proxy, building one on first use."""
    owner = normalize_address(owner)
    address = node.call(PROXY_REGISTRY_ADDR, encode_call("proxies(address)", [owner]))
    if address == ZERO_ADDRESS:
        receipt = node.send_transaction(owner, PROXY_REGISTRY_ADDR, encode_call("build()"))
        address = receipt.return_value
        logger.info("built proxy %s for %s", address, owner)
    return ProxyHandle(node, address, owner)


def execute_action(proxy: ProxyHandle, name: str, data: bytes, value: int = 0) -> TxReceipt:
    return proxy.execute_action(name, data, value=value)


def balance_of(node: ChainNode, token: str, holder: str) -> int:
    return node.balance_of(token, holder)


def deposit_to_weth(node: ChainNode, sender: str, amount: int) -> TxReceipt:
    return node.send_transaction(sender, WETH_ADDRESS, encode_call("deposit()"), value=amount)


def send_ether(node: ChainNode, sender: str, to: str, amount: int) -> TxReceipt:
    return node.send_transaction(sender, to, value=amount)


def send(node: ChainNode, token: str, sender: str, to: str, amount: int) -> TxReceipt:
    if normalize_address(token) == ETH_ADDR:
        return send_ether(node, sender, to, amount)
    return node.send_transaction(
        sender, token, encode_call("transfer(address,uint256)", [normalize_address(to), amount])
    )


def approve(node: ChainNode, token: str, owner: str, spender: str, amount: int = MAX_UINT256) -> TxReceipt:
    return node.send_transaction(
        owner, token, encode_call("approve(address,uint256)", [normalize_address(spender), amount])
    )


def set_new_exchange_wrapper(fork: ForkController, wrapper: str) -> TxReceipt:
    """Allow-list *wrapper* by impersonating the registry owner."""
    node = fork.node
    owner = node.call(DFS_REGISTRY_ADDR, encode_call("owner()"))
    with fork.impersonating(owner):
        return node.send_transaction(
            owner, WRAPPER_REGISTRY_ADDR, encode_call("addWrapper(address)", [normalize_address(wrapper)])
        )


def subscription(node: ChainNode, contract: str, key: int | str) -> tuple[int, bool]:
    """``(position, subscribed)`` for a vault id or a proxy address."""
    if isinstance(key, int):
        return tuple(node.call(contract, encode_call("subscribersPos(uint256)", [key])))
    return tuple(node.call(contract, encode_call("subscribersPos(address)", [normalize_address(key)])))


def change_proxy_owner(proxy: ProxyHandle, new_owner: str) -> TxReceipt:
    return proxy.change_owner(new_owner)


def automation_v2_unsub(proxy: ProxyHandle, protocol: int, cdp_id: int = 0) -> TxReceipt:
    return proxy.execute_direct(AutomationV2UnsubAction(protocol, cdp_id))
