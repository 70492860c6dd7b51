"""Deterministic fork baseline: the ledger as it stood at a block height."""
from __future__ import annotations

from collections.abc import Callable, Sequence

from ..abi import derive_address
from ..actions.base import action_id
from ..constants import (
    AAVE_OWNER_ACC,
    AAVE_SUBSCRIPTIONS_ADDR,
    ADMIN_ACC,
    CDP_ID,
    CDP_OWNER_ACC,
    COMPOUND_OWNER_ACC,
    COMPOUND_SUBSCRIPTIONS_ADDR,
    DAI_ADDRESS,
    DEFAULT_FORK_BLOCK,
    DEFAULT_SIGNER_BALANCE,
    DEV_ACCOUNTS,
    ETH_ADDR,
    MCD_SUBSCRIPTIONS_ADDR,
    WEI_PER_ETHER,
    WETH_ADDRESS,
)
from ..contracts import (
    AutomationV2Unsub,
    ChangeProxyOwner,
    Contract,
    DFSRegistry,
    DFSSell,
    ERC20Token,
    FixedRateWrapper,
    ProxyRegistry,
    ProxySubscriptions,
    PullToken,
    RecipeExecutor,
    SendToken,
    SubInputs,
    SumInputs,
    UnwrapEth,
    VaultSubscriptions,
    WrapEth,
    WrappedNative,
    WrapperExchangeRegistry,
    create_proxy,
)
from .ledger import BalanceLedger
from .state import LedgerState, Subscription

__all__ = [
    "CONTRACT_FACTORIES",
    "DFS_REGISTRY_ADDR",
    "PROXY_REGISTRY_ADDR",
    "WETH_DAI_RATE",
    "WRAPPER_LIQUIDITY",
    "WRAPPER_REGISTRY_ADDR",
    "build_fork_state",
]

DFS_REGISTRY_ADDR = derive_address("DFSRegistry")
PROXY_REGISTRY_ADDR = derive_address("ProxyRegistry")
WRAPPER_REGISTRY_ADDR = derive_address("WrapperExchangeRegistry")

# Contracts resolved by name through the registry.
CONTRACT_FACTORIES: dict[str, Callable[[], Contract]] = {
    "RecipeExecutor": RecipeExecutor,
    "WrapEth": WrapEth,
    "UnwrapEth": UnwrapEth,
    "SendToken": SendToken,
    "PullToken": PullToken,
    "SumInputs": SumInputs,
    "SubInputs": SubInputs,
    "ChangeProxyOwner": ChangeProxyOwner,
    "AutomationV2Unsub": AutomationV2Unsub,
    "DFSSell": DFSSell,
    "FixedRateWrapper": FixedRateWrapper,
}

WETH_DAI_RATE = 3_000
WRAPPER_LIQUIDITY: dict[str, int] = {
    DAI_ADDRESS: 10_000_000 * WEI_PER_ETHER,
    WETH_ADDRESS: 1_000 * WEI_PER_ETHER,
}


def build_fork_state(
    block_number: int = DEFAULT_FORK_BLOCK,
    *,
    signers: Sequence[str] = DEV_ACCOUNTS[:4],
    signer_balance: int = DEFAULT_SIGNER_BALANCE,
) -> LedgerState:
    """Build the historical state at *block_number*.

    The baseline holds the token contracts, the registry with every named
    contract, the proxy factory, an exchange wrapper with liquidity (not yet
    allow-listed), funded local signers and three accounts whose proxies are
    subscribed to legacy automation.
    """
    if block_number < 0:
        raise ValueError("block number must be non-negative")
    state = LedgerState(block_number=block_number, registry_owner=ADMIN_ACC)
    ledger = BalanceLedger(state)

    state.code[WETH_ADDRESS] = WrappedNative()
    state.code[DAI_ADDRESS] = ERC20Token("DAI")
    state.code[DFS_REGISTRY_ADDR] = DFSRegistry()
    state.code[PROXY_REGISTRY_ADDR] = ProxyRegistry()
    state.code[WRAPPER_REGISTRY_ADDR] = WrapperExchangeRegistry()
    state.code[MCD_SUBSCRIPTIONS_ADDR] = VaultSubscriptions()
    state.code[COMPOUND_SUBSCRIPTIONS_ADDR] = ProxySubscriptions("CompoundSubscriptions")
    state.code[AAVE_SUBSCRIPTIONS_ADDR] = ProxySubscriptions("AaveSubscriptions")

    for name, factory in CONTRACT_FACTORIES.items():
        address = derive_address(f"{name}:genesis")
        state.code[address] = factory()
        state.registry[action_id(name)] = address

    wrapper = state.registry[action_id("FixedRateWrapper")]
    state.exchange_rates[(wrapper, WETH_ADDRESS, DAI_ADDRESS)] = (WETH_DAI_RATE, 1)
    state.exchange_rates[(wrapper, DAI_ADDRESS, WETH_ADDRESS)] = (1, WETH_DAI_RATE)
    for token, amount in WRAPPER_LIQUIDITY.items():
        ledger.mint(token, wrapper, amount)
    # Wrapped supply is backed one to one by native value held at the token.
    ledger.mint(ETH_ADDR, WETH_ADDRESS, WRAPPER_LIQUIDITY[WETH_ADDRESS])

    for signer in signers:
        ledger.mint(ETH_ADDR, signer, signer_balance)

    cdp_proxy = create_proxy(state, CDP_OWNER_ACC)
    state.subscriptions[MCD_SUBSCRIPTIONS_ADDR] = {CDP_ID: Subscription(owner=cdp_proxy, position=0)}
    compound_proxy = create_proxy(state, COMPOUND_OWNER_ACC)
    state.subscriptions[COMPOUND_SUBSCRIPTIONS_ADDR] = {compound_proxy: Subscription(owner=compound_proxy, position=0)}
    aave_proxy = create_proxy(state, AAVE_OWNER_ACC)
    state.subscriptions[AAVE_SUBSCRIPTIONS_ADDR] = {aave_proxy: Subscription(owner=aave_proxy, position=0)}

    return state
