"""Simulated contract logic."""

from __future__ import annotations

from .base import Contract, Env, invoke
from .basic import (
    AutomationV2Unsub,
    ChangeProxyOwner,
    DFSSell,
    PullToken,
    SendToken,
    SubInputs,
    SumInputs,
    UnwrapEth,
    WrapEth,
)
from .exchange import FixedRateWrapper
from .executor import ActionContract, RecipeExecutor
from .proxy import DSProxy, ProxyRegistry, create_proxy
from .registry import DFSRegistry, WrapperExchangeRegistry
from .subscriptions import ProxySubscriptions, VaultSubscriptions
from .tokens import ERC20Token, WrappedNative

__all__ = [
    "ActionContract",
    "AutomationV2Unsub",
    "ChangeProxyOwner",
    "Contract",
    "DFSRegistry",
    "DFSSell",
    "DSProxy",
    "ERC20Token",
    "Env",
    "FixedRateWrapper",
    "ProxyRegistry",
    "ProxySubscriptions",
    "PullToken",
    "RecipeExecutor",
    "SendToken",
    "SubInputs",
    "SumInputs",
    "UnwrapEth",
    "VaultSubscriptions",
    "WrapEth",
    "WrapperExchangeRegistry",
    "WrappedNative",
    "create_proxy",
    "invoke",
]
