"""Action logic for the basic utility actions."""
from __future__ import annotations

from ..abi import encode_call, normalize_address
from ..actions import (
    AutomationV2UnsubAction,
    ChangeProxyOwnerAction,
    PullTokenAction,
    SellAction,
    SendTokenAction,
    SubInputsAction,
    SumInputsAction,
    UnwrapEthAction,
    WrapEthAction,
)
from ..constants import (
    AAVE_SUBSCRIPTIONS_ADDR,
    COMPOUND_SUBSCRIPTIONS_ADDR,
    ETH_ADDR,
    MAX_UINT256,
    MCD_SUBSCRIPTIONS_ADDR,
    WETH_ADDRESS,
    ZERO_ADDRESS,
)
from ..errors import ArithmeticOverflow, ArithmeticUnderflow, RevertedExecution
from .base import Env
from .executor import ActionContract
from .token_utils import deposit_weth, get_balance, pull_tokens, withdraw_tokens, withdraw_weth

__all__ = [
    "AutomationV2Unsub",
    "ChangeProxyOwner",
    "DFSSell",
    "PullToken",
    "SendToken",
    "SubInputs",
    "SumInputs",
    "UnwrapEth",
    "WrapEth",
]


class WrapEth(ActionContract):
    action = WrapEthAction

    def run(self, env: Env, amount: int) -> int:
        if amount == MAX_UINT256:
            amount = env.native_balance()
        deposit_weth(env, amount)
        return amount


class UnwrapEth(ActionContract):
    action = UnwrapEthAction

    def run(self, env: Env, amount: int, to: str) -> int:
        if amount == MAX_UINT256:
            amount = get_balance(env, WETH_ADDRESS, env.address)
        withdraw_weth(env, amount)
        return withdraw_tokens(env, ETH_ADDR, to, amount)


class SendToken(ActionContract):
    action = SendTokenAction

    def run(self, env: Env, token: str, to: str, amount: int) -> int:
        if normalize_address(to) == ZERO_ADDRESS:
            raise RevertedExecution("SendToken: cannot send to the zero address")
        return withdraw_tokens(env, token, to, amount)


class PullToken(ActionContract):
    action = PullTokenAction

    def run(self, env: Env, token: str, src: str, amount: int) -> int:
        if normalize_address(token) == ETH_ADDR:
            raise RevertedExecution("PullToken: native value cannot be pulled")
        return pull_tokens(env, token, src, amount)


class SumInputs(ActionContract):
    action = SumInputsAction

    def run(self, env: Env, a: int, b: int) -> int:
        total = a + b
        if total > MAX_UINT256:
            raise ArithmeticOverflow(f"SumInputs: {a} + {b} overflows uint256")
        return total


class SubInputs(ActionContract):
    action = SubInputsAction

    def run(self, env: Env, a: int, b: int) -> int:
        if b > a:
            raise ArithmeticUnderflow(f"SubInputs: {a} - {b} underflows uint256")
        return a - b


class ChangeProxyOwner(ActionContract):
    action = ChangeProxyOwnerAction

    def run(self, env: Env, new_owner: str) -> int:
        if normalize_address(new_owner) == ZERO_ADDRESS:
            raise RevertedExecution("ChangeProxyOwner: new owner cannot be the zero address")
        # The proxy calls itself, which its auth check accepts.
        env.call(env.address, encode_call("setOwner(address)", [normalize_address(new_owner)]))
        return 0


_SUBSCRIPTION_CONTRACTS: dict[int, str] = {
    0: MCD_SUBSCRIPTIONS_ADDR,
    1: COMPOUND_SUBSCRIPTIONS_ADDR,
    2: AAVE_SUBSCRIPTIONS_ADDR,
}


class AutomationV2Unsub(ActionContract):
    action = AutomationV2UnsubAction

    def run(self, env: Env, protocol: int, cdp_id: int) -> int:
        target = _SUBSCRIPTION_CONTRACTS.get(protocol)
        if target is None:
            raise RevertedExecution(f"AutomationV2Unsub: unknown protocol {protocol}")
        if protocol == 0:
            env.call(target, encode_call("unsubscribe(uint256)", [cdp_id]))
        else:
            env.call(target, encode_call("unsubscribe()"))
        return 0


class DFSSell(ActionContract):
    action = SellAction

    def run(self, env: Env, src_token: str, dest_token: str, amount: int, wrapper: str, src: str, to: str) -> int:
        src_token = normalize_address(src_token)
        dest_token = normalize_address(dest_token)
        wrapper = normalize_address(wrapper)
        if wrapper not in env.state.exchange_wrappers:
            raise RevertedExecution(f"DFSSell: wrapper {wrapper} is not registered")
        if src_token == ETH_ADDR or dest_token == ETH_ADDR:
            raise RevertedExecution("DFSSell: wrap native value before selling")
        if src_token == dest_token:
            raise RevertedExecution("DFSSell: source and destination tokens must differ")

        amount = pull_tokens(env, src_token, src, amount)
        env.call(src_token, encode_call("approve(address,uint256)", [wrapper, amount]))
        bought = env.call(wrapper, encode_call("sell(address,address,uint256)", [src_token, dest_token, amount]))
        withdraw_tokens(env, dest_token, to, bought)
        return bought
