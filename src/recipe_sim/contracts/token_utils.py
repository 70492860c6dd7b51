"""Token movement helpers used by action logic running inside a proxy."""
from __future__ import annotations

from ..abi import encode_call, normalize_address
from ..constants import ETH_ADDR, MAX_UINT256, WETH_ADDRESS, ZERO_ADDRESS
from .base import Env

__all__ = ["deposit_weth", "get_balance", "pull_tokens", "withdraw_tokens", "withdraw_weth"]


def get_balance(env: Env, token: str, holder: str) -> int:
    token = normalize_address(token)
    if token == ETH_ADDR:
        return env.native_balance(holder)
    return env.call(token, encode_call("balanceOf(address)", [normalize_address(holder)]))


def withdraw_tokens(env: Env, token: str, to: str, amount: int) -> int:
    """Send *amount* of *token* from the proxy to *to*; ``MAX_UINT256`` sends the whole balance."""
    token = normalize_address(token)
    to = normalize_address(to)
    if amount == MAX_UINT256:
        amount = get_balance(env, token, env.address)
    if to != ZERO_ADDRESS and to != env.address and amount:
        if token == ETH_ADDR:
            env.call(to, value=amount)
        else:
            env.call(token, encode_call("transfer(address,uint256)", [to, amount]))
    return amount


def pull_tokens(env: Env, token: str, src: str, amount: int) -> int:
    """Pull *amount* of *token* from *src* into the proxy; ``MAX_UINT256`` pulls everything."""
    token = normalize_address(token)
    src = normalize_address(src)
    if amount == MAX_UINT256:
        amount = get_balance(env, token, src)
    if src != ZERO_ADDRESS and src != env.address and amount:
        env.call(token, encode_call("transferFrom(address,address,uint256)", [src, env.address, amount]))
    return amount


def deposit_weth(env: Env, amount: int) -> None:
    env.call(WETH_ADDRESS, encode_call("deposit()"), value=amount)


def withdraw_weth(env: Env, amount: int) -> None:
    env.call(WETH_ADDRESS, encode_call("withdraw(uint256)", [amount]))
