"""ERC-20 and wrapped native token logic."""
from __future__ import annotations

from ..abi import normalize_address
from ..constants import ZERO_ADDRESS
from ..errors import RevertedExecution
from .base import Contract, Env

__all__ = ["ERC20Token", "WrappedNative"]


class ERC20Token(Contract):
    name = "ERC20"
    METHODS = {
        "balanceOf(address)": "balance_of",
        "allowance(address,address)": "allowance",
        "approve(address,uint256)": "approve",
        "transfer(address,uint256)": "transfer",
        "transferFrom(address,address,uint256)": "transfer_from",
    }

    def __init__(self, name: str = "ERC20") -> None:
        self.name = name

    def balance_of(self, env: Env, holder: str) -> int:
        return env.ledger.balance_of(env.address, holder)

    def allowance(self, env: Env, owner: str, spender: str) -> int:
        return env.ledger.allowance(env.address, owner, spender)

    def approve(self, env: Env, spender: str, amount: int) -> bool:
        env.ledger.approve(env.address, env.sender, spender, amount)
        env.emit("Approval", owner=env.sender, spender=normalize_address(spender), amount=amount)
        return True

    def transfer(self, env: Env, to: str, amount: int) -> bool:
        self._move(env, env.sender, to, amount)
        return True

    def transfer_from(self, env: Env, src: str, to: str, amount: int) -> bool:
        env.ledger.spend_allowance(env.address, src, env.sender, amount)
        self._move(env, src, to, amount)
        return True

    def _move(self, env: Env, src: str, to: str, amount: int) -> None:
        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise RevertedExecution(f"{self.name}: transfer to the zero address")
        env.ledger.transfer(env.address, src, to, amount)
        env.emit("Transfer", src=normalize_address(src), dst=to, amount=amount)


class WrappedNative(ERC20Token):
    """WETH9: every wrapped unit is backed by native value held at the token address."""

    METHODS = {
        **ERC20Token.METHODS,
        "deposit()": "deposit",
        "withdraw(uint256)": "withdraw",
    }

    def __init__(self) -> None:
        super().__init__("WETH")

    def receive(self, env: Env) -> None:
        self.deposit(env)

    def deposit(self, env: Env) -> None:
        env.ledger.mint(env.address, env.sender, env.value)
        env.emit("Deposit", dst=env.sender, amount=env.value)

    def withdraw(self, env: Env, amount: int) -> None:
        env.ledger.burn(env.address, env.sender, amount)
        env.emit("Withdrawal", src=env.sender, amount=amount)
        env.call(env.sender, value=amount)
