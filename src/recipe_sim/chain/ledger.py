"""Balance and allowance accounting over a ledger state."""
from __future__ import annotations

from ..abi import normalize_address
from ..constants import MAX_UINT256
from ..errors import ArithmeticOverflow, InsufficientBalance, RevertedExecution
from .state import LedgerState

__all__ = ["BalanceLedger"]


class BalanceLedger:
    """Reads and mutates (token, holder) balances of one state snapshot.

    Balances are unsigned 256-bit integers. A debit larger than the balance
    raises :class:`InsufficientBalance`; a credit past ``2**256 - 1`` raises
    :class:`ArithmeticOverflow`. Nothing is clamped.
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state

    def balance_of(self, token: str, holder: str) -> int:
        return self.state.balances.get((normalize_address(token), normalize_address(holder)), 0)

    def set_balance(self, token: str, holder: str, amount: int) -> None:
        _check_amount(amount)
        key = (normalize_address(token), normalize_address(holder))
        if amount:
            self.state.balances[key] = amount
        else:
            self.state.balances.pop(key, None)

    def mint(self, token: str, holder: str, amount: int) -> None:
        _check_amount(amount)
        current = self.balance_of(token, holder)
        if current + amount > MAX_UINT256:
            raise ArithmeticOverflow(f"balance overflow crediting {amount} to {holder}")
        self.set_balance(token, holder, current + amount)

    def burn(self, token: str, holder: str, amount: int) -> None:
        _check_amount(amount)
        current = self.balance_of(token, holder)
        if amount > current:
            raise InsufficientBalance(
                f"insufficient balance: {holder} holds {current} of {token}, needs {amount}"
            )
        self.set_balance(token, holder, current - amount)

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        self.burn(token, sender, amount)
        self.mint(token, recipient, amount)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        return self.state.allowances.get(key, 0)

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        _check_amount(amount)
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        if amount:
            self.state.allowances[key] = amount
        else:
            self.state.allowances.pop(key, None)

    def spend_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        if normalize_address(owner) == normalize_address(spender):
            return
        current = self.allowance(token, owner, spender)
        if current == MAX_UINT256:
            return
        if amount > current:
            raise RevertedExecution(f"insufficient allowance: {spender} may spend {current}, needs {amount}")
        self.approve(token, owner, spender, current - amount)


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"amount must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise InsufficientBalance(f"negative amount {amount}")
    if amount > MAX_UINT256:
        raise ArithmeticOverflow(f"amount {amount} exceeds 256 bits")
