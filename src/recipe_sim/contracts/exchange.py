"""Fixed-rate exchange wrapper."""
from __future__ import annotations

from ..abi import encode_call, normalize_address
from ..errors import RevertedExecution
from .base import Contract, Env

__all__ = ["FixedRateWrapper"]


class FixedRateWrapper(Contract):
    """Sells at a configured ``num/den`` rate.

    The source amount is pulled from the caller with ``transferFrom``, so the
    caller must approve the wrapper first. Proceeds are paid from the
    wrapper's own balance; a sell larger than its liquidity fails with
    ``InsufficientBalance``.
    """

    name = "FixedRateWrapper"
    METHODS = {
        "sell(address,address,uint256)": "sell",
        "getSellRate(address,address,uint256)": "get_sell_rate",
    }

    def get_sell_rate(self, env: Env, src_token: str, dest_token: str, amount: int) -> int:
        num, den = self._rate(env, src_token, dest_token)
        return amount * num // den

    def sell(self, env: Env, src_token: str, dest_token: str, amount: int) -> int:
        bought = self.get_sell_rate(env, src_token, dest_token, amount)
        env.call(
            normalize_address(src_token),
            encode_call("transferFrom(address,address,uint256)", [env.sender, env.address, amount]),
        )
        env.call(normalize_address(dest_token), encode_call("transfer(address,uint256)", [env.sender, bought]))
        env.emit("Sell", src=normalize_address(src_token), dest=normalize_address(dest_token), amount=amount, bought=bought)
        return bought

    def _rate(self, env: Env, src_token: str, dest_token: str) -> tuple[int, int]:
        key = (env.address, normalize_address(src_token), normalize_address(dest_token))
        rate = env.state.exchange_rates.get(key)
        if rate is None:
            raise RevertedExecution(f"{self.name}: no rate for {key[1]} -> {key[2]}")
        return rate
