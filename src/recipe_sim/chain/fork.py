"""Test-mode control over a node: fork reset, impersonation, balance overrides."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..abi import encode_call, normalize_address
from ..actions.base import action_id
from ..errors import ForkError
from .genesis import CONTRACT_FACTORIES, DFS_REGISTRY_ADDR
from .ledger import BalanceLedger
from .node import ChainNode
from .state import LedgerState

__all__ = ["ForkController"]

logger = logging.getLogger(__name__)


class ForkController:
    """Privileged handle on a :class:`ChainNode` for test harnesses.

    None of these capabilities exist on the node's public surface; code that
    only holds a node can neither impersonate accounts nor rewrite balances.
    """

    def __init__(self, node: ChainNode, baseline: Callable[[int], LedgerState] | None = None) -> None:
        self.node = node
        self._baseline = baseline

    def reset_to_block(self, block_number: int | None = None) -> None:
        """Reset all ledger and contract state to the state at *block_number*.

        Blocks mined on this node are restored exactly. Any other height is
        forked afresh from the baseline. Without an argument the node goes
        back to the block it was forked at. Impersonations are cleared.
        """
        target = self.node.fork_block if block_number is None else block_number
        if target < 0:
            raise ForkError(f"Invalid block number {target}")
        snapshot = self.node._snapshot_at(target)
        if snapshot is not None:
            self.node._restore(snapshot, new_fork=False)
            logger.info("reset to recorded block %d", target)
            return
        if self._baseline is None:
            raise ForkError(f"No state recorded for block {target} and no fork baseline configured")
        self.node._restore(self._baseline(target), new_fork=True)
        logger.info("forked afresh at block %d", target)

    def impersonate(self, account: str) -> None:
        self.node._unlock(account)
        logger.info("impersonating %s", normalize_address(account))

    def stop_impersonating(self, account: str) -> None:
        self.node._lock(account)
        logger.info("stopped impersonating %s", normalize_address(account))

    @contextmanager
    def impersonating(self, account: str) -> Iterator[str]:
        account = normalize_address(account)
        already = self.node.is_unlocked(account)
        if not already:
            self.impersonate(account)
        try:
            yield account
        finally:
            if not already:
                self.stop_impersonating(account)

    def set_balance(self, token: str, holder: str, amount: int) -> None:
        """Overwrite a balance in place, without mining a block."""
        if amount < 0:
            raise ValueError("balance must be non-negative")
        BalanceLedger(self.node._committed_state()).set_balance(token, holder, amount)
        logger.debug("set balance of %s in %s to %d", holder, token, amount)

    def redeploy(self, name: str) -> str:
        """Deploy a fresh instance of *name* and point its registry entry at it."""
        factory = CONTRACT_FACTORIES.get(name)
        if factory is None:
            allowed = ", ".join(sorted(CONTRACT_FACTORIES))
            raise ValueError(f"Unknown contract '{name}'. Allowed: {allowed}.")
        owner = self.node._committed_state().registry_owner
        with self.impersonating(owner):
            address = self.node.deploy(owner, factory())
            self.node.send_transaction(
                owner,
                DFS_REGISTRY_ADDR,
                encode_call("addNewContract(bytes4,address)", [action_id(name), address]),
            )
        return address
