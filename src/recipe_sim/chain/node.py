"""In-process ledger node: atomic transactions over a single snapshot."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..abi import derive_address, normalize_address
from ..constants import ZERO_ADDRESS
from ..contracts.base import Contract, invoke
from ..errors import RevertedExecution, Unauthorized
from .ledger import BalanceLedger
from .state import Event, LedgerState, TxReceipt

__all__ = ["ChainNode"]

logger = logging.getLogger(__name__)


class ChainNode:
    """Single-writer node over one ledger snapshot.

    Each transaction runs against a clone of the committed state and
    replaces it only when every nested call succeeded; a revert leaves the
    committed state untouched. Every committed transaction mines one block
    whose post-state is kept in the history.

    Only local signers (and accounts unlocked through a
    :class:`~recipe_sim.chain.fork.ForkController`) may send transactions.
    """

    def __init__(self, state: LedgerState, signers: Iterable[str] = ()) -> None:
        self._state = state
        self._fork_block = state.block_number
        self._history: dict[int, LedgerState] = {state.block_number: state.clone()}
        self._signers = tuple(normalize_address(signer) for signer in signers)
        self._impersonated: set[str] = set()
        self._receipts: list[TxReceipt] = []

    @property
    def block_number(self) -> int:
        return self._state.block_number

    @property
    def fork_block(self) -> int:
        return self._fork_block

    @property
    def signers(self) -> tuple[str, ...]:
        return self._signers

    @property
    def receipts(self) -> tuple[TxReceipt, ...]:
        return tuple(self._receipts)

    def is_unlocked(self, account: str) -> bool:
        account = normalize_address(account)
        return account in self._signers or account in self._impersonated

    def balance_of(self, token: str, holder: str) -> int:
        return BalanceLedger(self._state).balance_of(token, holder)

    def code_at(self, address: str) -> Contract | None:
        return self._state.code.get(normalize_address(address))

    def call(self, to: str, data: bytes, sender: str = ZERO_ADDRESS) -> Any:
        """Read-only call: runs against a throwaway clone of the state."""
        scratch = self._state.clone()
        return invoke(scratch, [], sender=sender, target=to, data=data)

    def send_transaction(self, sender: str, to: str, data: bytes = b"", value: int = 0) -> TxReceipt:
        sender = normalize_address(sender)
        to = normalize_address(to)
        if not self.is_unlocked(sender):
            raise Unauthorized(f"sender {sender} is neither a local signer nor impersonated")

        working = self._state.clone()
        events: list[Event] = []
        logger.debug("tx %s -> %s value=%d calldata=%d bytes", sender, to, value, len(data))
        try:
            result = invoke(working, events, sender=sender, target=to, data=data, value=value)
        except RevertedExecution as exc:
            logger.info("tx %s -> %s reverted (%s): %s", sender, to, type(exc).__name__, exc.reason)
            raise
        return self._commit(working, sender=sender, to=to, value=value, result=result, events=events)

    def deploy(self, sender: str, logic: Contract) -> str:
        """Deploy *logic* at a fresh address derived from the sender and nonce."""
        sender = normalize_address(sender)
        if not self.is_unlocked(sender):
            raise Unauthorized(f"sender {sender} is neither a local signer nor impersonated")
        working = self._state.clone()
        address = derive_address(f"{logic.name}:{sender}:{working.nonce}")
        working.nonce += 1
        working.code[address] = logic
        self._commit(working, sender=sender, to=address, value=0, result=address, events=[])
        logger.info("deployed %s at %s", logic.name, address)
        return address

    def _commit(
        self,
        working: LedgerState,
        *,
        sender: str,
        to: str,
        value: int,
        result: Any,
        events: list[Event],
    ) -> TxReceipt:
        working.block_number += 1
        self._state = working
        self._history[working.block_number] = working.clone()
        receipt = TxReceipt(
            block_number=working.block_number,
            sender=sender,
            to=to,
            value=value,
            return_value=result,
            events=tuple(events),
        )
        self._receipts.append(receipt)
        logger.debug("mined block %d with %d event(s)", working.block_number, len(events))
        return receipt

    # Test-mode hooks, driven by ForkController only.

    def _snapshot_at(self, block_number: int) -> LedgerState | None:
        snapshot = self._history.get(block_number)
        return snapshot.clone() if snapshot is not None else None

    def _restore(self, state: LedgerState, *, new_fork: bool) -> None:
        block = state.block_number
        if new_fork:
            self._fork_block = block
            self._history = {block: state.clone()}
            self._receipts.clear()
        else:
            self._history = {number: snap for number, snap in self._history.items() if number <= block}
            self._receipts = [receipt for receipt in self._receipts if receipt.block_number <= block]
        self._state = state
        self._impersonated.clear()

    def _committed_state(self) -> LedgerState:
        return self._state

    def _unlock(self, account: str) -> None:
        self._impersonated.add(normalize_address(account))

    def _lock(self, account: str) -> None:
        self._impersonated.discard(normalize_address(account))
