"""Ledger state and balance accounting.

The node, fork controller and fork baseline live in ``chain.node``,
``chain.fork`` and ``chain.genesis``; they depend on the contract logic
and are imported from their modules directly.
"""

from __future__ import annotations

from .ledger import BalanceLedger
from .state import Event, LedgerState, Subscription, TxReceipt

__all__ = ["BalanceLedger", "Event", "LedgerState", "Subscription", "TxReceipt"]
