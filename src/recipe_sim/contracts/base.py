"""Contract dispatch and call environment for the simulated ledger."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from eth_abi.exceptions import DecodingError

from ..abi import decode_args, normalize_address, selector, signature_types
from ..chain.ledger import BalanceLedger
from ..chain.state import Event, LedgerState
from ..constants import ETH_ADDR
from ..errors import RevertedExecution

__all__ = ["MAX_CALL_DEPTH", "Contract", "Env", "invoke"]

MAX_CALL_DEPTH = 64


@dataclass(slots=True)
class Env:
    """Execution frame: ``address`` is "this", ``sender`` is the caller."""

    state: LedgerState
    address: str
    sender: str
    value: int = 0
    events: list[Event] = field(default_factory=list)
    depth: int = 0

    @property
    def ledger(self) -> BalanceLedger:
        return BalanceLedger(self.state)

    def emit(self, event_name: str, /, **args: Any) -> None:
        self.events.append(Event(address=self.address, name=event_name, args=args))

    def native_balance(self, holder: str | None = None) -> int:
        return self.ledger.balance_of(ETH_ADDR, holder or self.address)

    def call(self, target: str, data: bytes = b"", value: int = 0) -> Any:
        """Message call from this frame: ``msg.sender`` becomes this address."""
        return invoke(
            self.state,
            self.events,
            sender=self.address,
            target=target,
            data=data,
            value=value,
            depth=self.depth + 1,
        )

    def delegate(self, target: str, data: bytes) -> Any:
        """Run *target*'s logic in this frame's context (address, sender and value are kept)."""
        target = normalize_address(target)
        logic = self.state.code.get(target)
        if logic is None:
            raise RevertedExecution(f"delegatecall to non-contract {target}")
        if self.depth + 1 > MAX_CALL_DEPTH:
            raise RevertedExecution("call depth exceeded")
        frame = Env(
            state=self.state,
            address=self.address,
            sender=self.sender,
            value=self.value,
            events=self.events,
            depth=self.depth + 1,
        )
        return logic.handle(frame, data)


def invoke(
    state: LedgerState,
    events: list[Event],
    *,
    sender: str,
    target: str,
    data: bytes = b"",
    value: int = 0,
    depth: int = 0,
) -> Any:
    """Move *value* from *sender* to *target*, then run the target's logic."""
    if depth > MAX_CALL_DEPTH:
        raise RevertedExecution("call depth exceeded")
    sender = normalize_address(sender)
    target = normalize_address(target)
    if value:
        BalanceLedger(state).transfer(ETH_ADDR, sender, target, value)

    logic = state.code.get(target)
    frame = Env(state=state, address=target, sender=sender, value=value, events=events, depth=depth)
    if logic is None:
        if data:
            raise RevertedExecution(f"call to non-contract {target}")
        return None
    if not data:
        return logic.receive(frame)
    return logic.handle(frame, data)


class Contract:
    """Base class for simulated contract logic.

    ``METHODS`` maps a function signature to the name of the handler method;
    handlers receive the :class:`Env` followed by the decoded arguments.
    Logic objects hold no state of their own, everything lives in the
    :class:`LedgerState` passed through the frame.
    """

    name = "Contract"
    METHODS: ClassVar[dict[str, str]] = {}
    _dispatch: ClassVar[dict[bytes, tuple[str, str, tuple[str, ...]]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._dispatch = {
            selector(signature): (signature, handler, signature_types(signature))
            for signature, handler in cls.METHODS.items()
        }

    def handle(self, env: Env, data: bytes) -> Any:
        if len(data) < 4:
            raise RevertedExecution(f"{self.name}: calldata too short for a function selector")
        entry = self._dispatch.get(bytes(data[:4]))
        if entry is None:
            raise RevertedExecution(f"{self.name}: unknown function selector 0x{bytes(data[:4]).hex()}")
        signature, handler, types = entry
        try:
            args = decode_args(types, bytes(data[4:]))
        except DecodingError as exc:
            raise RevertedExecution(f"{self.name}: malformed calldata for {signature}: {exc}") from exc
        return getattr(self, handler)(env, *args)

    def receive(self, env: Env) -> Any:
        raise RevertedExecution(f"{self.name}: does not accept native value")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
