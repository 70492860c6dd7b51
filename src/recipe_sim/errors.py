"""Revert taxonomy and input errors."""
from __future__ import annotations

__all__ = [
    "ActionEncodingError",
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "ConfigError",
    "ForkError",
    "InsufficientBalance",
    "InvalidReference",
    "RevertedExecution",
    "ScenarioError",
    "Unauthorized",
]


class RevertedExecution(Exception):
    """A transaction reverted; none of its effects were committed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ArithmeticOverflow(RevertedExecution):
    pass


class ArithmeticUnderflow(RevertedExecution):
    pass


class InsufficientBalance(RevertedExecution):
    pass


class InvalidReference(RevertedExecution):
    pass


class Unauthorized(RevertedExecution):
    pass


class ActionEncodingError(ValueError):
    """Raised when action parameters cannot be encoded."""


class ForkError(ValueError):
    """Raised when the ledger cannot be reset to the requested block."""


class ScenarioError(ValueError):
    """Raised for malformed scenario documents."""


class ConfigError(ValueError):
    """Raised for invalid harness configuration."""
