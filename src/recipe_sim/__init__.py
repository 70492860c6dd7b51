"""Simulated ledger harness for proxy-executed action recipes."""

from __future__ import annotations

__version__ = "0.1.0"
