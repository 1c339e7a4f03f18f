"""Ledger exception hierarchy."""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for errors raised by the position ledger."""


class MissingMarketError(LedgerError, LookupError):
    """A position references a market that has no state record."""

    def __init__(self, market_id: str) -> None:
        super().__init__(f"Market '{market_id}' not found")
        self.market_id = market_id


class MissingPositionError(LedgerError, LookupError):
    """A held position id has no position record."""

    def __init__(self, position_id: str) -> None:
        super().__init__(f"Position '{position_id}' not found")
        self.position_id = position_id


class PositionOwnershipError(LedgerError, ValueError):
    """A held position id belongs to a different account."""

    def __init__(self, position_id: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Position '{position_id}' belongs to '{actual}', not '{expected}'"
        )
        self.position_id = position_id


class EventOrderError(LedgerError, ValueError):
    """An event arrived before one already applied."""


class EventFormatError(LedgerError, ValueError):
    """An event record is missing fields or has malformed values."""
