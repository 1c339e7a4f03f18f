"""Lending position ledger: balances, portfolio totals and account health."""
from .models import Account, AccountSummary, Market, Position, TransactionRecord
from .repository import PositionRepository

__all__ = [
    "Account",
    "AccountSummary",
    "Market",
    "Position",
    "PositionRepository",
    "TransactionRecord",
]

__version__ = "0.1.0"
