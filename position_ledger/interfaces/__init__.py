"""Protocol interfaces for the position ledger."""
from .market_provider import MarketStateProvider
from .notifier import Notifier
from .store import EntityStore

__all__ = ["EntityStore", "MarketStateProvider", "Notifier"]
