"""Market state provider protocol."""
from typing import Protocol

from ..models import Market


class MarketStateProvider(Protocol):
    """Abstract interface for reading current market state.

    ``get_market`` raises ``MissingMarketError`` for unknown ids.
    """

    def get_market(self, market_id: str) -> Market: ...
