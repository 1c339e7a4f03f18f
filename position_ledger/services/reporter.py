"""Account reporter — solvency metrics for an account id from persisted state."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..accounting import health, total_borrow_value, total_collateral_value
from ..interfaces.market_provider import MarketStateProvider
from ..interfaces.store import EntityStore
from ..models import Account, AccountSummary, Market, Position
from ..repository import PositionRepository

logger = logging.getLogger(__name__)


class AccountReporter:
    """Read-only view over the ledger keyed by account id.

    Every call works from a fresh snapshot of the store, so results reflect
    the last event applied before the call.
    """

    def __init__(self, store: EntityStore, market_provider: MarketStateProvider) -> None:
        self._repo = PositionRepository(store)
        self._markets = market_provider

    def _portfolio(
        self, account_id: str
    ) -> tuple[Account, list[str], dict[str, Market], dict[str, Position]]:
        account = self._repo.get_account(account_id)
        if account is None:
            logger.debug("Account %s has no ledger record", account_id)
            account = Account(id=account_id)

        positions = {p.id: p for p in self._repo.positions_for_account(account_id)}
        markets: dict[str, Market] = {}
        for position in positions.values():
            if position.market not in markets:
                markets[position.market] = self._markets.get_market(position.market)
        return account, sorted(positions), markets, positions

    def health(self, account_id: str) -> Decimal | None:
        return health(*self._portfolio(account_id))

    def total_collateral_value(self, account_id: str) -> Decimal:
        account, held, markets, positions = self._portfolio(account_id)
        return total_collateral_value(account.id, held, markets, positions)

    def total_borrow_value(self, account_id: str) -> Decimal:
        return total_borrow_value(*self._portfolio(account_id))

    def summary(self, account_id: str) -> AccountSummary:
        account, held, markets, positions = self._portfolio(account_id)
        return AccountSummary(
            account_id=account.id,
            has_borrowed=account.has_borrowed,
            position_count=len(held),
            total_collateral_value=total_collateral_value(account.id, held, markets, positions),
            total_borrow_value=total_borrow_value(account, held, markets, positions),
            health=health(account, held, markets, positions),
        )
