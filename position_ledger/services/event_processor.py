"""Event processor — applies the ordered event feed to accounts and positions."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..errors import EventOrderError, LedgerError
from ..events import EventType, LendingEvent
from ..fixed_point import ZERO, add, is_zero, sub
from ..interfaces.market_provider import MarketStateProvider
from ..interfaces.store import EntityStore
from ..models import Market, Position, TransactionRecord, position_id
from ..repository import PositionRepository

logger = logging.getLogger(__name__)


class EventProcessor:
    """Apply lending events strictly in ``(block_number, log_index)`` order.

    Events already recorded for their position are replays and are skipped.
    """

    def __init__(self, store: EntityStore, market_provider: MarketStateProvider) -> None:
        self._repo = PositionRepository(store)
        self._markets = market_provider
        self._last_key: tuple[int, int] | None = max(
            ((t.block, t.log_index) for t in store.all(TransactionRecord)),
            default=None,
        )
        self._handlers: dict[EventType, Callable[[LendingEvent, Market], None]] = {
            EventType.MINT: self._on_mint,
            EventType.REDEEM: self._on_redeem,
            EventType.BORROW: self._on_borrow,
            EventType.REPAY_BORROW: self._on_repay_borrow,
            EventType.LIQUIDATE_BORROW: self._on_liquidate_borrow,
            EventType.TRANSFER: self._on_transfer,
            EventType.MARKET_ENTERED: self._on_market_entered,
            EventType.MARKET_EXITED: self._on_market_exited,
        }

    @property
    def repository(self) -> PositionRepository:
        return self._repo

    @property
    def last_applied(self) -> tuple[int, int] | None:
        return self._last_key

    def apply(self, event: LendingEvent) -> bool:
        """Apply one event. Returns False when it was a replay."""
        pid = position_id(event.market_id, event.account_id)
        if self._repo.has_transaction(pid, event.tx_hash, event.log_index):
            logger.debug(
                "Skipping replayed %s %s:%d", event.event_type.value, event.tx_hash, event.log_index
            )
            return False

        if self._last_key is not None and event.order_key <= self._last_key:
            raise EventOrderError(
                f"Event {event.tx_hash}:{event.log_index} at {event.order_key} "
                f"is not after last applied {self._last_key}"
            )

        market = self._markets.get_market(event.market_id)
        self._handlers[event.event_type](event, market)
        self._last_key = event.order_key
        logger.debug(
            "Applied %s for %s in %s at block %d",
            event.event_type.value,
            event.account_id,
            market.symbol or market.id,
            event.block_number,
        )
        return True

    def apply_all(self, events: Iterable[LendingEvent]) -> int:
        """Apply events in feed order; returns how many were not replays."""
        applied = skipped = 0
        for event in events:
            if self.apply(event):
                applied += 1
            else:
                skipped += 1
        logger.info("Applied %d events (%d replays skipped)", applied, skipped)
        return applied

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _touch(self, event: LendingEvent, market: Market, account_id: str) -> Position:
        self._repo.get_or_create_account(account_id)
        return self._repo.update_position_on_event(
            market.id,
            market.symbol,
            account_id,
            event.tx_hash,
            event.timestamp,
            event.block_number,
            event.log_index,
        )

    def _require_balance(self, event: LendingEvent, market: Market) -> None:
        # Runs before _touch: a rejected event must leave no transaction record.
        position = self._repo.get_or_create_position(market.id, market.symbol, event.account_id)
        if sub(position.token_balance, event.token_amount) < ZERO:
            raise LedgerError(
                f"Position '{position.id}' balance {position.token_balance} cannot cover "
                f"{event.token_amount} ({event.tx_hash}:{event.log_index})"
            )

    def _require_borrow_index(self, event: LendingEvent, market: Market) -> None:
        # Same rule as _require_balance: reject before anything is written.
        if is_zero(market.borrow_index) and not is_zero(event.account_borrows):
            raise LedgerError(
                f"Market '{market.id}' has a zero borrow index; cannot record borrow balance "
                f"{event.account_borrows} ({event.tx_hash}:{event.log_index})"
            )

    def _debit(self, position: Position, event: LendingEvent) -> None:
        position.token_balance = sub(position.token_balance, event.token_amount)
        position.total_underlying_redeemed = add(position.total_underlying_redeemed, event.amount)

    def _credit(self, position: Position, event: LendingEvent) -> None:
        position.token_balance = add(position.token_balance, event.token_amount)
        position.total_underlying_supplied = add(position.total_underlying_supplied, event.amount)

    def _on_mint(self, event: LendingEvent, market: Market) -> None:
        position = self._touch(event, market, event.account_id)
        self._credit(position, event)
        self._repo.save_position(position)

    def _on_redeem(self, event: LendingEvent, market: Market) -> None:
        self._require_balance(event, market)
        position = self._touch(event, market, event.account_id)
        self._debit(position, event)
        self._repo.save_position(position)

    def _on_borrow(self, event: LendingEvent, market: Market) -> None:
        self._require_borrow_index(event, market)
        account = self._repo.get_or_create_account(event.account_id)
        if not account.has_borrowed:
            account.mark_borrowed()
            self._repo.save_account(account)
            logger.info("Account %s borrowed for the first time", account.id)

        position = self._touch(event, market, event.account_id)
        position.snapshot_borrow(event.account_borrows, market.borrow_index)
        position.total_underlying_borrowed = add(position.total_underlying_borrowed, event.amount)
        self._repo.save_position(position)

    def _on_repay_borrow(self, event: LendingEvent, market: Market) -> None:
        self._require_borrow_index(event, market)
        position = self._touch(event, market, event.account_id)
        position.snapshot_borrow(event.account_borrows, market.borrow_index)
        position.total_underlying_repaid = add(position.total_underlying_repaid, event.amount)
        self._repo.save_position(position)

    def _on_liquidate_borrow(self, event: LendingEvent, market: Market) -> None:
        # Balances move through the accompanying repay and transfer events.
        position = self._touch(event, market, event.account_id)
        self._repo.save_position(position)

        borrower = self._repo.get_or_create_account(event.account_id)
        borrower.count_liquidated += 1
        self._repo.save_account(borrower)

        liquidator = self._repo.get_or_create_account(event.counterparty)
        liquidator.count_liquidator += 1
        self._repo.save_account(liquidator)
        logger.info(
            "Account %s liquidated by %s in %s", borrower.id, liquidator.id, market.symbol or market.id
        )

    def _on_transfer(self, event: LendingEvent, market: Market) -> None:
        self._require_balance(event, market)
        sender = self._touch(event, market, event.account_id)
        self._debit(sender, event)
        self._repo.save_position(sender)

        receiver = self._touch(event, market, event.counterparty)
        self._credit(receiver, event)
        self._repo.save_position(receiver)

    def _on_market_entered(self, event: LendingEvent, market: Market) -> None:
        position = self._touch(event, market, event.account_id)
        position.entered_market = True
        self._repo.save_position(position)

    def _on_market_exited(self, event: LendingEvent, market: Market) -> None:
        position = self._touch(event, market, event.account_id)
        position.entered_market = False
        self._repo.save_position(position)
