"""Integration tests for the account reporter: events in, solvency out."""
from __future__ import annotations

from decimal import Decimal

import pytest

from position_ledger.errors import MissingMarketError
from position_ledger.events import EventType
from position_ledger.markets import StoreMarketProvider
from position_ledger.models import Market
from position_ledger.services import AccountReporter, EventProcessor
from position_ledger.storage import InMemoryStore

from ..factories import ALICE, BOB, CUSDC, make_event, make_position


@pytest.fixture()
def reporter(store: InMemoryStore, market_provider: StoreMarketProvider) -> AccountReporter:
    return AccountReporter(store, market_provider)


@pytest.fixture()
def processor(store: InMemoryStore, market_provider: StoreMarketProvider) -> EventProcessor:
    return EventProcessor(store, market_provider)


class TestAccountReporter:
    def test_unknown_account(self, reporter: AccountReporter) -> None:
        summary = reporter.summary(BOB)
        assert summary.position_count == 0
        assert summary.has_borrowed is False
        assert summary.total_collateral_value == Decimal("0")
        assert summary.health is None

    def test_supplier_has_no_health(
        self, reporter: AccountReporter, processor: EventProcessor
    ) -> None:
        processor.apply(make_event(EventType.MINT, 10, token_amount=Decimal("300")))
        assert reporter.total_collateral_value(ALICE) == Decimal("30")
        assert reporter.total_borrow_value(ALICE) == Decimal("0")
        assert reporter.health(ALICE) is None

    def test_borrower_health(self, reporter: AccountReporter, processor: EventProcessor) -> None:
        processor.apply_all(
            [
                make_event(EventType.MINT, 10, token_amount=Decimal("300")),
                # Snapshot at index 1.1 with 20 owed: 20 * 1.1 / 1.1 * 0.5 = 10.
                make_event(
                    EventType.BORROW,
                    11,
                    market_id=CUSDC,
                    amount=Decimal("20"),
                    account_borrows=Decimal("20"),
                ),
            ]
        )

        summary = reporter.summary(ALICE)
        assert summary.has_borrowed is True
        assert summary.position_count == 2
        assert summary.total_collateral_value == Decimal("30")
        assert summary.total_borrow_value == Decimal("10")
        assert summary.health == Decimal("3")

    def test_fully_repaid_reports_collateral(
        self, reporter: AccountReporter, processor: EventProcessor
    ) -> None:
        processor.apply_all(
            [
                make_event(EventType.MINT, 10, token_amount=Decimal("300")),
                make_event(
                    EventType.BORROW,
                    11,
                    market_id=CUSDC,
                    amount=Decimal("20"),
                    account_borrows=Decimal("20"),
                ),
                make_event(
                    EventType.REPAY_BORROW,
                    12,
                    market_id=CUSDC,
                    amount=Decimal("20"),
                    account_borrows=Decimal("0"),
                ),
            ]
        )
        assert reporter.health(ALICE) == Decimal("30")

    def test_index_growth_raises_debt(
        self, store: InMemoryStore, reporter: AccountReporter, processor: EventProcessor
    ) -> None:
        processor.apply_all(
            [
                make_event(EventType.MINT, 10, token_amount=Decimal("300")),
                make_event(
                    EventType.BORROW,
                    11,
                    market_id=CUSDC,
                    amount=Decimal("20"),
                    account_borrows=Decimal("20"),
                ),
            ]
        )
        grown = store.load(Market, CUSDC)
        store.save(
            Market(
                id=grown.id,
                symbol=grown.symbol,
                exchange_rate=grown.exchange_rate,
                borrow_index=Decimal("2.2"),
                collateral_factor=grown.collateral_factor,
                underlying_price=grown.underlying_price,
                underlying_decimals=grown.underlying_decimals,
            )
        )

        # 20 * 2.2 / 1.1 = 40 underlying at price 0.5.
        assert reporter.total_borrow_value(ALICE) == Decimal("20")
        assert reporter.health(ALICE) == Decimal("1.5")

    def test_missing_market_surfaces(self, store: InMemoryStore, reporter: AccountReporter) -> None:
        ghost = Market(
            id="0xghost",
            symbol="cGHOST",
            exchange_rate=Decimal("1"),
            borrow_index=Decimal("1"),
            collateral_factor=Decimal("0.5"),
            underlying_price=Decimal("1"),
        )
        store.save(make_position(ghost, token_balance=Decimal("1")))
        with pytest.raises(MissingMarketError):
            reporter.summary(ALICE)
