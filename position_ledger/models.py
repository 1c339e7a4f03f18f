"""Ledger entities — accounts, markets, positions and their transaction log."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .fixed_point import ONE, ZERO, is_zero


def position_id(market_id: str, account_id: str) -> str:
    """Composite key of a position: ``<market>-<account>``."""
    return f"{market_id}-{account_id}"


def transaction_id(position_id: str, tx_hash: str, log_index: int) -> str:
    """Composite key of a transaction record: ``<position>-<tx hash>-<log index>``."""
    return f"{position_id}-{tx_hash}-{log_index}"


@dataclass
class Account:
    """A protocol participant, keyed by wallet address.

    ``has_borrowed`` only ever moves from False to True.
    """

    id: str
    count_liquidated: int = 0
    count_liquidator: int = 0
    has_borrowed: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "has_borrowed" and not value and getattr(self, "has_borrowed", False):
            raise ValueError(f"Account '{self.id}' has borrowed; has_borrowed cannot be reset")
        super().__setattr__(name, value)

    def mark_borrowed(self) -> None:
        self.has_borrowed = True


@dataclass(frozen=True)
class Market:
    """Current state of one lending market, as supplied by the market provider."""

    id: str
    symbol: str
    exchange_rate: Decimal
    borrow_index: Decimal
    collateral_factor: Decimal
    underlying_price: Decimal
    underlying_symbol: str = ""
    underlying_decimals: int = 18

    def __post_init__(self) -> None:
        if self.exchange_rate < ZERO:
            raise ValueError(f"Market '{self.id}': exchange_rate must be >= 0")
        if self.borrow_index < ZERO:
            raise ValueError(f"Market '{self.id}': borrow_index must be >= 0")
        if not ZERO <= self.collateral_factor <= ONE:
            raise ValueError(
                f"Market '{self.id}': collateral_factor {self.collateral_factor} outside [0, 1]"
            )
        if self.underlying_price < ZERO:
            raise ValueError(f"Market '{self.id}': underlying_price must be >= 0")


@dataclass
class Position:
    """An account's supply and borrow state in one market."""

    id: str
    symbol: str
    market: str
    account: str
    accrual_block_number: int = 0
    token_balance: Decimal = ZERO
    total_underlying_supplied: Decimal = ZERO
    total_underlying_redeemed: Decimal = ZERO
    account_borrow_index: Decimal = ZERO
    total_underlying_borrowed: Decimal = ZERO
    total_underlying_repaid: Decimal = ZERO
    stored_borrow_balance: Decimal = ZERO
    entered_market: bool = False

    def snapshot_borrow(self, stored_borrow_balance: Decimal, borrow_index: Decimal) -> None:
        """Record the borrow balance together with the index it was measured at."""
        if is_zero(borrow_index) and not is_zero(stored_borrow_balance):
            raise ValueError(
                f"Position '{self.id}': cannot store borrow balance "
                f"{stored_borrow_balance} against a zero borrow index"
            )
        self.stored_borrow_balance = stored_borrow_balance
        self.account_borrow_index = borrow_index


@dataclass(frozen=True)
class TransactionRecord:
    """Audit entry linking a position to the event that touched it."""

    id: str
    position: str
    tx_hash: str
    timestamp: int
    block: int
    log_index: int


ENTITY_TYPES: dict[str, type] = {
    cls.__name__: cls for cls in (Account, Market, Position, TransactionRecord)
}


@dataclass(frozen=True)
class AccountSummary:
    """Solvency snapshot of one account, in the reference unit."""

    account_id: str
    has_borrowed: bool
    position_count: int
    total_collateral_value: Decimal
    total_borrow_value: Decimal
    health: Decimal | None
