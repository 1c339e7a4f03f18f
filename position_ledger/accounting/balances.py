"""Underlying-denominated balances of a single position — no I/O."""
from __future__ import annotations

from decimal import Decimal

from ..fixed_point import ZERO, div, is_zero, mul
from ..models import Market, Position


def supply_balance_underlying(position: Position, market: Market) -> Decimal:
    """Token balance converted to the underlying asset at the current exchange rate."""
    return mul(position.token_balance, market.exchange_rate)


def borrow_balance_underlying(position: Position, market: Market) -> Decimal:
    """Stored borrow balance carried forward to the market's current borrow index.

    borrow = stored_borrow_balance * market.borrow_index / account_borrow_index

    A zero snapshot index means no borrow was ever recorded for the position.
    """
    if is_zero(position.account_borrow_index):
        return ZERO
    return div(
        mul(position.stored_borrow_balance, market.borrow_index),
        position.account_borrow_index,
    )
