"""Portfolio totals across every position an account holds — no I/O."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from ..errors import MissingMarketError, MissingPositionError, PositionOwnershipError
from ..fixed_point import ZERO, add, mul
from ..models import Account, Market, Position
from .balances import borrow_balance_underlying


def token_value_in_reference_unit(market: Market) -> Decimal:
    """Collateral-weighted value of one token unit in the reference unit."""
    return mul(mul(market.collateral_factor, market.exchange_rate), market.underlying_price)


def _resolve(
    account_id: str,
    held_position_id: str,
    markets: Mapping[str, Market],
    positions: Mapping[str, Position],
) -> tuple[Position, Market]:
    position = positions.get(held_position_id)
    if position is None:
        raise MissingPositionError(held_position_id)
    if position.account != account_id:
        raise PositionOwnershipError(held_position_id, account_id, position.account)
    market = markets.get(position.market)
    if market is None:
        raise MissingMarketError(position.market)
    return position, market


def total_collateral_value(
    account_id: str,
    held_position_ids: Iterable[str],
    markets: Mapping[str, Market],
    positions: Mapping[str, Position],
) -> Decimal:
    """Sum of collateral-weighted token holdings, in the reference unit."""
    value = ZERO
    for pid in held_position_ids:
        position, market = _resolve(account_id, pid, markets, positions)
        value = add(value, mul(token_value_in_reference_unit(market), position.token_balance))
    return value


def total_borrow_value(
    account: Account,
    held_position_ids: Iterable[str],
    markets: Mapping[str, Market],
    positions: Mapping[str, Position],
) -> Decimal:
    """Sum of accrued borrow balances, in the reference unit.

    Accounts that never borrowed are zero without looking at any position.
    """
    if not account.has_borrowed:
        return ZERO

    value = ZERO
    for pid in held_position_ids:
        position, market = _resolve(account.id, pid, markets, positions)
        value = add(
            value,
            mul(market.underlying_price, borrow_balance_underlying(position, market)),
        )
    return value
