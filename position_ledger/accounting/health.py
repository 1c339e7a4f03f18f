"""Account health ratio."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from ..fixed_point import div, is_zero
from ..models import Account, Market, Position
from .portfolio import total_borrow_value, total_collateral_value


def health(
    account: Account,
    held_position_ids: Iterable[str],
    markets: Mapping[str, Market],
    positions: Mapping[str, Position],
) -> Decimal | None:
    """Collateral value divided by borrow value.

    Returns ``None`` for an account that has never borrowed. When the account
    has borrowed but currently owes nothing, the raw collateral value is
    returned in place of a ratio.
    """
    if not account.has_borrowed:
        return None

    held = list(held_position_ids)
    total_borrow = total_borrow_value(account, held, markets, positions)
    total_collateral = total_collateral_value(account.id, held, markets, positions)
    if is_zero(total_borrow):
        return total_collateral
    return div(total_collateral, total_borrow)
