"""Pure accounting functions — balances, portfolio totals and health."""
from .balances import borrow_balance_underlying, supply_balance_underlying
from .health import health
from .portfolio import (
    token_value_in_reference_unit,
    total_borrow_value,
    total_collateral_value,
)

__all__ = [
    "borrow_balance_underlying",
    "health",
    "supply_balance_underlying",
    "token_value_in_reference_unit",
    "total_borrow_value",
    "total_collateral_value",
]
