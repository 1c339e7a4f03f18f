"""Market snapshots — parsing, import and store-backed lookup."""
from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from .errors import MissingMarketError
from .fixed_point import CTOKEN_DECIMALS, MANTISSA_FACTOR, from_mantissa, to_decimal
from .interfaces.store import EntityStore
from .models import Market

logger = logging.getLogger(__name__)

# Price oracle mantissas carry 36 - underlying_decimals digits of scale.
_PRICE_SCALE = 36


def _decimal_field(value: Any) -> Decimal:
    if isinstance(value, float):
        # YAML turns unquoted 0.02 into a float; its repr is the written literal.
        value = repr(value)
    return to_decimal(value)


def _scaled(raw_value: Any, decimals: int) -> Decimal:
    """Divide an on-chain mantissa by 10^decimals, keeping 18 fractional digits."""
    if isinstance(raw_value, float):
        raw_value = repr(raw_value)
    return from_mantissa(raw_value, decimals, MANTISSA_FACTOR)


def parse_market(raw: dict[str, Any]) -> Market:
    """Build a ``Market`` from decimal fields or on-chain mantissas.

    Each quantity may be given directly (``exchange_rate``) or as the raw
    contract value (``exchange_rate_mantissa``):

        exchange_rate     = mantissa / 10^(18 + underlying_decimals - 8)
        borrow_index      = mantissa / 10^18
        collateral_factor = mantissa / 10^18
        underlying_price  = mantissa / 10^(36 - underlying_decimals)
    """
    if not raw.get("id"):
        raise ValueError("Market entry has no id")
    market_id = str(raw["id"])
    try:
        underlying_decimals = int(raw.get("underlying_decimals", 18))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Market '{market_id}' has an invalid underlying_decimals") from exc

    scales = {
        "exchange_rate": MANTISSA_FACTOR + underlying_decimals - CTOKEN_DECIMALS,
        "borrow_index": MANTISSA_FACTOR,
        "collateral_factor": MANTISSA_FACTOR,
        "underlying_price": _PRICE_SCALE - underlying_decimals,
    }
    values: dict[str, Decimal] = {}
    for name, scale in scales.items():
        if name in raw:
            key = name
        elif f"{name}_mantissa" in raw:
            key = f"{name}_mantissa"
        else:
            raise ValueError(f"Market '{market_id}' is missing {name}")
        if raw[key] is None:
            raise ValueError(f"Market '{market_id}' has an empty {key}")
        try:
            values[name] = (
                _decimal_field(raw[key]) if key == name else _scaled(raw[key], scale)
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Market '{market_id}' has an invalid {key}: {exc}") from exc

    return Market(
        id=market_id,
        symbol=str(raw.get("symbol", "")),
        underlying_symbol=str(raw.get("underlying_symbol", "")),
        underlying_decimals=underlying_decimals,
        **values,
    )


def load_market_snapshot(path: str | Path) -> list[Market]:
    """Read a YAML (or JSON) list of market entries."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Market snapshot not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if isinstance(raw, dict):
        raw = raw.get("markets", [])
    if not isinstance(raw, list):
        raise ValueError(f"Market snapshot {path} must be a list of markets")

    markets = [parse_market(entry) for entry in raw]
    logger.info("Parsed %d markets from %s", len(markets), path)
    return markets


def import_markets(store: EntityStore, markets: list[Market]) -> int:
    """Save market snapshots, replacing any earlier state for the same ids."""
    for market in markets:
        store.save(market)
        logger.debug(
            "Market %s (%s): rate=%s index=%s cf=%s price=%s",
            market.id,
            market.symbol,
            market.exchange_rate,
            market.borrow_index,
            market.collateral_factor,
            market.underlying_price,
        )
    return len(markets)


class StoreMarketProvider:
    """Serve market state from Market entities held in an entity store."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def get_market(self, market_id: str) -> Market:
        market = self._store.load(Market, market_id)
        if market is None:
            raise MissingMarketError(market_id)
        return market
