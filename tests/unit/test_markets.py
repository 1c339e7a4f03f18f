"""Unit tests for market snapshot parsing and lookup."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from position_ledger.errors import MissingMarketError
from position_ledger.markets import (
    StoreMarketProvider,
    import_markets,
    load_market_snapshot,
    parse_market,
)
from position_ledger.models import Market
from position_ledger.storage import InMemoryStore

from ..factories import CETH, CUSDC


class TestParseMarket:
    def test_decimal_fields(self) -> None:
        market = parse_market(
            {
                "id": CETH,
                "symbol": "cETH",
                "exchange_rate": "0.02",
                "borrow_index": "1.05",
                "collateral_factor": "0.75",
                "underlying_price": "1",
            }
        )
        assert market.exchange_rate == Decimal("0.02")
        assert market.borrow_index == Decimal("1.05")
        assert market.underlying_decimals == 18

    def test_yaml_floats_keep_written_value(self) -> None:
        market = parse_market(
            {
                "id": CETH,
                "exchange_rate": 0.02,
                "borrow_index": 1.1,
                "collateral_factor": 0.75,
                "underlying_price": 1,
            }
        )
        assert market.exchange_rate == Decimal("0.02")
        assert market.borrow_index == Decimal("1.1")

    def test_mantissas(self) -> None:
        market = parse_market(
            {
                "id": CUSDC,
                "symbol": "cUSDC",
                "underlying_decimals": 6,
                # 0.0204 USDC per cUSDC at 10^(18 + 6 - 8) scale.
                "exchange_rate_mantissa": "204000000000000",
                "borrow_index_mantissa": "1020000000000000000",
                "collateral_factor_mantissa": "750000000000000000",
                # 0.0005 ETH per USDC at 10^(36 - 6) scale.
                "underlying_price_mantissa": "500000000000000000000000000",
            }
        )
        assert market.exchange_rate == Decimal("0.0204")
        assert market.borrow_index == Decimal("1.02")
        assert market.collateral_factor == Decimal("0.75")
        assert market.underlying_price == Decimal("0.0005")

    def test_missing_quantity(self) -> None:
        with pytest.raises(ValueError, match="borrow_index"):
            parse_market(
                {
                    "id": CETH,
                    "exchange_rate": "0.02",
                    "collateral_factor": "0.75",
                    "underlying_price": "1",
                }
            )

    def test_missing_id(self) -> None:
        with pytest.raises(ValueError, match="no id"):
            parse_market({"exchange_rate": "1"})

    def test_null_field_names_the_field(self) -> None:
        with pytest.raises(ValueError, match="empty borrow_index"):
            parse_market(
                {
                    "id": CETH,
                    "exchange_rate": "0.02",
                    "borrow_index": None,
                    "collateral_factor": "0.75",
                    "underlying_price": "1",
                }
            )

    def test_malformed_mantissa_names_the_field(self) -> None:
        with pytest.raises(ValueError, match="invalid underlying_price_mantissa"):
            parse_market(
                {
                    "id": CETH,
                    "exchange_rate": "0.02",
                    "borrow_index": "1",
                    "collateral_factor": "0.75",
                    "underlying_price_mantissa": ["1"],
                }
            )


class TestLoadMarketSnapshot:
    def test_list_under_markets_key(self, tmp_path: Path) -> None:
        path = tmp_path / "markets.yaml"
        path.write_text(
            textwrap.dedent(f"""\
                markets:
                  - id: "{CETH}"
                    symbol: cETH
                    exchange_rate: "0.02"
                    borrow_index: "1.0"
                    collateral_factor: "0.5"
                    underlying_price: "1"
                """)
        )
        markets = load_market_snapshot(path)
        assert [m.id for m in markets] == [CETH]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_market_snapshot(tmp_path / "nope.yaml")

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "markets.yaml"
        path.write_text("markets: 3\n")
        with pytest.raises(ValueError, match="list of markets"):
            load_market_snapshot(path)

    def test_null_field_in_file(self, tmp_path: Path) -> None:
        path = tmp_path / "markets.yaml"
        path.write_text(
            textwrap.dedent(f"""\
                - id: "{CETH}"
                  exchange_rate:
                  borrow_index: "1.0"
                  collateral_factor: "0.5"
                  underlying_price: "1"
                """)
        )
        with pytest.raises(ValueError, match="empty exchange_rate"):
            load_market_snapshot(path)


class TestStoreMarketProvider:
    def test_import_and_lookup(self, ceth_market: Market) -> None:
        store = InMemoryStore()
        assert import_markets(store, [ceth_market]) == 1
        assert StoreMarketProvider(store).get_market(CETH) == ceth_market

    def test_unknown_market(self) -> None:
        with pytest.raises(MissingMarketError) as exc_info:
            StoreMarketProvider(InMemoryStore()).get_market("0xnone")
        assert exc_info.value.market_id == "0xnone"
