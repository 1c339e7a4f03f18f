"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from position_ledger.config import (
    AppConfig,
    LedgerConfig,
    MonitorConfig,
    NotificationsConfig,
    TelegramConfig,
    ThresholdsConfig,
    WatchedAccount,
)
from position_ledger.markets import StoreMarketProvider
from position_ledger.models import Account, Market
from position_ledger.repository import PositionRepository
from position_ledger.storage import InMemoryStore

from .factories import ALICE, CETH, CUSDC

# ---------------------------------------------------------------------------
# Market fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ceth_market() -> Market:
    # One token is worth 0.1 reference units as collateral: 0.5 * 0.02 * 10.
    return Market(
        id=CETH,
        symbol="cETH",
        exchange_rate=Decimal("0.02"),
        borrow_index=Decimal("1.0"),
        collateral_factor=Decimal("0.5"),
        underlying_price=Decimal("10"),
        underlying_symbol="ETH",
    )


@pytest.fixture()
def cusdc_market() -> Market:
    # One token is worth 0.5 reference units as collateral: 1 * 1 * 0.5.
    return Market(
        id=CUSDC,
        symbol="cUSDC",
        exchange_rate=Decimal("1"),
        borrow_index=Decimal("1.1"),
        collateral_factor=Decimal("1"),
        underlying_price=Decimal("0.5"),
        underlying_symbol="USDC",
        underlying_decimals=6,
    )


@pytest.fixture()
def markets(ceth_market: Market, cusdc_market: Market) -> dict[str, Market]:
    return {ceth_market.id: ceth_market, cusdc_market.id: cusdc_market}


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store(ceth_market: Market, cusdc_market: Market) -> InMemoryStore:
    s = InMemoryStore()
    s.save(ceth_market)
    s.save(cusdc_market)
    return s


@pytest.fixture()
def repository(store: InMemoryStore) -> PositionRepository:
    return PositionRepository(store)


@pytest.fixture()
def market_provider(store: InMemoryStore) -> StoreMarketProvider:
    return StoreMarketProvider(store)


# ---------------------------------------------------------------------------
# Entity helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def borrower() -> Account:
    return Account(id=ALICE, has_borrowed=True)


@pytest.fixture()
def saver() -> Account:
    return Account(id=ALICE)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        ledger=LedgerConfig(state_path=str(tmp_path / "ledger.json"), reference_unit="ETH"),
        monitor=MonitorConfig(
            thresholds=ThresholdsConfig(
                health_warning=Decimal("1.25"), health_critical=Decimal("1.05")
            ),
            accounts=(WatchedAccount(label="alice", address=ALICE),),
        ),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


SAMPLE_YAML = textwrap.dedent(f"""\
    ledger:
      state_path: state/ledger.json
      reference_unit: ETH
    monitor:
      thresholds:
        health_warning: 1.3
        health_critical: 1.1
      accounts:
        - label: alice
          address: "{ALICE}"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
