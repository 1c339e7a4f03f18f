"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    state_path: str = "state/ledger.json"
    reference_unit: str = "ETH"


@dataclass(frozen=True)
class ThresholdsConfig:
    health_warning: Decimal = Decimal("1.25")
    health_critical: Decimal = Decimal("1.05")


@dataclass(frozen=True)
class WatchedAccount:
    label: str = ""
    address: str = ""


@dataclass(frozen=True)
class MonitorConfig:
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    accounts: tuple[WatchedAccount, ...] = ()


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _to_threshold(value: Any) -> Decimal:
    # str() keeps the literal written in YAML instead of the binary float.
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid health threshold {value!r}") from exc


def _build_ledger(raw: dict[str, Any]) -> LedgerConfig:
    return LedgerConfig(
        state_path=str(raw.get("state_path", LedgerConfig.state_path)),
        reference_unit=str(raw.get("reference_unit", LedgerConfig.reference_unit)),
    )


def _build_thresholds(raw: dict[str, Any]) -> ThresholdsConfig:
    defaults = ThresholdsConfig()
    return ThresholdsConfig(
        health_warning=_to_threshold(raw.get("health_warning", defaults.health_warning)),
        health_critical=_to_threshold(raw.get("health_critical", defaults.health_critical)),
    )


def _build_accounts(raw: list[dict[str, Any]]) -> tuple[WatchedAccount, ...]:
    accounts: list[WatchedAccount] = []
    for a in raw:
        accounts.append(
            WatchedAccount(
                label=a.get("label", ""),
                address=str(a.get("address", "")),
            )
        )
    return tuple(accounts)


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        thresholds=_build_thresholds(raw.get("thresholds", {})),
        accounts=_build_accounts(raw.get("accounts", [])),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            current working directory.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        ledger=_build_ledger(raw.get("ledger", {})),
        monitor=_build_monitor(raw.get("monitor", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.ledger.state_path:
        raise ValueError("ledger.state_path must not be empty")

    thresholds = cfg.monitor.thresholds
    if thresholds.health_critical <= 0:
        raise ValueError("health_critical must be positive")
    if thresholds.health_critical >= thresholds.health_warning:
        raise ValueError("health_critical must be below health_warning")

    for account in cfg.monitor.accounts:
        if not account.address:
            raise ValueError(f"Watched account '{account.label}' has no address")

    tg = cfg.notifications.telegram
    if tg.enabled and not tg.chat_id:
        raise ValueError("Telegram notifications enabled without chat_id")
