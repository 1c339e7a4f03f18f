"""Command-line interface for the position ledger."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import AppConfig, load_config
from .errors import LedgerError
from .events import read_events
from .interfaces.notifier import Notifier
from .logging_setup import configure_logging
from .markets import StoreMarketProvider, import_markets, load_market_snapshot
from .notifications import TelegramNotifier
from .services import AccountReporter, EventProcessor, HealthMonitor
from .storage import JsonFileStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="position-ledger",
        description="Lending position ledger and account health monitor",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    markets_parser = sub.add_parser("import-markets", help="Load a market state snapshot")
    markets_parser.add_argument("path", help="YAML/JSON list of markets")

    replay_parser = sub.add_parser("replay", help="Apply a JSON-lines event feed")
    replay_parser.add_argument("path", help="Events file, one JSON object per line")

    account_parser = sub.add_parser("account", help="Show one account's solvency")
    account_parser.add_argument("address", help="Account (wallet) address")

    sub.add_parser("check", help="Check watched accounts and alert on low health")
    sub.add_parser("report", help="Send a health report for watched accounts")

    return parser


def _build_notifiers(config: AppConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram))
    return notifiers


def _run(args: argparse.Namespace, config: AppConfig) -> None:
    """Execute the selected command."""
    store = JsonFileStore(config.ledger.state_path)
    markets = StoreMarketProvider(store)

    if args.command == "import-markets":
        count = import_markets(store, load_market_snapshot(args.path))
        store.flush()
        logger.info("Imported %d markets into %s", count, store.path)

    elif args.command == "replay":
        processor = EventProcessor(store, markets)
        applied = processor.apply_all(read_events(args.path))
        store.flush()
        logger.info("Ledger at %s now reflects %d new events", store.path, applied)

    elif args.command == "account":
        summary = AccountReporter(store, markets).summary(args.address)
        unit = config.ledger.reference_unit
        print(f"Account:      {summary.account_id}")
        print(f"Positions:    {summary.position_count}")
        print(f"Has borrowed: {'yes' if summary.has_borrowed else 'no'}")
        print(f"Collateral:   {summary.total_collateral_value} {unit}")
        print(f"Borrowed:     {summary.total_borrow_value} {unit}")
        print(f"Health:       {'n/a' if summary.health is None else summary.health}")

    elif args.command in ("check", "report"):
        monitor = HealthMonitor(
            config, AccountReporter(store, markets), _build_notifiers(config)
        )
        if args.command == "check":
            asyncio.run(monitor.check_and_alert())
        else:
            asyncio.run(monitor.generate_report())


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
        _run(args, config)
    except (LedgerError, FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)
