"""Lending events — the already-parsed feed the processor consumes."""
from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import EventFormatError
from .fixed_point import CTOKEN_DECIMALS, ZERO, from_mantissa, to_decimal, truncate


class EventType(str, Enum):
    MINT = "mint"
    REDEEM = "redeem"
    BORROW = "borrow"
    REPAY_BORROW = "repay_borrow"
    LIQUIDATE_BORROW = "liquidate_borrow"
    TRANSFER = "transfer"
    MARKET_ENTERED = "market_entered"
    MARKET_EXITED = "market_exited"


# Events that involve a second account (receiver / liquidator).
_NEEDS_COUNTERPARTY = frozenset({EventType.TRANSFER, EventType.LIQUIDATE_BORROW})


@dataclass(frozen=True)
class LendingEvent:
    """One protocol event, already decoded from its log.

    ``amount`` is in underlying units, ``token_amount`` in market token units
    and ``account_borrows`` is the account's borrow balance after the event.
    """

    event_type: EventType
    market_id: str
    account_id: str
    tx_hash: str
    timestamp: int
    block_number: int
    log_index: int
    amount: Decimal = ZERO
    token_amount: Decimal = ZERO
    account_borrows: Decimal = ZERO
    counterparty: str = ""

    @property
    def order_key(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


_REQUIRED = ("event_type", "market_id", "account_id", "tx_hash", "timestamp", "block_number", "log_index")


def _to_int(raw: dict[str, Any], name: str) -> int:
    value = raw[name]
    if isinstance(value, bool):
        raise EventFormatError(f"Event field '{name}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise EventFormatError(f"Event field '{name}' must be an integer, got {value!r}") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise EventFormatError(f"Event field '{name}' must be an integer, got {value!r}")
    return int(number)


def _token_amount(raw: dict[str, Any]) -> Decimal:
    """Market token amount at the 8-decimal token scale."""
    if raw.get("token_amount_mantissa") is not None:
        return from_mantissa(raw["token_amount_mantissa"], CTOKEN_DECIMALS)
    return truncate(to_decimal(raw.get("token_amount", ZERO)), CTOKEN_DECIMALS)


def parse_event(raw: dict[str, Any]) -> LendingEvent:
    """Validate a decoded JSON object and build a ``LendingEvent``."""
    missing = [name for name in _REQUIRED if raw.get(name) in (None, "")]
    if missing:
        raise EventFormatError(f"Event missing fields: {', '.join(missing)}")

    try:
        event_type = EventType(raw["event_type"])
    except ValueError as exc:
        raise EventFormatError(f"Unknown event type {raw['event_type']!r}") from exc

    try:
        event = LendingEvent(
            event_type=event_type,
            market_id=str(raw["market_id"]),
            account_id=str(raw["account_id"]),
            tx_hash=str(raw["tx_hash"]),
            timestamp=_to_int(raw, "timestamp"),
            block_number=_to_int(raw, "block_number"),
            log_index=_to_int(raw, "log_index"),
            amount=to_decimal(raw.get("amount", ZERO)),
            token_amount=_token_amount(raw),
            account_borrows=to_decimal(raw.get("account_borrows", ZERO)),
            counterparty=str(raw.get("counterparty") or ""),
        )
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise EventFormatError(f"Malformed event field: {exc}") from exc

    if event.event_type in _NEEDS_COUNTERPARTY and not event.counterparty:
        raise EventFormatError(f"{event.event_type.value} event requires a counterparty")
    for name in ("amount", "token_amount", "account_borrows"):
        if getattr(event, name) < ZERO:
            raise EventFormatError(f"Event field '{name}' must not be negative")
    return event


def read_events(path: str | Path) -> Iterator[LendingEvent]:
    """Stream events from a JSON-lines file, one object per line."""
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line, parse_float=Decimal)
            except json.JSONDecodeError as exc:
                raise EventFormatError(f"{path}:{line_no}: invalid JSON ({exc.msg})") from exc
            if not isinstance(raw, dict):
                raise EventFormatError(f"{path}:{line_no}: expected a JSON object")
            try:
                yield parse_event(raw)
            except EventFormatError as exc:
                raise EventFormatError(f"{path}:{line_no}: {exc}") from exc
