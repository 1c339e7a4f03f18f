"""Position repository — load-or-create access to accounts, positions and transactions."""
from __future__ import annotations

import logging

from .interfaces.store import EntityStore
from .models import Account, Position, TransactionRecord, position_id, transaction_id

logger = logging.getLogger(__name__)


class PositionRepository:
    """Load-or-create semantics over an ``EntityStore``.

    Positions returned here are not saved; the caller applies its event
    specific changes and then calls ``save_position``.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_account(self, account_id: str) -> Account | None:
        return self._store.load(Account, account_id)

    def get_or_create_account(self, account_id: str) -> Account:
        account = self._store.load(Account, account_id)
        if account is None:
            account = Account(id=account_id)
            self._store.save(account)
            logger.debug("Created account %s", account_id)
        return account

    def save_account(self, account: Account) -> None:
        self._store.save(account)

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def get_or_create_position(
        self, market_id: str, symbol: str, account_id: str
    ) -> Position:
        pid = position_id(market_id, account_id)
        position = self._store.load(Position, pid)
        if position is None:
            position = Position(id=pid, symbol=symbol, market=market_id, account=account_id)
            logger.debug("Created position %s", pid)
        return position

    def save_position(self, position: Position) -> None:
        self._store.save(position)

    def positions_for_account(self, account_id: str) -> list[Position]:
        return [p for p in self._store.all(Position) if p.account == account_id]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def has_transaction(self, position_id: str, tx_hash: str, log_index: int) -> bool:
        tid = transaction_id(position_id, tx_hash, log_index)
        return self._store.load(TransactionRecord, tid) is not None

    def record_transaction(
        self,
        position_id: str,
        tx_hash: str,
        timestamp: int,
        block: int,
        log_index: int,
    ) -> TransactionRecord:
        """Create the transaction record once; later calls return the stored one."""
        tid = transaction_id(position_id, tx_hash, log_index)
        record = self._store.load(TransactionRecord, tid)
        if record is None:
            record = TransactionRecord(
                id=tid,
                position=position_id,
                tx_hash=tx_hash,
                timestamp=timestamp,
                block=block,
                log_index=log_index,
            )
            self._store.save(record)
        else:
            logger.debug("Transaction %s already recorded", tid)
        return record

    def update_position_on_event(
        self,
        market_id: str,
        market_symbol: str,
        account_id: str,
        tx_hash: str,
        timestamp: int,
        block_number: int,
        log_index: int,
    ) -> Position:
        """Get or create the position, log the transaction and stamp the block."""
        position = self.get_or_create_position(market_id, market_symbol, account_id)
        self.record_transaction(position.id, tx_hash, timestamp, block_number, log_index)
        position.accrual_block_number = block_number
        return position
