from __future__ import annotations

import threading
from typing import List

from sqlalchemy.orm import Session

from lottery.errors import TransferError
from lottery.ledger import Ledger, check_amount

from ..db import session_scope
from ..models import Account


class SqlLedger(Ledger):
    """Ledger backed by the ``accounts`` table.

    Each call runs in its own session so a transfer is committed as a whole
    or rolled back. A process-wide lock keeps the read-check-write sequence
    of concurrent transfers from interleaving on backends without row locks.
    """

    _lock = threading.Lock()

    @staticmethod
    def _get_or_create(session: Session, address: str) -> Account:
        account = session.get(Account, address)
        if account is None:
            account = Account(address=address, balance=0)
            session.add(account)
            session.flush()
        return account

    def balance_of(self, account: str) -> int:
        with session_scope() as session:
            record = session.get(Account, account)
            return int(record.balance) if record is not None else 0

    def deposit(self, account: str, amount: int) -> int:
        check_amount(amount)
        with self._lock, session_scope() as session:
            record = self._get_or_create(session, account)
            record.balance = int(record.balance or 0) + amount
            session.flush()
            return int(record.balance)

    def transfer(self, source: str, destination: str, amount: int) -> None:
        check_amount(amount)
        with self._lock, session_scope() as session:
            sender = session.get(Account, source)
            available = int(sender.balance) if sender is not None else 0
            if sender is None or available < amount:
                raise TransferError(f"{source} holds {available}, cannot transfer {amount}")
            receiver = self._get_or_create(session, destination)
            sender.balance = available - amount
            receiver.balance = int(receiver.balance or 0) + amount
            session.flush()

    def list_accounts(self) -> List[dict]:
        with session_scope() as session:
            records = session.query(Account).order_by(Account.address).all()
            return [record.to_dict() for record in records]
