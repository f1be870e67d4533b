from __future__ import annotations

import abc
import threading
from typing import Dict, Optional

from .errors import TransferError
from .types import Identity


class Ledger(abc.ABC):
    """Value-transfer collaborator used by a round.

    Implementations must apply a transfer entirely or not at all and raise
    on failure; the round treats any exception as fatal for the call.
    """

    @abc.abstractmethod
    def balance_of(self, account: Identity) -> int:
        """Return the spendable balance of ``account`` (0 when unknown)."""

    @abc.abstractmethod
    def deposit(self, account: Identity, amount: int) -> int:
        """Credit ``amount`` to ``account`` and return the new balance."""

    @abc.abstractmethod
    def transfer(self, source: Identity, destination: Identity, amount: int) -> None:
        """Move ``amount`` from ``source`` to ``destination``."""


def check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TransferError(f"amount must be an integer, got {amount!r}")
    if amount < 0:
        raise TransferError("amount must not be negative")
    return amount


class InMemoryLedger(Ledger):
    def __init__(self, balances: Optional[Dict[Identity, int]] = None) -> None:
        self._lock = threading.Lock()
        self._balances: Dict[Identity, int] = {}
        for account, amount in (balances or {}).items():
            self._balances[account] = check_amount(amount)

    def balance_of(self, account: Identity) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def deposit(self, account: Identity, amount: int) -> int:
        check_amount(amount)
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            return self._balances[account]

    def transfer(self, source: Identity, destination: Identity, amount: int) -> None:
        check_amount(amount)
        with self._lock:
            available = self._balances.get(source, 0)
            if available < amount:
                raise TransferError(
                    f"{source} holds {available}, cannot transfer {amount}"
                )
            self._balances[source] = available - amount
            self._balances[destination] = self._balances.get(destination, 0) + amount
