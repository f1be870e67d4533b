from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import List, Optional, Tuple

from .errors import (
    AlreadyEntered,
    InsufficientFunds,
    InvalidEntrant,
    NoEntrants,
    NotAdmin,
    RoundClosed,
    WrongAmount,
)
from .ledger import Ledger
from .selection import RandomWinnerSelector, WinnerSelector
from .types import DrawResult, Identity, RoundSnapshot, RoundStatus

DEFAULT_ROUND_ACCOUNT = "lottery-round"


class LotteryRound:
    """One sale-and-draw cycle.

    The round holds its collected funds in ``account`` on the injected
    ledger. Callers and attached amounts are passed explicitly to every
    operation. All mutations are serialised on a re-entrant lock and every
    check runs before the first ledger call, so a rejected call leaves the
    round untouched.
    """

    def __init__(
        self,
        admin: Identity,
        ticket_price: int,
        ledger: Ledger,
        selector: Optional[WinnerSelector] = None,
        account: Identity = DEFAULT_ROUND_ACCOUNT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not admin:
            raise ValueError("admin identity is required")
        if isinstance(ticket_price, bool) or not isinstance(ticket_price, int):
            raise ValueError(f"ticket price must be an integer, got {ticket_price!r}")
        if ticket_price <= 0:
            raise ValueError("ticket price must be positive")
        if account == admin:
            raise ValueError("round account must differ from the admin identity")

        self._admin = admin
        self._ticket_price = ticket_price
        self._ledger = ledger
        self._selector = selector or RandomWinnerSelector()
        self._account = account
        self._logger = logger or logging.getLogger("lottery.round")

        self._lock = threading.RLock()
        self._entrants: List[Identity] = []
        self._balance = 0
        self._status = RoundStatus.OPEN
        self._last_result: Optional[DrawResult] = None

        self._logger.info(
            "Round opened; admin=%s ticket_price=%s account=%s", admin, ticket_price, account
        )

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def admin(self) -> Identity:
        return self._admin

    @property
    def ticket_price(self) -> int:
        return self._ticket_price

    @property
    def account(self) -> Identity:
        return self._account

    @property
    def drawing(self) -> bool:
        return self._status == RoundStatus.OPEN

    @property
    def status(self) -> RoundStatus:
        return self._status

    @property
    def entrants(self) -> Tuple[Identity, ...]:
        with self._lock:
            return tuple(self._entrants)

    @property
    def balance(self) -> int:
        return self._balance

    @property
    def last_result(self) -> Optional[DrawResult]:
        return self._last_result

    def entrant(self, index: int) -> Identity:
        """Return the entrant holding ticket ``index``; ``IndexError`` past the end."""
        with self._lock:
            if index < 0 or index >= len(self._entrants):
                raise IndexError(f"no entrant at index {index}")
            return self._entrants[index]

    def has_entered(self, identity: Identity) -> bool:
        with self._lock:
            return identity in self._entrants

    def snapshot(self) -> RoundSnapshot:
        with self._lock:
            return RoundSnapshot(
                admin=self._admin,
                ticket_price=self._ticket_price,
                drawing=self.drawing,
                status=self._status,
                entrants=tuple(self._entrants),
                balance=self._balance,
            )

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def enter_lottery(self, caller: Identity, paid_amount: int) -> int:
        """Buy ``caller`` a ticket and return its index in the entrant list."""
        with self._lock:
            self._check_entry(caller, paid_amount)
            self._ledger.transfer(caller, self._account, paid_amount)
            self._entrants.append(caller)
            self._balance += paid_amount
            index = len(self._entrants) - 1
            balance = self._balance

        self._logger.info("Ticket %s sold to %s; balance=%s", index, caller, balance)
        return index

    def decide_winner(self, caller: Identity) -> DrawResult:
        """Pay the whole balance to one entrant and reset the round."""
        with self._lock:
            if caller != self._admin:
                self._reject(caller, NotAdmin())
            if self._status != RoundStatus.OPEN:
                self._reject(caller, RoundClosed("lottery has already been drawn"))
            if not self._entrants:
                self._reject(caller, NoEntrants())

            pool = tuple(self._entrants)
            winner = self._selector.select(pool)
            if winner not in pool:
                raise ValueError(f"selector returned {winner!r}, which is not an entrant")

            payout = self._balance
            self._ledger.transfer(self._account, winner, payout)

            result = DrawResult(
                winner=winner,
                payout=payout,
                entrant_count=len(pool),
                drawn_at=dt.datetime.utcnow(),
            )
            self._entrants.clear()
            self._balance = 0
            self._status = RoundStatus.SETTLED
            self._last_result = result

        self._logger.info(
            "Winner %s drawn from %s entrants; paid out %s", winner, result.entrant_count, payout
        )
        return result

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _check_entry(self, caller: Identity, paid_amount: int) -> None:
        if self._status != RoundStatus.OPEN:
            self._reject(caller, RoundClosed())
        if caller == self._account:
            # paying itself would grow the balance without moving funds
            self._reject(caller, InvalidEntrant())
        if caller in self._entrants:
            self._reject(caller, AlreadyEntered())
        if isinstance(paid_amount, bool) or not isinstance(paid_amount, int):
            self._reject(caller, WrongAmount())
        if paid_amount <= 0:
            self._reject(caller, InsufficientFunds())
        if paid_amount != self._ticket_price:
            self._reject(caller, WrongAmount())
        if paid_amount > self._ledger.balance_of(caller):
            self._reject(caller, InsufficientFunds())

    def _reject(self, caller: Identity, error: Exception) -> None:
        self._logger.debug("Rejected call from %s: %s", caller, error)
        raise error
