from __future__ import annotations

import logging
import threading
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from lottery.errors import NotAdmin, RoundClosed
from lottery.ledger import Ledger
from lottery.round import LotteryRound
from lottery.selection import RandomWinnerSelector
from lottery.types import DrawResult, RoundStatus

from ..config import RoundSettings
from .payouts import PayoutRepository

logger = logging.getLogger("lottery.service")


class RoundService:
    """Holds the round the HTTP service is currently selling tickets for.

    Only one round is live at a time. A settled round stays visible until
    the admin explicitly starts the next one.
    """

    def __init__(
        self,
        settings: RoundSettings,
        ledger: Ledger,
        payouts: Optional[PayoutRepository] = None,
    ) -> None:
        self._settings = settings
        self._ledger = ledger
        self._payouts = payouts or PayoutRepository()
        self._lock = threading.Lock()
        self._round = self._build_round()
        self._round_id = self._payouts.get_current_round()
        if self._payouts.get_payout(self._round_id) is not None:
            # restarted after a draw; never reuse a settled round number
            self._round_id = self._payouts.increment_round()

    def _build_round(self) -> LotteryRound:
        return LotteryRound(
            admin=self._settings.admin_address,
            ticket_price=self._settings.ticket_price,
            ledger=self._ledger,
            selector=RandomWinnerSelector(seed=self._settings.selector_seed),
            account=self._settings.round_account,
        )

    @property
    def current(self) -> LotteryRound:
        return self._round

    @property
    def round_id(self) -> int:
        return self._round_id

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def enter(self, caller: str, amount: int) -> int:
        return self._round.enter_lottery(caller, amount)

    def draw(self, caller: str) -> DrawResult:
        with self._lock:
            result = self._round.decide_winner(caller)
            try:
                self._payouts.record(self._round_id, result)
            except SQLAlchemyError as exc:
                # funds already moved; the draw stands without a receipt
                logger.exception("Payout receipt for round %s not stored: %s", self._round_id, exc)
        return result

    def start_next_round(self, caller: str) -> LotteryRound:
        with self._lock:
            if caller != self._round.admin:
                raise NotAdmin("only admin can start a new round")
            if self._round.status != RoundStatus.SETTLED:
                raise RoundClosed("current round has not been drawn yet")
            self._round = self._build_round()
            self._round_id = self._payouts.increment_round()
        logger.info("Round %s opened", self._round_id)
        return self._round
