from __future__ import annotations

from typing import Optional


class LotteryError(Exception):
    """Base class for rejected lottery calls.

    Every subclass is raised before the round is mutated, so catching one
    means the round is exactly as it was before the call.
    """

    code = "lottery_error"
    message = "lottery call rejected"
    status_code = 400

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AlreadyEntered(LotteryError):
    code = "already_entered"
    message = "can only buy one ticket"
    status_code = 409


class InsufficientFunds(LotteryError):
    code = "insufficient_funds"
    message = "balance too low"
    status_code = 400


class WrongAmount(LotteryError):
    code = "wrong_amount"
    message = "have to pay the exact amount for the ticket"
    status_code = 400


class NotAdmin(LotteryError):
    code = "not_admin"
    message = "only admin can decide the winner"
    status_code = 403


class RoundClosed(LotteryError):
    code = "round_closed"
    message = "lottery is not accepting entries"
    status_code = 409


class NoEntrants(LotteryError):
    code = "no_entrants"
    message = "no entrants to draw from"
    status_code = 409


class InvalidEntrant(LotteryError):
    code = "invalid_entrant"
    message = "round account cannot enter the lottery"
    status_code = 400


class TransferError(RuntimeError):
    """Raised by a ledger when a value transfer cannot be applied."""


REVERT_REASONS = {
    AlreadyEntered.message: AlreadyEntered,
    InsufficientFunds.message: InsufficientFunds,
    WrongAmount.message: WrongAmount,
    NotAdmin.message: NotAdmin,
}
