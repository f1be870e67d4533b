from .errors import (
    AlreadyEntered,
    InsufficientFunds,
    InvalidEntrant,
    LotteryError,
    NoEntrants,
    NotAdmin,
    RoundClosed,
    TransferError,
    WrongAmount,
)
from .ledger import InMemoryLedger, Ledger
from .round import LotteryRound
from .selection import IndexWinnerSelector, RandomWinnerSelector, WinnerSelector
from .types import DrawResult, Identity, RoundSnapshot, RoundStatus

__all__ = [
    "AlreadyEntered",
    "DrawResult",
    "Identity",
    "InMemoryLedger",
    "IndexWinnerSelector",
    "InsufficientFunds",
    "InvalidEntrant",
    "Ledger",
    "LotteryError",
    "LotteryRound",
    "NoEntrants",
    "NotAdmin",
    "RandomWinnerSelector",
    "RoundClosed",
    "RoundSnapshot",
    "RoundStatus",
    "TransferError",
    "WinnerSelector",
    "WrongAmount",
]
