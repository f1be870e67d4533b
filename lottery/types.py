from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

Identity = str


class RoundStatus(IntEnum):
    OPEN = 0
    SETTLED = 1


@dataclass(frozen=True)
class DrawResult:
    winner: Identity
    payout: int
    entrant_count: int
    drawn_at: dt.datetime

    def to_dict(self) -> dict:
        return {
            "winner": self.winner,
            "payout": self.payout,
            "entrant_count": self.entrant_count,
            "drawn_at": self.drawn_at.isoformat(),
        }


@dataclass(frozen=True)
class RoundSnapshot:
    """Point-in-time view of a round, safe to hand out to readers."""

    admin: Identity
    ticket_price: int
    drawing: bool
    status: RoundStatus
    entrants: Sequence[Identity]
    balance: int

    def to_dict(self) -> dict:
        return {
            "admin": self.admin,
            "ticket_price": self.ticket_price,
            "drawing": self.drawing,
            "status": self.status.name,
            "entrants": list(self.entrants),
            "balance": self.balance,
        }
