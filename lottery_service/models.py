from __future__ import annotations

import datetime as dt

from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Account(Base):
    __tablename__ = "accounts"

    address = Column(String(64), primary_key=True)
    balance = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "balance": int(self.balance or 0),
        }


class Payout(Base):
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    round_id = Column(Integer, nullable=False)
    winner = Column(String(64), nullable=False)
    amount = Column(BigInteger, nullable=False)
    entrant_count = Column(Integer, nullable=False)
    drawn_at = Column(DateTime, default=dt.datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "round_id": self.round_id,
            "winner": self.winner,
            "amount": int(self.amount),
            "entrant_count": self.entrant_count,
            "drawn_at": self.drawn_at.isoformat() if self.drawn_at else None,
        }


class SystemState(Base):
    __tablename__ = "system_state"

    id = Column(Integer, primary_key=True, default=1)
    current_round = Column(Integer, nullable=False, default=1)
