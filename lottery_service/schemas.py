from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _normalise_identity(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Identity must not be empty.")
    if len(value) > 64:
        raise ValueError("Identity must be at most 64 characters.")
    return value


class EntryRequest(BaseModel):
    caller: str = Field(..., description="Identity buying the ticket.")
    amount: int = Field(..., ge=0, strict=True, description="Amount attached to the entry, in base units.")

    @field_validator("caller")
    @classmethod
    def validate_caller(cls, value: str) -> str:
        return _normalise_identity(value)


class EntryResponse(BaseModel):
    caller: str
    ticket_index: int
    balance: int


class AdminCallRequest(BaseModel):
    caller: str = Field(..., description="Identity asking for the admin action.")

    @field_validator("caller")
    @classmethod
    def validate_caller(cls, value: str) -> str:
        return _normalise_identity(value)


class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0, strict=True, description="Amount credited to the account.")


class AccountResponse(BaseModel):
    address: str
    balance: int


class RoundStateResponse(BaseModel):
    round_id: int
    admin: str
    ticket_price: int
    drawing: bool
    status: str
    entrants: List[str]
    balance: int
    last_winner: Optional[str] = None


class DrawResponse(BaseModel):
    round_id: int
    winner: str
    payout: int
    entrant_count: int
    drawn_at: str
