from __future__ import annotations

from flask import Blueprint, jsonify

from ..schemas import AccountResponse
from .round import get_round_service

bp = Blueprint("accounts", __name__)


@bp.get("/<address>")
def get_account(address: str):
    balance = get_round_service().ledger.balance_of(address)
    return jsonify(AccountResponse(address=address, balance=balance).model_dump())
