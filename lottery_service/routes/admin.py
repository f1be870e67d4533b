from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..config import load_settings
from ..schemas import AccountResponse, AdminCallRequest, DepositRequest, DrawResponse
from ..services.payouts import PayoutRepository
from .round import get_round_service, round_state_payload

bp = Blueprint("admin", __name__)
payout_repo = PayoutRepository()


def _require_admin() -> bool:
    settings = load_settings()
    api_key = settings.admin_api_key
    if api_key:
        provided = request.headers.get("X-Admin-Token")
        if provided != api_key:
            return False
    return True


@bp.before_request
def verify_admin():
    if not _require_admin():
        return jsonify({"error": "unauthorized"}), 401
    return None


@bp.post("/draw")
def decide_winner():
    payload = request.get_json(force=True, silent=True) or {}
    data = AdminCallRequest(**payload)

    service = get_round_service()
    round_id = service.round_id
    result = service.draw(data.caller)
    current_app.logger.info(
        "Round %s drawn by %s: %s wins %s", round_id, data.caller, result.winner, result.payout
    )

    response = DrawResponse(round_id=round_id, **result.to_dict())
    return jsonify(response.model_dump())


@bp.post("/round")
def start_next_round():
    payload = request.get_json(force=True, silent=True) or {}
    data = AdminCallRequest(**payload)

    service = get_round_service()
    service.start_next_round(data.caller)
    return jsonify(round_state_payload(service)), 201


@bp.get("/payouts")
def list_payouts():
    limit = request.args.get("limit", type=int)
    return jsonify(payout_repo.list_payouts(limit=limit))


@bp.get("/accounts")
def list_accounts():
    return jsonify(get_round_service().ledger.list_accounts())


@bp.post("/accounts/<address>/deposit")
def deposit(address: str):
    payload = request.get_json(force=True, silent=True) or {}
    data = DepositRequest(**payload)

    balance = get_round_service().ledger.deposit(address, data.amount)
    current_app.logger.info("Credited %s to %s; balance=%s", data.amount, address, balance)
    return jsonify(AccountResponse(address=address, balance=balance).model_dump())
