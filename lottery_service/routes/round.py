from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request

from ..schemas import EntryRequest, EntryResponse, RoundStateResponse
from ..services.rounds import RoundService

bp = Blueprint("round", __name__)


def get_round_service() -> RoundService:
    return current_app.extensions["lottery_rounds"]


def round_state_payload(service: RoundService) -> dict:
    snapshot = service.current.snapshot()
    last_result = service.current.last_result
    response = RoundStateResponse(
        round_id=service.round_id,
        last_winner=last_result.winner if last_result else None,
        **snapshot.to_dict(),
    )
    return response.model_dump()


@bp.get("")
def get_round():
    return jsonify(round_state_payload(get_round_service()))


@bp.get("/entrants")
def list_entrants():
    return jsonify(list(get_round_service().current.entrants))


@bp.get("/entrants/<int:index>")
def get_entrant(index: int):
    try:
        entrant = get_round_service().current.entrant(index)
    except IndexError:
        abort(404, description=f"no entrant at index {index}")
    return jsonify({"index": index, "entrant": entrant})


@bp.post("/entries")
def enter_lottery():
    payload = request.get_json(force=True, silent=True) or {}
    data = EntryRequest(**payload)

    service = get_round_service()
    index = service.enter(data.caller, data.amount)

    response = EntryResponse(caller=data.caller, ticket_index=index, balance=service.current.balance)
    return jsonify(response.model_dump()), 201
