from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify

from ..config import load_settings
from ..services.blockchain import LotteryContractClient
from .round import get_round_service

bp = Blueprint("config", __name__)


@lru_cache(maxsize=1)
def get_contract_client() -> LotteryContractClient:
    return LotteryContractClient.from_settings(load_settings().web3)


def _get_contract_metadata() -> Dict[str, Any]:
    settings = load_settings()
    payload: Dict[str, Any] = {
        "enabled": settings.web3.enabled,
        "rpc_url": settings.web3.rpc_url,
        "contract_address": settings.web3.contract_address,
        "chain_id": None,
        "ticket_price": None,
        "drawing": None,
    }
    if not settings.web3.enabled:
        return payload

    try:
        client = get_contract_client()
        payload["chain_id"] = client.chain_id
        payload["ticket_price"] = asyncio.run(client.get_ticket_price())
        payload["drawing"] = asyncio.run(client.is_drawing())
    except Exception as exc:  # pragma: no cover - connectivity issues only degrade the payload
        current_app.logger.warning("Unable to query contract metadata: %s", exc)
    return payload


@bp.get("/config")
def get_config():
    service = get_round_service()
    lottery_round = service.current
    return jsonify(
        {
            "round": {
                "round_id": service.round_id,
                "admin": lottery_round.admin,
                "ticket_price": lottery_round.ticket_price,
                "account": lottery_round.account,
            },
            "contract": _get_contract_metadata(),
        }
    )
