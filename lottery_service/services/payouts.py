from __future__ import annotations

from typing import List, Optional

from sqlalchemy import desc

from lottery.types import DrawResult

from ..db import session_scope
from ..models import Payout, SystemState


class PayoutRepository:
    def _ensure_state(self, session) -> SystemState:
        state = session.get(SystemState, 1)
        if state is None:
            state = SystemState(id=1, current_round=1)
            session.add(state)
            session.flush()
        return state

    def get_current_round(self) -> int:
        with session_scope() as session:
            state = self._ensure_state(session)
            return int(state.current_round)

    def increment_round(self) -> int:
        with session_scope() as session:
            state = self._ensure_state(session)
            state.current_round += 1
            session.flush()
            return int(state.current_round)

    def record(self, round_id: int, result: DrawResult) -> Payout:
        with session_scope() as session:
            payout = Payout(
                round_id=round_id,
                winner=result.winner,
                amount=result.payout,
                entrant_count=result.entrant_count,
                drawn_at=result.drawn_at,
            )
            session.add(payout)
            session.flush()
            session.refresh(payout)
            session.expunge(payout)
            return payout

    def get_payout(self, round_id: int) -> Optional[Payout]:
        with session_scope() as session:
            payout = session.query(Payout).filter(Payout.round_id == round_id).one_or_none()
            if payout:
                session.expunge(payout)
            return payout

    def list_payouts(self, limit: Optional[int] = None) -> List[dict]:
        with session_scope() as session:
            query = session.query(Payout).order_by(desc(Payout.round_id))
            if limit:
                query = query.limit(limit)
            return [payout.to_dict() for payout in query.all()]
