"""Per-participant stake records."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from predictpool.models import Direction, Market, Prediction, utcnow


class PredictionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_prediction(self, market_id: int, account: str) -> Prediction | None:
        return self._session.get(Prediction, (market_id, account))

    def list_predictions(self, market_id: int) -> list[Prediction]:
        query = (
            select(Prediction)
            .where(Prediction.market_id == market_id)
            .order_by(Prediction.created_at.asc(), Prediction.account.asc())
        )
        return list(self._session.execute(query).scalars().all())

    def list_unclaimed_in_resolved_markets(self) -> list[Prediction]:
        query = (
            select(Prediction)
            .join(Market, Market.market_id == Prediction.market_id)
            .where(Market.resolved.is_(True), Prediction.claimed.is_(False))
            .order_by(Prediction.market_id.asc(), Prediction.account.asc())
        )
        return list(self._session.execute(query).scalars().all())

    def record_prediction(
        self,
        *,
        market_id: int,
        account: str,
        direction: Direction,
        stake: int,
    ) -> Prediction:
        prediction = Prediction(
            market_id=market_id,
            account=account,
            direction=direction.value,
            stake=stake,
            claimed=False,
        )
        self._session.add(prediction)
        self._session.flush()
        return prediction

    def mark_claimed(self, prediction: Prediction) -> Prediction:
        prediction.claimed = True
        prediction.claimed_at = utcnow()
        return prediction
