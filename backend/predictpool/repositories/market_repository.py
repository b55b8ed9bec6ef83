"""Market-focused data access helpers."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from predictpool.models import Direction, Market, utcnow


class MarketRepository:
    """Encapsulate market persistence concerns."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def create_market(
        self,
        *,
        market_id: int,
        start_price: int,
        start_block: int,
        end_block: int,
    ) -> Market:
        market = Market(
            market_id=market_id,
            start_price=start_price,
            end_price=0,
            total_up_stake=0,
            total_down_stake=0,
            start_block=start_block,
            end_block=end_block,
            resolved=False,
        )
        self._session.add(market)
        self._session.flush()
        return market

    def add_stake(self, market: Market, direction: Direction, stake: int) -> Market:
        if direction is Direction.UP:
            market.total_up_stake += stake
        else:
            market.total_down_stake += stake
        return market

    def mark_resolved(self, market: Market, end_price: int) -> Market:
        market.end_price = end_price
        market.resolved = True
        market.resolved_at = utcnow()
        return market

    # ------------------------------------------------------------------
    # Queries

    def get_market(self, market_id: int) -> Market | None:
        return self._session.get(Market, market_id)

    def list_markets(
        self,
        *,
        resolved: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Market], int]:
        query = select(Market)
        count_query = select(func.count()).select_from(Market)
        if resolved is not None:
            query = query.where(Market.resolved.is_(resolved))
            count_query = count_query.where(Market.resolved.is_(resolved))

        total = self._session.execute(count_query).scalar_one()
        rows = (
            self._session.execute(
                query.order_by(Market.market_id.asc()).limit(limit).offset(offset)
            )
            .scalars()
            .all()
        )
        return list(rows), int(total)

    def unresolved_pool_total(self) -> int:
        query = select(
            func.coalesce(func.sum(Market.total_up_stake + Market.total_down_stake), 0)
        ).where(Market.resolved.is_(False))
        return int(self._session.execute(query).scalar_one())
