"""Market creation and lookup."""

from __future__ import annotations

from loguru import logger

from predictpool.errors import InvalidParameterError
from predictpool.models import Market, MarketPhase
from predictpool.repositories import ConfigRepository, MarketRepository

from .context import OperationContext
from .guards import require_market, require_owner, require_uint


def create_market(
    context: OperationContext,
    *,
    start_price: int,
    start_block: int,
    end_block: int,
) -> int:
    require_owner(context)
    start_price = require_uint("start_price", start_price, minimum=1)
    start_block = require_uint("start_block", start_block)
    end_block = require_uint("end_block", end_block)
    if end_block <= start_block:
        raise InvalidParameterError(
            f"end_block ({end_block}) must be greater than start_block ({start_block})"
        )

    market_id = ConfigRepository(context.session).allocate_market_id(context.config)
    MarketRepository(context.session).create_market(
        market_id=market_id,
        start_price=start_price,
        start_block=start_block,
        end_block=end_block,
    )
    logger.info(
        "Created market {}: start_price={}, window=[{}, {})",
        market_id,
        start_price,
        start_block,
        end_block,
    )
    return market_id


def get_market(context: OperationContext, market_id: int) -> Market:
    return require_market(context, market_id)


def list_markets(
    context: OperationContext,
    *,
    resolved: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Market], int]:
    limit = require_uint("limit", limit, minimum=1, maximum=500)
    offset = require_uint("offset", offset)
    return MarketRepository(context.session).list_markets(
        resolved=resolved, limit=limit, offset=offset
    )


def market_phase(context: OperationContext, market_id: int) -> MarketPhase:
    return require_market(context, market_id).phase_at(context.height)
