"""Stake submission and per-participant prediction records."""

from __future__ import annotations

from typing import Any

from loguru import logger

from predictpool.errors import (
    InsufficientBalanceError,
    InvalidParameterError,
    InvalidPredictionError,
    MarketClosedError,
    NotFoundError,
)
from predictpool.models import MAX_AMOUNT, Direction, MarketPhase, Prediction
from predictpool.repositories import MarketRepository, PredictionRepository

from .context import OperationContext
from .guards import require_account, require_caller, require_market, require_uint


def parse_direction(value: Any) -> Direction:
    if isinstance(value, Direction):
        return value
    if isinstance(value, str):
        try:
            return Direction(value.strip().lower())
        except ValueError:
            pass
    raise InvalidPredictionError(f"direction must be 'up' or 'down', got {value!r}")


def make_prediction(
    context: OperationContext,
    *,
    market_id: int,
    direction: Direction | str,
    stake: int,
) -> None:
    caller = require_caller(context)
    stake = require_uint("stake", stake)
    market = require_market(context, market_id)

    phase = market.phase_at(context.height)
    if phase is not MarketPhase.OPEN:
        raise MarketClosedError(
            f"market {market.market_id} accepts predictions in blocks "
            f"[{market.start_block}, {market.end_block}); current height is {context.height}"
        )

    side = parse_direction(direction)
    minimum = context.config.minimum_stake
    if stake < minimum:
        raise InvalidPredictionError(f"stake {stake} is below the minimum of {minimum}")

    predictions = PredictionRepository(context.session)
    if predictions.get_prediction(market.market_id, caller) is not None:
        raise InvalidPredictionError(
            f"account '{caller}' already holds a prediction on market {market.market_id}"
        )

    if market.pool_for(side) + stake > MAX_AMOUNT:
        raise InvalidParameterError(f"stake {stake} would overflow the {side.value} pool")

    available = context.ledger.balance_of(caller)
    if available < stake:
        raise InsufficientBalanceError(
            f"account '{caller}' holds {available}, cannot stake {stake}"
        )

    # Funds move before any pool total is credited.
    context.journal.transfer(stake, caller, context.escrow_account)

    predictions.record_prediction(
        market_id=market.market_id,
        account=caller,
        direction=side,
        stake=stake,
    )
    MarketRepository(context.session).add_stake(market, side, stake)
    logger.info(
        "Accepted {} prediction from {} on market {} with stake {}",
        side.value,
        caller,
        market.market_id,
        stake,
    )


def get_prediction(context: OperationContext, market_id: int, account: str) -> Prediction:
    market_id = require_uint("market_id", market_id)
    account = require_account("account", account)
    prediction = PredictionRepository(context.session).get_prediction(market_id, account)
    if prediction is None:
        raise NotFoundError(f"no prediction by '{account}' on market {market_id}")
    return prediction


def list_predictions(context: OperationContext, market_id: int) -> list[Prediction]:
    market = require_market(context, market_id)
    return PredictionRepository(context.session).list_predictions(market.market_id)
