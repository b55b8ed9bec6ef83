"""Market resolution and winner payouts."""

from __future__ import annotations

from loguru import logger

from predictpool.errors import (
    AlreadyClaimedError,
    InsufficientBalanceError,
    InvalidPredictionError,
    MarketClosedError,
    NotFoundError,
)
from predictpool.models import Direction, Market, Prediction
from predictpool.repositories import MarketRepository, PredictionRepository

from .context import OperationContext
from .guards import require_account, require_caller, require_market, require_oracle, require_uint
from .payouts import PayoutBreakdown, compute_payout, winning_direction


def resolve_market(context: OperationContext, *, market_id: int, end_price: int) -> None:
    require_oracle(context)
    market = require_market(context, market_id)
    if context.height < market.end_block:
        raise MarketClosedError(
            f"market {market.market_id} cannot be resolved before block {market.end_block}"
            f" (current height {context.height})"
        )
    if market.resolved:
        raise MarketClosedError(f"market {market.market_id} is already resolved")
    end_price = require_uint("end_price", end_price, minimum=1)

    MarketRepository(context.session).mark_resolved(market, end_price)
    logger.info(
        "Resolved market {} at end_price={} (start_price={}, winner={})",
        market.market_id,
        end_price,
        market.start_price,
        winning_direction(market.start_price, end_price).value,
    )


def _settle(
    context: OperationContext,
    market: Market,
    prediction: Prediction,
    *,
    allow_claimed: bool = False,
) -> tuple[Direction, PayoutBreakdown]:
    if not market.resolved:
        raise MarketClosedError(f"market {market.market_id} has not been resolved")
    if prediction.claimed and not allow_claimed:
        raise AlreadyClaimedError(
            f"'{prediction.account}' already claimed winnings on market {market.market_id}"
        )

    winner = winning_direction(market.start_price, market.end_price)
    if prediction.direction_enum is not winner:
        raise InvalidPredictionError(
            f"'{prediction.account}' predicted {prediction.direction} but {winner.value} won"
            f" market {market.market_id}"
        )

    breakdown = compute_payout(
        stake=prediction.stake,
        total_up_stake=market.total_up_stake,
        total_down_stake=market.total_down_stake,
        winner=winner,
        fee_percent=context.config.fee_percent,
    )
    return winner, breakdown


def _lookup(context: OperationContext, market_id: int, account: str) -> tuple[Market, Prediction]:
    market = require_market(context, market_id)
    prediction = PredictionRepository(context.session).get_prediction(market.market_id, account)
    if prediction is None:
        raise NotFoundError(f"no prediction by '{account}' on market {market.market_id}")
    return market, prediction


def claim_winnings(context: OperationContext, *, market_id: int) -> int:
    caller = require_caller(context)
    market, prediction = _lookup(context, market_id, caller)
    _, breakdown = _settle(context, market, prediction)

    escrow_balance = context.ledger.balance_of(context.escrow_account)
    if escrow_balance < breakdown.gross_winnings:
        raise InsufficientBalanceError(
            f"escrow holds {escrow_balance}, cannot pay {breakdown.gross_winnings}"
        )

    PredictionRepository(context.session).mark_claimed(prediction)
    context.session.flush()

    context.journal.transfer(breakdown.net_payout, context.escrow_account, caller)
    context.journal.transfer(breakdown.fee, context.escrow_account, context.config.owner_account)

    logger.info(
        "Paid {} to {} on market {} (gross={}, fee={})",
        breakdown.net_payout,
        caller,
        market.market_id,
        breakdown.gross_winnings,
        breakdown.fee,
    )
    return breakdown.net_payout


def quote_winnings(
    context: OperationContext, *, market_id: int, account: str
) -> tuple[Direction, PayoutBreakdown, bool]:
    """Preview a claim without moving funds; already-claimed positions still quote."""

    account = require_account("account", account)
    market, prediction = _lookup(context, market_id, account)
    winner, breakdown = _settle(context, market, prediction, allow_claimed=True)
    return winner, breakdown, prediction.claimed
