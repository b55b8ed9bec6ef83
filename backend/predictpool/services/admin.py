"""Owner-gated mutation of global parameters and fee withdrawal."""

from __future__ import annotations

from loguru import logger

from predictpool.errors import InsufficientBalanceError
from predictpool.repositories import MarketRepository, PredictionRepository

from .context import OperationContext
from .guards import require_account, require_owner, require_uint
from .payouts import compute_payout, winning_direction


def set_minimum_stake(context: OperationContext, *, amount: int) -> None:
    require_owner(context)
    amount = require_uint("minimum_stake", amount, minimum=1)
    previous = context.config.minimum_stake
    context.config.minimum_stake = amount
    logger.info("Minimum stake changed from {} to {}", previous, amount)


def set_fee_percent(context: OperationContext, *, fee_percent: int) -> None:
    require_owner(context)
    fee_percent = require_uint(
        "fee_percent", fee_percent, maximum=context.settings.max_fee_percent
    )
    previous = context.config.fee_percent
    context.config.fee_percent = fee_percent
    logger.info("Fee percent changed from {} to {}", previous, fee_percent)


def set_oracle_identity(context: OperationContext, *, account: str) -> None:
    require_owner(context)
    account = require_account("oracle account", account)
    previous = context.config.oracle_identity
    context.config.oracle_identity = account
    logger.info("Oracle identity changed from {} to {}", previous, account)


def outstanding_liability(context: OperationContext) -> int:
    """Escrow owed to participants: open pools plus unclaimed gross winnings."""

    reserved = MarketRepository(context.session).unresolved_pool_total()
    for prediction in PredictionRepository(context.session).list_unclaimed_in_resolved_markets():
        market = prediction.market
        winner = winning_direction(market.start_price, market.end_price)
        if prediction.direction_enum is not winner:
            continue
        reserved += compute_payout(
            stake=prediction.stake,
            total_up_stake=market.total_up_stake,
            total_down_stake=market.total_down_stake,
            winner=winner,
            fee_percent=context.config.fee_percent,
        ).gross_winnings
    return reserved


def withdraw_fees(context: OperationContext, *, amount: int) -> None:
    """Move surplus escrow to the owner.

    Only the balance above :func:`outstanding_liability` is withdrawable: stakes
    in unresolved markets and the gross winnings of unclaimed winners stay
    behind. What remains is rounding dust and pools of markets nobody won.
    """

    require_owner(context)
    amount = require_uint("amount", amount, minimum=1)
    balance = context.ledger.balance_of(context.escrow_account)
    reserved = outstanding_liability(context)
    available = max(balance - reserved, 0)
    if available < amount:
        raise InsufficientBalanceError(
            f"escrow holds {balance} with {reserved} owed to participants,"
            f" cannot withdraw {amount}"
        )
    context.journal.transfer(amount, context.escrow_account, context.config.owner_account)
    logger.info("Withdrew {} from escrow to {}", amount, context.config.owner_account)
