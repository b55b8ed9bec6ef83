"""Side-effect-free settlement arithmetic.

Winners split the entire pool (both directions) in proportion to their share
of the winning side. All amounts are integers and every division floors, so
the sum paid across claimants can fall short of the pool by a few units of
dust but never exceeds it.
"""

from __future__ import annotations

from dataclasses import dataclass

from predictpool.models import Direction


@dataclass(slots=True, frozen=True)
class PayoutBreakdown:
    gross_winnings: int
    fee: int
    net_payout: int


def winning_direction(start_price: int, end_price: int) -> Direction:
    """Up wins only on a strict rise; an unchanged price settles to Down."""

    if end_price > start_price:
        return Direction.UP
    return Direction.DOWN


def compute_payout(
    *,
    stake: int,
    total_up_stake: int,
    total_down_stake: int,
    winner: Direction,
    fee_percent: int,
) -> PayoutBreakdown:
    winning_pool = total_up_stake if winner is Direction.UP else total_down_stake
    if winning_pool <= 0:
        raise ValueError("winning pool is empty; no winning stake can be settled")
    if stake > winning_pool:
        raise ValueError("stake exceeds the winning pool it belongs to")
    if not 0 <= fee_percent <= 100:
        raise ValueError("fee_percent must be between 0 and 100")

    total_pool = total_up_stake + total_down_stake
    gross = stake * total_pool // winning_pool
    fee = gross * fee_percent // 100
    return PayoutBreakdown(gross_winnings=gross, fee=fee, net_payout=gross - fee)


__all__ = ["PayoutBreakdown", "compute_payout", "winning_direction"]
