"""Replay a single market round against an in-memory store and ledger."""

import argparse
import json

from loguru import logger

from predictpool.core.config import get_settings
from predictpool.errors import SettlementError
from predictpool.services.clock import ManualClock
from predictpool.services.engine import PredictionMarketEngine
from predictpool.services.ledger import InMemoryLedger


def _parse_stake(raw: str) -> tuple[str, str, int]:
    try:
        account, direction, amount = raw.split(":", 2)
        return account, direction, int(amount)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected ACCOUNT:DIRECTION:AMOUNT, got '{raw}'"
        ) from exc


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate one up/down market round")
    parser.add_argument("--start-price", type=int, default=100)
    parser.add_argument("--end-price", type=int, default=150)
    parser.add_argument("--start-block", type=int, default=10)
    parser.add_argument("--end-block", type=int, default=20)
    parser.add_argument("--fee-percent", type=int, default=None, help="Override the fee percentage")
    parser.add_argument(
        "--stake",
        type=_parse_stake,
        action="append",
        default=None,
        metavar="ACCOUNT:DIRECTION:AMOUNT",
        help="Prediction to submit (repeatable, e.g. --stake alice:up:1000000)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings().model_copy(update={"database_url": "sqlite://"})
    stakes = args.stake or [("alice", "up", 1_000_000), ("bob", "down", 1_000_000)]

    ledger = InMemoryLedger({account: amount for account, _, amount in stakes})
    clock = ManualClock(args.start_block)
    engine = PredictionMarketEngine.from_settings(settings, ledger=ledger, clock=clock)
    owner = settings.owner_account
    oracle = settings.resolved_oracle_account

    if args.fee_percent is not None:
        engine.set_fee_percent(owner, args.fee_percent)
    market_id = engine.create_market(owner, args.start_price, args.start_block, args.end_block)

    for account, direction, amount in stakes:
        try:
            engine.make_prediction(account, market_id, direction, amount)
        except SettlementError as exc:
            logger.warning("Skipping prediction by {}: {}", account, exc.message)

    clock.advance_to(args.end_block)
    engine.resolve_market(oracle, market_id, args.end_price)

    payouts: dict[str, int | str] = {}
    for account, _, _ in stakes:
        try:
            payouts[account] = engine.claim_winnings(account, market_id)
        except SettlementError as exc:
            payouts[account] = exc.kind.value

    summary = {
        "market": engine.get_market(market_id).model_dump(mode="json"),
        "payouts": payouts,
        "escrow_balance": engine.get_escrow_balance(),
        "owner_balance": ledger.balance_of(owner),
    }
    logger.info("Simulation finished for market {}", market_id)
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
