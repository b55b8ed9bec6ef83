"""Operations either commit fully or leave ledger and store untouched."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from predictpool.errors import InsufficientBalanceError
from predictpool.services.engine import PredictionMarketEngine
from predictpool.services.ledger import CompensationError, InMemoryLedger, InsufficientFundsError

from .conftest import ESCROW, ORACLE, OWNER


class FlakyLedger(InMemoryLedger):
    """Ledger that refuses transfers into a chosen account."""

    def __init__(self, balances, *, refuse_destination=None, error=None):
        super().__init__(balances)
        self.refuse_destination = refuse_destination
        self.error = error

    def transfer(self, amount, source, destination):
        if destination == self.refuse_destination:
            raise self.error or InsufficientFundsError(source, amount, self.balance_of(source))
        super().transfer(amount, source, destination)


@pytest.fixture
def flaky_ledger():
    return FlakyLedger({"alice": 5_000_000, "bob": 5_000_000})


@pytest.fixture
def flaky_engine(session_factory, flaky_ledger, clock, test_settings):
    instance = PredictionMarketEngine(
        session_factory=session_factory,
        ledger=flaky_ledger,
        clock=clock,
        settings=test_settings,
    )
    instance.bootstrap()
    return instance


@pytest.fixture
def resolved_market(flaky_engine, clock):
    market_id = flaky_engine.create_market(OWNER, 100, 10, 20)
    clock.advance_to(12)
    flaky_engine.make_prediction("alice", market_id, "up", 1_000_000)
    flaky_engine.make_prediction("bob", market_id, "down", 1_000_000)
    clock.advance_to(20)
    flaky_engine.resolve_market(ORACLE, market_id, 150)
    return market_id


def test_failed_fee_leg_reverses_payout(flaky_engine, flaky_ledger, resolved_market):
    flaky_ledger.refuse_destination = OWNER

    with pytest.raises(InsufficientBalanceError):
        flaky_engine.claim_winnings("alice", resolved_market)

    assert flaky_ledger.balance_of("alice") == 4_000_000
    assert flaky_ledger.balance_of(ESCROW) == 2_000_000
    assert flaky_engine.get_prediction(resolved_market, "alice").claimed is False

    flaky_ledger.refuse_destination = None
    assert flaky_engine.claim_winnings("alice", resolved_market) == 1_960_000


def test_ledger_outage_propagates_and_rolls_back(flaky_engine, flaky_ledger, resolved_market):
    flaky_ledger.refuse_destination = OWNER
    flaky_ledger.error = RuntimeError("ledger unavailable")

    with pytest.raises(RuntimeError, match="ledger unavailable"):
        flaky_engine.claim_winnings("alice", resolved_market)

    assert flaky_ledger.balance_of("alice") == 4_000_000
    assert flaky_ledger.balance_of(ESCROW) == 2_000_000
    assert flaky_engine.get_prediction(resolved_market, "alice").claimed is False


def test_escrow_shortfall_is_detected_before_any_transfer(flaky_engine, flaky_ledger, resolved_market):
    flaky_ledger.transfer(1_500_000, ESCROW, "treasury")

    with pytest.raises(InsufficientBalanceError):
        flaky_engine.claim_winnings("alice", resolved_market)

    assert flaky_ledger.balance_of("alice") == 4_000_000
    assert flaky_engine.get_prediction(resolved_market, "alice").claimed is False


def test_commit_failure_returns_the_stake(flaky_engine, flaky_ledger, clock):
    market_id = flaky_engine.create_market(OWNER, 100, 10, 20)
    clock.advance_to(12)

    with patch.object(Session, "commit", side_effect=RuntimeError("disk full")):
        with pytest.raises(RuntimeError, match="disk full"):
            flaky_engine.make_prediction("alice", market_id, "up", 1_000_000)

    assert flaky_ledger.balance_of("alice") == 5_000_000
    assert flaky_ledger.balance_of(ESCROW) == 0
    assert flaky_engine.get_market(market_id).total_pool == 0
    assert flaky_engine.list_predictions(market_id) == []


def test_failed_reversal_surfaces_with_original_error(flaky_engine, flaky_ledger, clock):
    market_id = flaky_engine.create_market(OWNER, 100, 10, 20)
    clock.advance_to(12)
    flaky_ledger.refuse_destination = "alice"
    flaky_ledger.error = RuntimeError("ledger unavailable")

    with patch.object(Session, "commit", side_effect=RuntimeError("disk full")):
        with pytest.raises(CompensationError) as excinfo:
            flaky_engine.make_prediction("alice", market_id, "up", 1_000_000)

    assert str(excinfo.value.__cause__) == "disk full"
    assert flaky_ledger.balance_of(ESCROW) == 1_000_000
    assert flaky_engine.get_market(market_id).total_pool == 0
