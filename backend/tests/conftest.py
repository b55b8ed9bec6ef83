from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from predictpool.core.config import Settings
from predictpool.db import create_db_engine, create_session_factory, init_db
from predictpool.services.clock import ManualClock
from predictpool.services.engine import PredictionMarketEngine
from predictpool.services.ledger import InMemoryLedger

OWNER = "deployer"
ORACLE = "oracle"
ESCROW = "escrow"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        owner_account=OWNER,
        oracle_account=ORACLE,
        escrow_account=ESCROW,
        default_minimum_stake=1_000,
        default_fee_percent=2,
        _env_file=None,
    )


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger(
        {
            "alice": 5_000_000,
            "bob": 5_000_000,
            "carol": 5_000_000,
            "dave": 5_000_000,
        }
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(0)


@pytest.fixture
def engine(session_factory, ledger, clock, test_settings) -> PredictionMarketEngine:
    instance = PredictionMarketEngine(
        session_factory=session_factory,
        ledger=ledger,
        clock=clock,
        settings=test_settings,
    )
    instance.bootstrap()
    return instance


@pytest.fixture
def open_market(engine, clock) -> int:
    """Market 0 with window [10, 20), clock parked at block 12."""

    market_id = engine.create_market(OWNER, 100, 10, 20)
    clock.advance_to(12)
    return market_id
