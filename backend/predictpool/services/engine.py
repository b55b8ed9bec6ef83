"""Transactional facade exposing the public operation surface."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from predictpool.core.config import Settings, get_settings
from predictpool.db import create_db_engine, create_session_factory, init_db, session_scope
from predictpool.errors import SettlementError
from predictpool.models import Direction, MarketPhase
from predictpool.repositories import ConfigRepository
from predictpool.schemas import (
    EngineConfigView,
    MarketDetail,
    MarketList,
    MarketView,
    PayoutQuote,
    PredictionView,
)

from . import admin, market_registry, prediction_ledger, settlement_engine
from .clock import BlockClock, IntervalClock
from .context import OperationContext
from .ledger import InMemoryLedger, LedgerAdapter, TransferJournal


class PredictionMarketEngine:
    """Serialize every public operation into one all-or-nothing unit.

    Each call holds the engine lock, reads the clock once, works inside a
    single SQLAlchemy session and journals its ledger transfers. Any exception
    rolls the session back and reverses journaled transfers before propagating.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session],
        ledger: LedgerAdapter,
        clock: BlockClock,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._session_factory = session_factory
        self._ledger = ledger
        self._clock = clock
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        ledger: LedgerAdapter | None = None,
        clock: BlockClock | None = None,
    ) -> "PredictionMarketEngine":
        settings = settings or get_settings()
        db_engine = create_db_engine(str(settings.database_url), echo=settings.debug)
        init_db(db_engine)
        instance = cls(
            session_factory=create_session_factory(db_engine),
            ledger=ledger or InMemoryLedger(),
            clock=clock
            or IntervalClock(
                block_interval_seconds=settings.block_interval_seconds,
                genesis_timestamp=settings.genesis_timestamp,
            ),
            settings=settings,
        )
        instance.bootstrap()
        return instance

    @property
    def ledger(self) -> LedgerAdapter:
        return self._ledger

    @property
    def clock(self) -> BlockClock:
        return self._clock

    @property
    def escrow_account(self) -> str:
        return self.settings.escrow_account

    def bootstrap(self) -> EngineConfigView:
        """Seed the configuration row on first start."""

        with self._lock, session_scope(self._session_factory) as session:
            config, created = ConfigRepository(session).ensure_defaults(self.settings)
            if created:
                logger.info(
                    "Bootstrapped engine config: owner={}, oracle={}, minimum_stake={}, fee_percent={}",
                    config.owner_account,
                    config.oracle_identity,
                    config.minimum_stake,
                    config.fee_percent,
                )
            return EngineConfigView.model_validate(config)

    @contextmanager
    def _operation(self, name: str, caller: str | None = None) -> Iterator[OperationContext]:
        with self._lock:
            session = self._session_factory()
            journal = TransferJournal(self._ledger)
            try:
                yield OperationContext(
                    caller=caller,
                    session=session,
                    config=ConfigRepository(session).load(),
                    ledger=self._ledger,
                    journal=journal,
                    height=self._clock.current_height(),
                    escrow_account=self.settings.escrow_account,
                    settings=self.settings,
                )
                session.commit()
            except Exception as exc:
                session.rollback()
                journal.compensate(cause=exc)
                if isinstance(exc, SettlementError):
                    logger.warning(
                        "{} rejected for caller {}: {} ({})",
                        name,
                        caller,
                        exc.kind.value,
                        exc.message,
                    )
                raise
            finally:
                session.close()

    # ------------------------------------------------------------------
    # Market registry

    def create_market(self, caller: str, start_price: int, start_block: int, end_block: int) -> int:
        with self._operation("create_market", caller) as context:
            return market_registry.create_market(
                context,
                start_price=start_price,
                start_block=start_block,
                end_block=end_block,
            )

    def get_market(self, market_id: int) -> MarketView:
        with self._operation("get_market") as context:
            return MarketView.model_validate(market_registry.get_market(context, market_id))

    def get_market_detail(self, market_id: int) -> MarketDetail:
        with self._operation("get_market_detail") as context:
            market = market_registry.get_market(context, market_id)
            view = MarketView.model_validate(market)
            return MarketDetail(**view.model_dump(), phase=market.phase_at(context.height))

    def list_markets(
        self, *, resolved: bool | None = None, limit: int = 50, offset: int = 0
    ) -> MarketList:
        with self._operation("list_markets") as context:
            markets, total = market_registry.list_markets(
                context, resolved=resolved, limit=limit, offset=offset
            )
            return MarketList(
                total=total, items=[MarketView.model_validate(market) for market in markets]
            )

    def market_phase(self, market_id: int) -> MarketPhase:
        with self._operation("market_phase") as context:
            return market_registry.market_phase(context, market_id)

    # ------------------------------------------------------------------
    # Prediction ledger

    def make_prediction(
        self, caller: str, market_id: int, direction: Direction | str, stake: int
    ) -> None:
        with self._operation("make_prediction", caller) as context:
            prediction_ledger.make_prediction(
                context, market_id=market_id, direction=direction, stake=stake
            )

    def get_prediction(self, market_id: int, account: str) -> PredictionView:
        with self._operation("get_prediction") as context:
            return PredictionView.model_validate(
                prediction_ledger.get_prediction(context, market_id, account)
            )

    def list_predictions(self, market_id: int) -> list[PredictionView]:
        with self._operation("list_predictions") as context:
            return [
                PredictionView.model_validate(prediction)
                for prediction in prediction_ledger.list_predictions(context, market_id)
            ]

    # ------------------------------------------------------------------
    # Settlement

    def resolve_market(self, caller: str, market_id: int, end_price: int) -> None:
        with self._operation("resolve_market", caller) as context:
            settlement_engine.resolve_market(context, market_id=market_id, end_price=end_price)

    def claim_winnings(self, caller: str, market_id: int) -> int:
        with self._operation("claim_winnings", caller) as context:
            return settlement_engine.claim_winnings(context, market_id=market_id)

    def quote_winnings(self, market_id: int, account: str) -> PayoutQuote:
        with self._operation("quote_winnings") as context:
            winner, breakdown, claimed = settlement_engine.quote_winnings(
                context, market_id=market_id, account=account
            )
            return PayoutQuote(
                market_id=market_id,
                account=account,
                winning_direction=winner,
                gross_winnings=breakdown.gross_winnings,
                fee=breakdown.fee,
                net_payout=breakdown.net_payout,
                claimed=claimed,
            )

    def get_escrow_balance(self) -> int:
        with self._lock:
            return self._ledger.balance_of(self.settings.escrow_account)

    # ------------------------------------------------------------------
    # Admin / configuration

    def get_config(self) -> EngineConfigView:
        with self._operation("get_config") as context:
            return EngineConfigView.model_validate(context.config)

    def set_oracle_identity(self, caller: str, account: str) -> None:
        with self._operation("set_oracle_identity", caller) as context:
            admin.set_oracle_identity(context, account=account)

    def set_minimum_stake(self, caller: str, amount: int) -> None:
        with self._operation("set_minimum_stake", caller) as context:
            admin.set_minimum_stake(context, amount=amount)

    def set_fee_percent(self, caller: str, fee_percent: int) -> None:
        with self._operation("set_fee_percent", caller) as context:
            admin.set_fee_percent(context, fee_percent=fee_percent)

    def withdraw_fees(self, caller: str, amount: int) -> None:
        with self._operation("withdraw_fees", caller) as context:
            admin.withdraw_fees(context, amount=amount)


__all__ = ["PredictionMarketEngine"]
