from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base

# Widest unsigned amount the SQL store can hold in a BIGINT column.
MAX_AMOUNT = 2**63 - 1

CONFIG_ROW_ID = 1


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


class MarketPhase(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"
    RESOLVED = "resolved"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Market(Base):
    __tablename__ = "markets"

    market_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    start_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_up_stake: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_down_stake: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    start_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    predictions: Mapped[list["Prediction"]] = relationship(
        "Prediction", back_populates="market", order_by="Prediction.created_at"
    )

    @property
    def total_pool(self) -> int:
        return self.total_up_stake + self.total_down_stake

    def pool_for(self, direction: Direction) -> int:
        if direction is Direction.UP:
            return self.total_up_stake
        return self.total_down_stake

    def phase_at(self, height: int) -> MarketPhase:
        if self.resolved:
            return MarketPhase.RESOLVED
        if height < self.start_block:
            return MarketPhase.PENDING
        if height < self.end_block:
            return MarketPhase.OPEN
        return MarketPhase.CLOSED


class Prediction(Base):
    __tablename__ = "predictions"

    market_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("markets.market_id"), primary_key=True
    )
    account: Mapped[str] = mapped_column(String(255), primary_key=True)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    stake: Mapped[int] = mapped_column(BigInteger, nullable=False)
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    market: Mapped[Market] = relationship("Market", back_populates="predictions")

    @property
    def direction_enum(self) -> Direction:
        return Direction(self.direction)


class EngineConfig(Base):
    __tablename__ = "engine_config"

    config_id: Mapped[int] = mapped_column(Integer, primary_key=True, default=CONFIG_ROW_ID)
    owner_account: Mapped[str] = mapped_column(String(255), nullable=False)
    oracle_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    minimum_stake: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fee_percent: Mapped[int] = mapped_column(Integer, nullable=False)
    market_counter: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
