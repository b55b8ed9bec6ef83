from datetime import datetime

from pydantic import BaseModel, Field

from .models import Direction, MarketPhase


class MarketView(BaseModel):
    market_id: int
    start_price: int
    end_price: int
    total_up_stake: int
    total_down_stake: int
    total_pool: int
    start_block: int
    end_block: int
    resolved: bool
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    model_config = {"from_attributes": True}


class MarketDetail(MarketView):
    phase: MarketPhase


class MarketList(BaseModel):
    total: int
    items: list[MarketView]


class PredictionView(BaseModel):
    market_id: int
    account: str
    direction: Direction
    stake: int
    claimed: bool
    created_at: datetime | None = None
    claimed_at: datetime | None = None

    model_config = {"from_attributes": True}


class EngineConfigView(BaseModel):
    owner_account: str
    oracle_identity: str
    minimum_stake: int
    fee_percent: int
    market_counter: int

    model_config = {"from_attributes": True}


class PayoutQuote(BaseModel):
    market_id: int
    account: str
    winning_direction: Direction
    gross_winnings: int
    fee: int
    net_payout: int
    claimed: bool


# ----------------------------------------------------------------------
# HTTP request and response bodies


class CreateMarketRequest(BaseModel):
    start_price: int = Field(..., description="Reference price at window open")
    start_block: int = Field(..., description="First block height accepting predictions")
    end_block: int = Field(..., description="First block height after the window closes")


class CreateMarketResponse(BaseModel):
    market_id: int


class PredictionRequest(BaseModel):
    direction: str = Field(..., description="Either 'up' or 'down'")
    stake: int


class ResolveRequest(BaseModel):
    end_price: int


class ClaimResponse(BaseModel):
    market_id: int
    net_payout: int


class OracleUpdate(BaseModel):
    account: str


class AmountUpdate(BaseModel):
    amount: int


class FeePercentUpdate(BaseModel):
    fee_percent: int


class EscrowBalance(BaseModel):
    account: str
    balance: int
