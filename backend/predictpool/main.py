from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from . import schemas
from .core.config import get_settings
from .errors import ErrorKind, SettlementError
from .services.engine import PredictionMarketEngine

app = FastAPI(title="PredictPool API", version="0.1.0", debug=get_settings().debug)

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_PREDICTION: 422,
    ErrorKind.INVALID_PARAMETER: 422,
    ErrorKind.MARKET_CLOSED: 409,
    ErrorKind.ALREADY_CLAIMED: 409,
    ErrorKind.INSUFFICIENT_BALANCE: 402,
}


@app.exception_handler(SettlementError)
async def _settlement_error_handler(request: Request, exc: SettlementError) -> JSONResponse:
    return JSONResponse(
        status_code=_STATUS_BY_KIND[exc.kind],
        content={"error": exc.kind.value, "detail": exc.message},
    )


@lru_cache
def get_engine() -> PredictionMarketEngine:
    """Build the process-wide engine from settings on first use."""

    return PredictionMarketEngine.from_settings(get_settings())


def _engine() -> PredictionMarketEngine:
    return get_engine()


def _caller(
    x_caller_account: Annotated[
        str | None,
        Header(description="Account identity authenticated by the gateway"),
    ] = None,
) -> str:
    if not x_caller_account or not x_caller_account.strip():
        raise HTTPException(status_code=401, detail="X-Caller-Account header is required")
    return x_caller_account.strip()


EngineDep = Annotated[PredictionMarketEngine, Depends(_engine)]
CallerDep = Annotated[str, Depends(_caller)]


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


@app.get("/config", response_model=schemas.EngineConfigView, tags=["admin"])
def get_config(engine: EngineDep):
    return engine.get_config()


@app.get("/escrow/balance", response_model=schemas.EscrowBalance, tags=["admin"])
def get_escrow_balance(engine: EngineDep):
    return schemas.EscrowBalance(account=engine.escrow_account, balance=engine.get_escrow_balance())


@app.post("/markets", response_model=schemas.CreateMarketResponse, status_code=201, tags=["markets"])
def create_market(body: schemas.CreateMarketRequest, engine: EngineDep, caller: CallerDep):
    market_id = engine.create_market(caller, body.start_price, body.start_block, body.end_block)
    return schemas.CreateMarketResponse(market_id=market_id)


@app.get("/markets", response_model=schemas.MarketList, tags=["markets"])
def list_markets(
    engine: EngineDep,
    resolved: Annotated[bool | None, Query(description="Filter by resolution status")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """List markets ordered by identifier."""

    return engine.list_markets(resolved=resolved, limit=limit, offset=offset)


@app.get("/markets/{market_id}", response_model=schemas.MarketDetail, tags=["markets"])
def get_market(market_id: int, engine: EngineDep):
    """Retrieve a single market together with its lifecycle phase."""

    return engine.get_market_detail(market_id)


@app.post("/markets/{market_id}/predictions", status_code=201, tags=["predictions"])
def make_prediction(
    market_id: int,
    body: schemas.PredictionRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> dict[str, str]:
    engine.make_prediction(caller, market_id, body.direction, body.stake)
    return {"status": "accepted"}


@app.get(
    "/markets/{market_id}/predictions",
    response_model=list[schemas.PredictionView],
    tags=["predictions"],
)
def list_predictions(market_id: int, engine: EngineDep):
    return engine.list_predictions(market_id)


@app.get(
    "/markets/{market_id}/predictions/{account}",
    response_model=schemas.PredictionView,
    tags=["predictions"],
)
def get_prediction(market_id: int, account: str, engine: EngineDep):
    return engine.get_prediction(market_id, account)


@app.get(
    "/markets/{market_id}/quote/{account}",
    response_model=schemas.PayoutQuote,
    tags=["settlement"],
)
def quote_winnings(market_id: int, account: str, engine: EngineDep):
    return engine.quote_winnings(market_id, account)


@app.post("/markets/{market_id}/resolve", tags=["settlement"])
def resolve_market(
    market_id: int,
    body: schemas.ResolveRequest,
    engine: EngineDep,
    caller: CallerDep,
) -> dict[str, str]:
    engine.resolve_market(caller, market_id, body.end_price)
    return {"status": "resolved"}


@app.post("/markets/{market_id}/claim", response_model=schemas.ClaimResponse, tags=["settlement"])
def claim_winnings(market_id: int, engine: EngineDep, caller: CallerDep):
    net_payout = engine.claim_winnings(caller, market_id)
    return schemas.ClaimResponse(market_id=market_id, net_payout=net_payout)


@app.put("/config/oracle", status_code=204, tags=["admin"])
def set_oracle_identity(body: schemas.OracleUpdate, engine: EngineDep, caller: CallerDep) -> None:
    engine.set_oracle_identity(caller, body.account)


@app.put("/config/minimum-stake", status_code=204, tags=["admin"])
def set_minimum_stake(body: schemas.AmountUpdate, engine: EngineDep, caller: CallerDep) -> None:
    engine.set_minimum_stake(caller, body.amount)


@app.put("/config/fee-percent", status_code=204, tags=["admin"])
def set_fee_percent(body: schemas.FeePercentUpdate, engine: EngineDep, caller: CallerDep) -> None:
    engine.set_fee_percent(caller, body.fee_percent)


@app.post("/fees/withdraw", status_code=204, tags=["admin"])
def withdraw_fees(body: schemas.AmountUpdate, engine: EngineDep, caller: CallerDep) -> None:
    engine.withdraw_fees(caller, body.amount)
