"""Role and input predicates evaluated at the top of each operation."""

from __future__ import annotations

from typing import Any

from predictpool.errors import InvalidParameterError, NotFoundError, UnauthorizedError
from predictpool.models import MAX_AMOUNT, Market
from predictpool.repositories import MarketRepository

from .context import OperationContext


def is_owner(context: OperationContext) -> bool:
    return context.caller is not None and context.caller == context.config.owner_account


def is_oracle(context: OperationContext) -> bool:
    return context.caller is not None and context.caller == context.config.oracle_identity


def require_owner(context: OperationContext) -> None:
    if not is_owner(context):
        raise UnauthorizedError(f"caller '{context.caller}' is not the owner account")


def require_oracle(context: OperationContext) -> None:
    if not is_oracle(context):
        raise UnauthorizedError(f"caller '{context.caller}' is not the oracle account")


def _is_account(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def require_caller(context: OperationContext) -> str:
    if not _is_account(context.caller):
        raise UnauthorizedError("operation requires an authenticated caller")
    if context.caller == context.escrow_account:
        raise UnauthorizedError("the escrow account cannot act as a participant")
    return context.caller


def require_uint(name: str, value: Any, *, minimum: int = 0, maximum: int = MAX_AMOUNT) -> int:
    # bool is an int subclass but never a valid amount.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(f"{name} must be an unsigned integer, got {value!r}")
    if value < minimum:
        raise InvalidParameterError(f"{name} must be at least {minimum}, got {value}")
    if value > maximum:
        raise InvalidParameterError(f"{name} must be at most {maximum}, got {value}")
    return value


def require_account(name: str, value: Any) -> str:
    # Identities are matched exactly, the same way callers are.
    if not _is_account(value):
        raise InvalidParameterError(f"{name} must be a non-empty account identifier")
    return value


def require_market(context: OperationContext, market_id: Any) -> Market:
    market_id = require_uint("market_id", market_id)
    market = MarketRepository(context.session).get_market(market_id)
    if market is None:
        raise NotFoundError(f"market {market_id} does not exist")
    return market
