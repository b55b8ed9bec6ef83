"""Closed error taxonomy returned by every public engine operation."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "Unauthorized"
    NOT_FOUND = "NotFound"
    INVALID_PREDICTION = "InvalidPrediction"
    MARKET_CLOSED = "MarketClosed"
    ALREADY_CLAIMED = "AlreadyClaimed"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INVALID_PARAMETER = "InvalidParameter"


class SettlementError(Exception):
    """Base class for recoverable failures raised by the engine."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(SettlementError):
    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(SettlementError, LookupError):
    kind = ErrorKind.NOT_FOUND


class InvalidPredictionError(SettlementError):
    kind = ErrorKind.INVALID_PREDICTION


class MarketClosedError(SettlementError):
    kind = ErrorKind.MARKET_CLOSED


class AlreadyClaimedError(SettlementError):
    kind = ErrorKind.ALREADY_CLAIMED


class InsufficientBalanceError(SettlementError):
    kind = ErrorKind.INSUFFICIENT_BALANCE


class InvalidParameterError(SettlementError, ValueError):
    kind = ErrorKind.INVALID_PARAMETER


__all__ = [
    "AlreadyClaimedError",
    "ErrorKind",
    "InsufficientBalanceError",
    "InvalidParameterError",
    "InvalidPredictionError",
    "MarketClosedError",
    "NotFoundError",
    "SettlementError",
    "UnauthorizedError",
]
