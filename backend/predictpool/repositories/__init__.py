"""Repository abstractions for database interactions."""

from .config_repository import ConfigRepository
from .market_repository import MarketRepository
from .prediction_repository import PredictionRepository

__all__ = [
    "ConfigRepository",
    "MarketRepository",
    "PredictionRepository",
]
