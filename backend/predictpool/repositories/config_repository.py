"""Single-row store for the engine's global parameters."""

from __future__ import annotations

from sqlalchemy.orm import Session

from predictpool.core.config import Settings
from predictpool.models import CONFIG_ROW_ID, EngineConfig


class ConfigRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_config(self) -> EngineConfig | None:
        return self._session.get(EngineConfig, CONFIG_ROW_ID)

    def load(self) -> EngineConfig:
        config = self.get_config()
        if config is None:
            raise RuntimeError("engine configuration has not been bootstrapped")
        return config

    def ensure_defaults(self, settings: Settings) -> tuple[EngineConfig, bool]:
        """Seed the configuration row once; later calls leave it untouched."""

        existing = self.get_config()
        if existing is not None:
            return existing, False
        config = EngineConfig(
            config_id=CONFIG_ROW_ID,
            owner_account=settings.owner_account,
            oracle_identity=settings.resolved_oracle_account,
            minimum_stake=settings.default_minimum_stake,
            fee_percent=settings.default_fee_percent,
            market_counter=0,
        )
        self._session.add(config)
        self._session.flush()
        return config, True

    def allocate_market_id(self, config: EngineConfig) -> int:
        market_id = config.market_counter
        config.market_counter = market_id + 1
        return market_id
