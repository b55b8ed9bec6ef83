from functools import lru_cache
from typing import Any

from pydantic import AnyUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite:///./data/predictpool.db",
        description="SQLAlchemy compatible database URL for market and prediction records",
    )
    owner_account: str = Field(
        default="deployer",
        description="Account allowed to create markets and change engine parameters",
    )
    oracle_account: str | None = Field(
        default=None,
        description="Account allowed to resolve markets; defaults to the owner account",
    )
    escrow_account: str = Field(
        default="escrow",
        description="Ledger account holding pooled stakes until they are claimed",
    )
    default_minimum_stake: int = Field(
        default=1_000_000,
        description="Minimum stake seeded into the engine configuration at bootstrap",
        ge=1,
    )
    default_fee_percent: int = Field(
        default=2,
        description="Protocol fee percentage seeded into the engine configuration at bootstrap",
        ge=0,
    )
    max_fee_percent: int = Field(
        default=100,
        description="Upper bound accepted by set_fee_percent",
        ge=0,
        le=100,
    )
    block_interval_seconds: float = Field(
        default=10.0,
        description="Seconds per block height for the HTTP host's interval clock",
        gt=0,
    )
    genesis_timestamp: float = Field(
        default=0.0,
        description="Unix timestamp at which the interval clock reports height 0",
        ge=0,
    )

    @field_validator("owner_account", "escrow_account", "oracle_account")
    @classmethod
    def _strip_account(cls, value: Any) -> Any:
        if value is None:
            return value
        candidate = str(value).strip()
        if not candidate:
            raise ValueError("account identifiers must be non-empty")
        return candidate

    @model_validator(mode="after")
    def _check_fee_bounds(self) -> "Settings":
        if self.default_fee_percent > self.max_fee_percent:
            raise ValueError("DEFAULT_FEE_PERCENT must not exceed MAX_FEE_PERCENT")
        if self.escrow_account == self.owner_account:
            raise ValueError("ESCROW_ACCOUNT must differ from OWNER_ACCOUNT")
        return self

    @property
    def resolved_oracle_account(self) -> str:
        return self.oracle_account or self.owner_account


@lru_cache
def get_settings() -> Settings:
    return Settings()
