from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from predictpool.core.config import Settings
from predictpool.models import EngineConfig

from .ledger import LedgerAdapter, TransferJournal


@dataclass(slots=True)
class OperationContext:
    """State handed to every engine operation inside one transaction."""

    caller: str | None
    session: Session
    config: EngineConfig
    ledger: LedgerAdapter
    journal: TransferJournal
    height: int
    escrow_account: str
    settings: Settings
