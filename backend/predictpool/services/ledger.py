"""Value-transfer contracts consumed by the settlement engine."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from predictpool.errors import InsufficientBalanceError


class InsufficientFundsError(Exception):
    """Raised by a ledger when the source account cannot cover a transfer."""

    def __init__(self, account: str, requested: int, available: int) -> None:
        super().__init__(
            f"account '{account}' holds {available}, cannot transfer {requested}"
        )
        self.account = account
        self.requested = requested
        self.available = available


class CompensationError(RuntimeError):
    """Raised when one or more transfers of a failed operation could not be reversed."""

    def __init__(self, failures: list[tuple["TransferRecord", Exception]]) -> None:
        super().__init__(
            f"{len(failures)} compensating transfer(s) failed; ledger needs manual reconciliation"
        )
        self.failures = failures


class LedgerAdapter(Protocol):
    """Atomic value movement between accounts."""

    def transfer(self, amount: int, source: str, destination: str) -> None:
        """Move ``amount`` or raise :class:`InsufficientFundsError` without side effects."""

    def balance_of(self, account: str) -> int:
        """Return the spendable balance of ``account``."""


class InMemoryLedger:
    """Thread-safe ledger keeping balances in a dictionary."""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: defaultdict[str, int] = defaultdict(int)
        self._lock = threading.Lock()
        for account, amount in (balances or {}).items():
            self.mint(account, amount)

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        with self._lock:
            self._balances[account] += amount

    def transfer(self, amount: int, source: str, destination: str) -> None:
        if amount <= 0:
            raise ValueError("transfer amount must be positive")
        with self._lock:
            available = self._balances[source]
            if available < amount:
                raise InsufficientFundsError(source, amount, available)
            self._balances[source] = available - amount
            self._balances[destination] += amount

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {account: amount for account, amount in self._balances.items() if amount}


@dataclass(slots=True)
class TransferRecord:
    amount: int
    source: str
    destination: str


@dataclass(slots=True)
class TransferJournal:
    """Record transfers made during one operation so they can be reversed."""

    ledger: LedgerAdapter
    entries: list[TransferRecord] = field(default_factory=list)

    def transfer(self, amount: int, source: str, destination: str) -> None:
        if amount == 0:
            return
        try:
            self.ledger.transfer(amount, source, destination)
        except InsufficientFundsError as exc:
            raise InsufficientBalanceError(str(exc)) from exc
        self.entries.append(TransferRecord(amount, source, destination))

    def compensate(self, cause: BaseException | None = None) -> None:
        """Replay the inverse of every recorded transfer, newest first.

        Every entry is attempted even if an earlier reversal fails; failures are
        then reported together as a :class:`CompensationError` chained to ``cause``.
        """

        failures: list[tuple[TransferRecord, Exception]] = []
        while self.entries:
            entry = self.entries.pop()
            try:
                self.ledger.transfer(entry.amount, entry.destination, entry.source)
            except Exception as exc:
                logger.exception(
                    "Compensating transfer of {} from {} back to {} failed",
                    entry.amount,
                    entry.destination,
                    entry.source,
                )
                failures.append((entry, exc))
                continue
            logger.warning(
                "Reversed transfer of {} from {} to {}",
                entry.amount,
                entry.source,
                entry.destination,
            )
        if failures:
            raise CompensationError(failures) from cause


__all__ = [
    "CompensationError",
    "InMemoryLedger",
    "InsufficientFundsError",
    "LedgerAdapter",
    "TransferJournal",
    "TransferRecord",
]
