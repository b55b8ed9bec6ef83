"""Block-height sources used to order market windows."""

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol


class BlockClock(Protocol):
    """Monotonically non-decreasing ordering clock supplied by the host."""

    def current_height(self) -> int:
        """Return the current block height."""


class ManualClock:
    """Clock advanced explicitly by the host between operations."""

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError("height must be non-negative")
        self._height = height

    def current_height(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("clock cannot move backwards")
        self._height += blocks
        return self._height

    def advance_to(self, height: int) -> int:
        if height < self._height:
            raise ValueError(
                f"clock cannot move backwards from {self._height} to {height}"
            )
        self._height = height
        return self._height


class IntervalClock:
    """Derive heights from elapsed wall time in fixed-size blocks."""

    def __init__(
        self,
        *,
        block_interval_seconds: float,
        genesis_timestamp: float = 0.0,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        if block_interval_seconds <= 0:
            raise ValueError("block_interval_seconds must be positive")
        self._interval = block_interval_seconds
        self._genesis = genesis_timestamp
        self._time_source = time_source
        self._last = 0
        self._lock = threading.Lock()

    def current_height(self) -> int:
        elapsed = max(0.0, self._time_source() - self._genesis)
        height = int(elapsed // self._interval)
        with self._lock:
            # Never report a lower height if the wall clock is stepped back.
            self._last = max(self._last, height)
            return self._last


__all__ = ["BlockClock", "IntervalClock", "ManualClock"]
