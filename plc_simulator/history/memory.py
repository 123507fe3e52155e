"""In-memory history store, used when no database URL is configured."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque

from plc_simulator.history.base import HistoryQuery, HistoryStats, HistoryStore
from plc_simulator.models import HistoricalReading, Reading

__all__ = ["MemoryHistoryStore"]

logger = logging.getLogger("plc_simulator.history.memory")


class MemoryHistoryStore(HistoryStore):
    """Keeps readings in a bounded deque; ids are assigned sequentially from 1.

    Parameters:
        max_rows: Oldest rows are discarded beyond this many.  ``None``
            keeps everything.
    """

    def __init__(self, *, max_rows: int | None = None) -> None:
        self._rows: deque[HistoricalReading] = deque(maxlen=max_rows)
        self._ids = itertools.count(1)
        self._max_rows = max_rows
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """No-op."""

    async def save_batch(self, readings: list[Reading]) -> None:
        if not readings:
            return
        async with self._lock:
            for reading in readings:
                self._rows.append(HistoricalReading(id=next(self._ids), **reading.model_dump()))

    async def query(self, params: HistoryQuery) -> list[HistoricalReading]:
        async with self._lock:
            rows = [r for r in self._rows if params.matches(r)]
        # equal timestamps: most recently saved first
        rows.reverse()
        rows.sort(key=lambda r: r.timestamp, reverse=True)
        if params.limit is not None:
            rows = rows[params.offset : params.offset + params.limit]
        return rows

    async def cleanup(self, older_than_ms: int) -> int:
        async with self._lock:
            before = len(self._rows)
            self._rows = deque((r for r in self._rows if r.timestamp >= older_than_ms), maxlen=self._max_rows)
            deleted = before - len(self._rows)
        logger.info("Cleaned up %d old readings", deleted)
        return deleted

    async def stats(self) -> HistoryStats:
        async with self._lock:
            if not self._rows:
                return HistoryStats()
            timestamps = [r.timestamp for r in self._rows]
            return HistoryStats(
                total_readings=len(self._rows),
                oldest_reading=min(timestamps),
                newest_reading=max(timestamps),
                unique_sensors=len({r.name for r in self._rows}),
            )

    async def close(self) -> None:
        """No-op."""
