"""History store abstraction.

The simulator hands every tick's batch to a ``HistoryStore`` without
waiting for it; stores answer filtered queries for the (external) REST
layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from plc_simulator.models import HistoricalReading, Reading

__all__ = ["HistoryQuery", "HistoryStats", "HistoryStore"]


class HistoryQuery(BaseModel):
    """Filter for :meth:`HistoryStore.query`.

    Attributes:
        name: Only readings of this sensor.
        module_id: Only readings of this module.
        from_ts: Inclusive lower bound on the timestamp (epoch ms).
        to_ts: Inclusive upper bound on the timestamp (epoch ms).
        limit: Maximum number of rows; ``None`` means no limit.
        offset: Rows to skip; only honoured together with ``limit``.
    """

    name: str | None = None
    module_id: int | None = None
    from_ts: int | None = None
    to_ts: int | None = None
    limit: int | None = Field(default=None, gt=0)
    offset: int = Field(default=0, ge=0)

    def matches(self, reading: Reading) -> bool:
        if self.name is not None and reading.name != self.name:
            return False
        if self.module_id is not None and reading.module_id != self.module_id:
            return False
        if self.from_ts is not None and reading.timestamp < self.from_ts:
            return False
        if self.to_ts is not None and reading.timestamp > self.to_ts:
            return False
        return True


class HistoryStats(BaseModel):
    total_readings: int = 0
    oldest_reading: int | None = None
    newest_reading: int | None = None
    unique_sensors: int = 0


class HistoryStore(ABC):
    """Abstract base class for persisted reading logs."""

    @abstractmethod
    async def connect(self) -> None:
        """Open connections / create the schema."""

    @abstractmethod
    async def save_batch(self, readings: list[Reading]) -> None:
        """Persist one tick's batch."""

    @abstractmethod
    async def query(self, params: HistoryQuery) -> list[HistoricalReading]:
        """Return matching readings, newest first."""

    @abstractmethod
    async def cleanup(self, older_than_ms: int) -> int:
        """Delete readings older than *older_than_ms*; return the count."""

    @abstractmethod
    async def stats(self) -> HistoryStats:
        """Summarise the stored data."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources."""
