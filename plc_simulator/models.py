"""Common data models for the PLC sensor simulator.

Defines the :class:`Reading` produced on every module tick and the
:class:`SnapshotEntry` returned by :meth:`Simulator.snapshot`.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel

__all__ = ["HistoricalReading", "Reading", "SnapshotEntry"]


class Reading(BaseModel):
    """A single sensor reading produced by a module tick.

    Readings from the same tick of the same module share one timestamp.

    Attributes:
        name: Sensor name, unique within the process.
        value: Sampled waveform value.
        timestamp: Unix epoch milliseconds of the tick.
        module_id: Id of the module that produced the reading.
        unit: Optional display unit, e.g. ``"bar"``.
    """

    model_config = {"frozen": True}

    name: str
    value: float
    timestamp: int
    module_id: int
    unit: str | None = None

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return a plain ``dict``; ``unit`` is omitted when unset."""
        return self.model_dump(exclude_none=True)

    def to_json(self) -> str:
        """Return a compact JSON string."""
        return self.model_dump_json(exclude_none=True)

    def to_entry(self) -> SnapshotEntry:
        """Drop the name, which is the key of the snapshot table."""
        return SnapshotEntry(
            value=self.value,
            timestamp=self.timestamp,
            module_id=self.module_id,
            unit=self.unit,
        )

    @staticmethod
    def now_ms() -> int:
        """Return the current epoch timestamp in milliseconds."""
        return time.time_ns() // 1_000_000


class SnapshotEntry(BaseModel):
    """Latest known value of one sensor, keyed by name in a snapshot."""

    model_config = {"frozen": True}

    value: float
    timestamp: int
    module_id: int
    unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class HistoricalReading(Reading):
    """A persisted reading together with its store-assigned id."""

    id: int
