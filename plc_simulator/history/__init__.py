"""Persisted reading logs.

``MemoryHistoryStore`` is always available; ``DatabaseHistoryStore``
needs the ``database`` extra and is imported lazily::

    from plc_simulator.history import DatabaseHistoryStore
"""

from __future__ import annotations

import importlib
from typing import Any

from plc_simulator.history.base import HistoryQuery, HistoryStats, HistoryStore
from plc_simulator.history.memory import MemoryHistoryStore

__all__ = [
    "HistoryQuery",
    "HistoryStats",
    "HistoryStore",
    "MemoryHistoryStore",
]


def __getattr__(name: str) -> Any:
    """Lazy-import stores that require optional dependencies."""
    if name == "DatabaseHistoryStore":
        mod = importlib.import_module("plc_simulator.history.database")
        return getattr(mod, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
