"""Symbol address bridge - exposes sensor readings as addressable symbols.

The bridge subscribes to the simulator's batch fan-out.  The first reading
seen for a name mints a :class:`Symbol` with a stable address pair; every
later batch overwrites the symbol's value.  A protocol server reads and
writes symbols by address without knowing anything about sensors.

Writes are bridge-local: they are visible to subsequent reads until the
next batch for that sensor overwrites them.  They do not feed back into
the waveform generators.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING

from plc_simulator.errors import InvalidPayloadError, SymbolNotFoundError
from plc_simulator.models import Reading, SnapshotEntry
from plc_simulator.symbols import REAL_SIZE, AddressPair, Symbol, decode_real, encode_real, group_for_name

if TYPE_CHECKING:
    from plc_simulator.simulator import Simulator

__all__ = ["SymbolBridge"]

logger = logging.getLogger("plc_simulator.bridge")


class SymbolBridge:
    """Maps sensor names to ``(group, offset)`` address pairs.

    Parameters:
        simulator:
            When given, the bridge subscribes to its batches.  Pass
            ``None`` to feed the bridge manually via :meth:`update`.
    """

    def __init__(self, simulator: Simulator | None = None) -> None:
        self._symbols: dict[str, Symbol] = {}
        self._index: dict[AddressPair, str] = {}
        self._lock = threading.Lock()
        if simulator is not None:
            simulator.on_batch(self.update)

    # ------------------------------------------------------------------
    # Feeding
    # ------------------------------------------------------------------

    def update(self, readings: list[Reading]) -> None:
        """Register unseen names, then store every reading's value."""
        with self._lock:
            for reading in readings:
                symbol = self._symbols.get(reading.name)
                if symbol is None:
                    symbol = self._register(reading.name, reading.value, reading.unit, reading.module_id)
                symbol.value = reading.value

    def register_reading(self, reading: Reading) -> AddressPair:
        """Register *reading*'s sensor if unseen; return its address pair."""
        with self._lock:
            symbol = self._symbols.get(reading.name)
            if symbol is None:
                symbol = self._register(reading.name, reading.value, reading.unit, reading.module_id)
            return symbol.address

    def register_snapshot(self, snapshot: Mapping[str, SnapshotEntry]) -> int:
        """Register every sensor present in a simulator snapshot.

        Returns the number of newly registered symbols.
        """
        added = 0
        with self._lock:
            for name, entry in snapshot.items():
                if name not in self._symbols:
                    self._register(name, entry.value, entry.unit, entry.module_id)
                    added += 1
        return added

    # ------------------------------------------------------------------
    # Address-keyed access
    # ------------------------------------------------------------------

    def read(self, group: int, offset: int) -> bytes:
        """Return the current value at ``(group, offset)`` as 4 LE bytes.

        Raises:
            SymbolNotFoundError: no symbol owns that exact address pair.
        """
        with self._lock:
            value = self._lookup(group, offset).value
        return encode_real(value)

    def write(self, group: int, offset: int, data: bytes) -> float:
        """Overwrite the value at ``(group, offset)`` from 4 LE bytes.

        Returns the decoded value.

        Raises:
            SymbolNotFoundError: no symbol owns that exact address pair.
            InvalidPayloadError: *data* is shorter than 4 bytes.
        """
        with self._lock:
            symbol = self._lookup(group, offset)
            if len(data) < REAL_SIZE:
                raise InvalidPayloadError(
                    f"Write to {symbol.name} needs {REAL_SIZE} bytes, got {len(data)}"
                )
            value = decode_real(data)
            symbol.value = value
        logger.debug("Updated symbol %s to value %s", symbol.name, value)
        return value

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def symbols(self) -> list[Symbol]:
        """Copies of all symbols, in registration order."""
        with self._lock:
            return [s.model_copy() for s in self._symbols.values()]

    def address_of(self, name: str) -> AddressPair | None:
        with self._lock:
            symbol = self._symbols.get(name)
            return symbol.address if symbol is not None else None

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    # ------------------------------------------------------------------
    # Internal (caller holds the lock)
    # ------------------------------------------------------------------

    def _register(self, name: str, value: float, unit: str | None, module_id: int) -> Symbol:
        address = AddressPair(group_for_name(name), len(self._symbols) * REAL_SIZE)
        symbol = Symbol(name=name, value=value, unit=unit, module_id=module_id, address=address)
        self._symbols[name] = symbol
        self._index[address] = name
        logger.info(
            "Registered symbol %s (%s, %s) at IndexGroup 0x%x, IndexOffset 0x%x",
            name,
            symbol.type,
            unit or "no unit",
            address.group,
            address.offset,
        )
        return symbol

    def _lookup(self, group: int, offset: int) -> Symbol:
        name = self._index.get(AddressPair(group, offset))
        if name is None:
            raise SymbolNotFoundError(group, offset)
        return self._symbols[name]
