"""PLC sensor simulator - modules of simulated analog sensors whose
readings are distributed as live batches, a polling snapshot, addressable
PLC symbols and a persisted history.

Quick start::

    from plc_simulator import ModuleSpec, SensorSpec, Simulator, SymbolBridge

    sensors = [
        SensorSpec(name=n, kind="sinusoidal", amplitude=10, frequency=1)
        for n in ("P", "T", "V")
    ]
    sim = Simulator([ModuleSpec(id=1, update_ms=200, sensors=sensors)])
    bridge = SymbolBridge(sim)
    sim.run(duration_s=5)
"""

from __future__ import annotations

from plc_simulator.bridge import SymbolBridge
from plc_simulator.errors import SymbolNotFoundError
from plc_simulator.models import Reading, SnapshotEntry
from plc_simulator.module import ModuleRunner, ModuleSpec
from plc_simulator.simulator import Simulator
from plc_simulator.symbols import AddressPair, Symbol
from plc_simulator.waveforms import SensorSpec, WaveformKind

__all__ = [
    "AddressPair",
    "ModuleRunner",
    "ModuleSpec",
    "Reading",
    "SensorSpec",
    "Simulator",
    "SnapshotEntry",
    "Symbol",
    "SymbolBridge",
    "SymbolNotFoundError",
    "WaveformKind",
]

__version__ = "0.1.0"
