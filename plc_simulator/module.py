"""Module runner - produces one batch of readings per tick for a module.

A module groups exactly three sensors under one integer id and one update
period.  The runner evaluates every sensor's waveform at the time elapsed
since its own creation and stamps the whole batch with a single timestamp.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from plc_simulator.models import Reading
from plc_simulator.waveforms import SensorSpec, Waveform, make_waveform, value_at

__all__ = ["ModuleRunner", "ModuleSpec", "SENSORS_PER_MODULE"]

logger = logging.getLogger("plc_simulator.module")

SENSORS_PER_MODULE = 3


class ModuleSpec(BaseModel):
    """Configuration for one module.

    Attributes:
        id: Positive module identity, copied onto every reading.
        update_ms: Tick period override; ``None`` uses the server default.
        sensors: The module's sensors, in output order.
    """

    model_config = {"frozen": True}

    id: int = Field(gt=0)
    update_ms: int | None = Field(default=None, gt=0)
    sensors: list[SensorSpec]


class ModuleRunner:
    """Holds one waveform per sensor plus the module epoch ``t0_ms``."""

    def __init__(self, spec: ModuleSpec) -> None:
        self.spec = spec
        self._sensors: list[tuple[SensorSpec, Waveform]] = [
            (sensor, make_waveform(sensor)) for sensor in spec.sensors
        ]
        self.t0_ms = Reading.now_ms()
        logger.debug("Module %d runner created with %d sensors", spec.id, len(self._sensors))

    @property
    def module_id(self) -> int:
        return self.spec.id

    def tick(self) -> list[Reading]:
        """Sample every sensor once and return the batch."""
        now = Reading.now_ms()
        t_sec = (now - self.t0_ms) / 1000
        return [
            Reading(
                name=sensor.name,
                value=value_at(waveform, t_sec),
                timestamp=now,
                module_id=self.spec.id,
                unit=sensor.unit,
            )
            for sensor, waveform in self._sensors
        ]
