"""Tests for plc_simulator.module - ModuleSpec and ModuleRunner.tick()."""

from __future__ import annotations

import math
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from plc_simulator.models import Reading
from plc_simulator.module import ModuleRunner, ModuleSpec
from plc_simulator.waveforms import SensorSpec


def _module(module_id: int = 1, update_ms: int | None = 200) -> ModuleSpec:
    return ModuleSpec(
        id=module_id,
        update_ms=update_ms,
        sensors=[
            SensorSpec(name="P", kind="sinusoidal", amplitude=10, frequency=1, unit="bar"),
            SensorSpec(name="T", kind="noisy_sinusoidal", amplitude=5, frequency=0.5, dc_offset=20),
            SensorSpec(name="V", kind="square_wave", amplitude=1, frequency=1),
        ],
    )


class TestModuleSpec:
    """ModuleSpec validation."""

    def test_id_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ModuleSpec(id=0, sensors=[])

    def test_update_ms_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ModuleSpec(id=1, update_ms=0, sensors=[])

    def test_update_ms_optional(self) -> None:
        assert ModuleSpec(id=1, sensors=[]).update_ms is None


class TestModuleRunnerTick:
    """ModuleRunner.tick() produces one reading per sensor."""

    def test_one_reading_per_sensor_in_order(self) -> None:
        readings = ModuleRunner(_module()).tick()
        assert [r.name for r in readings] == ["P", "T", "V"]
        assert all(isinstance(r, Reading) for r in readings)

    def test_shared_timestamp_and_module_id(self) -> None:
        readings = ModuleRunner(_module(module_id=7)).tick()
        assert len({r.timestamp for r in readings}) == 1
        assert {r.module_id for r in readings} == {7}

    def test_unit_only_when_configured(self) -> None:
        p, t, _v = ModuleRunner(_module()).tick()
        assert p.unit == "bar"
        assert t.unit is None
        assert "unit" not in t.to_dict()

    def test_elapsed_time_from_creation(self) -> None:
        with patch("plc_simulator.models.time.time_ns", return_value=1_000_000_000_000 * 1_000_000):
            runner = ModuleRunner(_module())
        with patch("plc_simulator.models.time.time_ns", return_value=(1_000_000_000_000 + 250) * 1_000_000):
            p, _t, v = runner.tick()
        assert p.timestamp == 1_000_000_000_250
        assert p.value == pytest.approx(10 * math.sin(2 * math.pi * 0.25))
        assert v.value == 1.0

    def test_fresh_readings_every_tick(self) -> None:
        runner = ModuleRunner(_module())
        first = runner.tick()
        second = runner.tick()
        assert first[0] is not second[0]
        assert second[0].timestamp >= first[0].timestamp
