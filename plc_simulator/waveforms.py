"""Deterministic waveform generators for simulated analog sensors.

Defines the sensor definition (``SensorSpec``, ``WaveformKind``) and three
waveform variants.  A variant holds only the parameters it needs and is
chosen once per sensor by :func:`make_waveform`; :func:`value_at` is the
single dispatch point that evaluates any variant at an elapsed time.
"""

from __future__ import annotations

import math
import random
from enum import StrEnum
from typing import Literal, Union

from pydantic import BaseModel, Field

__all__ = [
    "NoisySinusoidal",
    "SensorSpec",
    "Sinusoidal",
    "SquareWave",
    "Waveform",
    "WaveformKind",
    "gaussian",
    "make_waveform",
    "value_at",
]

TWO_PI = 2 * math.pi


class WaveformKind(StrEnum):
    """Supported waveform shapes."""

    SINUSOIDAL = "sinusoidal"
    NOISY_SINUSOIDAL = "noisy_sinusoidal"
    SQUARE_WAVE = "square_wave"


class SensorSpec(BaseModel):
    """Definition of a single simulated sensor.

    ``noise_std`` only applies to ``noisy_sinusoidal`` sensors and is
    ignored for the other kinds.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    kind: WaveformKind
    amplitude: float
    frequency: float = Field(gt=0)
    phase: float = 0.0
    dc_offset: float = 0.0
    noise_std: float | None = Field(default=None, ge=0)
    unit: str | None = None


# ---------------------------------------------------------------------------
# Waveform variants
# ---------------------------------------------------------------------------


class Sinusoidal(BaseModel):
    model_config = {"frozen": True}

    kind: Literal[WaveformKind.SINUSOIDAL] = WaveformKind.SINUSOIDAL
    amplitude: float
    frequency: float
    phase: float
    dc_offset: float


class NoisySinusoidal(BaseModel):
    model_config = {"frozen": True}

    kind: Literal[WaveformKind.NOISY_SINUSOIDAL] = WaveformKind.NOISY_SINUSOIDAL
    amplitude: float
    frequency: float
    phase: float
    dc_offset: float
    noise_std: float = 0.0


class SquareWave(BaseModel):
    """Square wave whose phase is applied as a time shift.

    ``phase_time`` is ``phase / (2*pi*frequency)`` seconds, so sensors with
    different frequencies can be offset independently.
    """

    model_config = {"frozen": True}

    kind: Literal[WaveformKind.SQUARE_WAVE] = WaveformKind.SQUARE_WAVE
    amplitude: float
    frequency: float
    phase_time: float
    dc_offset: float

    @property
    def period(self) -> float:
        return 1.0 / self.frequency


Waveform = Union[Sinusoidal, NoisySinusoidal, SquareWave]


def make_waveform(spec: SensorSpec) -> Waveform:
    """Build the waveform variant matching ``spec.kind``."""
    if spec.kind is WaveformKind.SINUSOIDAL:
        return Sinusoidal(
            amplitude=spec.amplitude,
            frequency=spec.frequency,
            phase=spec.phase,
            dc_offset=spec.dc_offset,
        )
    if spec.kind is WaveformKind.NOISY_SINUSOIDAL:
        return NoisySinusoidal(
            amplitude=spec.amplitude,
            frequency=spec.frequency,
            phase=spec.phase,
            dc_offset=spec.dc_offset,
            noise_std=spec.noise_std or 0.0,
        )
    if spec.kind is WaveformKind.SQUARE_WAVE:
        return SquareWave(
            amplitude=spec.amplitude,
            frequency=spec.frequency,
            phase_time=spec.phase / (TWO_PI * spec.frequency),
            dc_offset=spec.dc_offset,
        )
    raise ValueError(f"Unsupported waveform kind: {spec.kind!r}")


def value_at(waveform: Waveform, t: float) -> float:
    """Evaluate *waveform* at *t* seconds after its module started."""
    if isinstance(waveform, Sinusoidal):
        return _sine(waveform.amplitude, waveform.frequency, waveform.phase, waveform.dc_offset, t)

    if isinstance(waveform, NoisySinusoidal):
        value = _sine(waveform.amplitude, waveform.frequency, waveform.phase, waveform.dc_offset, t)
        if waveform.noise_std:
            value += gaussian() * waveform.noise_std
        return value

    if isinstance(waveform, SquareWave):
        period = waveform.period
        # in [0, period) even for a negative phase
        x = (t + waveform.phase_time) % period
        high = x < period / 2
        return waveform.dc_offset + (waveform.amplitude if high else -waveform.amplitude)

    raise TypeError(f"Unknown waveform variant: {type(waveform).__name__}")


def _sine(amplitude: float, frequency: float, phase: float, dc_offset: float, t: float) -> float:
    return dc_offset + amplitude * math.sin(TWO_PI * frequency * t + phase)


def gaussian() -> float:
    """Draw one standard-normal sample with the Box-Muller transform."""
    u = 0.0
    v = 0.0
    # random.random() is in [0, 1); a zero would make log() blow up
    while u == 0.0:
        u = random.random()
    while v == 0.0:
        v = random.random()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(TWO_PI * v)
