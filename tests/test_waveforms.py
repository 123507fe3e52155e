"""Tests for plc_simulator.waveforms - variants, dispatch and Box-Muller noise."""

from __future__ import annotations

import math
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from plc_simulator.waveforms import (
    NoisySinusoidal,
    SensorSpec,
    Sinusoidal,
    SquareWave,
    WaveformKind,
    gaussian,
    make_waveform,
    value_at,
)


def _spec(kind: str, **kwargs) -> SensorSpec:
    params = {"name": "s", "kind": kind, "amplitude": 10.0, "frequency": 1.0, "phase": 0.0, "dc_offset": 0.0}
    params.update(kwargs)
    return SensorSpec(**params)


# -----------------------------------------------------------------------
# SensorSpec
# -----------------------------------------------------------------------


class TestSensorSpec:
    """SensorSpec validation."""

    def test_kind_from_string(self) -> None:
        assert _spec("square_wave").kind is WaveformKind.SQUARE_WAVE

    def test_frequency_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            _spec("sinusoidal", frequency=0)

    def test_negative_noise_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _spec("noisy_sinusoidal", noise_std=-0.1)

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _spec("triangle")

    def test_frozen(self) -> None:
        spec = _spec("sinusoidal")
        with pytest.raises(ValidationError):
            spec.amplitude = 3.0  # type: ignore[misc]


# -----------------------------------------------------------------------
# make_waveform
# -----------------------------------------------------------------------


class TestMakeWaveform:
    """make_waveform picks the variant matching the sensor kind."""

    def test_sinusoidal(self) -> None:
        assert isinstance(make_waveform(_spec("sinusoidal")), Sinusoidal)

    def test_noisy_defaults_noise_to_zero(self) -> None:
        wf = make_waveform(_spec("noisy_sinusoidal"))
        assert isinstance(wf, NoisySinusoidal)
        assert wf.noise_std == 0.0

    def test_square_wave_phase_becomes_time_shift(self) -> None:
        wf = make_waveform(_spec("square_wave", frequency=2.0, phase=math.pi))
        assert isinstance(wf, SquareWave)
        assert wf.phase_time == pytest.approx(0.25)

    def test_noise_ignored_for_plain_sine(self) -> None:
        wf = make_waveform(_spec("sinusoidal", noise_std=5.0))
        assert not hasattr(wf, "noise_std")


# -----------------------------------------------------------------------
# Sinusoidal
# -----------------------------------------------------------------------


class TestSinusoidal:
    """Sinusoidal formula and periodicity."""

    def test_formula(self) -> None:
        wf = make_waveform(_spec("sinusoidal", amplitude=2.0, frequency=0.5, phase=0.3, dc_offset=1.5))
        t = 0.7
        expected = 1.5 + 2.0 * math.sin(2 * math.pi * 0.5 * t + 0.3)
        assert value_at(wf, t) == pytest.approx(expected)

    def test_quarter_period_peak(self) -> None:
        wf = make_waveform(_spec("sinusoidal"))
        assert value_at(wf, 0.25) == pytest.approx(10.0)

    @pytest.mark.parametrize("frequency", [0.1, 1.0, 3.7])
    @pytest.mark.parametrize("t", [0.0, 0.13, 2.5, 11.0])
    def test_periodic(self, frequency: float, t: float) -> None:
        wf = make_waveform(_spec("sinusoidal", frequency=frequency, phase=0.4, dc_offset=3.0))
        assert value_at(wf, t + 1 / frequency) == pytest.approx(value_at(wf, t), abs=1e-9)


# -----------------------------------------------------------------------
# Noisy sinusoidal
# -----------------------------------------------------------------------


class TestNoisySinusoidal:
    """Noisy sinusoidal adds independent Gaussian noise."""

    def test_zero_noise_equals_plain_sine(self) -> None:
        plain = make_waveform(_spec("sinusoidal", phase=0.2, dc_offset=4.0))
        noisy = make_waveform(_spec("noisy_sinusoidal", phase=0.2, dc_offset=4.0, noise_std=0.0))
        for t in (0.0, 0.1, 0.77, 5.3):
            assert value_at(noisy, t) == value_at(plain, t)

    def test_unset_noise_equals_plain_sine(self) -> None:
        plain = make_waveform(_spec("sinusoidal"))
        noisy = make_waveform(_spec("noisy_sinusoidal"))
        assert value_at(noisy, 0.3) == value_at(plain, 0.3)

    def test_noise_scaled_by_std(self) -> None:
        noisy = make_waveform(_spec("noisy_sinusoidal", noise_std=2.0))
        plain = make_waveform(_spec("sinusoidal"))
        with patch("plc_simulator.waveforms.gaussian", return_value=0.5):
            assert value_at(noisy, 0.3) == pytest.approx(value_at(plain, 0.3) + 1.0)

    def test_draws_are_independent(self) -> None:
        noisy = make_waveform(_spec("noisy_sinusoidal", noise_std=1.0))
        values = {value_at(noisy, 0.5) for _ in range(20)}
        assert len(values) > 1

    def test_noise_distribution_is_centered(self) -> None:
        noisy = make_waveform(_spec("noisy_sinusoidal", amplitude=0.0, noise_std=1.0))
        samples = [value_at(noisy, 0.0) for _ in range(5000)]
        mean = sum(samples) / len(samples)
        var = sum((s - mean) ** 2 for s in samples) / len(samples)
        assert mean == pytest.approx(0.0, abs=0.1)
        assert var == pytest.approx(1.0, abs=0.15)


class TestGaussian:
    """Box-Muller guard against zero uniform samples."""

    def test_zero_samples_are_redrawn(self) -> None:
        with patch("plc_simulator.waveforms.random.random", side_effect=[0.0, 0.0, 0.5, 0.0, 0.25]):
            value = gaussian()
        expected = math.sqrt(-2.0 * math.log(0.5)) * math.cos(2.0 * math.pi * 0.25)
        assert value == pytest.approx(expected)


# -----------------------------------------------------------------------
# Square wave
# -----------------------------------------------------------------------


class TestSquareWave:
    """Square wave levels, duty cycle and time-shift phase."""

    def test_two_levels_only(self) -> None:
        wf = make_waveform(_spec("square_wave", amplitude=3.0, frequency=2.0, phase=0.9, dc_offset=1.0))
        values = {value_at(wf, i / 997) for i in range(2000)}
        assert values == {4.0, -2.0}

    def test_half_duty_cycle(self) -> None:
        wf = make_waveform(_spec("square_wave", amplitude=1.0, frequency=0.5))
        period = 2.0
        n = 10_000
        high = sum(1 for i in range(n) if value_at(wf, i * period / n) > 0)
        assert high / n == pytest.approx(0.5, abs=0.01)

    def test_first_half_high(self) -> None:
        wf = make_waveform(_spec("square_wave", amplitude=1.0, frequency=1.0))
        assert value_at(wf, 0.1) == 1.0
        assert value_at(wf, 0.6) == -1.0

    def test_phase_pi_inverts(self) -> None:
        wf = make_waveform(_spec("square_wave", amplitude=1.0, frequency=1.0, phase=math.pi))
        assert value_at(wf, 0.1) == -1.0
        assert value_at(wf, 0.6) == 1.0

    def test_negative_phase_wraps(self) -> None:
        wf = make_waveform(_spec("square_wave", amplitude=1.0, frequency=1.0, phase=-math.pi / 2))
        # shift of -0.25s: t=0.1 maps to 0.85 in the period
        assert value_at(wf, 0.1) == -1.0
        assert value_at(wf, 0.3) == 1.0
