"""Configuration loader.

Parses YAML (or JSON) files with the following top-level sections::

    server:    # distribution protocol, port, default update period
    history:   # optional persisted log
    modules:   # modules of exactly three sensors each

Example:

.. code-block:: yaml

    server:
      protocol: ads
      port: 8080
      update_ms: 200

    history:
      enabled: true
      url: sqlite+aiosqlite:///data/history.db

    modules:
      - id: 1
        update_ms: 100
        sensors:
          - {name: P1, kind: sinusoidal, amplitude: 10, frequency: 1, phase: 0, dc_offset: 0, unit: bar}
          - {name: T1, kind: noisy_sinusoidal, amplitude: 5, frequency: 0.2, phase: 0, dc_offset: 20, noise_std: 0.1}
          - {name: V1, kind: square_wave, amplitude: 1, frequency: 0.5, phase: 0, dc_offset: 0}
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from plc_simulator.ads import AdsSettings
from plc_simulator.errors import ConfigError
from plc_simulator.module import SENSORS_PER_MODULE, ModuleSpec

__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "HistoryConfig",
    "ServerConfig",
    "load_config",
]

logger = logging.getLogger("plc_simulator.config")

DEFAULT_CONFIG_PATH = "config/example.yaml"
CONFIG_ENV_VAR = "PLC_CONFIG"
DEFAULT_MAX_ROWS = 100_000


class ServerConfig(BaseModel):
    """``server`` section.

    Attributes:
        protocol: Distribution protocol, ``"ws"`` or ``"ads"``.
        port: Port of the distribution transport.
        update_ms: Default tick period for modules without an override.
        log_level: Logging level string.
        ads: ADS connection settings (only used with ``protocol: ads``).
    """

    protocol: Literal["ws", "ads"] = "ws"
    port: int = Field(default=8080, gt=0)
    update_ms: int | None = Field(default=None, gt=0)
    log_level: str = "INFO"
    ads: AdsSettings | None = None


class HistoryConfig(BaseModel):
    """``history`` section.

    Without ``url`` an in-memory store is used, holding at most
    ``max_rows`` readings (oldest dropped first).
    """

    enabled: bool = True
    url: str | None = None
    max_rows: int = Field(default=DEFAULT_MAX_ROWS, gt=0)


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    modules: list[ModuleSpec] = Field(min_length=1)

    @field_validator("modules")
    @classmethod
    def _three_sensors_each(cls, modules: list[ModuleSpec]) -> list[ModuleSpec]:
        for module in modules:
            if len(module.sensors) != SENSORS_PER_MODULE:
                raise ValueError(
                    f"Module {module.id}: each module must have exactly "
                    f"{SENSORS_PER_MODULE} sensors (got {len(module.sensors)})"
                )
        return modules

    @model_validator(mode="after")
    def _unique_ids_and_names(self) -> AppConfig:
        ids = [m.id for m in self.modules]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate module ids: {sorted(ids)}")
        seen: set[str] = set()
        for module in self.modules:
            for sensor in module.sensors:
                if sensor.name in seen:
                    raise ValueError(f"Duplicate sensor name '{sensor.name}'")
                seen.add(sensor.name)
        return self

    @property
    def sensor_count(self) -> int:
        return sum(len(m.sensors) for m in self.modules)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate a configuration file.

    *path* defaults to ``$PLC_CONFIG`` and then ``config/example.yaml``.
    Files ending in ``.yaml``/``.yml`` are parsed as YAML, anything else
    as JSON.

    Raises:
        ConfigError: the file is missing, unparsable or invalid.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    text = path.read_text()
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            raw: dict[str, Any] = yaml.safe_load(text) or {}
        else:
            raw = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc

    try:
        config = AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc

    logger.info(
        "Loaded config: protocol=%s, %d modules, %d sensors",
        config.server.protocol,
        len(config.modules),
        config.sensor_count,
    )
    return config
