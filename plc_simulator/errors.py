"""Exception hierarchy for the PLC sensor simulator."""

from __future__ import annotations

__all__ = [
    "ConfigError",
    "HistoryConnectError",
    "HistoryDisabledError",
    "InvalidPayloadError",
    "SimulatorError",
    "SymbolNotFoundError",
]


class SimulatorError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(SimulatorError):
    """The configuration file is missing, unparsable or fails validation."""


class SymbolNotFoundError(SimulatorError):
    """No registered symbol owns the requested ``(group, offset)`` pair."""

    def __init__(self, group: int, offset: int) -> None:
        super().__init__(f"No symbol at IndexGroup 0x{group:x}, IndexOffset 0x{offset:x}")
        self.group = group
        self.offset = offset


class InvalidPayloadError(SimulatorError):
    """A write request carried fewer bytes than the symbol size."""


class HistoryDisabledError(SimulatorError):
    """A history operation was requested but no store is configured."""


class HistoryConnectError(SimulatorError):
    """The history store could not be opened at startup."""
