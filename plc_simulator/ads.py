"""ADS adapter - binds a :class:`SymbolBridge` to an ADS protocol server.

The wire protocol lives in a :class:`SymbolProtocolServer` implementation.
The adapter installs request handlers on it, translates bridge results
into ADS return codes, and reports status for diagnostics.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field

from plc_simulator.bridge import SymbolBridge
from plc_simulator.errors import InvalidPayloadError, SymbolNotFoundError
from plc_simulator.simulator import Simulator

__all__ = [
    "AdapterStatus",
    "AdsAdapter",
    "AdsErrorCode",
    "AdsResponse",
    "AdsSettings",
    "DeviceInfo",
    "SymbolProtocolServer",
]

logger = logging.getLogger("plc_simulator.ads")

ReadHandler = Callable[[int, int, int], Awaitable["AdsResponse"]]
WriteHandler = Callable[[int, int, bytes], Awaitable["AdsResponse"]]
DeviceInfoHandler = Callable[[], Awaitable["DeviceInfo"]]
ConnectionLostHandler = Callable[[str | None], None]


class AdsErrorCode(IntEnum):
    """ADS return codes used by the adapter."""

    NO_ERROR = 0x000
    GENERIC = 0x700
    INVALID_SIZE = 0x705
    SYMBOL_NOT_FOUND = 0x710


class AdsSettings(BaseModel):
    """Connection settings handed to the protocol server."""

    local_ads_port: int = Field(default=30012, gt=0)
    local_ams_net_id: str = "192.168.1.100.1.1"
    router_tcp_port: int = Field(default=48898, gt=0)
    router_address: str = "localhost"
    local_tcp_port: int = Field(default=0, ge=0)  # 0 = automatic
    local_address: str = "localhost"
    timeout_delay: int = Field(default=2000, gt=0)
    auto_reconnect: bool = True
    reconnect_interval: int = Field(default=2000, gt=0)
    hide_console_warnings: bool = False


class AdsResponse(BaseModel):
    data: bytes = b""
    error: AdsErrorCode = AdsErrorCode.NO_ERROR

    @property
    def ok(self) -> bool:
        return self.error is AdsErrorCode.NO_ERROR


class DeviceInfo(BaseModel):
    major_version: int = 1
    minor_version: int = 0
    version_build: int = 0
    device_name: str = "PLC-Simulator"


class AdapterStatus(BaseModel):
    connected: bool
    symbol_count: int
    symbols: list[dict[str, Any]]
    local_ads_port: int
    local_ams_net_id: str


class SymbolProtocolServer(ABC):
    """Abstract wire-level server for address-keyed read/write requests."""

    @abstractmethod
    async def listen(self) -> None:
        """Bind / register with the router and start accepting requests."""

    @abstractmethod
    async def close(self) -> None:
        """Stop accepting requests and release the connection."""

    @abstractmethod
    def set_handlers(
        self,
        *,
        read: ReadHandler,
        write: WriteHandler,
        device_info: DeviceInfoHandler,
        connection_lost: ConnectionLostHandler,
    ) -> None:
        """Install the coroutines that answer incoming requests.

        *connection_lost* must be called with an error description (or
        ``None`` on a clean close) when the connection goes away.
        """


class AdsAdapter:
    """Serves simulator sensors over an ADS protocol server.

    Example::

        adapter = AdsAdapter(sim, server, AdsSettings(local_ads_port=30012))
        await adapter.start()
        ...
        await adapter.stop()

    Parameters:
        simulator: Source of readings; the adapter's bridge subscribes to it.
        server: Wire-level protocol server.
        settings: ADS connection settings (defaults when omitted).
    """

    def __init__(
        self,
        simulator: Simulator,
        server: SymbolProtocolServer,
        settings: AdsSettings | None = None,
    ) -> None:
        self._simulator = simulator
        self._server = server
        self.settings = settings or AdsSettings()
        self.bridge = SymbolBridge(simulator)
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def start(self) -> None:
        """Start the server and pre-register every sensor in the snapshot."""
        logger.info(
            "Starting ADS server (AMS Net ID %s, ADS port %d, router port %d)",
            self.settings.local_ams_net_id,
            self.settings.local_ads_port,
            self.settings.router_tcp_port,
        )
        try:
            await self._server.listen()
        except Exception:
            logger.exception("Failed to start ADS server")
            raise

        added = self.bridge.register_snapshot(self._simulator.snapshot())
        logger.info("Registered %d sensor symbols", added)

        self._server.set_handlers(
            read=self.handle_read,
            write=self.handle_write,
            device_info=self.handle_device_info,
            connection_lost=self.mark_disconnected,
        )
        self._connected = True
        logger.info("ADS server connected")

    async def stop(self) -> None:
        if not self._connected:
            return
        self._connected = False
        try:
            await self._server.close()
            logger.info("ADS server stopped")
        except Exception as exc:
            logger.error("Error stopping ADS server: %s", exc)

    def mark_disconnected(self, reason: str | None = None) -> None:
        """Called by the server on connection error or close."""
        if reason:
            logger.error("ADS server error: %s", reason)
        else:
            logger.info("ADS server closed")
        self._connected = False

    # ------------------------------------------------------------------
    # Request handlers
    # ------------------------------------------------------------------

    async def handle_read(self, index_group: int, index_offset: int, length: int) -> AdsResponse:
        logger.debug(
            "Read request - IndexGroup 0x%x, IndexOffset 0x%x, Length %d",
            index_group,
            index_offset,
            length,
        )
        try:
            return AdsResponse(data=self.bridge.read(index_group, index_offset))
        except SymbolNotFoundError:
            return AdsResponse(error=AdsErrorCode.SYMBOL_NOT_FOUND)
        except Exception:
            logger.exception("Error handling read request")
            return AdsResponse(error=AdsErrorCode.GENERIC)

    async def handle_write(self, index_group: int, index_offset: int, data: bytes) -> AdsResponse:
        logger.debug("Write request - IndexGroup 0x%x, IndexOffset 0x%x", index_group, index_offset)
        try:
            self.bridge.write(index_group, index_offset, data)
        except SymbolNotFoundError:
            return AdsResponse(error=AdsErrorCode.SYMBOL_NOT_FOUND)
        except InvalidPayloadError as exc:
            logger.warning("Rejected write: %s", exc)
            return AdsResponse(error=AdsErrorCode.INVALID_SIZE)
        except Exception:
            logger.exception("Error handling write request")
            return AdsResponse(error=AdsErrorCode.GENERIC)
        return AdsResponse()

    async def handle_device_info(self) -> DeviceInfo:
        return DeviceInfo()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def status(self) -> AdapterStatus:
        symbols = self.bridge.symbols()
        return AdapterStatus(
            connected=self._connected,
            symbol_count=len(symbols),
            symbols=[s.to_status() for s in symbols],
            local_ads_port=self.settings.local_ads_port,
            local_ams_net_id=self.settings.local_ams_net_id,
        )
