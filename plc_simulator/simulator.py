"""Simulator - multi-rate scheduler that ticks every module on its own
period and distributes each batch to the snapshot table, the history
store and registered subscribers.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import signal
import threading
from collections.abc import Awaitable, Callable
from typing import Any

from plc_simulator.errors import HistoryConnectError, HistoryDisabledError
from plc_simulator.history.base import HistoryStats, HistoryStore
from plc_simulator.models import Reading, SnapshotEntry
from plc_simulator.module import ModuleRunner, ModuleSpec

__all__ = ["BatchCallback", "DEFAULT_UPDATE_MS", "Simulator"]

logger = logging.getLogger("plc_simulator")

DEFAULT_UPDATE_MS = 200

BatchCallback = Callable[[list[Reading]], Any]


class Simulator:
    """Runs one periodic timer per module and fans out every batch.

    Example::

        sim = Simulator(modules, default_update_ms=200)
        sim.on_batch(lambda readings: print(len(readings)))
        sim.run(duration_s=10)

    Parameters:
        modules:
            Module definitions, already validated (exactly three sensors
            each, unique sensor names).
        default_update_ms:
            Tick period for modules without an ``update_ms`` override.
            ``None`` falls back to :data:`DEFAULT_UPDATE_MS`.
        history:
            Optional :class:`HistoryStore` receiving every batch.  Writes
            run in background tasks and never delay a tick.
    """

    def __init__(
        self,
        modules: list[ModuleSpec],
        *,
        default_update_ms: int | None = None,
        history: HistoryStore | None = None,
    ) -> None:
        self._modules = list(modules)
        self._default_update_ms = default_update_ms
        self._history = history
        self._snapshot: dict[str, Reading] = {}
        self._snapshot_lock = threading.Lock()
        self._subscribers: list[BatchCallback] = []
        self._runners: dict[int, ModuleRunner] = {}
        self._timers: list[asyncio.Task[None]] = []
        self._stopping: list[asyncio.Task[None]] = []
        self._background: set[asyncio.Task[Any]] = set()

        if history is not None:
            logger.info("Historical data storage enabled (%s)", type(history).__name__)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def modules(self) -> list[ModuleSpec]:
        return list(self._modules)

    @property
    def module_count(self) -> int:
        return len(self._modules)

    @property
    def sensor_count(self) -> int:
        return sum(len(m.sensors) for m in self._modules)

    @property
    def history(self) -> HistoryStore | None:
        return self._history

    @property
    def runners(self) -> dict[int, ModuleRunner]:
        """Module runners of the current run, keyed by module id."""
        return dict(self._runners)

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._timers)

    def period_ms(self, module: ModuleSpec) -> int:
        """Tick period of *module*: its override, else the server default."""
        if module.update_ms is not None:
            return module.update_ms
        if self._default_update_ms is not None:
            return self._default_update_ms
        return DEFAULT_UPDATE_MS

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start one timer per module, replacing any previous run.

        Must be called with a running event loop.  The first tick of each
        module fires one period after this call.
        """
        loop = asyncio.get_running_loop()
        self.stop()
        self._runners = {}

        for module in self._modules:
            runner = ModuleRunner(module)
            period_s = self.period_ms(module) / 1000
            self._runners[module.id] = runner
            task = loop.create_task(self._module_loop(runner, period_s), name=f"module-{module.id}")
            self._timers.append(task)

        logger.info(
            "Started %d module timers (%d sensors)", len(self._timers), self.sensor_count
        )

    def stop(self) -> None:
        """Cancel every module timer.  Safe to call at any time."""
        if not self._timers:
            return
        for task in self._timers:
            task.cancel()
        logger.info("Stopped %d module timers", len(self._timers))
        self._stopping = [t for t in self._stopping if not t.done()]
        self._stopping.extend(self._timers)
        self._timers = []

    async def wait_closed(self) -> None:
        """Wait for cancelled timers and pending history writes to finish."""
        pending = [*self._stopping, *self._background]
        self._stopping = []
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Subscribers & snapshot
    # ------------------------------------------------------------------

    def on_batch(self, callback: BatchCallback) -> None:
        """Register *callback* to receive every batch, in registration order.

        The callback runs synchronously inside the tick.  If it returns an
        awaitable, that awaitable is scheduled as a background task.
        """
        self._subscribers.append(callback)

    def snapshot(self) -> dict[str, SnapshotEntry]:
        """Return a point-in-time copy of the latest value per sensor."""
        with self._snapshot_lock:
            return {name: reading.to_entry() for name, reading in self._snapshot.items()}

    # ------------------------------------------------------------------
    # History helpers
    # ------------------------------------------------------------------

    async def cleanup_history(self, days: float = 30) -> int:
        """Delete persisted readings older than *days*."""
        if self._history is None:
            raise HistoryDisabledError("History service not enabled")
        cutoff = Reading.now_ms() - int(days * 24 * 60 * 60 * 1000)
        return await self._history.cleanup(cutoff)

    async def history_stats(self) -> HistoryStats:
        if self._history is None:
            raise HistoryDisabledError("History service not enabled")
        return await self._history.stats()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, duration_s: float | None = None) -> None:
        """Blocking entry point - starts an event loop and runs until
        *duration_s* elapses or SIGINT/SIGTERM is received.
        """
        try:
            asyncio.run(self.run_async(duration_s=duration_s))
        except KeyboardInterrupt:
            logger.info("Interrupted by user")

    async def run_async(self, duration_s: float | None = None) -> None:
        """Async entry point - runs inside an existing event loop."""
        if self._history is not None:
            try:
                await self._history.connect()
            except Exception as exc:
                raise HistoryConnectError(f"Cannot open history store: {exc}") from exc

        # NotImplementedError: raised on Windows where signal handlers are unsupported.
        # RuntimeError: raised when running in a non-main thread.
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, stop_event.set)

        self.start()
        try:
            if duration_s is None:
                await stop_event.wait()
                logger.info("Stop signal received - shutting down")
            else:
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(stop_event.wait(), timeout=duration_s)
                logger.info("Duration reached (%.1fs) - stopping", duration_s)
        except asyncio.CancelledError:
            logger.info("Simulator cancelled")
        finally:
            self.stop()
            await self.wait_closed()
            if self._history is not None:
                await self._history.close()
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.remove_signal_handler(sig)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _module_loop(self, runner: ModuleRunner, period_s: float) -> None:
        """Fire ``_tick`` every *period_s* seconds until cancelled."""
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + period_s
        tick_count = 0
        while True:
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            # missed deadlines are skipped rather than replayed
            next_fire = max(next_fire + period_s, loop.time())
            self._tick(runner)
            tick_count += 1
            if tick_count % 100 == 0:
                logger.debug("Module %d - tick %d", runner.module_id, tick_count)

    def _tick(self, runner: ModuleRunner) -> None:
        try:
            readings = runner.tick()
        except Exception:
            logger.exception("Module %d tick failed - skipping batch", runner.module_id)
            return

        with self._snapshot_lock:
            for reading in readings:
                self._snapshot[reading.name] = reading

        if self._history is not None:
            self._spawn(self._history.save_batch(readings), "Failed to save readings to history")

        for callback in list(self._subscribers):
            try:
                result = callback(readings)
            except Exception:
                logger.exception("Batch subscriber %r failed", callback)
                continue
            if inspect.isawaitable(result):
                self._spawn(result, f"Async batch subscriber {callback!r} failed")

    def _spawn(self, aw: Awaitable[Any], error_message: str) -> None:
        """Run *aw* in the background; failures are logged and discarded."""
        task = asyncio.ensure_future(aw)
        self._background.add(task)

        def _done(t: asyncio.Task[Any]) -> None:
            self._background.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error("%s: %s", error_message, exc)

        task.add_done_callback(_done)
