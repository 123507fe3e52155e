"""CLI entry point for the PLC sensor simulator.

Usage::

    plc-simulator run --config config/example.yaml --duration 10
    plc-simulator run -c config/example.yaml --print --format json
    plc-simulator list-sensors --config config/example.yaml
    plc-simulator init-config --output config/example.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import IO

logger = logging.getLogger("plc_simulator.cli")

# ---------------------------------------------------------------------------
# Sample YAML config template for init-config
# ---------------------------------------------------------------------------
_SAMPLE_CONFIG = """\
# PLC sensor simulator configuration

server:
  protocol: ads                       # ws or ads
  port: 8080
  update_ms: 200                      # default tick period for every module
  # log_level: INFO                   # DEBUG, INFO, WARNING, ERROR
  # ads:
  #   local_ads_port: 30012
  #   local_ams_net_id: 192.168.1.100.1.1
  #   router_tcp_port: 48898

history:
  enabled: true
  # url: sqlite+aiosqlite:///data/history.db   # omit for an in-memory store
  # max_rows: 100000                           # in-memory store cap

# Every module has exactly three sensors.
# kind: sinusoidal, noisy_sinusoidal or square_wave; phase is in radians.
modules:
  - id: 1
    sensors:
      - {name: pressure_1, kind: sinusoidal, amplitude: 10, frequency: 1.0, phase: 0, dc_offset: 0, unit: bar}
      - {name: temperature_1, kind: noisy_sinusoidal, amplitude: 5, frequency: 0.1, phase: 0, dc_offset: 20, noise_std: 0.2, unit: C}
      - {name: valve_1, kind: square_wave, amplitude: 1, frequency: 0.5, phase: 0, dc_offset: 0}

  - id: 2
    update_ms: 500                    # override the server default
    sensors:
      - {name: pressure_2, kind: sinusoidal, amplitude: 8, frequency: 0.5, phase: 1.5708, dc_offset: 2, unit: bar}
      - {name: temperature_2, kind: noisy_sinusoidal, amplitude: 3, frequency: 0.05, phase: 0, dc_offset: 40, noise_std: 0.5, unit: C}
      - {name: valve_2, kind: square_wave, amplitude: 1, frequency: 0.25, phase: 3.1416, dc_offset: 1}
"""


# ======================================================================
# Main entry point
# ======================================================================


def main(argv: list[str] | None = None) -> None:
    epilog = textwrap.dedent("""\
        examples:
          plc-simulator run --config config/example.yaml --duration 10
          plc-simulator run -c config/example.yaml --print --format json
          plc-simulator list-sensors --config config/example.yaml
          plc-simulator init-config --output config/example.yaml
    """)

    parser = argparse.ArgumentParser(
        prog="plc-simulator",
        description="Simulate modules of industrial sensors and distribute their readings.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Run the simulator.",
    )
    _add_config_arg(run_parser)
    run_parser.add_argument(
        "--duration",
        "-d",
        type=float,
        default=None,
        help="Run duration in seconds (default: indefinite, Ctrl-C to stop).",
    )
    run_parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, else INFO).",
    )
    run_parser.add_argument(
        "--print",
        action="store_true",
        dest="print_batches",
        help="Print every batch to stdout.",
    )
    run_parser.add_argument(
        "--format",
        type=str,
        default="text",
        choices=["text", "json"],
        help="Output format for --print (default: text).",
    )

    # -- list-sensors ------------------------------------------------------
    sensors_parser = subparsers.add_parser(
        "list-sensors",
        help="List the modules and sensors of a configuration.",
    )
    _add_config_arg(sensors_parser)

    # -- init-config -------------------------------------------------------
    init_parser = subparsers.add_parser(
        "init-config",
        help="Generate a sample YAML configuration file.",
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write config to this file instead of stdout.",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    # -- Dispatch ----------------------------------------------------------
    if args.command == "run":
        _cmd_run(args)
    elif args.command == "list-sensors":
        _cmd_list_sensors(args.config)
    elif args.command == "init-config":
        _cmd_init_config(args.output)
    else:
        parser.print_help()


def _add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML/JSON config (default: $PLC_CONFIG, else config/example.yaml).",
    )


# ======================================================================
# Command implementations
# ======================================================================


def _cmd_run(args: argparse.Namespace) -> None:
    """Load the config, wire the simulator and run it."""
    from plc_simulator.bridge import SymbolBridge
    from plc_simulator.config import load_config
    from plc_simulator.errors import ConfigError, HistoryConnectError
    from plc_simulator.simulator import Simulator

    logging.basicConfig(
        level=getattr(logging, args.log_level or "INFO"),
        format="%(asctime)s %(name)-28s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        logger.error("Failed to start PLC simulator: %s", exc)
        sys.exit(1)

    if args.log_level is None:
        logging.getLogger().setLevel(getattr(logging, cfg.server.log_level.upper(), logging.INFO))

    try:
        history = _make_history(cfg.history)
    except ImportError as exc:
        logger.error("Failed to start PLC simulator: %s", exc)
        sys.exit(1)

    sim = Simulator(cfg.modules, default_update_ms=cfg.server.update_ms, history=history)
    logger.info(
        "Starting PLC simulator with %s protocol: %d modules, %d sensors",
        cfg.server.protocol.upper(),
        sim.module_count,
        sim.sensor_count,
    )

    if args.print_batches:
        sim.on_batch(_BatchPrinter(fmt=args.format))

    bridge = SymbolBridge(sim) if cfg.server.protocol == "ads" else None

    try:
        sim.run(duration_s=args.duration)
    except HistoryConnectError as exc:
        logger.error("Failed to start PLC simulator: %s", exc)
        sys.exit(1)

    if bridge is not None:
        for symbol in bridge.symbols():
            logger.info(
                "Symbol %-24s IndexGroup 0x%04x IndexOffset 0x%04x value %.3f",
                symbol.name,
                symbol.address.group,
                symbol.address.offset,
                symbol.value,
            )
    logger.info("Shutdown complete")


def _make_history(history_cfg):
    if not history_cfg.enabled:
        return None
    if history_cfg.url:
        from plc_simulator.history.database import DatabaseHistoryStore

        return DatabaseHistoryStore(url=history_cfg.url)
    from plc_simulator.history.memory import MemoryHistoryStore

    return MemoryHistoryStore(max_rows=history_cfg.max_rows)


class _BatchPrinter:
    """Batch subscriber writing readings to a stream (stdout by default)."""

    def __init__(self, fmt: str = "text", stream: IO[str] | None = None) -> None:
        self._fmt = fmt
        self._stream = stream or sys.stdout

    def __call__(self, readings) -> None:
        if self._fmt == "json":
            for rec in readings:
                self._stream.write(rec.to_json() + "\n")
        else:
            for rec in readings:
                self._stream.write(
                    f"[module {rec.module_id}/{rec.name}] "
                    f"{rec.value:>12.3f} {rec.unit or '':<8s} "
                    f"(ts={rec.timestamp})\n"
                )
        self._stream.flush()


# -- list-sensors -----------------------------------------------------------


def _cmd_list_sensors(config_path: str | None) -> None:
    from plc_simulator.config import load_config
    from plc_simulator.errors import ConfigError
    from plc_simulator.simulator import DEFAULT_UPDATE_MS

    try:
        cfg = load_config(config_path)
    except ConfigError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    default_ms = cfg.server.update_ms
    print(f"\n{'Module':>6} {'Period':>8} {'Name':<24} {'Kind':<18} {'Ampl':>8} {'Freq':>8} {'Offset':>8} {'Unit':<6}")
    print("-" * 94)
    for module in cfg.modules:
        period = module.update_ms or default_ms or DEFAULT_UPDATE_MS
        for s in module.sensors:
            print(
                f"{module.id:>6} {period:>6}ms {s.name:<24} {s.kind.value:<18} "
                f"{s.amplitude:>8.2f} {s.frequency:>8.3f} {s.dc_offset:>8.2f} {s.unit or '':<6}"
            )
    print("-" * 94)
    print(f"{len(cfg.modules)} modules, {cfg.sensor_count} sensors")
    print()


# -- init-config ------------------------------------------------------------


def _cmd_init_config(output_path: str | None) -> None:
    if output_path:
        from pathlib import Path

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(_SAMPLE_CONFIG)
        print(f"Sample config written to {output_path}")
    else:
        print(_SAMPLE_CONFIG)


# ======================================================================
if __name__ == "__main__":
    main()
