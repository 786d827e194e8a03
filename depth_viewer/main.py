#!/usr/bin/env python3
"""
Depth Viewer - live order book depth table for Binance spot symbols.

Usage:
    python -m depth_viewer.main BTCUSDT --depth 15
    python -m depth_viewer.main BNBBTC --mode http --port 8080
    python -m depth_viewer.main ETHUSDT --mode tui

    Or without a symbol, to be asked for one:
    python -m depth_viewer.main

Modes:
    terminal - print frames to stdout (default)
    tui      - Textual full-screen view (q to quit)
    http     - serve frames to a browser at http://HOST:PORT/
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from .config import DEFAULT_DEPTH, STREAM_LEVELS, UPDATE_SPEEDS_MS, ViewerConfig
from .errors import ConnectError, WriteError
from .logging_setup import configure_logging

logger = logging.getLogger(__name__)

MODES = ("terminal", "tui", "http")


async def run_terminal(config: ViewerConfig) -> int:
    """Stream frames to stdout until Ctrl+C or the stream ends."""

    # Import here to avoid slow startup for --help
    from .datafeed.binance_client import BinanceDepthSource
    from .engine.pump import StreamPump
    from .ui.sinks import StreamSink

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        async with BinanceDepthSource(config) as source:
            pump = StreamPump(
                source,
                StreamSink(clear_screen=config.clear_screen),
                config,
                shutdown=shutdown,
            )
            await pump.run()
    except ConnectError as exc:
        logger.error("Connection failed: %s", exc)
        return 1
    except WriteError as exc:
        logger.error("Output failed: %s", exc)
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
    return 0


async def run_tui(config: ViewerConfig) -> int:
    from .server import open_binance_source
    from .ui.dom_view import run_ui

    app = await run_ui(config, open_binance_source)
    if app.error is not None:
        logger.error("Session failed: %s", app.error)
        return 1
    return 0


def log_handler_for(mode: str) -> logging.Handler | None:
    """Textual owns the terminal in tui mode; route log records through it."""
    if mode == "tui":
        from textual.logging import TextualHandler
        return TextualHandler()
    return None


def prompt_symbol() -> str:
    """Ask for a symbol on stdin, like 'BNBBTC' or 'btcusdt'."""
    print("For which symbol do you want to see the order book? (e.g. BNBBTC, BTCUSDT...)")
    return input("> ").strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Depth Viewer - live order book depth table for Binance spot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m depth_viewer.main BTCUSDT
    python -m depth_viewer.main BNBBTC --depth 10 --levels 10
    python -m depth_viewer.main ETHUSDT --mode http --port 8080
        """
    )

    parser.add_argument(
        "symbol",
        nargs="?",
        default=None,
        help="Trading symbol, case-insensitive (prompted for if omitted)"
    )

    parser.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_DEPTH,
        help=f"Levels per side to display (default: {DEFAULT_DEPTH})"
    )

    parser.add_argument(
        "--levels",
        type=int,
        choices=STREAM_LEVELS,
        default=20,
        help="Levels per side requested from the exchange (default: 20)"
    )

    parser.add_argument(
        "--speed",
        type=int,
        choices=UPDATE_SPEEDS_MS,
        default=100,
        help="Stream update interval in ms (default: 100)"
    )

    parser.add_argument(
        "--best-last",
        action="store_true",
        help="Feed lists the best price last; reverse each side before windowing"
    )

    parser.add_argument(
        "--close-timeout",
        type=float,
        default=5.0,
        help="Seconds to wait for the exchange to acknowledge close (default: 5)"
    )

    parser.add_argument(
        "--mode",
        choices=MODES,
        default="terminal",
        help="Where to show the table (default: terminal)"
    )

    parser.add_argument("--host", default="localhost", help="HTTP mode bind host (default: localhost)")
    parser.add_argument("--port", type=int, default=8080, help="HTTP mode port (default: 8080)")

    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Terminal mode: append frames instead of redrawing the screen"
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ViewerConfig:
    symbol = args.symbol if args.symbol else prompt_symbol()
    return ViewerConfig(
        symbol=symbol,
        depth=args.depth,
        stream_levels=args.levels,
        update_speed_ms=args.speed,
        best_last=args.best_last,
        close_timeout=args.close_timeout,
        host=args.host,
        port=args.port,
        clear_screen=not args.no_clear,
    )


def cli(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level, log_handler_for(args.mode))
    except ValueError:
        parser.error(f"unknown log level: {args.log_level}")

    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    if args.mode == "http":
        from .server import run_server
        run_server(config)
        return

    runner = run_tui if args.mode == "tui" else run_terminal
    try:
        code = asyncio.run(runner(config))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    cli()
