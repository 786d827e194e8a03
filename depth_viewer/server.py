"""
HTTP viewer: streams depth frames to a browser as chunked text/plain.

    GET /  -> one live session; frames are appended until the upstream ends,
              the client goes away or the server shuts down

Only one viewer at a time. A second request while a session is running
gets 503.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from aiohttp import web

from .config import ViewerConfig
from .datafeed.binance_client import BinanceDepthSource
from .engine.pump import StreamPump
from .errors import ConnectError, WriteError
from .types import ByteStreamSource

logger = logging.getLogger(__name__)

SourceFactory = Callable[[ViewerConfig], Awaitable[ByteStreamSource]]

CONFIG_KEY = web.AppKey("config", ViewerConfig)
SOURCE_FACTORY_KEY = web.AppKey("source_factory", object)
ACTIVE_KEY = web.AppKey("active_shutdown", dict)


async def open_binance_source(config: ViewerConfig) -> ByteStreamSource:
    source = BinanceDepthSource(config)
    await source.connect()
    return source


class ResponseSink:
    """Writes frames into a prepared StreamResponse."""

    def __init__(self, response: web.StreamResponse) -> None:
        self.response = response

    async def write(self, frame: str) -> None:
        try:
            await self.response.write(frame.encode("utf-8"))
        except (ConnectionResetError, RuntimeError) as exc:
            # RuntimeError: payload writer already closed
            raise WriteError(f"viewer disconnected: {exc}") from exc


async def view_handler(request: web.Request) -> web.StreamResponse:
    app = request.app
    config = app[CONFIG_KEY]
    active: dict[str, asyncio.Event] = app[ACTIVE_KEY]

    if "session" in active:
        raise web.HTTPServiceUnavailable(text="a viewer session is already running\n")

    shutdown = asyncio.Event()
    active["session"] = shutdown
    try:
        try:
            source = await app[SOURCE_FACTORY_KEY](config)
        except ConnectError as exc:
            logger.error("Upstream connect failed: %s", exc)
            raise web.HTTPBadGateway(text=f"{exc}\n") from exc

        response = web.StreamResponse(headers={"Content-Type": "text/plain; charset=utf-8"})
        try:
            await response.prepare(request)
        except (ConnectionResetError, RuntimeError):
            await source.close(config.close_timeout)
            raise

        logger.info("Viewer connected from %s", request.remote)
        pump = StreamPump(source, ResponseSink(response), config, shutdown=shutdown)
        try:
            await pump.run()
        except WriteError as exc:
            logger.error("Session ended: %s", exc)
            return response

        try:
            await response.write_eof()
        except (ConnectionResetError, RuntimeError) as exc:
            logger.warning("Could not finish response: %s", exc)
        return response
    finally:
        active.pop("session", None)


async def _on_shutdown(app: web.Application) -> None:
    shutdown = app[ACTIVE_KEY].get("session")
    if shutdown is not None:
        logger.info("Server shutting down, stopping viewer session")
        shutdown.set()


def create_app(config: ViewerConfig, source_factory: SourceFactory = open_binance_source) -> web.Application:
    app = web.Application()
    app[CONFIG_KEY] = config
    app[SOURCE_FACTORY_KEY] = source_factory
    app[ACTIVE_KEY] = {}
    app.router.add_get("/", view_handler)
    app.on_shutdown.append(_on_shutdown)
    return app


def run_server(config: ViewerConfig) -> None:
    """Serve until interrupted. Blocks."""
    print(f"Open http://{config.host}:{config.port}/ in a browser to watch {config.display_symbol}")
    print("Press Ctrl+C to stop the server")
    web.run_app(
        create_app(config),
        host=config.host,
        port=config.port,
        shutdown_timeout=config.close_timeout + 1.0,
        print=None,
    )
