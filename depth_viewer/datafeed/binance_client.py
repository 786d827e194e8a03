"""
Binance spot partial-depth WebSocket source.

Handles:
1. Connecting to <symbol>@depth<levels>@<speed>ms on the raw stream endpoint
2. Handing raw payloads to the pump, one recv() per message
3. Close handshake with a bounded wait, then forced teardown

Each message on this stream is a full snapshot of the top levels, so there is
no REST bootstrap or update sequencing.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from ..config import ViewerConfig
from ..errors import CloseTimeout, ConnectError, ReadError

logger = logging.getLogger(__name__)

WS_BASE = "wss://stream.binance.com:9443"

# Message types that mean the peer is gone or going
_CLOSE_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


class BinanceDepthSource:
    """
    Depth snapshots from one Binance spot symbol.

    Usage:
        async with BinanceDepthSource(config) as source:
            raw = await source.recv()
    """

    def __init__(self, config: ViewerConfig, ws_base: str = WS_BASE) -> None:
        self.config = config
        self.ws_base = ws_base

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._closed = False

    def build_ws_url(self) -> str:
        """Raw stream URL. The stream name wants the symbol in lowercase."""
        cfg = self.config
        stream = f"{cfg.stream_symbol}@depth{cfg.stream_levels}@{cfg.update_speed_ms}ms"
        return f"{self.ws_base}/ws/{stream}"

    async def connect(self) -> None:
        """Open the WebSocket. Raises ConnectError on any failure."""
        url = self.build_ws_url()
        self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(url, heartbeat=30.0)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
            await self._session.close()
            self._session = None
            raise ConnectError(f"could not connect to {url}: {exc}") from exc
        except BaseException:
            # Cancelled mid-connect (e.g. the viewer quit); still release the session
            await self._session.close()
            self._session = None
            raise
        logger.info("Connected to %s", url)

    async def recv(self) -> bytes:
        """
        Return the next payload.

        HOT PATH - called for every message (~10 per second).
        """
        if self._ws is None or self._closed:
            raise ReadError("stream is not open")
        try:
            msg = await self._ws.receive()
        except (aiohttp.ClientError, OSError) as exc:
            raise ReadError(f"receive failed: {exc}") from exc

        if msg.type == aiohttp.WSMsgType.TEXT:
            return msg.data.encode()
        if msg.type == aiohttp.WSMsgType.BINARY:
            return msg.data
        if msg.type in _CLOSE_TYPES:
            raise ReadError(f"stream closed by peer (code={self._ws.close_code})")
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise ReadError(f"stream error: {self._ws.exception()}")
        raise ReadError(f"unexpected message type {msg.type!r}")

    async def close(self, timeout: float) -> None:
        """
        Send a normal-closure frame and wait up to `timeout` for the peer.

        Safe to call more than once; later calls do nothing.
        """
        if self._closed:
            return
        self._closed = True

        try:
            if self._ws is not None and not self._ws.closed:
                try:
                    await asyncio.wait_for(
                        self._ws.close(code=aiohttp.WSCloseCode.OK),
                        timeout=timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning("%s", CloseTimeout(f"no close ack within {timeout:.1f}s, forcing"))
                except (aiohttp.ClientError, OSError) as exc:
                    logger.warning("Error during close handshake: %s", exc)
        finally:
            if self._session is not None:
                await self._session.close()
            self._ws = None
            self._session = None

    async def __aenter__(self) -> BinanceDepthSource:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close(self.config.close_timeout)
