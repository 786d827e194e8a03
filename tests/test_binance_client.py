from __future__ import annotations

import asyncio
import logging
from types import SimpleNamespace
from typing import Any

import aiohttp
import pytest

from depth_viewer.config import ViewerConfig
from depth_viewer.datafeed.binance_client import BinanceDepthSource
from depth_viewer.errors import ConnectError, ReadError


class _FakeWebSocket:
    def __init__(self, messages: list[Any], close_delay: float = 0.0) -> None:
        self._messages = list(messages)
        self.close_delay = close_delay
        self.closed = False
        self.close_code: int | None = None
        self.close_calls: list[int] = []

    async def receive(self) -> Any:
        item = self._messages.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def exception(self) -> Exception:
        return RuntimeError("boom")

    async def close(self, *, code: int = 1000) -> bool:
        self.close_calls.append(code)
        await asyncio.sleep(self.close_delay)
        self.closed = True
        self.close_code = code
        return True


class _FakeSession:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _msg(msg_type: aiohttp.WSMsgType, data: Any = None) -> SimpleNamespace:
    return SimpleNamespace(type=msg_type, data=data, extra=None)


def _source_with(ws: _FakeWebSocket, **config: Any) -> tuple[BinanceDepthSource, _FakeSession]:
    source = BinanceDepthSource(ViewerConfig("BTCUSDT", **config))
    session = _FakeSession()
    source._ws = ws  # type: ignore[assignment]
    source._session = session  # type: ignore[assignment]
    return source, session


def test_ws_url_uses_lowercase_symbol_levels_and_speed() -> None:
    source = BinanceDepthSource(ViewerConfig("BNBbtc", stream_levels=10, update_speed_ms=1000))

    assert source.build_ws_url() == "wss://stream.binance.com:9443/ws/bnbbtc@depth10@1000ms"


def test_ws_url_defaults() -> None:
    source = BinanceDepthSource(ViewerConfig("ETHUSDT"), ws_base="ws://localhost:1234")

    assert source.build_ws_url() == "ws://localhost:1234/ws/ethusdt@depth20@100ms"


@pytest.mark.asyncio
async def test_recv_returns_text_and_binary_payloads_as_bytes() -> None:
    ws = _FakeWebSocket([
        _msg(aiohttp.WSMsgType.TEXT, '{"bids": [], "asks": []}'),
        _msg(aiohttp.WSMsgType.BINARY, b"\x01\x02"),
    ])
    source, _ = _source_with(ws)

    assert await source.recv() == b'{"bids": [], "asks": []}'
    assert await source.recv() == b"\x01\x02"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "msg_type",
    [aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR],
)
async def test_recv_maps_close_and_error_to_read_error(msg_type: aiohttp.WSMsgType) -> None:
    source, _ = _source_with(_FakeWebSocket([_msg(msg_type)]))

    with pytest.raises(ReadError):
        await source.recv()


@pytest.mark.asyncio
async def test_recv_wraps_transport_errors() -> None:
    source, _ = _source_with(_FakeWebSocket([aiohttp.ClientConnectionError("reset")]))

    with pytest.raises(ReadError) as excinfo:
        await source.recv()

    assert isinstance(excinfo.value.__cause__, aiohttp.ClientConnectionError)


@pytest.mark.asyncio
async def test_recv_before_connect_is_read_error() -> None:
    source = BinanceDepthSource(ViewerConfig("BTCUSDT"))

    with pytest.raises(ReadError):
        await source.recv()


@pytest.mark.asyncio
async def test_close_sends_normal_closure_once() -> None:
    ws = _FakeWebSocket([])
    source, session = _source_with(ws)

    await source.close(timeout=1.0)
    await source.close(timeout=1.0)

    assert ws.close_calls == [aiohttp.WSCloseCode.OK]
    assert session.closed

    with pytest.raises(ReadError):
        await source.recv()


@pytest.mark.asyncio
async def test_close_times_out_and_forces_teardown(caplog: pytest.LogCaptureFixture) -> None:
    ws = _FakeWebSocket([], close_delay=10.0)
    source, session = _source_with(ws)

    with caplog.at_level(logging.WARNING, logger="depth_viewer.datafeed.binance_client"):
        await asyncio.wait_for(source.close(timeout=0.05), timeout=2.0)

    assert session.closed
    assert "no close ack" in caplog.text


@pytest.mark.asyncio
async def test_connect_failure_raises_connect_error() -> None:
    # Nothing listens on port 1
    source = BinanceDepthSource(ViewerConfig("BTCUSDT"), ws_base="ws://127.0.0.1:1")

    with pytest.raises(ConnectError):
        await source.connect()

    assert source._session is None


@pytest.mark.asyncio
async def test_connect_cancelled_closes_session(monkeypatch: pytest.MonkeyPatch) -> None:
    sessions: list[aiohttp.ClientSession] = []

    async def cancelled_connect(self: aiohttp.ClientSession, url: str, **kwargs: Any) -> Any:
        sessions.append(self)
        raise asyncio.CancelledError()

    monkeypatch.setattr(aiohttp.ClientSession, "ws_connect", cancelled_connect)
    source = BinanceDepthSource(ViewerConfig("BTCUSDT"))

    with pytest.raises(asyncio.CancelledError):
        await source.connect()

    assert source._session is None
    assert len(sessions) == 1
    assert sessions[0].closed
