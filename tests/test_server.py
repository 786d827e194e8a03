from __future__ import annotations

import asyncio

import pytest
from aiohttp.test_utils import TestClient, TestServer

from depth_viewer.config import ViewerConfig
from depth_viewer.errors import ConnectError, WriteError
from depth_viewer.server import ACTIVE_KEY, ResponseSink, create_app
from depth_viewer.types import ByteStreamSource

from .fakes import ScriptedSource, depth_message

CONFIG = ViewerConfig("bnbbtc", close_timeout=1.0)


def _factory_for(*sources: ScriptedSource):
    pending = list(sources)

    async def factory(config: ViewerConfig) -> ByteStreamSource:
        return pending.pop(0)

    return factory


@pytest.mark.asyncio
async def test_view_streams_frames_until_upstream_ends() -> None:
    source = ScriptedSource(
        [
            depth_message(bids=[["0.0101", "3"]], asks=[["0.0102", "4"]]),
            depth_message(bids=[["0.0100", "5"]], asks=[["0.0103", "6"]]),
        ],
        end_when_exhausted=True,
    )
    app = create_app(CONFIG, _factory_for(source))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        body = await resp.text()

    assert resp.status == 200
    assert resp.headers["Content-Type"].startswith("text/plain")
    assert body.count("BNBBTC") == 2
    assert "0.01010" in body and "0.01000" in body
    assert body.index("0.01010") < body.index("0.01000")
    assert source.close_calls >= 1


@pytest.mark.asyncio
async def test_connect_failure_returns_bad_gateway() -> None:
    async def failing(config: ViewerConfig) -> ByteStreamSource:
        raise ConnectError("upstream refused")

    app = create_app(CONFIG, failing)

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        body = await resp.text()

    assert resp.status == 502
    assert "upstream refused" in body
    assert app[ACTIVE_KEY] == {}


@pytest.mark.asyncio
async def test_second_viewer_is_rejected_while_session_runs() -> None:
    first = ScriptedSource([depth_message(bids=[["1", "1"]], asks=[])])
    app = create_app(CONFIG, _factory_for(first))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        assert resp.status == 200
        await resp.content.readline()

        second = await client.get("/")
        assert second.status == 503

        app[ACTIVE_KEY]["session"].set()
        body = await asyncio.wait_for(resp.text(), timeout=5.0)

    assert "Sums" in body
    assert first.close_calls >= 1
    assert app[ACTIVE_KEY] == {}


@pytest.mark.asyncio
async def test_on_shutdown_stops_active_session() -> None:
    shutdown = asyncio.Event()
    app = create_app(CONFIG, _factory_for())
    app[ACTIVE_KEY]["session"] = shutdown
    app.freeze()

    await app.on_shutdown.send(app)

    assert shutdown.is_set()


class _ClosedResponse:
    async def write(self, data: bytes) -> None:
        raise ConnectionResetError("Cannot write to closing transport")


@pytest.mark.asyncio
async def test_response_sink_maps_disconnect_to_write_error() -> None:
    sink = ResponseSink(_ClosedResponse())  # type: ignore[arg-type]

    with pytest.raises(WriteError):
        await sink.write("frame")
