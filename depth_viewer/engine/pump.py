"""
Reader/processor pump between a depth stream and a text sink.

Two tasks share one source connection:

    source --recv--> reader --Handoff--> processor --decode/window/sum/render--> sink

Backpressure: the Handoff has no buffer. The reader does not read message N+1
until the processor has taken message N, so at most one message is being
processed and at most one more is held by the reader.

Termination:
- Stream end/failure: the reader sets the completion event and stops.
- Shutdown event: the processor runs the close handshake on the source and
  stops. It never interrupts a frame that is already being written.
- Sink failure: WriteError propagates out of run().
"""

from __future__ import annotations

import asyncio
import enum
import logging

from ..config import ViewerConfig
from ..datafeed.decoder import decode
from ..errors import DecodeError, ReadError
from ..types import ByteStreamSource, TextSink
from ..ui.table import render
from .depth import aggregate, window

logger = logging.getLogger(__name__)


class SessionEnd(enum.Enum):
    """Why a pump session stopped."""
    STREAM_ENDED = "stream_ended"
    SHUTDOWN = "shutdown"


class Handoff:
    """
    Zero-capacity transfer point between two tasks.

    put() returns only once get() has taken the item, like an unbuffered
    channel. One slot holds the item while the putter waits for it to be taken.
    """

    def __init__(self) -> None:
        self._slot: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)

    async def put(self, item: bytes) -> None:
        await self._slot.put(item)
        await self._slot.join()

    async def get(self) -> bytes:
        item = await self._slot.get()
        self._slot.task_done()
        return item


def build_frame(raw: bytes, config: ViewerConfig) -> str:
    """
    Run one message through decode -> window -> aggregate -> render.

    Raises DecodeError if the message cannot be decoded.
    """
    snapshot = decode(raw)
    depth_window = window(snapshot, config.depth, config.best_last)
    bid_agg, ask_agg = aggregate(depth_window)
    return render(config.display_symbol, depth_window, bid_agg, ask_agg)


class StreamPump:
    """
    Owns the reader and processor tasks for one viewing session.

    Usage:
        pump = StreamPump(source, sink, config, shutdown=stop_event)
        end = await pump.run()
    """

    def __init__(
        self,
        source: ByteStreamSource,
        sink: TextSink,
        config: ViewerConfig,
        shutdown: asyncio.Event | None = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.config = config
        self.shutdown = shutdown if shutdown is not None else asyncio.Event()

        self._handoff = Handoff()
        self._done = asyncio.Event()

        self.frames_written: int = 0
        self.frames_skipped: int = 0

    async def _read_loop(self) -> None:
        """Reader task: source -> handoff until the stream ends."""
        try:
            while True:
                try:
                    raw = await self.source.recv()
                except ReadError as exc:
                    logger.info("Stream ended: %s", exc)
                    return
                await self._handoff.put(raw)
        finally:
            self._done.set()

    async def _handle(self, raw: bytes) -> None:
        try:
            frame = build_frame(raw, self.config)
        except DecodeError as exc:
            self.frames_skipped += 1
            logger.warning("Skipping frame: %s", exc)
            return
        await self.sink.write(frame)
        self.frames_written += 1

    async def _close_for_shutdown(self) -> SessionEnd:
        logger.info("Shutdown requested, closing stream")
        await self.source.close(self.config.close_timeout)
        return SessionEnd.SHUTDOWN

    async def _process_loop(self) -> SessionEnd:
        """Processor task: handoff -> pipeline -> sink until a signal fires."""
        done_wait = asyncio.ensure_future(self._done.wait())
        shutdown_wait = asyncio.ensure_future(self.shutdown.wait())
        get_task: asyncio.Future[bytes] | None = None
        try:
            while True:
                # Checked before each wait so a busy stream cannot starve shutdown
                if self.shutdown.is_set():
                    return await self._close_for_shutdown()

                get_task = asyncio.ensure_future(self._handoff.get())
                finished, _ = await asyncio.wait(
                    {get_task, done_wait, shutdown_wait},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                # An item already taken from the handoff is always processed
                if get_task in finished:
                    await self._handle(get_task.result())
                    continue

                if shutdown_wait in finished:
                    return await self._close_for_shutdown()

                return SessionEnd.STREAM_ENDED
        finally:
            for fut in (get_task, done_wait, shutdown_wait):
                if fut is not None and not fut.done():
                    fut.cancel()

    async def run(self) -> SessionEnd:
        """Run until the stream ends or shutdown is requested."""
        reader = asyncio.create_task(self._read_loop())
        try:
            end = await self._process_loop()
        finally:
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
            await self.source.close(self.config.close_timeout)

        logger.info(
            "Session finished (%s): %d frames written, %d skipped",
            end.value, self.frames_written, self.frames_skipped,
        )
        return end
