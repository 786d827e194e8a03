"""
Depth table TUI using Textual.

Displays:
- Status bar: symbol, connection state, frames written/skipped
- Body: the latest rendered depth frame

The pump runs as a Textual worker; the app exits when the session ends.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static

from ..engine.pump import SessionEnd, StreamPump
from ..errors import ConnectError, WriteError

if TYPE_CHECKING:
    from ..config import ViewerConfig
    from ..types import ByteStreamSource

BID_COLOR = "#22c55e"
ASK_COLOR = "#ef4444"
HEADER_COLOR = "#94a3b8"


class DepthTable(Static):
    """Shows the most recent frame verbatim."""

    DEFAULT_CSS = """
    DepthTable {
        width: 100%;
        height: 100%;
    }
    """

    def __init__(self) -> None:
        super().__init__(Text("Waiting for data...", style="dim"))

    def show_frame(self, frame: str) -> None:
        # Tabs would be rendered at Rich's default tab size; expand to match a terminal
        self.update(Text(frame.expandtabs(8)))


class StatusBar(Static):
    """Symbol plus a short session state line."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 1;
        padding: 0 2;
        background: #0f172a;
    }
    """

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(self._state_text("Connecting..."))

    def set_state(self, state: str, written: int = 0, skipped: int = 0) -> None:
        self.update(self._state_text(state, written, skipped))

    def _state_text(self, state: str, written: int = 0, skipped: int = 0) -> Text:
        text = Text()
        text.append(f" {self.symbol} ", style="bold white on #1e40af")
        text.append(f"  {state}", style=HEADER_COLOR)
        text.append("  │  frames: ", style="dim")
        text.append(str(written), style=BID_COLOR)
        text.append("  skipped: ", style="dim")
        text.append(str(skipped), style=ASK_COLOR)
        return text


class WidgetSink:
    """TextSink that pushes frames into the app's widgets."""

    def __init__(self, app: DepthApp) -> None:
        self.app = app

    async def write(self, frame: str) -> None:
        if not self.app.is_running:
            raise WriteError("viewer closed")
        self.app.show_frame(frame)


class DepthApp(App):
    """Depth Viewer terminal application."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #main-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("q", "request_stop", "Quit"),
    ]

    def __init__(
        self,
        config: ViewerConfig,
        open_source: Callable[[ViewerConfig], Awaitable[ByteStreamSource]],
    ) -> None:
        super().__init__()
        self.config = config
        self.open_source = open_source
        self.shutdown = asyncio.Event()
        self.session_end: SessionEnd | None = None
        self.error: Exception | None = None
        self._pump: StreamPump | None = None
        self._status_bar = StatusBar(config.display_symbol)
        self._table = DepthTable()

    def compose(self) -> ComposeResult:
        yield self._status_bar
        yield Container(self._table, id="main-container")
        yield Footer()

    async def on_mount(self) -> None:
        """Start the pump worker."""
        self.run_worker(self._run_session(), exclusive=True)

    def show_frame(self, frame: str) -> None:
        self._table.show_frame(frame)
        if self._pump is not None:
            # The frame counter is bumped after write() returns
            self._status_bar.set_state(
                "Live", self._pump.frames_written + 1, self._pump.frames_skipped,
            )

    async def _run_session(self) -> None:
        try:
            source = await self.open_source(self.config)
            self._status_bar.set_state("Live")
            self._pump = StreamPump(source, WidgetSink(self), self.config, shutdown=self.shutdown)
            self.session_end = await self._pump.run()
        except (ConnectError, WriteError) as exc:
            self.error = exc
        self.exit()

    def action_request_stop(self) -> None:
        """Ask the pump to close the stream (bound to 'q')."""
        self._status_bar.set_state("Closing...")
        self.shutdown.set()
        if self._pump is None:
            self.exit()


async def run_ui(
    config: ViewerConfig,
    open_source: Callable[[ViewerConfig], Awaitable[ByteStreamSource]],
) -> DepthApp:
    """Run the TUI until the session ends. Returns the finished app."""
    app = DepthApp(config, open_source)
    await app.run_async()
    return app
