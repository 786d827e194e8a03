"""Text sinks for rendered frames."""

from __future__ import annotations

import sys
from typing import TextIO

from ..errors import WriteError

# Cursor home + clear screen
CLEAR_SCREEN = "\x1b[H\x1b[2J"


class StreamSink:
    """Writes frames to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None, clear_screen: bool = False) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.clear_screen = clear_screen

    async def write(self, frame: str) -> None:
        try:
            if self.clear_screen:
                self.stream.write(CLEAR_SCREEN)
            self.stream.write(frame)
            self.stream.flush()
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed file
            raise WriteError(f"cannot write frame: {exc}") from exc
