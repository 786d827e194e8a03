"""Exception hierarchy for Depth Viewer."""

from __future__ import annotations

from typing import Any


class ViewerError(Exception):
    """Base class for all Depth Viewer errors."""


class ConnectError(ViewerError):
    """The upstream stream could not be opened."""


class ReadError(ViewerError):
    """The upstream stream failed or was closed. Ends the session."""


class WriteError(ViewerError):
    """The output sink can no longer accept frames."""


class CloseTimeout(ViewerError):
    """The peer did not acknowledge the close handshake in time."""


class DecodeError(ViewerError):
    """A single message could not be turned into a snapshot."""


class MalformedSnapshot(DecodeError):
    """Top-level structure is not a depth object."""


class BadLevel(DecodeError):
    """One level on one side holds an unusable price or amount."""

    def __init__(self, side: str, index: int, field: str, value: Any) -> None:
        self.side = side
        self.index = index
        self.field = field
        self.value = value
        super().__init__(f"bad {field} in {side}[{index}]: {value!r}")
