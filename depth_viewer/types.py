"""
Data types for Depth Viewer.

Notes:
- NamedTuple for immutable per-message structures
- Every message produces a fresh snapshot/window/aggregate set; nothing here
  is shared between the pump tasks
"""

from __future__ import annotations

from typing import NamedTuple, Protocol


class PriceLevel(NamedTuple):
    """Single price level from a depth snapshot."""
    price: float
    amount: float

    @property
    def notional(self) -> float:
        return self.price * self.amount


class OrderBookSnapshot(NamedTuple):
    """One decoded depth message. Levels keep the order they arrived in."""
    bids: list[PriceLevel]
    asks: list[PriceLevel]


class DepthWindow(NamedTuple):
    """
    Best levels kept for display, best price first.

    Each side holds at most `depth` levels and never more than the snapshot had.
    """
    bids: list[PriceLevel]
    asks: list[PriceLevel]


class SideAggregate(NamedTuple):
    """Running sums over one side of a window."""
    price_sum: float
    amount_sum: float
    notional_sum: float


class ByteStreamSource(Protocol):
    """Anything that yields raw snapshot messages and can be closed."""

    async def recv(self) -> bytes:
        """Return the next message. Raises ReadError when the stream ends."""
        ...

    async def close(self, timeout: float) -> None:
        ...


class TextSink(Protocol):
    """Ordered destination for rendered frames."""

    async def write(self, frame: str) -> None:
        """Write one frame. Raises WriteError when the sink is unusable."""
        ...
