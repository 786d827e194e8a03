"""
Depth windowing and per-side aggregation.

Both functions are pure and run once per message on the processor task.

Performance strategy:
1. Slicing clamps to the available levels, so short sides cost nothing extra
2. Sums go through numpy (one pass per column, dot product for notional)
"""

from __future__ import annotations

import numpy as np

from ..config import DEFAULT_DEPTH
from ..types import DepthWindow, OrderBookSnapshot, PriceLevel, SideAggregate

EMPTY_AGGREGATE = SideAggregate(0.0, 0.0, 0.0)


def _best_first(levels: list[PriceLevel], depth: int, best_last: bool) -> list[PriceLevel]:
    if best_last:
        levels = levels[::-1]
    count = min(depth, len(levels))
    return levels[:count]


def window(
    snapshot: OrderBookSnapshot,
    depth: int = DEFAULT_DEPTH,
    best_last: bool = False,
) -> DepthWindow:
    """
    Keep the `depth` best levels of each side, best price first.

    Args:
        snapshot: Decoded message
        depth: Max levels per side
        best_last: Set when the feed lists the best price last; the side is
            reversed before truncating

    A side with fewer than `depth` levels is returned whole, never padded.
    Depths below 1 are treated as 1; ViewerConfig rejects them up front.
    """
    depth = max(depth, 1)
    return DepthWindow(
        bids=_best_first(snapshot.bids, depth, best_last),
        asks=_best_first(snapshot.asks, depth, best_last),
    )


def aggregate_side(levels: list[PriceLevel]) -> SideAggregate:
    """Sum price, amount and price*amount over one side."""
    if not levels:
        return EMPTY_AGGREGATE

    arr = np.array(levels, dtype=np.float64)
    prices = arr[:, 0]
    amounts = arr[:, 1]
    return SideAggregate(
        price_sum=float(prices.sum()),
        amount_sum=float(amounts.sum()),
        notional_sum=float(np.dot(prices, amounts)),
    )


def aggregate(depth_window: DepthWindow) -> tuple[SideAggregate, SideAggregate]:
    """Return (bids, asks) aggregates for a window."""
    return aggregate_side(depth_window.bids), aggregate_side(depth_window.asks)
