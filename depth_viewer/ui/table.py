"""
Plain-text depth table.

Layout (one frame per message):

                         BTCUSDT
              BIDS                              ASKS
           price     amount       total         price     amount       total
     100.00000   1.00000    100.00000        101.00000   1.50000    151.50000
      99.00000   2.00000    198.00000

Sums    199.00000   3.00000    298.00000        101.00000   1.50000    151.50000

Sides are separated by " <TAB><TAB> " so a browser or terminal lines them up
on tab stops. A side that has run out of levels prints blanks for its columns.
"""

from __future__ import annotations

from ..types import DepthWindow, PriceLevel, SideAggregate

PRICE_WIDTH = 12
AMOUNT_WIDTH = 9
TOTAL_WIDTH = 12
DECIMALS = 5

SIDE_WIDTH = PRICE_WIDTH + 1 + AMOUNT_WIDTH + 1 + TOTAL_WIDTH
BLANK_SIDE = " " * SIDE_WIDTH
SIDE_SEPARATOR = " \t\t "
ROW_PREFIX = "     "
SUMS_PREFIX = "Sums "

HEADER_INDENT = "\t" * 6
SUBHEADER = "\t\t      BIDS \t\t\t\t\t         ASKS"
COLUMN_LABELS = (
    "           price     amount       total"
    " \t\t       price     amount       total"
)


def format_columns(price: float, amount: float, total: float) -> str:
    """Format one side's three columns at fixed width."""
    return (
        f"{price:{PRICE_WIDTH}.{DECIMALS}f} "
        f"{amount:{AMOUNT_WIDTH}.{DECIMALS}f} "
        f"{total:{TOTAL_WIDTH}.{DECIMALS}f}"
    )


def _level_columns(levels: list[PriceLevel], i: int) -> str:
    # Sides can differ in length; never index past the shorter one
    if i >= len(levels):
        return BLANK_SIDE
    level = levels[i]
    return format_columns(level.price, level.amount, level.notional)


def render(
    symbol: str,
    depth_window: DepthWindow,
    bid_agg: SideAggregate,
    ask_agg: SideAggregate,
) -> str:
    """Render one frame. Pure formatting, cannot fail on valid input."""
    lines = [
        f"{HEADER_INDENT} {symbol.upper()}",
        SUBHEADER,
        COLUMN_LABELS,
    ]

    rows = max(len(depth_window.bids), len(depth_window.asks))
    for i in range(rows):
        bid = _level_columns(depth_window.bids, i)
        ask = _level_columns(depth_window.asks, i)
        lines.append(f"{ROW_PREFIX}{bid}{SIDE_SEPARATOR}{ask} ")

    lines.append("")
    lines.append(
        SUMS_PREFIX
        + format_columns(*bid_agg)
        + SIDE_SEPARATOR
        + format_columns(*ask_agg)
        + " "
    )
    return "\n".join(lines) + "\n"
