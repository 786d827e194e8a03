from __future__ import annotations

from depth_viewer.engine.depth import aggregate
from depth_viewer.types import DepthWindow, PriceLevel
from depth_viewer.ui.table import BLANK_SIDE, SIDE_WIDTH, format_columns, render


def _frame(bids: list[PriceLevel], asks: list[PriceLevel], symbol: str = "btcusdt") -> list[str]:
    depth_window = DepthWindow(bids, asks)
    return render(symbol, depth_window, *aggregate(depth_window)).split("\n")


def test_header_lines() -> None:
    lines = _frame([PriceLevel(1.0, 1.0)], [PriceLevel(2.0, 1.0)], symbol="bnbBtc")

    assert lines[0] == "\t\t\t\t\t\t BNBBTC"
    assert "BIDS" in lines[1] and "ASKS" in lines[1]
    assert lines[1].index("BIDS") < lines[1].index("ASKS")
    assert lines[2].count("price") == 2
    assert lines[2].count("amount") == 2
    assert lines[2].count("total") == 2


def test_format_columns_widths() -> None:
    columns = format_columns(100.0, 1.0, 100.0)

    assert columns == "   100.00000   1.00000    100.00000"
    assert len(columns) == SIDE_WIDTH


def test_rows_and_sums() -> None:
    lines = _frame(
        [PriceLevel(100.0, 1.0), PriceLevel(99.0, 2.0)],
        [PriceLevel(101.0, 1.5)],
    )

    rows = lines[3:5]
    assert rows[0] == "        100.00000   1.00000    100.00000 \t\t    101.00000   1.50000    151.50000 "
    assert rows[1] == f"         99.00000   2.00000    198.00000 \t\t {BLANK_SIDE} "
    assert lines[5] == ""
    assert lines[6] == "Sums    199.00000   3.00000    298.00000 \t\t    101.00000   1.50000    151.50000 "
    assert lines[7] == ""
    assert len(lines) == 8


def test_shorter_bid_side_prints_blank_bid_columns() -> None:
    lines = _frame(
        [PriceLevel(100.0, 1.0)],
        [PriceLevel(101.0, 1.0), PriceLevel(102.0, 1.0), PriceLevel(103.0, 1.0)],
    )

    rows = lines[3:6]
    assert not rows[0].startswith(f"     {BLANK_SIDE}")
    for row in rows[1:]:
        assert row.startswith(f"     {BLANK_SIDE} \t\t ")
        assert row.rstrip().endswith("00000")


def test_empty_window_renders_headers_and_zero_sums() -> None:
    lines = _frame([], [])

    assert len(lines) == 6
    assert lines[3] == ""
    assert lines[4].count("0.00000") == 6


def test_large_prices_keep_columns_apart() -> None:
    lines = _frame([PriceLevel(67123.45, 12.5)], [PriceLevel(67123.46, 0.001)])

    bid_part, ask_part = lines[3].split(" \t\t ")
    assert bid_part.split() == ["67123.45000", "12.50000", "839043.12500"]
    assert ask_part.split() == ["67123.46000", "0.00100", "67.12346"]
