"""
Depth snapshot decoding.

HOT PATH: decode() runs once per stream message (~10 per second).

Expected payload (Binance partial book depth):
    {"lastUpdateId": 160, "bids": [["0.0024", "10"], ...], "asks": [["0.0026", "100"], ...]}

Only `bids` and `asks` are read. Fields past [price, amount] are ignored.
"""

from __future__ import annotations

import math
from typing import Any

import orjson

from ..errors import BadLevel, MalformedSnapshot
from ..types import OrderBookSnapshot, PriceLevel

SIDES = ("bids", "asks")


def _parse_number(value: Any, side: str, index: int, field: str) -> float:
    # bool is an int subclass; JSON true/false is never a price
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise BadLevel(side, index, field, value)
    try:
        number = float(value)
    except (ValueError, OverflowError):
        raise BadLevel(side, index, field, value) from None
    if not math.isfinite(number) or number < 0:
        raise BadLevel(side, index, field, value)
    return number


def _parse_side(entries: list[Any], side: str) -> list[PriceLevel]:
    levels: list[PriceLevel] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            raise BadLevel(side, index, "entry", entry)
        price = _parse_number(entry[0], side, index, "price")
        amount = _parse_number(entry[1], side, index, "amount")
        levels.append(PriceLevel(price, amount))
    return levels


def decode(raw: bytes | str) -> OrderBookSnapshot:
    """
    Parse one raw message into an OrderBookSnapshot.

    Raises:
        MalformedSnapshot: payload is not JSON, not an object, or lacks a
            list-valued bids/asks field.
        BadLevel: a level's price or amount is not a finite, non-negative number.
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise MalformedSnapshot(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedSnapshot(f"expected object, got {type(data).__name__}")

    sides: dict[str, list[PriceLevel]] = {}
    for side in SIDES:
        entries = data.get(side)
        if not isinstance(entries, list):
            raise MalformedSnapshot(f"missing or non-list '{side}' field")
        sides[side] = _parse_side(entries, side)

    return OrderBookSnapshot(bids=sides["bids"], asks=sides["asks"])


def encode(snapshot: OrderBookSnapshot) -> bytes:
    """Serialize a snapshot back into the exchange wire shape."""
    # repr() of a float is the shortest text that parses back to the same value
    return orjson.dumps({
        side: [[repr(level.price), repr(level.amount)] for level in levels]
        for side, levels in zip(SIDES, snapshot)
    })
