"""
Depth Viewer - live order book depth table for Binance spot streams.

Architecture:
- datafeed/: WebSocket source and snapshot decoding
- engine/: Depth windowing, per-side sums, reader/processor pump
- ui/: Text table rendering, output sinks, Textual view
"""

__version__ = "0.1.0"
