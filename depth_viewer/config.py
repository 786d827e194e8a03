"""
Runtime configuration.

A single immutable ViewerConfig is built by the CLI (or tests) and handed to
the source, the pump and the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_DEPTH = 15

# Binance partial book depth streams only offer these
STREAM_LEVELS = (5, 10, 20)
UPDATE_SPEEDS_MS = (100, 1000)


@dataclass(frozen=True)
class ViewerConfig:
    symbol: str
    depth: int = DEFAULT_DEPTH
    stream_levels: int = 20
    update_speed_ms: int = 100
    best_last: bool = False       # feed delivers worst price first
    close_timeout: float = 5.0    # seconds to wait for the peer's close frame
    host: str = "localhost"
    port: int = 8080
    clear_screen: bool = True

    def __post_init__(self) -> None:
        if not self.symbol or not self.symbol.strip():
            raise ValueError("symbol must not be empty")
        # Normalise whitespace from interactive input
        object.__setattr__(self, "symbol", self.symbol.strip())
        if self.depth < 1:
            raise ValueError(f"depth must be >= 1, got {self.depth}")
        if self.stream_levels not in STREAM_LEVELS:
            raise ValueError(f"stream_levels must be one of {STREAM_LEVELS}, got {self.stream_levels}")
        if self.update_speed_ms not in UPDATE_SPEEDS_MS:
            raise ValueError(f"update_speed_ms must be one of {UPDATE_SPEEDS_MS}, got {self.update_speed_ms}")
        if self.close_timeout <= 0:
            raise ValueError(f"close_timeout must be > 0, got {self.close_timeout}")

    @property
    def display_symbol(self) -> str:
        return self.symbol.upper()

    @property
    def stream_symbol(self) -> str:
        return self.symbol.lower()
