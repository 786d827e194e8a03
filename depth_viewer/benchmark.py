#!/usr/bin/env python3
"""
Micro-benchmark for Depth Viewer's per-message pipeline.

Tests:
1. Snapshot decode throughput
2. Window + aggregate throughput
3. Table render speed
4. Full pass (what the processor task does per message)

Usage:
    python -m depth_viewer.benchmark
"""

from __future__ import annotations

import random
import time
from statistics import mean, stdev

from .config import ViewerConfig
from .datafeed.decoder import decode, encode
from .engine.depth import aggregate, window
from .engine.pump import build_frame
from .types import OrderBookSnapshot, PriceLevel
from .ui.table import render


def generate_mock_message(base_price: float = 600.0, levels: int = 20) -> bytes:
    """Generate a mock partial-depth message, best price first on both sides."""
    tick_size = 0.01

    bids = []
    asks = []

    for i in range(levels):
        bids.append(PriceLevel(round(base_price - (i + 1) * tick_size, 2), random.uniform(1, 100)))
        asks.append(PriceLevel(round(base_price + (i + 1) * tick_size, 2), random.uniform(1, 100)))

    return encode(OrderBookSnapshot(bids=bids, asks=asks))


def _report_rate(label: str, iterations: int, elapsed: float) -> None:
    rate = iterations / elapsed
    print(f"  {label}: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f}/sec")
    print(f"  Per pass: {elapsed/iterations*1_000_000:.1f}µs")


def benchmark_decode(iterations: int = 10000) -> None:
    """Benchmark snapshot decoding."""
    print("\n=== Decode Benchmark ===")

    messages = [generate_mock_message() for _ in range(min(iterations, 100))]

    start = time.perf_counter()
    for i in range(iterations):
        decode(messages[i % len(messages)])
    elapsed = time.perf_counter() - start

    _report_rate("Messages decoded", iterations, elapsed)


def benchmark_window_aggregate(iterations: int = 10000, depth: int = 15) -> None:
    """Benchmark windowing plus per-side sums."""
    print("\n=== Window + Aggregate Benchmark ===")

    snapshot = decode(generate_mock_message())

    start = time.perf_counter()
    for _ in range(iterations):
        aggregate(window(snapshot, depth))
    elapsed = time.perf_counter() - start

    _report_rate("Windows aggregated", iterations, elapsed)


def benchmark_render(iterations: int = 2000, depth: int = 15) -> None:
    """Benchmark text table rendering."""
    print("\n=== Render Benchmark ===")

    depth_window = window(decode(generate_mock_message()), depth)
    bid_agg, ask_agg = aggregate(depth_window)

    # Warm up
    for _ in range(10):
        render("BNBUSDT", depth_window, bid_agg, ask_agg)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        render("BNBUSDT", depth_window, bid_agg, ask_agg)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000 if len(times) > 1 else 0.0

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")


def benchmark_full_pass(iterations: int = 2000) -> None:
    """Benchmark the full decode -> render pass."""
    print("\n=== Full Pass Benchmark ===")

    config = ViewerConfig("BNBUSDT")
    messages = [generate_mock_message() for _ in range(min(iterations, 100))]

    times = []
    for i in range(iterations):
        start = time.perf_counter()
        build_frame(messages[i % len(messages)], config)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Max messages/sec: {1000/avg_time:,.0f}")


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Depth Viewer Pipeline Benchmark")
    print("=" * 60)

    benchmark_decode()
    benchmark_window_aggregate()
    benchmark_render()
    benchmark_full_pass()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
