"""
Performance profiling infrastructure for mlx-streaming-dsp.

Provides decorators and utilities for:
- Function-level timing with MLX evaluation sync
- Host/MLX data transfer logging
- Cache hit/miss rate monitoring (transform plans, windows)

Profiling is disabled by default and costs one flag check per call.
"""

from __future__ import annotations

import functools
import time
from collections import defaultdict
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import mlx.core as mx
import numpy as np


@dataclass
class ProfileMetrics:
    """Metrics collected for a single profiled function call."""

    function_name: str
    wall_time_ms: float


@dataclass
class ProfilerState:
    """Global profiler state."""

    enabled: bool = False
    metrics: list[ProfileMetrics] = field(default_factory=list)
    transfer_log: list[tuple[str, str, int]] = field(default_factory=list)
    cache_stats: dict[str, dict[str, int]] = field(
        default_factory=lambda: defaultdict(lambda: {"hits": 0, "misses": 0})
    )


# Global profiler instance
_profiler = ProfilerState()


def enable_profiling() -> None:
    """Enable the profiler and clear previous data."""
    _profiler.enabled = True
    clear_profiling_data()


def disable_profiling() -> None:
    """Disable the profiler."""
    _profiler.enabled = False


def is_profiling_enabled() -> bool:
    """Check if profiling is enabled."""
    return _profiler.enabled


def get_metrics() -> list[ProfileMetrics]:
    """Get collected metrics."""
    return _profiler.metrics.copy()


def get_transfer_log() -> list[tuple[str, str, int]]:
    """Get host/MLX transfer log."""
    return _profiler.transfer_log.copy()


def get_cache_stats() -> dict[str, dict[str, int]]:
    """Get cache hit/miss statistics."""
    return {name: dict(stats) for name, stats in _profiler.cache_stats.items()}


def clear_profiling_data() -> None:
    """Clear all profiling data without disabling."""
    _profiler.metrics.clear()
    _profiler.transfer_log.clear()
    _profiler.cache_stats.clear()


@contextmanager
def profile_section(name: str) -> Generator[None, None, None]:
    """
    Context manager for profiling a code section.

    Parameters
    ----------
    name : str
        Name for this profiled section.

    Examples
    --------
    >>> with profile_section("stream filtering"):
    ...     ola.filter(block, out)
    """
    if not _profiler.enabled:
        yield
        return

    start = time.perf_counter()
    yield
    end = time.perf_counter()

    _profiler.metrics.append(
        ProfileMetrics(function_name=name, wall_time_ms=(end - start) * 1000)
    )


def log_transfer(direction: str, context: str, size_bytes: int) -> None:
    """
    Log a host/MLX data transfer.

    Parameters
    ----------
    direction : str
        "to_host" or "to_mlx"
    context : str
        Description of where transfer occurred
    size_bytes : int
        Size of transferred data in bytes
    """
    if _profiler.enabled:
        _profiler.transfer_log.append((direction, context, size_bytes))


def log_cache_access(cache_name: str, hit: bool) -> None:
    """
    Log a cache access.

    Parameters
    ----------
    cache_name : str
        Name of the cache being accessed.
    hit : bool
        True if cache hit, False if cache miss.
    """
    if _profiler.enabled:
        key = "hits" if hit else "misses"
        _profiler.cache_stats[cache_name][key] += 1


def profile(func: Callable | None = None, *, sync_after: bool = True) -> Callable:
    """
    Decorator to profile a function.

    Parameters
    ----------
    func : Callable
        Function to profile.
    sync_after : bool, default=True
        If True, evaluate returned MLX arrays before stopping the clock.

    Returns
    -------
    Callable
        Wrapped function.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _profiler.enabled:
                return fn(*args, **kwargs)

            start = time.perf_counter()
            result = fn(*args, **kwargs)
            if sync_after and isinstance(result, mx.array):
                mx.eval(result)
            end = time.perf_counter()

            _profiler.metrics.append(
                ProfileMetrics(
                    function_name=fn.__name__,
                    wall_time_ms=(end - start) * 1000,
                )
            )
            return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def tracked_np_array(
    mlx_arr: mx.array, context: str = "unknown", dtype: np.dtype | None = None
) -> np.ndarray:
    """
    Convert mx.array to np.ndarray with transfer logging.

    Parameters
    ----------
    mlx_arr : mx.array
        MLX array to convert.
    context : str, default="unknown"
        Description of where the transfer occurred.
    dtype : np.dtype, optional
        Element type of the returned array.

    Returns
    -------
    np.ndarray
        NumPy array with the same data.
    """
    log_transfer("to_host", context, mlx_arr.nbytes)
    return np.array(mlx_arr, dtype=dtype)


def tracked_mx_array(np_arr: np.ndarray, context: str = "unknown") -> mx.array:
    """
    Convert np.ndarray to mx.array with transfer logging.

    Parameters
    ----------
    np_arr : np.ndarray
        NumPy array to convert.
    context : str, default="unknown"
        Description of where the transfer occurred.

    Returns
    -------
    mx.array
        MLX array with the same data.
    """
    log_transfer("to_mlx", context, np_arr.nbytes)
    return mx.array(np_arr)


def generate_text_report() -> str:
    """
    Generate a text summary of profiling results.

    Returns
    -------
    str
        Formatted text report.
    """
    lines = []
    lines.append("=" * 80)
    lines.append("mlx-streaming-dsp - Performance Profile Report")
    lines.append("=" * 80)

    metrics = get_metrics()
    if metrics:
        lines.append("\n## Function Timings")
        lines.append("-" * 40)

        timing_map: dict[str, list[float]] = defaultdict(list)
        for m in metrics:
            timing_map[m.function_name].append(m.wall_time_ms)

        for func, times in sorted(timing_map.items(), key=lambda x: -sum(x[1])):
            total = sum(times)
            avg = total / len(times)
            lines.append(
                f"{func:40} total={total:8.2f}ms  avg={avg:6.2f}ms  calls={len(times)}"
            )

    transfers = get_transfer_log()
    if transfers:
        lines.append("\n## Host/MLX Data Transfers")
        lines.append("-" * 40)
        for direction in ("to_host", "to_mlx"):
            sizes = [s for d, _, s in transfers if d == direction]
            lines.append(
                f"{direction}: {len(sizes)} transfers, "
                f"{sum(sizes) / 1024**2:.2f} MB total"
            )

    cache_stats = get_cache_stats()
    if cache_stats:
        lines.append("\n## Cache Statistics")
        lines.append("-" * 40)
        for cache_name, stats in cache_stats.items():
            hits = stats["hits"]
            misses = stats["misses"]
            total = hits + misses
            hit_rate = hits / total * 100 if total > 0 else 0
            lines.append(
                f"{cache_name:30} hits={hits:4}  misses={misses:4}  "
                f"hit_rate={hit_rate:.1f}%"
            )

    lines.append("\n" + "=" * 80)
    return "\n".join(lines)


def export_json() -> dict[str, Any]:
    """
    Export profiling data as a dictionary (for JSON serialization).

    Returns
    -------
    dict
        Dictionary containing all profiling data.
    """
    return {
        "metrics": [
            {"function_name": m.function_name, "wall_time_ms": m.wall_time_ms}
            for m in get_metrics()
        ],
        "transfers": get_transfer_log(),
        "cache_stats": get_cache_stats(),
    }
