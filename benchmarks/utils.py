"""Shared utilities for benchmarking."""
from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import mlx.core as mx
import numpy as np


@dataclass
class BenchmarkResult:
    """Result from a single benchmark run."""

    name: str
    mlx_time_ms: float
    reference_time_ms: float
    speedup: float
    max_abs_error: float
    mean_abs_error: float
    correlation: float  # Pearson correlation coefficient


def time_function(fn: Callable, warmup: int = 3, runs: int = 10) -> float:
    """
    Time a function with warmup runs, return median time in ms.

    Parameters
    ----------
    fn : Callable
        Function to time.
    warmup : int, default=3
        Number of warmup iterations before timing.
    runs : int, default=10
        Number of timed iterations.

    Returns
    -------
    float
        Median execution time in milliseconds.
    """
    for _ in range(warmup):
        result = fn()
        if isinstance(result, mx.array):
            mx.eval(result)

    times = []
    for _ in range(runs):
        start = time.perf_counter()
        result = fn()
        if isinstance(result, mx.array):
            mx.eval(result)
        times.append((time.perf_counter() - start) * 1000)

    return float(np.median(times))


def compute_accuracy(result: np.ndarray, ref_result: np.ndarray) -> dict:
    """
    Compute accuracy metrics between our output and a reference output.

    Complex results are compared on their real and imaginary parts.

    Returns
    -------
    dict
        Dictionary with max_abs_error, mean_abs_error, and correlation.
    """
    diff = np.abs(result - ref_result)
    if np.iscomplexobj(result) or np.iscomplexobj(ref_result):
        result = np.concatenate([np.real(result).ravel(), np.imag(result).ravel()])
        ref_result = np.concatenate(
            [np.real(ref_result).ravel(), np.imag(ref_result).ravel()]
        )
    return {
        "max_abs_error": float(np.max(diff)),
        "mean_abs_error": float(np.mean(diff)),
        "correlation": float(np.corrcoef(result.ravel(), ref_result.ravel())[0, 1]),
    }


def generate_test_signal(length: int, sr: int = 1000, seed: int = 42) -> np.ndarray:
    """
    Generate a reproducible trace with a low-frequency chirp and noise.

    Parameters
    ----------
    length : int
        Signal length in samples.
    sr : int, default=1000
        Sample rate (used for chirp timing).
    seed : int, default=42
        Random seed for reproducibility.

    Returns
    -------
    np.ndarray
        Test signal as float32 array.
    """
    rng = np.random.default_rng(seed)
    t = np.arange(length, dtype=np.float64) / sr
    # 1 Hz rising to ~11 Hz over the trace
    chirp = np.sin(2 * np.pi * (1 + 10 * t * sr / length) * t)
    noise = rng.standard_normal(length) * 0.1
    return (chirp + noise).astype(np.float32)
