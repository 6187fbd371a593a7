"""
Split-radix DFT benchmarks.

Compares mlx_streaming_dsp transforms against numpy.fft (pocketfft):
- fft: functional API including host/MLX conversion
- CDFT.evaluate: linked-buffer transform with no per-call allocation

The split-radix tree is evaluated node by node in Python, so numpy.fft is
expected to win at every size; the numbers track how the per-node cost grows
with the transform length.

Run: mlx-dsp-bench --suite fft
"""
from __future__ import annotations

import mlx.core as mx
import numpy as np

import mlx_streaming_dsp as dsp

from .utils import (
    BenchmarkResult,
    compute_accuracy,
    generate_test_signal,
    time_function,
)


def benchmark_fft(sizes: list[int] | None = None) -> list[BenchmarkResult]:
    """
    Benchmark the functional fft against numpy.fft.fft.

    Parameters
    ----------
    sizes : list[int], optional
        Power-of-two transform sizes. Default: 256 to 16384.

    Returns
    -------
    list[BenchmarkResult]
        One result per size.
    """
    if sizes is None:
        sizes = [256, 1024, 4096, 16384]

    results = []
    for n in sizes:
        signal_np = generate_test_signal(n)
        signal_mx = mx.array(signal_np)

        mlx_time = time_function(lambda s=signal_mx: dsp.fft(s))
        mlx_result = np.array(dsp.fft(signal_mx))

        ref_time = time_function(lambda s=signal_np: np.fft.fft(s))
        ref_result = np.fft.fft(signal_np)

        accuracy = compute_accuracy(mlx_result, ref_result)
        results.append(
            BenchmarkResult(
                name=f"fft (n={n})",
                mlx_time_ms=mlx_time,
                reference_time_ms=ref_time,
                speedup=ref_time / mlx_time,
                **accuracy,
            )
        )

    return results


def benchmark_linked_cdft(sizes: list[int] | None = None) -> list[BenchmarkResult]:
    """
    Benchmark repeated evaluation of a linked CDFT against numpy.fft.fft.

    Returns
    -------
    list[BenchmarkResult]
        One result per size.
    """
    if sizes is None:
        sizes = [256, 1024, 4096, 16384]

    results = []
    for n in sizes:
        xr = generate_test_signal(n).astype(np.float64)
        xi = np.zeros(n)
        yr, yi = np.empty(n), np.empty(n)
        dft = dsp.CDFT(n.bit_length() - 1, xr, xi, yr, yi)

        dft_time = time_function(dft.evaluate)
        dft.evaluate()

        ref_time = time_function(lambda x=xr: np.fft.fft(x))
        ref_result = np.fft.fft(xr)

        accuracy = compute_accuracy(yr + 1j * yi, ref_result)
        results.append(
            BenchmarkResult(
                name=f"CDFT.evaluate (n={n})",
                mlx_time_ms=dft_time,
                reference_time_ms=ref_time,
                speedup=ref_time / dft_time,
                **accuracy,
            )
        )

    return results
