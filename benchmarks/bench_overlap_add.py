"""
Overlap-add filtering and interpolation benchmarks.

Compares mlx_streaming_dsp block filters against scipy.signal:
- overlap_add_convolve vs scipy.signal.oaconvolve (whole-signal convolution)
- OverlapAdd.filter block loop vs scipy.signal.lfilter with carried state
- interpolate vs scipy.signal.upfirdn with the same windowed-sinc kernel

Run: mlx-dsp-bench --suite overlap-add
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


def _lowpass(taps: int) -> np.ndarray:
    n = np.arange(taps) - (taps - 1) / 2
    return np.sinc(0.2 * n) * dsp.window_array("hamming", taps, fftbins=False) * 0.2


def benchmark_convolve(
    signal_length: int = 100_000,
    kernel_lengths: list[int] | None = None,
) -> list[BenchmarkResult]:
    """
    Benchmark whole-signal overlap-add convolution.

    Parameters
    ----------
    signal_length : int, default=100000
        Length of test signal in samples.
    kernel_lengths : list[int], optional
        FIR lengths to benchmark.

    Returns
    -------
    list[BenchmarkResult]
        One result per kernel length.
    """
    from scipy.signal import oaconvolve

    if kernel_lengths is None:
        kernel_lengths = [31, 127, 511]

    results = []
    signal_np = generate_test_signal(signal_length)
    signal_mx = mx.array(signal_np)

    for taps in kernel_lengths:
        h_np = _lowpass(taps).astype(np.float32)
        h_mx = mx.array(h_np)

        mlx_time = time_function(
            lambda h=h_mx: dsp.overlap_add_convolve(signal_mx, h), warmup=1, runs=3
        )
        mlx_result = np.array(dsp.overlap_add_convolve(signal_mx, h_mx))

        ref_time = time_function(lambda h=h_np: oaconvolve(signal_np, h))
        ref_result = oaconvolve(signal_np, h_np)

        accuracy = compute_accuracy(mlx_result, ref_result)
        results.append(
            BenchmarkResult(
                name=f"overlap_add_convolve (taps={taps})",
                mlx_time_ms=mlx_time,
                reference_time_ms=ref_time,
                speedup=ref_time / mlx_time,
                **accuracy,
            )
        )

    return results


def benchmark_streaming(
    signal_length: int = 100_000,
    block_sizes: list[int] | None = None,
    taps: int = 127,
) -> list[BenchmarkResult]:
    """
    Benchmark the block-streaming filter loop against lfilter with state.

    Both sides process the signal in consecutive blocks and carry filter
    state between them; timings cover the whole stream.

    Returns
    -------
    list[BenchmarkResult]
        One result per block size.
    """
    from scipy.signal import lfilter

    if block_sizes is None:
        block_sizes = [256, 1024, 4096]

    results = []
    h = _lowpass(taps)
    signal_np = generate_test_signal(signal_length).astype(np.float64)

    for bs in block_sizes:
        n_blocks = signal_length // bs
        out = np.zeros(n_blocks * bs)
        ola = dsp.OverlapAdd(h, bs)

        def run_ola(ola=ola, bs=bs, n_blocks=n_blocks, out=out):
            ola.initialize()
            for b in range(n_blocks):
                ola.filter(signal_np, out, b * bs, b * bs)

        def run_lfilter(bs=bs, n_blocks=n_blocks):
            zi = np.zeros(taps - 1)
            blocks = []
            for b in range(n_blocks):
                y, zi = lfilter(h, 1.0, signal_np[b * bs : (b + 1) * bs], zi=zi)
                blocks.append(y)
            return np.concatenate(blocks)

        ola_time = time_function(run_ola, warmup=1, runs=3)
        run_ola()
        ref_time = time_function(run_lfilter, warmup=1, runs=3)
        ref_result = run_lfilter()

        accuracy = compute_accuracy(out, ref_result)
        results.append(
            BenchmarkResult(
                name=f"OverlapAdd.filter (block={bs}, taps={taps})",
                mlx_time_ms=ola_time,
                reference_time_ms=ref_time,
                speedup=ref_time / ola_time,
                **accuracy,
            )
        )

    return results


def benchmark_interpolate(
    signal_length: int = 20_000,
    rates: list[int] | None = None,
    design_factor: int = 4,
) -> list[BenchmarkResult]:
    """
    Benchmark interpolation against upfirdn with the same kernel.

    Returns
    -------
    list[BenchmarkResult]
        One result per rate.
    """
    from scipy.signal import upfirdn

    if rates is None:
        rates = [2, 4, 8]

    results = []
    signal_np = generate_test_signal(signal_length)
    signal_mx = mx.array(signal_np)

    for rate in rates:
        kernel = dsp.interpolation_kernel(rate, design_factor)
        delay = rate * design_factor

        mlx_time = time_function(
            lambda r=rate: dsp.interpolate(signal_mx, r, design_factor),
            warmup=1,
            runs=3,
        )
        mlx_result = np.array(dsp.interpolate(signal_mx, rate, design_factor))

        def run_upfirdn(kernel=kernel, rate=rate, delay=delay):
            y = upfirdn(kernel, signal_np, up=rate)
            return y[delay : delay + signal_length * rate]

        ref_time = time_function(run_upfirdn)
        ref_result = run_upfirdn()

        accuracy = compute_accuracy(mlx_result, ref_result)
        results.append(
            BenchmarkResult(
                name=f"interpolate (rate={rate})",
                mlx_time_ms=mlx_time,
                reference_time_ms=ref_time,
                speedup=ref_time / mlx_time,
                **accuracy,
            )
        )

    return results
