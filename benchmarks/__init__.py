"""Benchmarking suite for mlx-streaming-dsp."""
from .bench_fft import benchmark_fft, benchmark_linked_cdft
from .bench_overlap_add import (
    benchmark_convolve,
    benchmark_interpolate,
    benchmark_streaming,
)
from .run import format_results, main, run_suites
from .utils import (
    BenchmarkResult,
    compute_accuracy,
    generate_test_signal,
    time_function,
)

__all__ = [
    # Data classes
    "BenchmarkResult",
    # Utilities
    "time_function",
    "compute_accuracy",
    "generate_test_signal",
    "format_results",
    # Transform benchmarks
    "benchmark_fft",
    "benchmark_linked_cdft",
    # Filter benchmarks
    "benchmark_convolve",
    "benchmark_streaming",
    "benchmark_interpolate",
    # CLI
    "run_suites",
    "main",
]
