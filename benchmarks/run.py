"""
Benchmark CLI for mlx-streaming-dsp.

This module provides the `mlx-dsp-bench` command-line tool for comparing
performance against numpy.fft and scipy.signal reference implementations.

Usage:
    mlx-dsp-bench                        # Run all benchmarks
    mlx-dsp-bench --verbose              # Include accuracy metrics
    mlx-dsp-bench --suite fft            # Run only transform benchmarks
    mlx-dsp-bench --suite overlap-add    # Run only block-filter benchmarks
    mlx-dsp-bench --output markdown      # Markdown table

The benchmarks measure:
    - Wall-clock execution time (ms)
    - Speedup ratio vs reference implementations
    - Numerical accuracy (max/mean error, correlation)
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

from .bench_fft import benchmark_fft, benchmark_linked_cdft
from .bench_overlap_add import (
    benchmark_convolve,
    benchmark_interpolate,
    benchmark_streaming,
)
from .platform import format_platform_header
from .utils import BenchmarkResult


def format_results(results: list[BenchmarkResult], verbose: bool = False) -> str:
    """
    Format benchmark results as a table.

    Parameters
    ----------
    results : list[BenchmarkResult]
        Benchmark results to format.
    verbose : bool, default=False
        If True, include accuracy metrics.

    Returns
    -------
    str
        Formatted table string.
    """
    lines = []
    lines.append("=" * 80)
    lines.append(
        f"{'Benchmark':<44} {'Ours (ms)':<10} {'Ref (ms)':<10} {'Speedup':<10}"
    )
    lines.append("-" * 80)

    for r in results:
        speedup_str = f"{r.speedup:.2f}x" if r.speedup > 0 else "N/A"
        lines.append(
            f"{r.name:<44} {r.mlx_time_ms:<10.3f} "
            f"{r.reference_time_ms:<10.3f} {speedup_str:<10}"
        )
        if verbose:
            lines.append(
                f"    Max error: {r.max_abs_error:.2e}, "
                f"Mean error: {r.mean_abs_error:.2e}, "
                f"Corr: {r.correlation:.6f}"
            )

    lines.append("=" * 80)
    return "\n".join(lines)


def format_results_markdown(results: list[BenchmarkResult]) -> str:
    """Format benchmark results as markdown table."""
    lines = []
    lines.append("| Benchmark | Ours (ms) | Ref (ms) | Speedup |")
    lines.append("|-----------|-----------|----------|---------|")

    for r in results:
        speedup_str = f"{r.speedup:.2f}x" if r.speedup > 0 else "N/A"
        lines.append(
            f"| {r.name} | {r.mlx_time_ms:.3f} | "
            f"{r.reference_time_ms:.3f} | {speedup_str} |"
        )

    return "\n".join(lines)


def format_results_csv(results: list[BenchmarkResult]) -> str:
    """Format benchmark results as CSV."""
    lines = []
    lines.append(
        "name,time_ms,reference_time_ms,speedup,max_abs_error,mean_abs_error,correlation"
    )

    for r in results:
        lines.append(
            f"\"{r.name}\",{r.mlx_time_ms:.6f},{r.reference_time_ms:.6f},"
            f"{r.speedup:.4f},{r.max_abs_error:.2e},{r.mean_abs_error:.2e},{r.correlation:.6f}"
        )

    return "\n".join(lines)


def _suites(signal_length: int) -> dict[str, list[tuple[str, Callable]]]:
    return {
        "fft": [
            ("Functional FFT", benchmark_fft),
            ("Linked CDFT", benchmark_linked_cdft),
        ],
        "overlap-add": [
            ("Overlap-Add Convolution", lambda: benchmark_convolve(signal_length)),
            ("Block Streaming", lambda: benchmark_streaming(signal_length)),
        ],
        "interpolate": [
            ("Interpolation", lambda: benchmark_interpolate(signal_length // 5)),
        ],
    }


def run_suites(
    names: list[str],
    signal_length: int,
    verbose: bool = False,
    show_tables: bool = True,
) -> list[BenchmarkResult]:
    """
    Run the named benchmark suites.

    Parameters
    ----------
    names : list[str]
        Suite names: "fft", "overlap-add", "interpolate".
    signal_length : int
        Test signal length for filtering suites.
    verbose : bool, default=False
        If True, show accuracy metrics.
    show_tables : bool, default=True
        If True, print a table after each benchmark group.

    Returns
    -------
    list[BenchmarkResult]
        All benchmark results.
    """
    suites = _suites(signal_length)
    all_results = []

    for name in names:
        for title, bench in suites[name]:
            results = bench()
            all_results.extend(results)
            if show_tables:
                print(f"\n[{title}]")
                print(format_results(results, verbose))

    if show_tables:
        print("\n[Summary]")
        speedups = [r.speedup for r in all_results if r.speedup > 0]
        if speedups:
            print(f"Average speedup: {sum(speedups) / len(speedups):.2f}x")
            print(f"Min speedup: {min(speedups):.2f}x")
            print(f"Max speedup: {max(speedups):.2f}x")

    return all_results


def main(args: list[str] | None = None) -> int:
    """
    CLI entry point.

    Parameters
    ----------
    args : list[str], optional
        Command line arguments. Uses sys.argv if None.

    Returns
    -------
    int
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        description="MLX Streaming DSP Benchmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mlx-dsp-bench                        # Run all benchmarks
  mlx-dsp-bench --verbose              # Show accuracy metrics
  mlx-dsp-bench --suite fft            # Run only transform benchmarks
  mlx-dsp-bench --signal-length 50000  # Shorter filtering signals
        """,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show accuracy metrics"
    )
    parser.add_argument(
        "--suite",
        choices=["all", "fft", "overlap-add", "interpolate"],
        default="all",
        help="Benchmark suite to run (default: all)",
    )
    parser.add_argument(
        "--signal-length",
        type=int,
        default=100_000,
        help="Test signal length in samples (default: 100000)",
    )
    parser.add_argument(
        "--output",
        choices=["table", "markdown", "csv"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--platform-info",
        action="store_true",
        help="Show platform information only",
    )

    opts = parser.parse_args(args)

    if opts.platform_info:
        print(format_platform_header())
        return 0

    if opts.output == "table":
        print(format_platform_header())
        print(f"Signal length: {opts.signal_length} samples")

    names = ["fft", "overlap-add", "interpolate"] if opts.suite == "all" else [opts.suite]

    try:
        results = run_suites(
            names,
            opts.signal_length,
            verbose=opts.verbose,
            show_tables=opts.output == "table",
        )
    except ImportError as e:
        print(f"\nError: Missing dependency - {e}")
        print("Install benchmark dependencies with: pip install -e .[bench]")
        return 1

    if opts.output == "markdown":
        print(format_results_markdown(results))
    elif opts.output == "csv":
        print(format_results_csv(results))

    return 0


if __name__ == "__main__":
    sys.exit(main())
