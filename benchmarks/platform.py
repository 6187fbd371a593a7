"""
Platform detection and reporting for benchmark headers.

Detects:
- Processor name (Apple Silicon chip or Linux CPU model)
- Memory configuration
- Software versions
"""

from __future__ import annotations

import os
import platform
import subprocess
from dataclasses import dataclass

import mlx.core as mx
import numpy as np


@dataclass
class PlatformInfo:
    """Complete platform identification."""

    processor: str  # "Apple M4 Max" or "/proc/cpuinfo" model name
    memory_gb: int
    os_version: str
    python_version: str
    numpy_version: str
    mlx_version: str


def detect_processor() -> str:
    """
    Detect the processor name.

    Returns
    -------
    str
        Processor name, or "Unknown" when it cannot be determined.
    """
    if platform.system() == "Darwin":
        try:
            result = subprocess.run(
                ["sysctl", "-n", "machdep.cpu.brand_string"],
                capture_output=True,
                text=True,
                check=True,
            )
            return result.stdout.strip()
        except (OSError, subprocess.CalledProcessError):
            return "Unknown"

    try:
        with open("/proc/cpuinfo") as f:
            for line in f:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return platform.processor() or "Unknown"


def detect_memory() -> int:
    """
    Detect system memory in GB.

    Returns
    -------
    int
        System memory in gigabytes, 0 if unknown.
    """
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES") // (1024**3)
    except (ValueError, OSError, AttributeError):
        return 0


def get_platform_info() -> PlatformInfo:
    """
    Get complete platform information.

    Returns
    -------
    PlatformInfo
        Complete platform identification.
    """
    return PlatformInfo(
        processor=detect_processor(),
        memory_gb=detect_memory(),
        os_version=platform.platform(),
        python_version=platform.python_version(),
        numpy_version=np.__version__,
        mlx_version=mx.__version__,
    )


def format_platform_header() -> str:
    """
    Format platform info as benchmark header.

    Returns
    -------
    str
        Formatted header string.
    """
    info = get_platform_info()
    lines = [
        "=" * 60,
        "MLX Streaming DSP Benchmark",
        "=" * 60,
        f"Processor: {info.processor}",
        f"Memory: {info.memory_gb} GB",
        f"OS: {info.os_version}",
        f"Python: {info.python_version}",
        f"NumPy: {info.numpy_version}",
        f"MLX: {info.mlx_version}",
        "=" * 60,
    ]
    return "\n".join(lines)
