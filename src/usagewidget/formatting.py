"""Text formatting for sampled metrics."""

import math

KB = 1024
MB = KB * 1024
GB = MB * 1024

RATE_UNITS = [("B/s", 1), ("KB/s", KB), ("MB/s", MB), ("GB/s", GB)]


def format_rate(rate: float) -> str:
    """
    Format a byte rate with the largest unit that keeps the value below 1024.

    Negative and NaN rates are clamped to zero.
    """
    if not rate > 0:
        rate = 0.0
    name, divisor = RATE_UNITS[-1]
    for unit_name, unit_divisor in RATE_UNITS:
        if rate < unit_divisor * KB:
            name, divisor = unit_name, unit_divisor
            break
    return f"{rate / divisor:.2f}{name}"


def format_cpu(percent: float) -> str:
    """Format CPU utilization, e.g. ``12.34%``."""
    return f"{percent:.2f}%"


def format_memory(total: float, available: float) -> str:
    """
    Format memory usage as ``50.00% (8.00GB/16.00GB)``.

    With a zero total the percentage is ``unknown`` and only the available
    amount is shown, e.g. ``unknown (8.00GB available)``.
    """
    if math.isnan(available):
        return "unknown"
    if not total > 0:
        return f"unknown ({max(available, 0.0) / GB:.2f}GB available)"
    used = min(max(total - available, 0.0), total)
    return f"{used / total * 100:.2f}% ({used / GB:.2f}GB/{total / GB:.2f}GB)"
