"""Counter providers that feed the monitor loop."""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

import psutil


class CounterUnavailableError(RuntimeError):
    """Raised when a counter cannot be read."""


class SampleSource(ABC):
    """
    Abstract source of host resource counters.

    Rates are bytes per second. Implementations open whatever handles they
    need once and read them on every call.
    """

    @abstractmethod
    def cpu_utilization_percent(self) -> float:
        """Total CPU utilization, 0.0 - 100.0."""

    @abstractmethod
    def available_memory_bytes(self) -> float:
        """Physical memory currently available, in bytes."""

    @abstractmethod
    def total_memory_bytes(self) -> int:
        """Installed physical memory, in bytes. Queried once at startup."""

    @abstractmethod
    def list_network_interfaces(self) -> Sequence[str]:
        """Names of the network interfaces known to the host."""

    @abstractmethod
    def interface_rx_bytes_per_sec(self, name: str) -> float:
        """Receive rate of an interface."""

    @abstractmethod
    def interface_tx_bytes_per_sec(self, name: str) -> float:
        """Transmit rate of an interface."""


class PsutilSampleSource(SampleSource):
    """
    SampleSource backed by psutil.

    Interface rates are computed from the byte counters of
    ``psutil.net_io_counters(pernic=True)`` and cover the time since the
    previous query of the same counter. The first query of a counter has
    nothing to compare against and returns 0.0.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize the PsutilSampleSource.

        Args:
            clock: Monotonic clock used to time interface counter deltas.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._last_counts: dict[tuple[str, str], tuple[float, int]] = {}
        # First call returns 0.0; prime it so the first tick is meaningful
        psutil.cpu_percent(interval=None)

    def cpu_utilization_percent(self) -> float:
        return psutil.cpu_percent(interval=None)

    def available_memory_bytes(self) -> float:
        return float(psutil.virtual_memory().available)

    def total_memory_bytes(self) -> int:
        return psutil.virtual_memory().total

    def list_network_interfaces(self) -> Sequence[str]:
        """Interfaces that are up, excluding loopback."""
        stats = psutil.net_if_stats()
        return [
            name
            for name in psutil.net_io_counters(pernic=True)
            if name in stats and stats[name].isup and not _is_loopback(name, stats[name])
        ]

    def interface_rx_bytes_per_sec(self, name: str) -> float:
        return self._rate(name, "bytes_recv")

    def interface_tx_bytes_per_sec(self, name: str) -> float:
        return self._rate(name, "bytes_sent")

    def _rate(self, name: str, field: str) -> float:
        """Bytes per second of one counter since it was last queried."""
        counters = psutil.net_io_counters(pernic=True)
        if name not in counters:
            raise CounterUnavailableError(f"No counters for interface {name!r}")

        count = getattr(counters[name], field)
        now = self._clock()
        key = (name, field)

        with self._lock:
            previous = self._last_counts.get(key)
            self._last_counts[key] = (now, count)

        if previous is None:
            return 0.0
        last_time, last_count = previous
        elapsed = now - last_time
        if elapsed <= 0:
            return 0.0
        # Counters can wrap or reset when an interface is reconfigured
        return max(0.0, (count - last_count) / elapsed)


def _is_loopback(name: str, stats) -> bool:
    """Check interface flags where psutil reports them, else the name."""
    if "loopback" in getattr(stats, "flags", "").split(","):
        return True
    return name in ("lo", "lo0") or name.lower().startswith("loopback")
