"""Shared test fixtures for usagewidget."""

import random
import threading
import time

import pytest

from usagewidget.formatting import GB
from usagewidget.source import CounterUnavailableError, SampleSource


class FakeSource(SampleSource):
    """
    Deterministic SampleSource.

    Rates are looked up in ``rx`` / ``tx`` by interface name. The first read
    of every counter returns ``first_reading`` instead, like a freshly
    created OS counter. Metrics named in ``failing`` raise on read, and
    every rate read sleeps up to ``jitter`` seconds.
    """

    def __init__(
        self,
        interfaces=("eth0", "wlan0"),
        cpu=12.5,
        total=16 * GB,
        available=8 * GB,
        rx=None,
        tx=None,
        first_reading=0.0,
        failing=(),
        jitter=0.0,
    ):
        self.interfaces = list(interfaces)
        self.cpu = cpu
        self.total = total
        self.available = available
        self.rx = dict(rx or {})
        self.tx = dict(tx or {})
        self.first_reading = first_reading
        self.failing = set(failing)
        self.jitter = jitter
        self.reads: list[tuple[str, str]] = []
        self._seen: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    def _check(self, metric):
        if metric in self.failing:
            raise CounterUnavailableError(f"{metric} unavailable")

    def cpu_utilization_percent(self):
        self._check("cpu")
        return self.cpu

    def available_memory_bytes(self):
        self._check("available")
        return self.available

    def total_memory_bytes(self):
        self._check("total")
        return self.total

    def list_network_interfaces(self):
        self._check("interfaces")
        return self.interfaces

    def interface_rx_bytes_per_sec(self, name):
        return self._rate(name, "rx", self.rx)

    def interface_tx_bytes_per_sec(self, name):
        return self._rate(name, "tx", self.tx)

    def _rate(self, name, field, rates):
        self._check(f"{name}.{field}")
        if self.jitter:
            time.sleep(random.uniform(0, self.jitter))
        key = (name, field)
        with self._lock:
            self.reads.append(key)
            first = key not in self._seen
            self._seen.add(key)
        if first:
            return self.first_reading
        return rates.get(name, 0.0)


@pytest.fixture
def make_source():
    """Factory for FakeSource instances."""
    return FakeSource
