"""Periodic sampling engine for usagewidget."""

import logging
import threading
import time
from collections.abc import Callable
from queue import Queue

from usagewidget.formatting import format_cpu, format_memory, format_rate
from usagewidget.models import DisplaySnapshot
from usagewidget.probe import DEFAULT_SETTLE_INTERVAL, ProbeMode, probe_active_interface
from usagewidget.source import SampleSource

logger = logging.getLogger(__name__)

PLACEHOLDER = "N/A"


class MonitorLoop:
    """
    Samples a SampleSource once per tick and produces DisplaySnapshots.

    Runs in a separate daemon thread and pushes snapshots to a thread-safe
    Queue. On start, the active network interface is probed on a second
    daemon thread so the first ticks are not held up by the settle interval.
    A failing counter only blanks its own metric; the loop keeps running
    until stop() is called.
    """

    def __init__(
        self,
        source: SampleSource,
        update_queue: Queue[DisplaySnapshot] | None = None,
        interval: float = 1.0,
        settle_interval: float = DEFAULT_SETTLE_INTERVAL,
        probe_mode: ProbeMode = ProbeMode.DEBOUNCED,
        on_interface_probed: Callable[[int], None] | None = None,
    ) -> None:
        """
        Initialize the MonitorLoop.

        Args:
            source: Counter provider to sample.
            update_queue: Thread-safe queue to push snapshots to.
            interval: Seconds between ticks. Default 1.0s.
            settle_interval: Settle time of the startup interface probe.
            probe_mode: Strategy of the startup interface probe.
            on_interface_probed: Called from the probe thread with the
                selected index once the probe finishes.
        """
        self._source = source
        self._queue = update_queue
        self._interval = interval
        self._settle_interval = settle_interval
        self._probe_mode = probe_mode
        self._on_interface_probed = on_interface_probed
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._probe_thread: threading.Thread | None = None
        self._index_lock = threading.Lock()
        self._active_index: int | None = None

        self._memory_total: int | None
        try:
            self._memory_total = int(source.total_memory_bytes())
        except Exception:
            logger.warning("Total memory unavailable, memory display disabled", exc_info=True)
            self._memory_total = None

        self._interfaces: tuple[str, ...]
        try:
            self._interfaces = tuple(sorted(source.list_network_interfaces()))
        except Exception:
            logger.warning("Network interfaces unavailable, network display disabled", exc_info=True)
            self._interfaces = ()

    @property
    def interval(self) -> float:
        """Get the tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def interfaces(self) -> tuple[str, ...]:
        """Interface names in display order."""
        return self._interfaces

    @property
    def memory_total(self) -> int | None:
        """Total memory in bytes, or None if it could not be read."""
        return self._memory_total

    @property
    def active_interface(self) -> int | None:
        """Index of the interface the network texts are read from."""
        with self._index_lock:
            return self._active_index

    def set_active_interface(self, index: int | None) -> None:
        """
        Select the interface to read network rates from.

        Args:
            index: Index into ``interfaces``; None or -1 clears the selection.

        Raises:
            IndexError: If the index does not name a known interface.
        """
        if index == -1:
            index = None
        if index is not None and not 0 <= index < len(self._interfaces):
            raise IndexError(f"Interface index {index} out of range")
        with self._index_lock:
            self._active_index = index

    @property
    def is_running(self) -> bool:
        """Check if the tick thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the interface probe and the tick thread."""
        if self.is_running:
            return

        if self._interfaces and self._probe_thread is None:
            self._probe_thread = threading.Thread(
                target=self._run_probe,
                daemon=True,
                name="InterfaceProbe",
            )
            self._probe_thread.start()

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            daemon=True,
            name="MonitorLoop",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the tick thread.

        The probe thread is not joined; it ends on its own after one settle
        interval.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def wait_for_probe(self, timeout: float | None = None) -> bool:
        """Block until the startup probe is done. Returns False on timeout."""
        if self._probe_thread is None:
            return True
        self._probe_thread.join(timeout=timeout)
        return not self._probe_thread.is_alive()

    def _run_probe(self) -> None:
        """Probe for the active interface and publish the result."""
        source = self._source
        index = probe_active_interface(
            self._interfaces,
            source.interface_rx_bytes_per_sec,
            source.interface_tx_bytes_per_sec,
            settle_interval=self._settle_interval,
            mode=self._probe_mode,
        )
        if index is None:
            return

        self.set_active_interface(index)
        if self._on_interface_probed is not None:
            try:
                self._on_interface_probed(index)
            except Exception:
                logger.warning("Interface probe callback failed", exc_info=True)

    def _tick_loop(self) -> None:
        """Main tick loop running in the background thread."""
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            next_tick += self._interval
            try:
                snapshot = self.on_tick()
                if self._queue is not None:
                    self._queue.put(snapshot)
            except Exception:
                logger.exception("Tick failed")

            # Wait until the next tick is due or stop is requested
            self._stop_event.wait(timeout=max(0.0, next_tick - time.monotonic()))

    def on_tick(self) -> DisplaySnapshot:
        """Sample every metric once and build the texts to display."""
        cpu_text = self._sample("CPU", lambda: format_cpu(self._source.cpu_utilization_percent()))

        memory_text = None
        if self._memory_total is not None:
            total = self._memory_total
            memory_text = self._sample(
                "memory",
                lambda: format_memory(total, self._source.available_memory_bytes()),
            )

        # Read the index once so rx and tx come from the same interface
        index = self.active_interface
        interface = rx_text = tx_text = None
        if index is not None:
            interface = self._interfaces[index]
            rx_text = self._sample(
                f"{interface} rx",
                lambda: format_rate(self._source.interface_rx_bytes_per_sec(interface)),
            )
            tx_text = self._sample(
                f"{interface} tx",
                lambda: format_rate(self._source.interface_tx_bytes_per_sec(interface)),
            )

        return DisplaySnapshot(
            cpu_text=cpu_text,
            memory_text=memory_text,
            rx_text=rx_text,
            tx_text=tx_text,
            interface=interface,
        )

    def _sample(self, metric: str, read: Callable[[], str]) -> str:
        """Run one metric read, rendering a placeholder if it fails."""
        try:
            return read()
        except Exception:
            logger.debug("Sampling %s failed", metric, exc_info=True)
            return PLACEHOLDER
