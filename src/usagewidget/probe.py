"""Detection of the network interface that is carrying traffic."""

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from enum import Enum

logger = logging.getLogger(__name__)

RateSampler = Callable[[str], float]

DEFAULT_SETTLE_INTERVAL = 3.0


class ProbeMode(Enum):
    """How interface activity is detected."""

    DEBOUNCED = "debounced"
    NAIVE = "naive"


def probe_active_interface(
    interfaces: Sequence[str],
    rx_rate: RateSampler,
    tx_rate: RateSampler,
    settle_interval: float = DEFAULT_SETTLE_INTERVAL,
    mode: ProbeMode = ProbeMode.DEBOUNCED,
) -> int | None:
    """
    Pick the index of the first interface that shows traffic.

    In DEBOUNCED mode every interface is probed at the same time: the first
    reading of each counter is discarded, and after ``settle_interval``
    seconds the interface counts as active if its rx or tx rate is above
    zero. The lowest active index wins. NAIVE mode takes a single rx reading
    per interface in order, which tends to see freshly created counters
    report zero.

    Args:
        interfaces: Candidate interface names, in display order.
        rx_rate: Returns the receive rate of an interface.
        tx_rate: Returns the transmit rate of an interface.
        settle_interval: Seconds between the discarded and the real reading.
        mode: Detection strategy.

    Returns:
        Index of the selected interface, 0 when none is active, or None when
        there are no interfaces at all.
    """
    if not interfaces:
        return None

    if mode is ProbeMode.NAIVE:
        active = []
        for name in interfaces:
            active.append(_read_rate(rx_rate, name) > 0)
            if active[-1]:
                break
    else:
        with ThreadPoolExecutor(
            max_workers=len(interfaces), thread_name_prefix="InterfaceProbe"
        ) as executor:
            futures = [
                executor.submit(_is_active, name, rx_rate, tx_rate, settle_interval)
                for name in interfaces
            ]
            active = [future.result() for future in futures]

    for index, is_active in enumerate(active):
        if is_active:
            logger.info("Interface %s (index %d) is active", interfaces[index], index)
            return index

    logger.info("No active interface found, defaulting to %s", interfaces[0])
    return 0


def _is_active(
    name: str, rx_rate: RateSampler, tx_rate: RateSampler, settle_interval: float
) -> bool:
    """Discard one reading, wait for the counters to settle, then read again."""
    _read_rate(rx_rate, name)
    _read_rate(tx_rate, name)
    time.sleep(settle_interval)
    return _read_rate(rx_rate, name) > 0 or _read_rate(tx_rate, name) > 0


def _read_rate(sampler: RateSampler, name: str) -> float:
    """Read a rate, treating a failed read as no traffic."""
    try:
        return sampler(name)
    except Exception:
        logger.debug("Rate sample failed for interface %s", name, exc_info=True)
        return 0.0
