"""Data models for usagewidget."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class DisplaySnapshot:
    """Immutable set of texts to show for one tick.

    A ``None`` field is blank: the metric is disabled or has nothing to show.
    """

    cpu_text: str | None
    memory_text: str | None
    rx_text: str | None
    tx_text: str | None
    interface: str | None = None  # Interface the rx/tx texts were read from
