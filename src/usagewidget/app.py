"""usagewidget - Main Textual application."""

import argparse
import logging
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Grid
from textual.widgets import Footer, Label, Select, Static

from usagewidget.models import DisplaySnapshot
from usagewidget.monitor import MonitorLoop
from usagewidget.probe import DEFAULT_SETTLE_INTERVAL, ProbeMode
from usagewidget.source import PsutilSampleSource, SampleSource

logger = logging.getLogger(__name__)


class UsagePanel(Static):
    """Labelled readouts for CPU, memory and network rates."""

    DEFAULT_CSS = """
    UsagePanel {
        height: auto;
        padding: 1;
        background: $surface;
    }

    UsagePanel Grid {
        grid-size: 2;
        grid-columns: 8 1fr;
        height: auto;
    }
    """

    FIELDS = [
        ("cpu-usage", "CPU"),
        ("mem-usage", "Mem"),
        ("rx-usage", "Rx"),
        ("tx-usage", "Tx"),
    ]

    def compose(self) -> ComposeResult:
        """Compose the readout grid."""
        with Grid():
            for field_id, caption in self.FIELDS:
                yield Label(caption)
                yield Static("", id=field_id)

    def update_snapshot(self, snapshot: DisplaySnapshot) -> None:
        """Overwrite every readout with the texts of a snapshot."""
        texts = {
            "cpu-usage": snapshot.cpu_text,
            "mem-usage": snapshot.memory_text,
            "rx-usage": snapshot.rx_text,
            "tx-usage": snapshot.tx_text,
        }
        for field_id, text in texts.items():
            try:
                self.query_one(f"#{field_id}", Static).update(text or "")
            except Exception:
                pass  # Widget not mounted yet


class UsageApp(App):
    """Main usagewidget application."""

    TITLE = "usagewidget"
    SUB_TITLE = "CPU, Memory and Network Usage"

    CSS = """
    Screen {
        layout: vertical;
    }

    #interfaces {
        width: 1fr;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        source: SampleSource | None = None,
        interval: float = 1.0,
        settle_interval: float = DEFAULT_SETTLE_INTERVAL,
        probe_mode: ProbeMode = ProbeMode.DEBOUNCED,
    ) -> None:
        """Initialize the UsageApp."""
        super().__init__()
        self._update_queue: Queue[DisplaySnapshot] = Queue()
        self._monitor = MonitorLoop(
            source if source is not None else PsutilSampleSource(),
            self._update_queue,
            interval=interval,
            settle_interval=settle_interval,
            probe_mode=probe_mode,
            on_interface_probed=self._on_interface_probed,
        )
        self._last_snapshot: DisplaySnapshot | None = None

    @property
    def last_snapshot(self) -> DisplaySnapshot | None:
        """The most recently rendered snapshot."""
        return self._last_snapshot

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Select(
            [(name, index) for index, name in enumerate(self._monitor.interfaces)],
            prompt="Network interface",
            id="interfaces",
        )
        yield UsagePanel(id="usage-panel")
        yield Footer()

    def on_mount(self) -> None:
        """Start the monitor loop when the app is mounted."""
        self._monitor.start()
        # Set up a timer to poll the queue for updates
        self.set_interval(0.5, self._check_for_updates)

    def on_select_changed(self, event: Select.Changed) -> None:
        """Route a user interface selection to the monitor loop."""
        value = event.value
        if not isinstance(value, int) or isinstance(value, bool):
            return  # Blank selection
        try:
            self._monitor.set_active_interface(value)
        except IndexError:
            logger.warning("Ignoring selection of unknown interface %r", value)

    def _on_interface_probed(self, index: int) -> None:
        """Called from the probe thread when the active interface is known."""
        self.call_from_thread(self._select_interface, index)

    def _select_interface(self, index: int) -> None:
        """Show the probed interface in the selector."""
        try:
            self.query_one("#interfaces", Select).value = index
        except Exception:
            pass  # Selector not mounted

    def _check_for_updates(self) -> None:
        """Check the queue for snapshots and render the latest one."""
        try:
            # Drain the queue, only the most recent snapshot is shown
            snapshot = None
            while True:
                try:
                    snapshot = self._update_queue.get_nowait()
                except Empty:
                    break

            if snapshot is not None:
                self._update_ui(snapshot)
        except Exception:
            # The widget must never crash on a bad refresh
            pass

    def _update_ui(self, snapshot: DisplaySnapshot) -> None:
        """Update the UI with a new snapshot."""
        self._last_snapshot = snapshot
        try:
            panel = self.query_one("#usage-panel", UsagePanel)
            panel.update_snapshot(snapshot)
        except Exception:
            pass

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line options."""
    parser = argparse.ArgumentParser(
        prog="usagewidget",
        description="Show CPU, memory and network usage of this host.",
    )
    parser.add_argument("--interval", type=float, default=1.0,
                        help="Seconds between samples (default: 1.0)")
    parser.add_argument("--settle", type=float, default=DEFAULT_SETTLE_INTERVAL,
                        help="Settle time of the startup interface probe (default: 3.0)")
    parser.add_argument("--probe", choices=[mode.value for mode in ProbeMode],
                        default=ProbeMode.DEBOUNCED.value,
                        help="Interface activity detection strategy")
    parser.add_argument("--log-file", default=None,
                        help="Write log messages to this file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level for --log-file (default: INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for usagewidget application."""
    args = parse_args(argv)
    # The terminal belongs to the UI, so logs only go to a file if asked
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=args.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    app = UsageApp(
        interval=args.interval,
        settle_interval=args.settle,
        probe_mode=ProbeMode(args.probe),
    )
    app.run()


if __name__ == "__main__":
    main()
