"""systop - Main Textual application."""

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Sparkline, Static

from systop.config import Config
from systop.filtering import format_cpu
from systop.input import KeyEvent, Mode
from systop.models import ProcessRow
from systop.monitor import ProcessRefresher, PsutilTelemetry, Telemetry, TelemetrySource
from systop.scheduler import FrameView, Scheduler


def key_event_from_textual(event: events.Key) -> KeyEvent:
    """Translate a Textual key press into a KeyEvent."""
    if event.is_printable and event.character is not None:
        return KeyEvent(code=event.character)
    *modifiers, code = event.key.split("+")
    return KeyEvent(code=code, modifiers=frozenset(modifiers))


class CpuChart(Vertical):
    """Aggregate CPU history chart."""

    DEFAULT_CSS = """
    CpuChart {
        height: 25%;
        min-height: 5;
        border: solid $primary;
        padding: 0 1;
    }

    CpuChart Sparkline {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the chart."""
        yield Sparkline([], summary_function=max, id="cpu-sparkline")

    def on_mount(self) -> None:
        self.border_title = "CPU"

    def update_history(self, view: FrameView) -> None:
        """Show the history series and the current aggregate value."""
        sparkline = self.query_one("#cpu-sparkline", Sparkline)
        sparkline.data = [y for _, y in view.history]
        self.border_title = f"CPU {view.aggregate_cpu_percent:5.1f}%"


class ProcessGrid(DataTable, can_focus=False, inherit_bindings=False):
    """Process table that leaves all key handling to the app."""


class ProcessTable(Vertical):
    """Container for the filtered process table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._rows: list[ProcessRow] = []

    @property
    def rows(self) -> list[ProcessRow]:
        """Rows currently shown, in display order."""
        return self._rows

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield ProcessGrid(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        self.border_title = "Processes"
        table = self.query_one("#process-table", ProcessGrid)
        table.cursor_type = "row"
        table.zebra_stripes = True
        self._ensure_columns(table)

    def _ensure_columns(self, table: ProcessGrid) -> None:
        if table.columns:
            return
        table.add_column("PID", key="pid", width=8)
        table.add_column("Name", key="name")
        table.add_column("CPU%", key="cpu", width=8)

    def update_rows(self, rows: list[ProcessRow], cursor: int | None) -> None:
        """
        Show a new row list and cursor.

        The table body is rebuilt only when the rows changed, which happens
        on full refreshes and query edits rather than every frame.
        """
        table = self.query_one("#process-table", ProcessGrid)
        self._ensure_columns(table)
        if rows != self._rows:
            table.clear()
            table.add_rows(
                (str(row.pid), row.name, format_cpu(row.cpu_percent)) for row in rows
            )
            self._rows = list(rows)
        table.show_cursor = cursor is not None
        if cursor is not None:
            table.move_cursor(row=cursor)


class SearchBox(Static):
    """Search text overlay, shown only while editing the query."""

    DEFAULT_CSS = """
    SearchBox {
        dock: bottom;
        height: 3;
        border: solid $accent;
        display: none;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Search"

    def show_query(self, view: FrameView) -> None:
        """Show or hide the overlay according to the view's mode."""
        self.display = view.mode is Mode.SEARCH
        if self.display:
            self.update(f"{view.query_text}▏")


class StatusLine(Static):
    """Mode and counters."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        background: $surface;
        padding: 0 1;
    }
    """

    def show_status(self, view: FrameView) -> None:
        """Render the status text for a view."""
        parts = [
            view.mode.value.upper(),
            f"{len(view.rows)} processes",
            f"frame {view.frame_index}",
        ]
        if view.query_text:
            parts.append(f"filter: {view.query_text}")
        if view.mode is Mode.NORMAL:
            parts.append("s search  j/k move  q quit")
        else:
            parts.append("esc/enter done")
        self.update("  |  ".join(parts))


class SystopApp(App):
    """Main systop application."""

    TITLE = "systop"
    SUB_TITLE = "Python System Monitor"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        config: Config | None = None,
        source: TelemetrySource | None = None,
    ) -> None:
        """
        Initialize the SystopApp.

        Args:
            config: Application config; defaults are used when omitted.
            source: Telemetry source; psutil is used when omitted.
        """
        super().__init__()
        self._app_config = config or Config()
        source = source or PsutilTelemetry()
        monitor = self._app_config.monitor
        refresher = ProcessRefresher(source) if monitor.background_refresh else None
        self._scheduler = Scheduler(
            Telemetry(source, refresher=refresher),
            history_capacity=monitor.history_capacity,
            full_refresh_period=monitor.full_refresh_period,
        )
        self._last_view: FrameView | None = None
        self._quitting = False

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def last_view(self) -> FrameView | None:
        """The view most recently rendered."""
        return self._last_view

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield CpuChart(id="cpu-chart")
        yield ProcessTable(id="processes")
        yield SearchBox(id="search-box")
        yield StatusLine(id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        """Start sampling when the app is mounted."""
        refresher = self._scheduler.telemetry.refresher
        if refresher is not None:
            refresher.start()
        self._tick_frame()
        self.set_interval(self._app_config.monitor.poll_timeout, self._tick_frame)

    def _tick_frame(self) -> None:
        """Run one frame: quit check, draw pass, render."""
        if self._scheduler.quit_requested:
            self.action_quit()
            return
        self._render_view(self._scheduler.draw_pass())

    def _render_view(self, view: FrameView) -> None:
        self.query_one(CpuChart).update_history(view)
        self.query_one(ProcessTable).update_rows(view.rows, view.cursor)
        self.query_one(SearchBox).show_query(view)
        self.query_one(StatusLine).show_status(view)
        self._last_view = view

    def on_key(self, event: events.Key) -> None:
        """Route every key through the scheduler's input machine."""
        event.stop()
        event.prevent_default()
        self._scheduler.handle_key(key_event_from_textual(event))
        if self._scheduler.quit_requested:
            self.action_quit()
            return
        self._render_view(self._scheduler.view())

    def action_quit(self) -> None:
        """Handle quit action; a second quit while exiting does nothing."""
        self._scheduler.request_quit()
        if self._quitting:
            return
        self._quitting = True
        self._scheduler.close()
        self.exit()

    def on_unmount(self) -> None:
        """Stop background work however the app ends."""
        self._scheduler.close()
