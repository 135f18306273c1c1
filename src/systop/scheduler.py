"""Frame scheduler: sampling cadence, key routing and the draw loop."""

from collections.abc import Callable
from dataclasses import dataclass

from systop.filtering import filter_rows
from systop.history import DEFAULT_CAPACITY, HistoryBuffer
from systop.input import Command, InputMachine, KeyEvent, Mode
from systop.logging import get_logger
from systop.models import ProcessRow
from systop.monitor import Telemetry
from systop.selection import SelectionState

log = get_logger(__name__)

DEFAULT_FULL_REFRESH_PERIOD = 60
DEFAULT_POLL_TIMEOUT = 0.06


@dataclass(slots=True, frozen=True)
class FrameView:
    """Everything a render surface needs for one frame."""

    frame_index: int
    aggregate_cpu_percent: float
    history: list[tuple[float, float]]
    rows: list[ProcessRow]
    cursor: int | None
    mode: Mode
    query_text: str

    @property
    def selected(self) -> ProcessRow | None:
        if self.cursor is None:
            return None
        return self.rows[self.cursor]


class Scheduler:
    """
    Drives one monitor session.

    Each draw pass samples aggregate CPU, refreshes the full process table
    every ``full_refresh_period`` frames, records history, and rebuilds the
    filtered row list. Everything runs on the caller's thread.
    """

    def __init__(
        self,
        telemetry: Telemetry,
        history_capacity: int = DEFAULT_CAPACITY,
        full_refresh_period: int = DEFAULT_FULL_REFRESH_PERIOD,
    ) -> None:
        """
        Initialize the Scheduler.

        Args:
            telemetry: Owner of the telemetry snapshot.
            history_capacity: Number of CPU samples kept for the chart.
            full_refresh_period: Frames between full process-table refreshes.
        """
        if full_refresh_period < 1:
            raise ValueError(f"full_refresh_period must be at least 1, got {full_refresh_period}")
        self._telemetry = telemetry
        self._history = HistoryBuffer(history_capacity)
        self._full_refresh_period = full_refresh_period
        self._input = InputMachine()
        self._selection = SelectionState()
        self._frame_index = 0
        self._quit_requested = False
        self._closed = False

    @property
    def telemetry(self) -> Telemetry:
        return self._telemetry

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def input(self) -> InputMachine:
        return self._input

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def frame_count(self) -> int:
        """Number of draw passes run so far."""
        return self._frame_index

    @property
    def quit_requested(self) -> bool:
        return self._quit_requested

    @property
    def closed(self) -> bool:
        return self._closed

    def request_quit(self) -> None:
        self._quit_requested = True

    def handle_key(self, event: KeyEvent) -> Command:
        """Route a key through the input machine and apply its command."""
        command = self._input.handle(event)
        if command is Command.QUIT:
            self.request_quit()
        elif command in (Command.CURSOR_DOWN, Command.CURSOR_UP):
            # Navigate against the list the operator is looking at
            self._selection.clamp(len(self._visible_rows()))
            if command is Command.CURSOR_DOWN:
                self._selection.select_next()
            else:
                self._selection.select_previous()
        return command

    def draw_pass(self) -> FrameView:
        """Sample telemetry for one frame and build its view."""
        frame_index = self._frame_index
        self._frame_index += 1

        if frame_index % self._full_refresh_period == 0:
            self._telemetry.refresh_all()
        else:
            self._telemetry.collect_pending()
        value = self._telemetry.refresh_aggregate()
        self._history.push(value, tick_index=frame_index)
        return self._build_view(frame_index)

    def view(self) -> FrameView:
        """Rebuild the current frame's view without sampling."""
        return self._build_view(max(self._frame_index - 1, 0))

    def iterate(self, key: KeyEvent | None = None) -> FrameView | None:
        """
        Run one loop iteration.

        Returns:
            The frame's view, or None once quit has been requested.
        """
        if self._quit_requested:
            return None
        if key is not None:
            self.handle_key(key)
            if self._quit_requested:
                return None
        return self.draw_pass()

    def run(
        self,
        wait_for_key: Callable[[float], KeyEvent | None],
        render: Callable[[FrameView], None],
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
    ) -> int:
        """
        Loop until quit: wait for a key (bounded), then draw.

        Serves callers that own a blocking key source; the Textual app drives
        draw_pass() from its interval timer instead.

        Args:
            wait_for_key: Blocks up to the given seconds; returns a key or None.
            render: Draws a frame. Exceptions propagate after cleanup.
            poll_timeout: Upper bound on the wait between frames.

        Returns:
            Number of frames drawn.
        """
        try:
            key: KeyEvent | None = None
            while True:
                view = self.iterate(key)
                if view is None:
                    break
                render(view)
                key = wait_for_key(poll_timeout)
        finally:
            self.close()
        return self._frame_index

    def close(self) -> bool:
        """
        Release resources held by the session.

        Returns:
            True the first time; later calls do nothing and return False.
        """
        if self._closed:
            return False
        self._closed = True
        self._quit_requested = True
        refresher = self._telemetry.refresher
        if refresher is not None:
            refresher.stop()
        log.info("session_closed", frames=self._frame_index)
        return True

    def _visible_rows(self) -> list[ProcessRow]:
        return filter_rows(self._telemetry.snapshot.processes, self._input.query.text)

    def _build_view(self, frame_index: int) -> FrameView:
        rows = self._visible_rows()
        cursor = self._selection.clamp(len(rows))
        query = self._input.query
        return FrameView(
            frame_index=frame_index,
            aggregate_cpu_percent=self._telemetry.snapshot.aggregate_cpu_percent,
            history=self._history.as_series(),
            rows=rows,
            cursor=cursor,
            mode=self._input.mode,
            query_text=query.text,
        )
