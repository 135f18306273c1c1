"""Telemetry sampling for systop."""

import threading
from collections.abc import Sequence
from queue import Empty, Full, Queue
from typing import Protocol

import psutil

from systop.logging import get_logger
from systop.models import ProcessRow, TelemetrySnapshot

log = get_logger(__name__)


class TelemetrySource(Protocol):
    """What the scheduler consumes from the operating system.

    Both calls return None instead of raising when telemetry is unavailable.
    """

    def list_processes(self) -> Sequence[ProcessRow] | None: ...

    def global_cpu_percent(self) -> float | None: ...


class PsutilTelemetry:
    """Telemetry source backed by psutil."""

    ATTRS = ["pid", "name", "cpu_percent"]

    def __init__(self) -> None:
        # Prime delta counters (first call returns 0.0)
        try:
            psutil.cpu_percent(interval=None)
        except (psutil.Error, OSError) as exc:
            log.debug("cpu_percent_unavailable", error=str(exc))

    def list_processes(self) -> list[ProcessRow] | None:
        """
        Collect a row for every running process.

        Processes that die, deny access or turn zombie mid-iteration are
        skipped. If the process table itself cannot be read, returns None.
        """
        rows: list[ProcessRow] = []
        try:
            for proc in psutil.process_iter(attrs=self.ATTRS):
                try:
                    info = proc.info
                    rows.append(
                        ProcessRow(
                            pid=info.get("pid", proc.pid),
                            name=info.get("name") or "",
                            cpu_percent=float(info.get("cpu_percent") or 0.0),
                        )
                    )
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
        except (psutil.Error, OSError) as exc:
            log.debug("process_table_unavailable", error=str(exc))
            return None
        return rows

    def global_cpu_percent(self) -> float | None:
        """System-wide CPU percentage since the previous call."""
        try:
            return float(psutil.cpu_percent(interval=None))
        except (psutil.Error, OSError) as exc:
            log.debug("cpu_percent_unavailable", error=str(exc))
            return None


class ProcessRefresher:
    """
    Background worker that reads the process table off the draw loop.

    A single daemon thread serves refresh requests; requests arriving while a
    refresh is running coalesce into one, so at most one refresh is in flight.
    Finished tables are handed over whole through a one-slot queue.
    """

    def __init__(self, source: TelemetrySource, idle_timeout: float = 0.5) -> None:
        """
        Initialize the ProcessRefresher.

        Args:
            source: Where process tables come from.
            idle_timeout: How often the idle worker checks for a stop request.
        """
        self._source = source
        self._idle_timeout = idle_timeout
        self._requested = threading.Event()
        self._stop_event = threading.Event()
        self._results: Queue[tuple[ProcessRow, ...]] = Queue(maxsize=1)
        self._thread: threading.Thread | None = None
        self._in_flight = 0
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Check if the worker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def in_flight(self) -> int:
        """Number of refreshes currently executing (0 or 1)."""
        with self._lock:
            return self._in_flight

    def start(self) -> None:
        """Start the worker thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._work_loop,
            daemon=True,
            name="ProcessRefresher",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the worker thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        self._requested.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def request(self) -> None:
        """Ask for a fresh process table."""
        self._requested.set()

    def poll(self) -> tuple[ProcessRow, ...] | None:
        """Return the newest finished table, or None if nothing new arrived."""
        latest = None
        while True:
            try:
                latest = self._results.get_nowait()
            except Empty:
                return latest

    def _work_loop(self) -> None:
        """Main loop running in the background thread."""
        while not self._stop_event.is_set():
            if not self._requested.wait(timeout=self._idle_timeout):
                continue
            self._requested.clear()
            if self._stop_event.is_set():
                break

            with self._lock:
                self._in_flight += 1
            try:
                rows = self._source.list_processes()
            except Exception:
                # Keep the worker alive; the next request is the retry
                log.exception("background_refresh_failed")
                rows = None
            finally:
                with self._lock:
                    self._in_flight -= 1
            if rows is not None:
                self._publish(tuple(rows))

    def _publish(self, rows: tuple[ProcessRow, ...]) -> None:
        # Replace any table the reader has not picked up yet
        while True:
            try:
                self._results.put_nowait(rows)
                return
            except Full:
                try:
                    self._results.get_nowait()
                except Empty:
                    pass


class Telemetry:
    """
    Owner of the current TelemetrySnapshot.

    When a source call yields nothing the previous values stay in place, so
    readers always see the last consistent capture.
    """

    def __init__(
        self,
        source: TelemetrySource,
        refresher: ProcessRefresher | None = None,
    ) -> None:
        self._source = source
        self._refresher = refresher
        self._snapshot = TelemetrySnapshot()
        self._unavailable: set[str] = set()

    @property
    def snapshot(self) -> TelemetrySnapshot:
        return self._snapshot

    @property
    def refresher(self) -> ProcessRefresher | None:
        return self._refresher

    def refresh_all(self) -> tuple[ProcessRow, ...]:
        """Replace the process table with a fresh one, if one is available."""
        if self._refresher is not None:
            self._refresher.request()
            rows = self._refresher.poll()
        else:
            rows = self._source.list_processes()
        if rows is None:
            if self._refresher is None:
                self._mark_unavailable("processes")
            return self._snapshot.processes
        self._mark_available("processes")
        self._snapshot.processes = tuple(rows)
        log.debug("processes_refreshed", count=len(self._snapshot.processes))
        return self._snapshot.processes

    def collect_pending(self) -> None:
        """Pick up a table finished by the background refresher, if any."""
        if self._refresher is None:
            return
        rows = self._refresher.poll()
        if rows is not None:
            self._snapshot.processes = rows
            log.debug("processes_refreshed", count=len(rows), background=True)

    def refresh_aggregate(self) -> float:
        """Update the global CPU percentage, keeping the old value on failure."""
        value = self._source.global_cpu_percent()
        if value is None:
            self._mark_unavailable("cpu")
        else:
            self._mark_available("cpu")
            self._snapshot.aggregate_cpu_percent = value
        return self._snapshot.aggregate_cpu_percent

    def _mark_unavailable(self, what: str) -> None:
        if what not in self._unavailable:
            self._unavailable.add(what)
            log.warning("telemetry_unavailable", source=what)

    def _mark_available(self, what: str) -> None:
        if what in self._unavailable:
            self._unavailable.discard(what)
            log.info("telemetry_recovered", source=what)
