"""Data models for systop."""

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class ProcessRow:
    """Immutable capture of one process at a full-refresh tick."""

    pid: int
    name: str
    cpu_percent: float  # 0.0 - 100.0 * core_count


@dataclass(slots=True)
class TelemetrySnapshot:
    """Latest telemetry view held by the scheduler.

    ``processes`` is only ever replaced as a whole tuple; ``aggregate_cpu_percent``
    is overwritten every frame.
    """

    aggregate_cpu_percent: float = 0.0
    processes: tuple[ProcessRow, ...] = field(default_factory=tuple)


@dataclass(slots=True, frozen=True)
class HistorySample:
    """One aggregate CPU sample tagged with the frame it was taken on."""

    tick_index: int
    value: float  # 0.0 - 100.0


@dataclass(slots=True, frozen=True)
class Query:
    """Search text and whether it is currently being edited."""

    text: str = ""
    active: bool = False

    def insert(self, char: str) -> "Query":
        """Return a query with ``char`` appended."""
        return Query(text=self.text + char, active=self.active)

    def backspace(self) -> "Query":
        """Return a query with the last character removed."""
        return Query(text=self.text[:-1], active=self.active)
