"""Shared test fixtures for systop."""

import threading

import pytest

from systop.models import ProcessRow


class FakeTelemetry:
    """Scriptable telemetry source.

    ``tables`` and ``cpu_values`` are consumed one per call; the last entry
    repeats. A None entry simulates an unavailable collaborator.
    """

    def __init__(
        self,
        tables: list[list[ProcessRow] | None] | None = None,
        cpu_values: list[float | None] | None = None,
    ) -> None:
        self.tables = list(tables) if tables is not None else [[]]
        self.cpu_values = list(cpu_values) if cpu_values is not None else [0.0]
        self.list_calls = 0
        self.cpu_calls = 0
        self._lock = threading.Lock()

    def list_processes(self) -> list[ProcessRow] | None:
        with self._lock:
            index = min(self.list_calls, len(self.tables) - 1)
            self.list_calls += 1
            return self.tables[index]

    def global_cpu_percent(self) -> float | None:
        index = min(self.cpu_calls, len(self.cpu_values) - 1)
        self.cpu_calls += 1
        return self.cpu_values[index]


def make_row(pid: int, name: str = "proc", cpu: float = 0.0) -> ProcessRow:
    """Create a ProcessRow for testing."""
    return ProcessRow(pid=pid, name=name, cpu_percent=cpu)


@pytest.fixture
def scenario_rows() -> list[ProcessRow]:
    """The three-process table used by the end-to-end scenarios."""
    return [make_row(1, "a", 10.0), make_row(2, "b", 50.0), make_row(3, "c", 50.0)]


@pytest.fixture
def fake_source(scenario_rows) -> FakeTelemetry:
    """Telemetry source that always reports the scenario table."""
    return FakeTelemetry(tables=[scenario_rows], cpu_values=[25.0])
