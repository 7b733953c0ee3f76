"""Shared fixtures: deterministic clocks and counter sources."""

import pytest

from cpuorbit.counters import CounterSourceError
from cpuorbit.models import COUNTER_FIELDS


def format_row(core_id: str, **counters: int) -> str:
    """Build a counter table row; unspecified fields are 0."""
    values = " ".join(str(counters.get(name, 0)) for name in COUNTER_FIELDS)
    return f"{core_id} {values}\n"


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource:
    """
    Returns scripted tables in order; the last table repeats.

    Set `fail` to make the next reads raise CounterSourceError.
    """

    def __init__(self, tables: list[list[str]]) -> None:
        self.tables = tables
        self.reads = 0
        self.fail = False

    def read_rows(self) -> list[str]:
        if self.fail:
            raise CounterSourceError("counter table unavailable")
        table = self.tables[min(self.reads, len(self.tables) - 1)]
        self.reads += 1
        return table


class CountingSource:
    """Synthesises ncpus busy-ish cores whose counters grow on every read."""

    def __init__(self, ncpus: int = 4) -> None:
        self.ncpus = ncpus
        self.reads = 0

    def read_rows(self) -> list[str]:
        self.reads += 1
        n = self.reads
        rows = [format_row("cpu", user=n * 100 * self.ncpus, idle=n * 100 * self.ncpus)]
        for core in range(self.ncpus):
            busy = 10 * (core + 1)
            rows.append(format_row(f"cpu{core}", user=n * busy, idle=n * (100 - busy)))
        return rows


@pytest.fixture
def make_row():
    """Factory for counter table rows."""
    return format_row


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_source_factory():
    """Factory for scripted counter sources."""
    return FakeSource


@pytest.fixture
def counting_source() -> CountingSource:
    return CountingSource()
