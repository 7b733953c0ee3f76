"""Tests for counter sources and row parsing."""

from collections import namedtuple

import pytest

from cpuorbit import counters
from cpuorbit.counters import (
    CounterSourceError,
    ProcStatSource,
    PsutilSource,
    default_counter_source,
    parse_row,
)

PROC_STAT = """\
cpu  4705 356 584 3699 23 23 0 0 0 0
cpu0 1393280 32966 572056 13343292 6130 0 17875 0 0 0
cpu1 1335 80 337 14240 9 12 2 0 0 0
intr 114930548 113199788 3 0 5 263 0 4 [... lots more numbers ...]
ctxt 1990473
btime 1062191376
processes 2915
"""


class TestParseRow:
    """Tests for parse_row."""

    def test_parses_core_row(self):
        """Test a per-core row parses into a CounterSample."""
        sample = parse_row("cpu1 1335 80 337 14240 9 12 2 3 4 5", captured_at=7.0)

        assert sample is not None
        assert sample.core_id == "cpu1"
        assert sample.user == 1335
        assert sample.nice == 80
        assert sample.system == 337
        assert sample.idle == 14240
        assert sample.iowait == 9
        assert sample.irq == 12
        assert sample.softirq == 2
        assert sample.steal == 3
        assert sample.guest == 4
        assert sample.guest_nice == 5
        assert sample.captured_at == 7.0

    def test_skips_aggregate_row(self):
        """Test the all-cores row is ignored."""
        assert parse_row("cpu  4705 356 584 3699 23 23 0 0 0 0", 0.0) is None

    def test_skips_non_cpu_rows(self):
        """Test rows without the cpu prefix are ignored."""
        assert parse_row("intr 114930548 113199788 3 0 5 263 0 4 0 0 0", 0.0) is None
        assert parse_row("ctxt 1990473", 0.0) is None

    def test_skips_blank_row(self):
        """Test empty lines are ignored."""
        assert parse_row("", 0.0) is None
        assert parse_row("   \n", 0.0) is None

    def test_skips_short_row(self):
        """Test rows with fewer than ten counters are skipped."""
        assert parse_row("cpu0 1 2 3 4", 0.0) is None

    def test_skips_non_numeric_row(self):
        """Test rows with garbage counters are skipped."""
        assert parse_row("cpu0 1 2 x 4 5 6 7 8 9 10", 0.0) is None
        assert parse_row("cpu0 1 2 -3 4 5 6 7 8 9 10", 0.0) is None
        assert parse_row("cpu0 1 2 3.5 4 5 6 7 8 9 10", 0.0) is None

    def test_ignores_extra_columns(self):
        """Test trailing columns beyond the known ten are ignored."""
        sample = parse_row("cpu0 1 2 3 4 5 6 7 8 9 10 11 12", 0.0)
        assert sample is not None
        assert sample.guest_nice == 10

    def test_accepts_large_counters(self):
        """Test counters near the unsigned 64-bit limit parse exactly."""
        big = 2**64 - 1
        sample = parse_row(f"cpu0 {big} 0 0 0 0 0 0 0 0 0", 0.0)
        assert sample is not None
        assert sample.user == big


class TestProcStatSource:
    """Tests for the /proc/stat reader."""

    def test_reads_rows(self, tmp_path):
        """Test the table is read line by line."""
        path = tmp_path / "stat"
        path.write_text(PROC_STAT)

        rows = ProcStatSource(str(path)).read_rows()

        assert len(rows) == PROC_STAT.count("\n")
        parsed = [sample for row in rows if (sample := parse_row(row, 0.0)) is not None]
        assert [sample.core_id for sample in parsed] == ["cpu0", "cpu1"]

    def test_missing_file_raises_counter_source_error(self, tmp_path):
        """Test an unreadable source raises CounterSourceError."""
        source = ProcStatSource(str(tmp_path / "missing"))

        with pytest.raises(CounterSourceError) as excinfo:
            source.read_rows()

        assert isinstance(excinfo.value, OSError)
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_default_path(self):
        """Test the default path is the kernel table."""
        assert ProcStatSource().path == "/proc/stat"


class TestPsutilSource:
    """Tests for the psutil backed source."""

    def test_rows_from_cpu_times(self, monkeypatch):
        """Test psutil seconds become USER_HZ ticks in table order."""
        times = namedtuple("scputimes", "user nice system idle")
        monkeypatch.setattr(
            counters.psutil,
            "cpu_times",
            lambda percpu=False: [times(1.5, 0.0, 0.25, 10.0), times(2.0, 0.01, 0.0, 3.0)],
        )

        rows = PsutilSource().read_rows()

        assert rows == [
            "cpu0 150 0 25 1000 0 0 0 0 0 0",
            "cpu1 200 1 0 300 0 0 0 0 0 0",
        ]

    def test_oserror_becomes_counter_source_error(self, monkeypatch):
        """Test psutil failures surface as CounterSourceError."""

        def broken(percpu=False):
            raise PermissionError("denied")

        monkeypatch.setattr(counters.psutil, "cpu_times", broken)

        with pytest.raises(CounterSourceError):
            PsutilSource().read_rows()

    def test_real_system_rows_parse(self):
        """Test rows from the running system parse into samples."""
        rows = PsutilSource().read_rows()

        assert len(rows) > 0
        assert all(parse_row(row, 0.0) is not None for row in rows)


class TestDefaultCounterSource:
    """Tests for source selection."""

    def test_falls_back_to_psutil(self, monkeypatch):
        """Test psutil is used when /proc/stat is unreadable."""
        monkeypatch.setattr(counters.os, "access", lambda path, mode: False)
        assert isinstance(default_counter_source(), PsutilSource)

    def test_prefers_proc_stat(self, monkeypatch):
        """Test /proc/stat is used when readable."""
        monkeypatch.setattr(counters.os, "access", lambda path, mode: True)
        assert isinstance(default_counter_source(), ProcStatSource)
