"""Kernel CPU counter sources and row parsing."""

import logging
import os
from collections.abc import Iterable
from typing import Protocol

import psutil

from cpuorbit.models import COUNTER_FIELDS, CounterSample

logger = logging.getLogger(__name__)

PROC_STAT_PATH = "/proc/stat"
CPU_ROW_PREFIX = "cpu"
AGGREGATE_ROW = "cpu"
USER_HZ = 100  # Kernel clock ticks per second reported in /proc/stat


class CounterSourceError(OSError):
    """The counter table could not be read at all."""


class CounterSource(Protocol):
    """Anything that can return the current counter table as text rows."""

    def read_rows(self) -> Iterable[str]: ...


def parse_row(row: str, captured_at: float) -> CounterSample | None:
    """
    Parse one counter table row into a CounterSample.

    Returns None for rows that are not per-core rows (including the
    aggregate ``cpu`` row) and for rows whose counters are missing or
    not unsigned integers.
    """
    words = row.split()
    if not words or not words[0].startswith(CPU_ROW_PREFIX) or words[0] == AGGREGATE_ROW:
        return None

    values = words[1 : len(COUNTER_FIELDS) + 1]
    if len(values) < len(COUNTER_FIELDS):
        logger.debug("Skipping short counter row: %r", row)
        return None
    if not all(value.isascii() and value.isdigit() for value in values):
        logger.debug("Skipping malformed counter row: %r", row)
        return None

    counters = dict(zip(COUNTER_FIELDS, map(int, values)))
    return CounterSample(core_id=words[0], captured_at=captured_at, **counters)


class ProcStatSource:
    """Reads the Linux ``/proc/stat`` table on every call."""

    def __init__(self, path: str = PROC_STAT_PATH) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def read_rows(self) -> list[str]:
        try:
            with open(self._path, encoding="ascii", errors="replace") as handle:
                return handle.readlines()
        except OSError as exc:
            raise CounterSourceError(f"cannot read {self._path}: {exc}") from exc


class PsutilSource:
    """
    Builds ``/proc/stat`` style rows from ``psutil.cpu_times(percpu=True)``.

    psutil reports seconds as floats; they are converted to USER_HZ ticks
    so the rows parse exactly like the kernel table. Fields a platform does
    not report are written as 0.
    """

    def read_rows(self) -> list[str]:
        try:
            per_core = psutil.cpu_times(percpu=True)
        except (OSError, psutil.Error) as exc:
            raise CounterSourceError(f"cannot read cpu times: {exc}") from exc

        rows = []
        for index, times in enumerate(per_core):
            ticks = (
                str(max(0, round(getattr(times, name, 0.0) * USER_HZ)))
                for name in COUNTER_FIELDS
            )
            rows.append(f"cpu{index} {' '.join(ticks)}")
        return rows


def default_counter_source() -> CounterSource:
    """Use /proc/stat where the kernel provides it, psutil elsewhere."""
    if os.access(PROC_STAT_PATH, os.R_OK):
        return ProcStatSource()
    logger.info("%s not readable, falling back to psutil", PROC_STAT_PATH)
    return PsutilSource()
