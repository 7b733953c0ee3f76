"""Frame-driven CPU usage monitor for cpuorbit."""

import logging
import time
from collections.abc import Callable

import numpy as np

from cpuorbit.buffers import BufferSink
from cpuorbit.counters import CounterSource, CounterSourceError
from cpuorbit.numeric import clamp
from cpuorbit.sampler import Sampler

logger = logging.getLogger(__name__)

MIN_SAMPLE_PERIOD = 0.05


class CpuUsageMonitor:
    """
    Rate-limited telemetry driver called once per rendered frame.

    Samples the counter source at most once per sample period and writes
    the interpolated per-core usage into a buffer sink every frame.
    A failed read is logged and retried one period later.
    """

    def __init__(
        self,
        source: CounterSource,
        sink: BufferSink | None = None,
        sample_period: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
        history_capacity: int = 4,
        max_cores: int | None = None,
    ) -> None:
        """
        Initialize the CpuUsageMonitor and take the first sample.

        Args:
            source: Counter table source.
            sink: Buffer receiving float32 usage values, or None.
            sample_period: Seconds between counter reads. Minimum 0.05s.
            clock: Monotonic time source.
            history_capacity: Samples kept per core.
            max_cores: Cores the sink has room for; extra cores are not written.
        """
        self._sink = sink
        self._max_cores = max_cores
        self._clock = clock
        self._sample_period = max(MIN_SAMPLE_PERIOD, sample_period)
        self._sampler = Sampler(source, clock=clock, history_capacity=history_capacity)
        self._last_usage: dict[str, float] = {}
        self.failures = 0
        # Progress runs from the last successful read; retries follow their own schedule.
        self._last_sample_time = clock()
        self._next_attempt = self._last_sample_time + self._sample_period
        self._try_sample(self._last_sample_time)

    @property
    def sample_period(self) -> float:
        """Get the sample period."""
        return self._sample_period

    @sample_period.setter
    def sample_period(self, value: float) -> None:
        """Set the sample period."""
        self._sample_period = max(MIN_SAMPLE_PERIOD, value)

    @property
    def sampler(self) -> Sampler:
        return self._sampler

    @property
    def ncpus(self) -> int:
        return self._sampler.ncpus

    @property
    def last_values(self) -> list[float]:
        """Values written by the most recent update()."""
        return list(self._last_usage.values())

    @property
    def last_usage_by_core(self) -> dict[str, float]:
        """The most recent update() values keyed by core id."""
        return dict(self._last_usage)

    def progress(self, now: float | None = None) -> float:
        """Fraction of a sample period elapsed since the last successful read."""
        if now is None:
            now = self._clock()
        return clamp((now - self._last_sample_time) / self._sample_period, 0.0, 1.0)

    def update(self) -> list[float]:
        """Sample if due, then interpolate and publish usage for this frame."""
        now = self._clock()
        if now >= self._next_attempt:
            self._next_attempt = now + self._sample_period
            self._try_sample(now)

        self._last_usage = self._sampler.usage_by_core(self.progress(now))
        values = list(self._last_usage.values())
        if self._sink is not None and values:
            published = values if self._max_cores is None else values[: self._max_cores]
            self._sink.write(np.asarray(published, dtype=np.float32).tobytes())
        return values

    def usage_by_core(self) -> dict[str, float]:
        return self._sampler.usage_by_core(self.progress())

    def _try_sample(self, now: float) -> None:
        try:
            self._sampler.sample()
        except CounterSourceError as exc:
            self.failures += 1
            logger.warning("CPU counter sample failed: %s", exc)
            return
        self._last_sample_time = now
