"""Per-core counter history and usage interpolation."""

import logging
import time
from collections import deque
from collections.abc import Callable

from cpuorbit.counters import CounterSource, parse_row
from cpuorbit.models import CounterSample, core_number
from cpuorbit.usage import compute_usage, interpolate_usage

logger = logging.getLogger(__name__)

MIN_HISTORY = 3  # Samples needed before a core has both prev and last usage


class CoreHistory:
    """
    Bounded, oldest-first sample history for one core.

    Also caches the two most recent usage ratios so interpolation never
    has to recompute them per frame.
    """

    def __init__(self, core_id: str, capacity: int = 4) -> None:
        if capacity < MIN_HISTORY:
            raise ValueError(f"history capacity must be at least {MIN_HISTORY}")
        self.core_id = core_id
        self._samples: deque[CounterSample] = deque(maxlen=capacity)
        self._count = 0
        self.prev_usage: float | None = None
        self.last_usage: float | None = None

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    @property
    def count(self) -> int:
        """Total samples ever appended, including discarded ones."""
        return self._count

    @property
    def latest(self) -> CounterSample | None:
        return self._samples[-1] if self._samples else None

    @property
    def is_eligible(self) -> bool:
        """True once three samples have been seen."""
        return self._count >= MIN_HISTORY

    def append(self, sample: CounterSample) -> None:
        """Append a sample and roll the usage pair forward."""
        previous = self.latest
        self._samples.append(sample)
        self._count += 1
        if previous is None:
            return

        fallback = self.last_usage if self.last_usage is not None else 0.0
        usage = compute_usage(sample, previous, fallback=fallback)
        self.prev_usage = self.last_usage
        self.last_usage = usage

    def samples(self) -> list[CounterSample]:
        return list(self._samples)

    def interpolate(self, progress: float) -> float | None:
        """Usage between prev and last, or None before the core is eligible."""
        if not self.is_eligible or self.prev_usage is None or self.last_usage is None:
            return None
        return interpolate_usage(self.prev_usage, self.last_usage, progress)


class Sampler:
    """
    Reads the counter table and appends one sample per core.

    Single-threaded: sample() and interpolate() must be called from the
    same thread (the frame loop).
    """

    def __init__(
        self,
        source: CounterSource,
        clock: Callable[[], float] = time.monotonic,
        history_capacity: int = 4,
    ) -> None:
        """
        Initialize the Sampler.

        Args:
            source: Where counter rows are read from.
            clock: Monotonic time source used to stamp samples.
            history_capacity: Samples kept per core (at least 3).
        """
        if history_capacity < MIN_HISTORY:
            raise ValueError(f"history capacity must be at least {MIN_HISTORY}")
        self._source = source
        self._clock = clock
        self._history_capacity = history_capacity
        self._histories: dict[str, CoreHistory] = {}

    @property
    def ncpus(self) -> int:
        """Number of cores seen so far."""
        return len(self._histories)

    def history(self, core_id: str) -> CoreHistory | None:
        return self._histories.get(core_id)

    def core_ids(self) -> list[str]:
        """Core ids ordered by core number."""
        return sorted(self._histories, key=lambda core_id: (core_number(core_id), core_id))

    def sample(self) -> int:
        """
        Read the full counter table and append to each core's history.

        Malformed rows and the aggregate row are skipped. A core appearing
        twice in one pass keeps only its first row.

        Returns:
            Number of cores sampled in this pass.

        Raises:
            CounterSourceError: If the source cannot be read.
        """
        rows = self._source.read_rows()
        captured_at = self._clock()
        seen: set[str] = set()

        for row in rows:
            sample = parse_row(row, captured_at)
            if sample is None:
                continue
            if sample.core_id in seen:
                logger.debug("Duplicate row for %s in one pass, ignoring", sample.core_id)
                continue
            seen.add(sample.core_id)

            history = self._histories.get(sample.core_id)
            if history is None:
                history = CoreHistory(sample.core_id, self._history_capacity)
                self._histories[sample.core_id] = history
            history.append(sample)

        return len(seen)

    def interpolate(self, progress: float) -> list[float]:
        """
        Interpolated usage for every eligible core, ordered by core number.

        Cores with fewer than three samples are omitted, so the result may
        be shorter than ncpus right after startup.
        """
        return list(self.usage_by_core(progress).values())

    def usage_by_core(self, progress: float) -> dict[str, float]:
        """Like interpolate(), keyed by core id."""
        result: dict[str, float] = {}
        for core_id in self.core_ids():
            value = self._histories[core_id].interpolate(progress)
            if value is not None:
                result[core_id] = value
        return result
