"""Data models for cpuorbit."""

from dataclasses import dataclass

# Order of the accumulator columns in a counter row.
COUNTER_FIELDS: tuple[str, ...] = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)


@dataclass(slots=True, frozen=True)
class CounterSample:
    """Immutable snapshot of one core's cumulative time counters."""

    core_id: str  # 'cpu0', 'cpu1', ...
    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int
    captured_at: float  # Monotonic seconds

    @property
    def total(self) -> int:
        """Sum of every accumulator field."""
        return sum(self.counters())

    @property
    def idle_total(self) -> int:
        """Ticks spent idle, including time waiting on I/O."""
        return self.idle + self.iowait

    def counters(self) -> tuple[int, ...]:
        """Accumulator values in COUNTER_FIELDS order."""
        return tuple(getattr(self, name) for name in COUNTER_FIELDS)


def core_number(core_id: str) -> int:
    """Numeric suffix of a core id ('cpu12' -> 12), -1 when there is none."""
    digits = core_id[3:] if core_id.startswith("cpu") else core_id
    return int(digits) if digits.isdigit() else -1
