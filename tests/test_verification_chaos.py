"""Verification Test: Chaos Monkey - unreliable counter sources.

The counter source may vanish, return garbage rows or reset its counters
at any time. The monitor must keep producing values in [0, 1] and never
raise out of update().
"""

import math
import random

from cpuorbit.counters import CounterSourceError
from cpuorbit.monitor import CpuUsageMonitor

from conftest import format_row


class ChaosSource:
    """Counter source that randomly fails, corrupts rows and resets counters."""

    def __init__(self, seed: int, ncpus: int = 8) -> None:
        self.rng = random.Random(seed)
        self.ncpus = ncpus
        self.counters = [[0, 0] for _ in range(ncpus)]
        self.failures = 0

    def read_rows(self) -> list[str]:
        roll = self.rng.random()
        if roll < 0.1:
            self.failures += 1
            raise CounterSourceError("counter table vanished")

        rows = [format_row("cpu", user=1, idle=1)]
        for core, counters in enumerate(self.counters):
            if self.rng.random() < 0.05:
                # Counter reset, as after a hotplug
                counters[0] = counters[1] = 0
            else:
                counters[0] += self.rng.randrange(0, 50)
                counters[1] += self.rng.randrange(0, 50)
            if self.rng.random() < 0.05:
                rows.append(f"cpu{core} garbage\n")
            else:
                rows.append(format_row(f"cpu{core}", user=counters[0], idle=counters[1]))
        self.rng.shuffle(rows)
        return rows


class TestChaosMonkey:
    """Chaos Monkey verification suite tests."""

    def test_monitor_survives_chaotic_source(self, fake_clock):
        """Test update() never raises and values stay finite and in range."""
        source = ChaosSource(seed=42)
        monitor = CpuUsageMonitor(source, sample_period=0.25, clock=fake_clock)

        produced = 0
        for _ in range(2000):
            fake_clock.advance(0.0625)
            values = monitor.update()
            produced += bool(values)
            assert len(values) <= source.ncpus
            for value in values:
                assert math.isfinite(value)
                assert 0.0 <= value <= 1.0

        assert source.failures > 0
        assert monitor.failures == source.failures
        assert produced > 0
