"""Usage ratio computation between counter samples."""

import logging

from cpuorbit.models import CounterSample
from cpuorbit.numeric import clamp

logger = logging.getLogger(__name__)


def compute_usage(newer: CounterSample, older: CounterSample, fallback: float = 0.0) -> float:
    """
    Fraction of the ticks between two samples of one core that were not idle.

    Args:
        newer: The more recent sample.
        older: The earlier sample of the same core.
        fallback: Last known-good usage, returned when no ticks elapsed or
            the counters went backwards (wrap or reset).

    Returns:
        Usage ratio clamped to [0.0, 1.0].
    """
    total_delta = newer.total - older.total
    if total_delta <= 0:
        if total_delta < 0:
            logger.debug(
                "Counters for %s went backwards by %d ticks, keeping %.3f",
                newer.core_id,
                -total_delta,
                fallback,
            )
        return clamp(fallback, 0.0, 1.0)

    idle_delta = newer.idle_total - older.idle_total
    return clamp(1.0 - idle_delta / total_delta, 0.0, 1.0)


def interpolate_usage(prev_usage: float, last_usage: float, progress: float) -> float:
    """Linear blend from prev_usage (progress 0) to last_usage (progress 1)."""
    progress = clamp(progress, 0.0, 1.0)
    # Weighted form keeps both endpoints exact.
    return prev_usage * (1.0 - progress) + last_usage * progress
