from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from wpisysid.config import AnalysisConfig, DEFAULT_CONFIG
from wpisysid.core import AlignedSample


BUCKET_NAMES = ("slow", "mid", "high")


@dataclass(frozen=True)
class Buckets:
    slow: list[AlignedSample] = field(default_factory=list, repr=False)
    mid: list[AlignedSample] = field(default_factory=list, repr=False)
    high: list[AlignedSample] = field(default_factory=list, repr=False)
    thresholds: tuple[float, float, float] = (0.0, 0.0, 0.0)
    discarded: int = 0

    def items(self) -> list[tuple[str, list[AlignedSample]]]:
        return [("slow", self.slow), ("mid", self.mid), ("high", self.high)]


def velocity_thresholds(
    samples: Sequence[AlignedSample],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> tuple[float, float, float]:
    max_v = max((abs(s.velocity) for s in samples), default=0.0)
    return (max_v * config.slow_fraction, max_v * config.mid_fraction, max_v)


def classify_velocity(abs_velocity: float, thresholds: tuple[float, float, float]) -> str:
    """Bucket name for |velocity|; edges belong to the faster bucket."""
    if abs_velocity < thresholds[0]:
        return "slow"
    if abs_velocity < thresholds[1]:
        return "mid"
    return "high"


def is_steady(
    sample: AlignedSample,
    prev: AlignedSample | None,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> bool:
    """Validity test: moving, powered, and not right after a transient."""
    if not (abs(sample.velocity) > config.min_velocity and abs(sample.voltage) > config.min_voltage):
        return False
    if prev is None:
        return True
    return abs(prev.velocity) > config.min_velocity and abs(prev.voltage) > config.min_prev_voltage


def bucketize(samples: Sequence[AlignedSample], config: AnalysisConfig = DEFAULT_CONFIG) -> Buckets:
    """Split an aligned sequence into slow / mid / high velocity buckets.

    `prev_index` of each sample must index into `samples`.
    """
    thresholds = velocity_thresholds(samples, config)
    buckets: dict[str, list[AlignedSample]] = {name: [] for name in BUCKET_NAMES}
    discarded = 0

    for s in samples:
        prev = samples[s.prev_index] if s.prev_index is not None else None
        if not is_steady(s, prev, config):
            discarded += 1
            continue
        buckets[classify_velocity(abs(s.velocity), thresholds)].append(s)

    return Buckets(
        slow=buckets["slow"],
        mid=buckets["mid"],
        high=buckets["high"],
        thresholds=thresholds,
        discarded=discarded,
    )
