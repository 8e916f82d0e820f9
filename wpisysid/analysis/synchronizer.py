from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import math

from wpisysid.config import AnalysisConfig, DEFAULT_CONFIG
from wpisysid.core import AlignedSample, Sample


# value vector layout of a motor sample
POSITION, VELOCITY, ACCELERATION, VOLTAGE = range(4)
MIN_VALUES = 4


@dataclass(frozen=True)
class SyncResult:
    samples: list[AlignedSample] = field(default_factory=list, repr=False)
    min_power_to_move: float = 0.0

    def __len__(self) -> int:
        return len(self.samples)


def _sign(x: float) -> float:
    return math.copysign(1.0, x) if x != 0 else 0.0


def filter_acceleration(
    raw: float,
    velocity: float,
    prev_velocity: float,
    dt: float,
    tau: float,
) -> float:
    """Blend the logged acceleration with the velocity derivative.

    Single-pole complementary filter: the instantaneous derivative gets
    weight tau, the raw value weight dt.
    """
    instant = (velocity - prev_velocity) / dt
    return (raw * dt + instant * tau) / (dt + tau)


def is_start_of_motion(prev: AlignedSample, cur: AlignedSample, min_voltage: float) -> bool:
    """True for a zero -> non-zero velocity step driven by a same-sign voltage."""
    return (
        prev.velocity == 0
        and cur.velocity != 0
        and abs(cur.voltage) > min_voltage
        and _sign(cur.voltage) == _sign(cur.velocity)
    )


def synchronize(samples: Iterable[Sample], config: AnalysisConfig = DEFAULT_CONFIG) -> SyncResult:
    """Turn a time-ordered sample sequence into aligned motor samples.

    Samples with fewer than four values are dropped. The minimum voltage
    seen at a start of motion is tracked over the whole sequence and
    reported as `min_power_to_move` (0.0 when motion never starts).
    """
    aligned: list[AlignedSample] = []
    min_power = math.inf

    for sample in samples:
        if sample.n < MIN_VALUES:
            continue
        v = sample.values
        raw = float(v[ACCELERATION])
        velocity = float(v[VELOCITY])

        if not aligned:
            aligned.append(
                AlignedSample(
                    timestamp=sample.timestamp,
                    position=float(v[POSITION]),
                    velocity=velocity,
                    acceleration_raw=raw,
                    acceleration_filtered=raw,
                    voltage=float(v[VOLTAGE]),
                    prev_index=None,
                )
            )
            continue

        prev_index = len(aligned) - 1
        prev = aligned[prev_index]
        dt = max((sample.timestamp - prev.timestamp) / config.timestamp_scale, config.min_dt)
        cur = AlignedSample(
            timestamp=sample.timestamp,
            position=float(v[POSITION]),
            velocity=velocity,
            acceleration_raw=raw,
            acceleration_filtered=filter_acceleration(
                raw, velocity, prev.velocity, dt, config.filter_tau
            ),
            voltage=float(v[VOLTAGE]),
            prev_index=prev_index,
        )
        aligned.append(cur)

        if is_start_of_motion(prev, cur, config.min_start_voltage) and abs(cur.voltage) < min_power:
            min_power = abs(cur.voltage)

    return SyncResult(
        samples=aligned,
        min_power_to_move=0.0 if math.isinf(min_power) else min_power,
    )
