# core/sample.py
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .exceptions import InvalidSample


@dataclass(frozen=True, slots=True)
class Sample:
    """Immutable decoded value vector stamped with its log timestamp (µs)."""

    timestamp: int
    values: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, (int, np.integer)):
            raise InvalidSample(f"`timestamp` must be an int, got {type(self.timestamp).__name__}")

        v = np.array(self.values, dtype=np.float64)
        if v.ndim != 1:
            raise InvalidSample(f"`values` must be 1D, got shape {v.shape}")
        v.setflags(write=False)

        object.__setattr__(self, "timestamp", int(self.timestamp))
        object.__setattr__(self, "values", v)

    @property
    def n(self) -> int:
        return int(self.values.size)


@dataclass(frozen=True, slots=True)
class AlignedSample:
    """
    Time-synchronized motor sample.

    `prev_index` points at the preceding AlignedSample of the same
    sequence (None for the first one); it is never an ownership link.
    """

    timestamp: int
    position: float
    velocity: float
    acceleration_raw: float
    acceleration_filtered: float
    voltage: float
    prev_index: int | None = None

    def __post_init__(self) -> None:
        if self.prev_index is not None and self.prev_index < 0:
            raise InvalidSample("`prev_index` must be None or >= 0.")


def aligned_to_numpy(samples: list[AlignedSample]) -> dict[str, np.ndarray]:
    """Column view of an aligned sequence, one array per field."""
    return {
        "timestamp": np.array([s.timestamp for s in samples], dtype=np.int64),
        "position": np.array([s.position for s in samples], dtype=np.float64),
        "velocity": np.array([s.velocity for s in samples], dtype=np.float64),
        "acceleration_raw": np.array([s.acceleration_raw for s in samples], dtype=np.float64),
        "acceleration_filtered": np.array(
            [s.acceleration_filtered for s in samples], dtype=np.float64
        ),
        "voltage": np.array([s.voltage for s in samples], dtype=np.float64),
    }
