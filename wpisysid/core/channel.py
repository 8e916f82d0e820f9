# core/channel.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from .exceptions import InvalidChannel
from .sample import Sample


@dataclass(slots=True)
class Channel:
    """
    Logical motor signal: a name plus the samples decoded for it.

    A channel is filled record by record while the log is decoded, then
    `finalize()` puts the samples in timestamp order. Several entry ids
    may feed the same channel; `sources` keeps track of them.
    """
    name: str
    samples: list[Sample] = field(default_factory=list, repr=False)
    sources: set[int] = field(default_factory=set)
    finalized: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidChannel("Channel.name must be a non-empty string.")
        if not isinstance(self.samples, list):
            raise InvalidChannel("Channel.samples must be a list.")

    def append(self, sample: Sample, *, source: int | None = None) -> None:
        if not isinstance(sample, Sample):
            raise InvalidChannel("append() expects a Sample instance.")
        self.samples.append(sample)
        if source is not None:
            self.sources.add(source)
        self.finalized = False

    def finalize(self) -> "Channel":
        # list.sort is stable: equal timestamps keep arrival order
        self.samples.sort(key=lambda s: s.timestamp)
        self.finalized = True
        return self

    # Convenience accessors
    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    @property
    def n(self) -> int:
        return len(self.samples)

    @property
    def time(self) -> np.ndarray:
        return np.array([s.timestamp for s in self.samples], dtype=np.int64)

    @property
    def t_start(self) -> int | None:
        return None if not self.samples else min(s.timestamp for s in self.samples)

    @property
    def t_end(self) -> int | None:
        return None if not self.samples else max(s.timestamp for s in self.samples)
