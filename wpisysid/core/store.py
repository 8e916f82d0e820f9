# wpisysid/core/store.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .channel import Channel
from .exceptions import ChannelNotFound, InvalidChannel
from .sample import Sample
from .schema import ChannelSchema


@dataclass(slots=True)
class SampleStore:
    """
    Decoded samples grouped by logical channel name.

    Design goals:
    - easy access: store["Shooter/motor"]
    - names, not ids, are the unit: every entry id declaring the same
      name feeds the same Channel
    - finalize() once after decoding, before analysis
    """
    channels: dict[str, Channel] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.channels, dict):
            raise InvalidChannel("SampleStore.channels must be a dict.")
        for key, ch in self.channels.items():
            if not isinstance(ch, Channel):
                raise InvalidChannel("SampleStore.channels values must be Channel instances.")
            if ch.name != key:
                raise InvalidChannel(
                    f"Channel name mismatch: key '{key}' but Channel.name is '{ch.name}'."
                )

    # ---- accumulation ----
    def append(self, schema: ChannelSchema, sample: Sample) -> None:
        ch = self.channels.get(schema.name)
        if ch is None:
            ch = Channel(name=schema.name)
            self.channels[schema.name] = ch
        ch.append(sample, source=schema.entry_id)

    def finalize(self) -> "SampleStore":
        for ch in self.channels.values():
            ch.finalize()
        return self

    def names(self) -> list[str]:
        """Distinct channel names, sorted for a stable analysis order."""
        return sorted(self.channels)

    @property
    def sample_count(self) -> int:
        return sum(ch.n for ch in self.channels.values())

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.channels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.channels)

    def __contains__(self, name: object) -> bool:
        return name in self.channels

    def __getitem__(self, name: str) -> Channel:
        try:
            return self.channels[name]
        except KeyError as e:
            raise ChannelNotFound(name) from e

    def get(self, name: str, default: Channel | None = None) -> Channel | None:
        return self.channels.get(name, default)

    def keys(self) -> Iterable[str]:
        return self.channels.keys()

    def items(self) -> Iterable[tuple[str, Channel]]:
        return self.channels.items()

    def values(self) -> Iterable[Channel]:
        return self.channels.values()
