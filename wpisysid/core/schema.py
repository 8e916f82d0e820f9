# wpisysid/core/schema.py
from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InvalidSchema


# declared type tag -> element width in bytes
FLOAT_TYPES: dict[str, int] = {
    "float": 4,
    "float[]": 4,
    "double": 8,
    "double[]": 8,
}


@dataclass(frozen=True, slots=True)
class ChannelSchema:
    """
    One logical channel declared by a Start control record.

    - entry_id: numeric record id the data arrives under
    - name: logical channel name (one part of a " | " separated name)
    - type: declared element type tag ("double[]", "float", ...)
    - group_index: position inside the merged group sharing entry_id
    - metadata: the metadata part paired with this name
    """
    entry_id: int
    name: str
    type: str
    group_index: int = 0
    metadata: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.entry_id, int) or self.entry_id <= 0:
            raise InvalidSchema("ChannelSchema.entry_id must be a positive int.")
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidSchema("ChannelSchema.name must be a non-empty string.")
        if not isinstance(self.type, str):
            raise InvalidSchema("ChannelSchema.type must be a string.")
        if self.group_index < 0:
            raise InvalidSchema("ChannelSchema.group_index must be >= 0.")

    @property
    def element_width(self) -> int | None:
        """Byte width of one element, or None for non-floating types."""
        return FLOAT_TYPES.get(self.type.strip())

    @property
    def is_floating(self) -> bool:
        return self.element_width is not None
