from __future__ import annotations

from typing import BinaryIO, Sequence

import struct

import numpy as np

from wpisysid.core import SampleStore
from wpisysid.io.wpilog_reader import CONTROL_ID, CONTROL_START, MAGIC


_VERSION_AND_EXTRA = struct.Struct("<HI")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")

DEFAULT_VERSION = 0x0100
CONTROL_FINISH = 1


def _width(value: int, max_bytes: int) -> int:
    """Smallest little-endian width (>= 1 byte) able to hold value."""
    if value < 0:
        raise ValueError(f"Record fields are unsigned, got {value}")
    n = max(1, (value.bit_length() + 7) // 8)
    if n > max_bytes:
        raise ValueError(f"{value} does not fit in {max_bytes} bytes")
    return n


def _string(text: str) -> bytes:
    raw = text.encode("utf-8")
    return _U32.pack(len(raw)) + raw


class WpilogWriter:
    """Serializes start and float/double data records into a WPILOG stream.

    This is an offline encoder (fixtures, re-serialization of decoded
    channels); it does no buffering or timing of its own.
    """

    def __init__(self, stream: BinaryIO, *, version: int = DEFAULT_VERSION, extra: str = ""):
        self._stream = stream
        extra_raw = extra.encode("utf-8")
        self._stream.write(MAGIC)
        self._stream.write(_VERSION_AND_EXTRA.pack(version, len(extra_raw)))
        self._stream.write(extra_raw)

    def write_record(self, entry_id: int, payload: bytes, timestamp: int) -> None:
        id_len = _width(entry_id, 4)
        size_len = _width(len(payload), 4)
        ts_len = _width(timestamp, 8)
        header = (id_len - 1) | ((size_len - 1) << 2) | ((ts_len - 1) << 4)

        self._stream.write(bytes([header]))
        self._stream.write(entry_id.to_bytes(id_len, "little"))
        self._stream.write(len(payload).to_bytes(size_len, "little"))
        self._stream.write(timestamp.to_bytes(ts_len, "little"))
        self._stream.write(payload)

    def start(
        self,
        entry_id: int,
        name: str,
        type: str,
        metadata: str = "",
        timestamp: int = 0,
    ) -> None:
        payload = (
            bytes([CONTROL_START])
            + _I32.pack(entry_id)
            + _string(name)
            + _string(type)
            + _string(metadata)
        )
        self.write_record(CONTROL_ID, payload, timestamp)

    def finish(self, entry_id: int, timestamp: int = 0) -> None:
        self.write_record(CONTROL_ID, bytes([CONTROL_FINISH]) + _I32.pack(entry_id), timestamp)

    def append_doubles(self, entry_id: int, values: Sequence[float], timestamp: int) -> None:
        self.write_record(entry_id, np.asarray(values, dtype="<f8").tobytes(), timestamp)

    def append_floats(self, entry_id: int, values: Sequence[float], timestamp: int) -> None:
        self.write_record(entry_id, np.asarray(values, dtype="<f4").tobytes(), timestamp)


def write_store(
    stream: BinaryIO,
    store: SampleStore,
    *,
    metadata: str = "motor",
    version: int = DEFAULT_VERSION,
) -> dict[str, int]:
    """Write every channel of a store as its own double[] entry.

    Entry ids are assigned from 1 in name order; the mapping is returned.
    """
    writer = WpilogWriter(stream, version=version)
    ids: dict[str, int] = {}
    for entry_id, name in enumerate(store.names(), start=1):
        ids[name] = entry_id
        writer.start(entry_id, name, "double[]", metadata)
    for name, entry_id in ids.items():
        for sample in store[name]:
            writer.append_doubles(entry_id, sample.values, sample.timestamp)
    return ids
