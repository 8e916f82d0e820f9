"""WPILOG container decoding: record stream, schema registry, sample store.

These are raising helpers: an invalid header surfaces as FormatError and an
unreadable file as OSError. The non-raising entry points live in
wpisysid.io.load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Iterable, Iterator, List, Union

import logging
import struct

import numpy as np

from wpisysid.config import AnalysisConfig, DEFAULT_CONFIG
from wpisysid.core import Channel, ChannelSchema, FormatError, Sample, SampleStore


logger = logging.getLogger(__name__)

MAGIC = b"WPILOG"
_VERSION_AND_EXTRA = struct.Struct("<HI")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")

CONTROL_ID = 0
CONTROL_START = 0

_ELEMENT_DTYPES = {4: np.dtype("<f4"), 8: np.dtype("<f8")}


# ----------------------------------------------------------------------
# Record types
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class LogHeader:
    version: int
    extra: str = ""

    @property
    def version_string(self) -> str:
        return f"{self.version >> 8}.{self.version & 0xFF}"


@dataclass(frozen=True)
class StartRecord:
    """Control record declaring the name(s), type and metadata of an entry id."""

    entry_id: int
    name: str
    type: str
    metadata: str
    timestamp: int = 0


@dataclass(frozen=True)
class ControlRecord:
    """Any control record other than Start (Finish, SetMetadata, ...)."""

    subtype: int
    timestamp: int = 0


@dataclass(frozen=True)
class DataRecord:
    entry_id: int
    timestamp: int
    payload: bytes = field(repr=False)


Record = Union[StartRecord, ControlRecord, DataRecord]


class ReadStatus(Enum):
    RECORD = "record"
    END_OF_STREAM = "end_of_stream"
    ERROR = "error"


@dataclass(frozen=True)
class ReadResult:
    status: ReadStatus
    record: Record | None = None
    error: str | None = None


@dataclass
class DecodeStats:
    """Decoder totals for one log."""

    version: int | None = None
    extra_header_length: int = 0
    records_scanned: int = 0
    records_stored: int = 0
    records_skipped: int = 0
    malformed_records: int = 0


# ----------------------------------------------------------------------
# Binary decoder
# ----------------------------------------------------------------------
def _read_exact(stream: BinaryIO, n: int) -> bytes | None:
    """Read exactly n bytes, or return None when the stream runs out first."""
    if n == 0:
        return b""
    chunks: list[bytes] = []
    remaining = n
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            return None
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _unpack_header_byte(header: int) -> tuple[int, int, int]:
    """Return the (id, payload length, timestamp) field widths in bytes."""
    id_len = (header & 0x3) + 1
    payload_len = ((header >> 2) & 0x3) + 1
    ts_len = ((header >> 4) & 0x7) + 1
    return id_len, payload_len, ts_len


def _parse_start(payload: bytes, timestamp: int) -> StartRecord | None:
    """Parse a Start control payload (subtype byte included). None if truncated."""
    offset = 1
    if len(payload) < offset + _I32.size:
        return None
    (entry_id,) = _I32.unpack_from(payload, offset)
    offset += _I32.size

    strings: list[str] = []
    for _ in range(3):
        if len(payload) < offset + _U32.size:
            return None
        (length,) = _U32.unpack_from(payload, offset)
        offset += _U32.size
        if len(payload) < offset + length:
            return None
        strings.append(payload[offset:offset + length].decode("utf-8", errors="replace"))
        offset += length

    name, type_, metadata = strings
    return StartRecord(entry_id=entry_id, name=name, type=type_, metadata=metadata, timestamp=timestamp)


class WpilogDecoder:
    """Streams records out of a WPILOG byte source.

    Ordinary end-of-stream is reported as ``ReadStatus.END_OF_STREAM``,
    never raised. Only an invalid container header raises (FormatError).
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self.header: LogHeader | None = None

    def read_header(self) -> LogHeader:
        magic = _read_exact(self._stream, len(MAGIC))
        if magic != MAGIC:
            got = b"" if magic is None else magic
            raise FormatError(
                f"Invalid WPILOG file format. Expected {MAGIC!r}, got: {got!r}"
            )

        fixed = _read_exact(self._stream, _VERSION_AND_EXTRA.size)
        if fixed is None:
            raise FormatError("Truncated WPILOG header (missing version / extra length).")
        version, extra_len = _VERSION_AND_EXTRA.unpack(fixed)

        extra = _read_exact(self._stream, extra_len)
        if extra is None:
            raise FormatError(f"Truncated WPILOG header (extra header of {extra_len} bytes).")

        self.header = LogHeader(version=version, extra=extra.decode("utf-8", errors="replace"))
        logger.info("WPILOG version: %s, extra header length: %d", self.header.version_string, extra_len)
        return self.header

    def next_record(self) -> ReadResult:
        head = _read_exact(self._stream, 1)
        if head is None:
            return ReadResult(ReadStatus.END_OF_STREAM)
        id_len, payload_len, ts_len = _unpack_header_byte(head[0])

        fields = _read_exact(self._stream, id_len + payload_len + ts_len)
        if fields is None:
            return ReadResult(ReadStatus.END_OF_STREAM)
        entry_id = int.from_bytes(fields[:id_len], "little")
        payload_size = int.from_bytes(fields[id_len:id_len + payload_len], "little")
        timestamp = int.from_bytes(fields[id_len + payload_len:], "little")

        payload = _read_exact(self._stream, payload_size)
        if payload is None:
            return ReadResult(ReadStatus.END_OF_STREAM)

        if entry_id != CONTROL_ID:
            return ReadResult(ReadStatus.RECORD, DataRecord(entry_id, timestamp, payload))

        if not payload:
            return ReadResult(ReadStatus.ERROR, error="control record without subtype byte")
        subtype = payload[0]
        if subtype != CONTROL_START:
            return ReadResult(ReadStatus.RECORD, ControlRecord(subtype=subtype, timestamp=timestamp))

        start = _parse_start(payload, timestamp)
        if start is None:
            return ReadResult(
                ReadStatus.ERROR,
                error=f"start record truncated inside its {payload_size}-byte payload",
            )
        return ReadResult(ReadStatus.RECORD, start)

    def iter_results(self) -> Iterator[ReadResult]:
        """Yield RECORD and ERROR results until end-of-stream."""
        while True:
            result = self.next_record()
            if result.status is ReadStatus.END_OF_STREAM:
                return
            yield result


# ----------------------------------------------------------------------
# Schema registry
# ----------------------------------------------------------------------
def split_names(text: str, separator: str = " | ") -> list[str]:
    """Split a merged name / metadata string into trimmed parts."""
    return [part.strip() for part in text.split(separator)]


class SchemaRegistry:
    """Entry id -> ordered list of motor ChannelSchemas.

    A Start record may declare several names at once ("A | B"), all sharing
    one entry id; each name becomes its own schema and the id's data is
    split between them on decode.
    """

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self._config = config
        self._by_id: dict[int, list[ChannelSchema]] = {}

    def register(self, start: StartRecord) -> list[ChannelSchema]:
        """Register the motor-tagged names of a Start record; return the new schemas."""
        if start.entry_id <= 0:
            logger.debug("Ignoring start record with invalid entry id %d", start.entry_id)
            return []

        names = split_names(start.name, self._config.name_separator)
        metas = split_names(start.metadata, self._config.name_separator)

        added: list[ChannelSchema] = []
        for i, name in enumerate(names):
            meta = metas[i] if i < len(metas) else ""
            if self._config.motor_tag not in meta or not name:
                continue
            group = self._by_id.setdefault(start.entry_id, [])
            schema = ChannelSchema(
                entry_id=start.entry_id,
                name=name,
                type=start.type.strip(),
                group_index=len(group),
                metadata=meta,
            )
            group.append(schema)
            added.append(schema)

        if added:
            logger.debug(
                "Entry %d registered as %s (%s)",
                start.entry_id, [s.name for s in added], start.type,
            )
        return added

    def schemas_for(self, entry_id: int) -> list[ChannelSchema]:
        return list(self._by_id.get(entry_id, ()))

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def names(self) -> set[str]:
        return {s.name for group in self._by_id.values() for s in group}

    def decode(self, record: DataRecord) -> np.ndarray | None:
        """Decode a data payload as float64 values, or None if it cannot be used."""
        group = self._by_id.get(record.entry_id)
        if not group:
            return None

        # element type is fixed by the first Start record for the id
        width = group[0].element_width
        if width is None:
            logger.debug("Entry %d: unsupported type %r", record.entry_id, group[0].type)
            return None
        if len(record.payload) % width != 0:
            logger.debug(
                "Entry %d: payload of %d bytes is not a multiple of %d",
                record.entry_id, len(record.payload), width,
            )
            return None

        return np.frombuffer(record.payload, dtype=_ELEMENT_DTYPES[width]).astype(np.float64)

    def route(self, entry_id: int, values: np.ndarray) -> list[tuple[ChannelSchema, np.ndarray]]:
        """Assign a decoded vector to the schemas of its entry id.

        A merged group of n schemas splits a vector of length n*k into n
        contiguous chunks of k, in declaration order. Any other length is
        broadcast whole to every schema.
        """
        group = self._by_id.get(entry_id, [])
        n = len(group)
        if n > 1 and values.size % n == 0:
            k = values.size // n
            return [(schema, values[i * k:(i + 1) * k]) for i, schema in enumerate(group)]
        if n > 1:
            logger.debug(
                "Entry %d: %d values do not split across %d names; broadcasting",
                entry_id, values.size, n,
            )
        return [(schema, values) for schema in group]


# ----------------------------------------------------------------------
# Per-invocation decode state
# ----------------------------------------------------------------------
@dataclass
class AnalysisContext:
    """All mutable state of one decode, created fresh for every log."""

    config: AnalysisConfig = DEFAULT_CONFIG
    registry: SchemaRegistry = field(init=False)
    store: SampleStore = field(default_factory=SampleStore)
    stats: DecodeStats = field(default_factory=DecodeStats)

    def __post_init__(self) -> None:
        self.registry = SchemaRegistry(self.config)

    def ingest(self, record: Record) -> bool:
        """Apply one record; return True when it stored samples."""
        if isinstance(record, StartRecord):
            self.registry.register(record)
            return False
        if isinstance(record, ControlRecord):
            return False

        values = self.registry.decode(record)
        if values is None:
            self.stats.records_skipped += 1
            return False

        for schema, chunk in self.registry.route(record.entry_id, values):
            self.store.append(schema, Sample(timestamp=record.timestamp, values=chunk))
        return True


def decode_stream(stream: BinaryIO, config: AnalysisConfig = DEFAULT_CONFIG) -> AnalysisContext:
    """Decode a whole WPILOG stream into a fresh AnalysisContext.

    Raises FormatError on an invalid header. The returned store is finalized.
    """
    ctx = AnalysisContext(config=config)
    decoder = WpilogDecoder(stream)
    header = decoder.read_header()
    ctx.stats.version = header.version
    ctx.stats.extra_header_length = len(header.extra.encode("utf-8"))

    for result in decoder.iter_results():
        ctx.stats.records_scanned += 1
        if result.status is ReadStatus.ERROR:
            ctx.stats.malformed_records += 1
            logger.warning("Skipping malformed record: %s", result.error)
            continue
        if ctx.ingest(result.record):  # type: ignore[arg-type]
            ctx.stats.records_stored += 1
        if ctx.stats.records_scanned % config.progress_interval == 0:
            logger.debug("Processed %d records...", ctx.stats.records_scanned)

    ctx.store.finalize()
    logger.info(
        "Total records scanned: %d, valid data records stored: %d",
        ctx.stats.records_scanned, ctx.stats.records_stored,
    )
    return ctx


# ----------------------------------------------------------------------
# Reader facade
# ----------------------------------------------------------------------
class WpilogReader:
    """Name-keyed view of the motor channels of a WPILOG file.

    The file is decoded eagerly on construction and closed before the
    constructor returns. Raises FormatError / OSError like decode_stream.
    """

    def __init__(self, path: str, config: AnalysisConfig = DEFAULT_CONFIG):
        self.path = path
        with open(path, "rb") as f:
            self.context = decode_stream(f, config)

    @property
    def store(self) -> SampleStore:
        return self.context.store

    @property
    def stats(self) -> DecodeStats:
        return self.context.stats

    def list_channels(self) -> List[Channel]:
        """List motor channels, one per logical name, in name order."""
        return [self.store[name] for name in self.store.names()]

    def read_channels(self, channel_names: Iterable[str]) -> dict[str, Channel]:
        result: dict[str, Channel] = {}
        for name in channel_names:
            if name not in self.store:
                raise KeyError(f"Channel '{name}' not found in WPILOG (by logical name)")
            result[name] = self.store[name]
        return result
