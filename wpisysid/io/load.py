# wpisysid/io/load.py
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import logging

from wpisysid.analysis import analyze_store
from wpisysid.config import AnalysisConfig, DEFAULT_CONFIG
from wpisysid.core import CharacterizationReport, FormatError, ReportMeta, SampleStore
from wpisysid.io.wpilog_reader import AnalysisContext, decode_stream


logger = logging.getLogger(__name__)


def load_channels(path: str | Path, config: AnalysisConfig = DEFAULT_CONFIG) -> SampleStore:
    """Decode a WPILOG file into a finalized SampleStore (no analysis).

    A bad or unreadable log is logged and yields an empty store; the file
    is closed on every path.
    """
    try:
        with open(path, "rb") as f:
            return decode_stream(f, config).store
    except (FormatError, OSError) as e:
        logger.error("Error reading log %s: %s", path, e)
        return SampleStore()


def _report_from_context(ctx: AnalysisContext, source: str | None) -> CharacterizationReport:
    meta = ReportMeta(
        source=source,
        version=ctx.stats.version,
        records_scanned=ctx.stats.records_scanned,
        records_stored=ctx.stats.records_stored,
    )
    return analyze_store(ctx.store, ctx.config, meta=meta, declared=ctx.registry.names())


def characterize_stream(
    stream: BinaryIO,
    config: AnalysisConfig = DEFAULT_CONFIG,
    *,
    source: str | None = None,
) -> CharacterizationReport:
    """Characterize an already-open WPILOG byte stream.

    Never raises for a bad or unreadable log: the error is logged and an
    empty report is returned.
    """
    try:
        ctx = decode_stream(stream, config)
    except (FormatError, OSError) as e:
        logger.error("Error reading log %s: %s", source or "<stream>", e)
        return CharacterizationReport(meta=ReportMeta(source=source))
    return _report_from_context(ctx, source)


def characterize(path: str | Path, config: AnalysisConfig = DEFAULT_CONFIG) -> CharacterizationReport:
    """Decode and characterize a WPILOG file: name -> (slow, mid, high)."""
    source = str(path)
    logger.info("Reading log file: %s", source)
    try:
        with open(path, "rb") as f:
            return characterize_stream(f, config, source=source)
    except OSError as e:
        logger.error("Error reading log %s: %s", source, e)
        return CharacterizationReport(meta=ReportMeta(source=source))
