from __future__ import annotations

from typing import Iterable

import logging

from wpisysid.config import AnalysisConfig, DEFAULT_CONFIG
from wpisysid.core import (
    CharacterizationReport,
    CharacterizationResult,
    ReportMeta,
    Sample,
    SampleStore,
)

from .bucketizer import bucketize
from .regression import LeastSquaresSolver, numpy_lstsq, solve_bucket
from .synchronizer import synchronize


logger = logging.getLogger(__name__)


def analyze_channel(
    name: str,
    samples: Iterable[Sample],
    config: AnalysisConfig = DEFAULT_CONFIG,
    solver: LeastSquaresSolver = numpy_lstsq,
) -> CharacterizationResult | None:
    """Synchronize, bucket and fit one channel. None when it has no aligned samples."""
    sync = synchronize(samples, config)
    if not sync.samples:
        return None

    buckets = bucketize(sync.samples, config)
    fitted = {
        key: solve_bucket(bucket, sync.min_power_to_move, config, solver)
        for key, bucket in buckets.items()
    }
    logger.debug(
        "%s: %d aligned, %d discarded, buckets %s",
        name, len(sync), buckets.discarded,
        {key: len(bucket) for key, bucket in buckets.items()},
    )
    return CharacterizationResult(name=name, **fitted)


def analyze_store(
    store: SampleStore,
    config: AnalysisConfig = DEFAULT_CONFIG,
    *,
    meta: ReportMeta | None = None,
    declared: Iterable[str] = (),
    solver: LeastSquaresSolver = numpy_lstsq,
) -> CharacterizationReport:
    """Characterize every channel name of a finalized store.

    `declared` adds names registered in the log that may hold no samples;
    they are reported as channels without data.
    """
    names = sorted(set(store.names()) | set(declared))
    logger.info("Found %d unique motor names to analyze.", len(names))

    results: dict[str, CharacterizationResult] = {}
    empty: list[str] = []
    for name in names:
        channel = store.get(name)
        result = None if channel is None else analyze_channel(name, channel, config, solver)
        if result is None:
            logger.warning("No valid data for %s", name)
            empty.append(name)
            continue
        results[name] = result

    base = meta if meta is not None else ReportMeta()
    return CharacterizationReport(
        results=results,
        meta=ReportMeta(
            source=base.source,
            version=base.version,
            records_scanned=base.records_scanned,
            records_stored=base.records_stored,
            empty_channels=tuple(empty),
            attrs=base.attrs.copy(),
        ),
    )
