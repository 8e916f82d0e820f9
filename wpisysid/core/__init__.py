"""
Core domain objects for wpisysid.

This module defines the decoder-agnostic data model:
- ChannelSchema: one logical channel declared by a Start record
- Sample / AlignedSample: raw decoded vector and synchronized motor sample
- Channel: logical signal (name + time-ordered samples)
- SampleStore: channels grouped by name
- BucketResult / CharacterizationResult / CharacterizationReport: analysis output

The core layer is independent from I/O and from the numerical analysis.
"""

from .schema import ChannelSchema, FLOAT_TYPES
from .sample import Sample, AlignedSample, aligned_to_numpy
from .channel import Channel
from .store import SampleStore
from .results import BucketResult, CharacterizationResult, CharacterizationReport, ReportMeta
from .exceptions import (
    CoreError,
    FormatError,
    InvalidSample,
    InvalidChannel,
    InvalidSchema,
    InvalidConfig,
    ChannelNotFound,
    SingularDesignMatrix,
)


__all__ = [
    # schema
    "ChannelSchema",
    "FLOAT_TYPES",

    # samples
    "Sample",
    "AlignedSample",
    "aligned_to_numpy",

    # containers
    "Channel",
    "SampleStore",

    # results
    "BucketResult",
    "CharacterizationResult",
    "CharacterizationReport",
    "ReportMeta",

    # exceptions
    "CoreError",
    "FormatError",
    "InvalidSample",
    "InvalidChannel",
    "InvalidSchema",
    "InvalidConfig",
    "ChannelNotFound",
    "SingularDesignMatrix",
]
