# wpisysid/core/results.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping

from .exceptions import ChannelNotFound, InvalidChannel


@dataclass(frozen=True, slots=True)
class BucketResult:
    """Feedforward/feedback coefficients fitted over one velocity bucket."""

    ks: float
    kv: float
    ka: float
    kp: float
    avg_rel_error: float
    max_rel_error: float
    sample_count: int

    def as_dict(self) -> dict[str, float | int]:
        return {
            "ks": self.ks,
            "kv": self.kv,
            "ka": self.ka,
            "kp": self.kp,
            "avg_rel_error": self.avg_rel_error,
            "max_rel_error": self.max_rel_error,
            "sample_count": self.sample_count,
        }

    def __str__(self) -> str:
        return (
            f"KS={self.ks:.4f}, KV={self.kv:.4f}, KA={self.ka:.4f}, KP={self.kp:.4f}, "
            f"AvgError={self.avg_rel_error * 100:.2f}%, "
            f"MaxError={self.max_rel_error * 100:.2f}%, Points={self.sample_count}"
        )


@dataclass(frozen=True, slots=True)
class CharacterizationResult:
    """
    Per-channel result. A bucket is None when it held too few valid
    samples or its fit could not be solved.
    """
    name: str
    slow: BucketResult | None = None
    mid: BucketResult | None = None
    high: BucketResult | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidChannel("CharacterizationResult.name must be a non-empty string.")

    @property
    def buckets(self) -> dict[str, BucketResult | None]:
        return {"slow": self.slow, "mid": self.mid, "high": self.high}

    @property
    def has_fit(self) -> bool:
        return any(b is not None for b in self.buckets.values())

    def as_dict(self) -> dict[str, Any]:
        return {
            key: (None if b is None else b.as_dict())
            for key, b in self.buckets.items()
        }

    def __str__(self) -> str:
        return "\n".join(
            f"{key.capitalize()}: {'null' if b is None else b}"
            for key, b in self.buckets.items()
        )


@dataclass(frozen=True, slots=True)
class ReportMeta:
    """
    Metadata attached to a CharacterizationReport.

    - source: path (or description) of the analysed log
    - version: WPILOG container version, None when the header was unreadable
    - records_scanned / records_stored: decoder totals
    - empty_channels: motor channels that produced no aligned samples
    """
    source: str | None = None
    version: int | None = None
    records_scanned: int = 0
    records_stored: int = 0
    empty_channels: tuple[str, ...] = ()
    attrs: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.attrs is None:
            object.__setattr__(self, "attrs", {})
        elif not isinstance(self.attrs, dict):
            raise InvalidChannel("ReportMeta.attrs must be a dict.")
        object.__setattr__(self, "empty_channels", tuple(self.empty_channels))


@dataclass(frozen=True, slots=True)
class CharacterizationReport:
    """
    Report = channel name -> CharacterizationResult.

    Design goals:
    - dict-like access: report["Shooter/motor"].slow
    - immutable; channels without data are absent rather than zero-filled
    """
    results: Mapping[str, CharacterizationResult] = field(default_factory=dict, repr=False)
    meta: ReportMeta = field(default_factory=ReportMeta, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.results, Mapping):
            raise InvalidChannel("CharacterizationReport.results must be a mapping.")
        if not isinstance(self.meta, ReportMeta):
            raise InvalidChannel("CharacterizationReport.meta must be a ReportMeta instance.")

        normalized: dict[str, CharacterizationResult] = {}
        for key, res in self.results.items():
            if not isinstance(res, CharacterizationResult):
                raise InvalidChannel("Report values must be CharacterizationResult instances.")
            if res.name != key:
                raise InvalidChannel(
                    f"Result name mismatch: key '{key}' but result.name is '{res.name}'."
                )
            normalized[key] = res

        object.__setattr__(self, "results", normalized)

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[str]:
        return iter(self.results)

    def __contains__(self, name: object) -> bool:
        return name in self.results

    def keys(self) -> Iterable[str]:
        return self.results.keys()

    def items(self) -> Iterable[tuple[str, CharacterizationResult]]:
        return self.results.items()

    def values(self) -> Iterable[CharacterizationResult]:
        return self.results.values()

    def __getitem__(self, name: str) -> CharacterizationResult:
        try:
            return self.results[name]
        except KeyError as e:
            raise ChannelNotFound(name) from e

    def get(self, name: str, default: CharacterizationResult | None = None) -> CharacterizationResult | None:
        return self.results.get(name, default)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {name: res.as_dict() for name, res in self.results.items()}

    def __str__(self) -> str:
        return "\n".join(f"{name}:\n{res}" for name, res in self.results.items())
