# wpisysid/config.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace as _replace
from typing import Any

from wpisysid.core.exceptions import InvalidConfig


@dataclass(frozen=True, slots=True)
class AnalysisConfig:
    """
    Tuning constants for one characterization run.

    - filter_tau: time constant (s) of the acceleration complementary filter
    - min_dt: lower bound (s) for the time step between two samples
    - timestamp_scale: log time units per second (WPILOG uses microseconds)
    - slow_fraction / mid_fraction: bucket edges as fractions of max |velocity|
    - min_velocity / min_voltage: validity thresholds for a sample
    - min_prev_voltage: voltage a predecessor needs for steady state
    - min_start_voltage: smallest voltage accepted as "power to move"
    - min_bucket_samples: a bucket is fitted only above this count
    - error_voltage_floor: samples at or below this |voltage| are left
      out of the relative error statistics
    - ka_floor: below this |ka| the derived kp is reported as 0
    """
    filter_tau: float = 0.02
    min_dt: float = 1e-6
    timestamp_scale: float = 1_000_000.0

    slow_fraction: float = 0.3
    mid_fraction: float = 0.7

    min_velocity: float = 0.1
    min_voltage: float = 0.05
    min_prev_voltage: float = 0.2
    min_start_voltage: float = 0.01

    min_bucket_samples: int = 50
    error_voltage_floor: float = 0.001
    ka_floor: float = 1e-10

    motor_tag: str = "motor"
    name_separator: str = " | "
    progress_interval: int = 10_000

    def __post_init__(self) -> None:
        if self.filter_tau < 0:
            raise InvalidConfig("filter_tau must be >= 0.")
        if self.min_dt <= 0:
            raise InvalidConfig("min_dt must be > 0.")
        if self.timestamp_scale <= 0:
            raise InvalidConfig("timestamp_scale must be > 0.")
        if not 0.0 < self.slow_fraction < self.mid_fraction <= 1.0:
            raise InvalidConfig(
                "bucket fractions must satisfy 0 < slow_fraction < mid_fraction <= 1, "
                f"got {self.slow_fraction} / {self.mid_fraction}"
            )
        if self.min_bucket_samples < 3:
            # three unknowns in the fit
            raise InvalidConfig("min_bucket_samples must be >= 3.")
        if not self.name_separator:
            raise InvalidConfig("name_separator must be a non-empty string.")
        if self.progress_interval <= 0:
            raise InvalidConfig("progress_interval must be > 0.")

    def replace(self, **overrides: Any) -> "AnalysisConfig":
        """Return a copy with the given fields overridden."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise InvalidConfig(f"Unknown config field(s): {sorted(unknown)}")
        return _replace(self, **overrides)


DEFAULT_CONFIG = AnalysisConfig()
