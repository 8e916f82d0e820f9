from __future__ import annotations


class CoreError(Exception):
    """Base error for all wpisysid exceptions."""


# ---- Fatal decode errors ----
class FormatError(CoreError):
    """Raised when the log container header is not a valid WPILOG header."""


# ---- Validation / construction errors ----
class InvalidSample(CoreError):
    """Raised when a Sample / AlignedSample is constructed with invalid inputs."""


class InvalidChannel(CoreError):
    """Raised when a Channel is constructed or extended with invalid inputs."""


class InvalidSchema(CoreError):
    """Raised when a ChannelSchema is constructed with invalid inputs."""


class InvalidConfig(CoreError):
    """Raised when an AnalysisConfig holds out-of-range values."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class ChannelNotFound(CoreError, KeyError):
    """Raised when a requested channel name is not present."""


# ---- Numerical errors ----
class SingularDesignMatrix(CoreError):
    """Raised when a least-squares problem has no unique solution."""
