from __future__ import annotations


class VellumError(Exception):
    """Base class for every error raised by the composition engine."""


class ConfigurationError(VellumError, ValueError):
    pass


class UnitResolutionError(VellumError, ValueError):
    pass


class BatchLengthMismatch(VellumError, ValueError):
    pass


class UnsupportedBackendOperation(VellumError, RuntimeError):
    pass


class SinkError(VellumError, OSError):
    pass
