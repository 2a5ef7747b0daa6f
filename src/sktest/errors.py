from __future__ import annotations

from sktest.metrics.models import ErrorType


class SamplerError(Exception):
    """Base class for sampler failures."""


class InitializationError(SamplerError):
    """The HTTP client could not be created."""


class ConfigurationError(SamplerError):
    """Invalid command-line configuration."""


class TransferError(SamplerError):
    """A single repetition failed and aborted the sampling run."""

    def __init__(self, kind: ErrorType, message: str, repetition: int) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.repetition = repetition
