from __future__ import annotations

from sktest.errors import ConfigurationError, InitializationError, SamplerError, TransferError
from sktest.sampler import RequestSampler

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "InitializationError",
    "RequestSampler",
    "SamplerError",
    "TransferError",
]
