from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sktest.metrics.aggregator import TimingAccumulator


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RequestTimings:
    """Elapsed seconds from the start of one request to the end of each phase."""

    name_lookup: float = 0.0
    connect: float = 0.0
    start_transfer: float = 0.0
    total: float = 0.0


@dataclass(frozen=True, slots=True)
class SampleResult:
    status_code: int
    ip: str
    body: bytes
    headers: str
    timings: TimingAccumulator
