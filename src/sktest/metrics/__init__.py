from __future__ import annotations

from sktest.metrics.aggregator import TimingAccumulator
from sktest.metrics.models import ErrorType, RequestTimings, SampleResult
from sktest.metrics.report import format_abort, format_status_line

__all__ = [
    "ErrorType",
    "RequestTimings",
    "SampleResult",
    "TimingAccumulator",
    "format_abort",
    "format_status_line",
]
