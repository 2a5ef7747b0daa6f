from __future__ import annotations

from sktest.metrics.models import RequestTimings

STATUS_PREFIX = "SKTEST"
ABORT_LINE = "Test aborted!"


def _fmt(value: float) -> str:
    # Six significant digits, same as a default C++ ostream.
    return format(value, "g")


def format_status_line(ip: str, status_code: int, timings: RequestTimings) -> str:
    fields = [
        STATUS_PREFIX,
        ip,
        str(status_code),
        _fmt(timings.name_lookup),
        _fmt(timings.connect),
        _fmt(timings.start_transfer),
        _fmt(timings.total),
    ]
    return ";".join(fields)


def format_abort(message: str) -> str:
    return f"{ABORT_LINE}\n{message}"
