from __future__ import annotations

from sktest.metrics import RequestTimings, format_abort, format_status_line


def test_status_line_field_order() -> None:
    line = format_status_line("93.184.216.34", 200, RequestTimings(0.02, 0.0301, 0.123456789, 1.0))
    assert line == "SKTEST;93.184.216.34;200;0.02;0.0301;0.123457;1"


def test_status_line_small_and_zero_values() -> None:
    line = format_status_line("", 0, RequestTimings(0.00001, 0.0, 0.0, 0.0))
    assert line == "SKTEST;;0;1e-05;0;0;0"


def test_abort_message() -> None:
    assert format_abort("Could not resolve host") == "Test aborted!\nCould not resolve host"
