from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from sktest.config import DEFAULT_TIMEOUT_SEC
from sktest.errors import InitializationError, TransferError
from sktest.metrics import ErrorType, RequestTimings, SampleResult, TimingAccumulator
from sktest.sampler.client import (
    Clock,
    HeaderLine,
    PhaseTimer,
    build_client,
    classify_error,
    describe_error,
    parse_header_line,
    with_default_scheme,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[float], httpx.Client]


def _default_factory(timeout_sec: float) -> httpx.Client:
    return build_client(timeout_sec=timeout_sec)


class RequestSampler:
    """Issue the same GET request N times and accumulate phase timings.

    One instance owns one ``httpx.Client`` for its whole life; connections
    are reused across repetitions when the server allows it. Not safe for
    concurrent use.
    """

    def __init__(
        self,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        *,
        client_factory: ClientFactory | None = None,
        clock: Clock = time.perf_counter,
        keep_samples: bool = False,
    ) -> None:
        factory = client_factory or _default_factory
        try:
            self._client = factory(timeout_sec)
        except OSError as exc:
            raise InitializationError(f"Unable to initialize library! ({describe_error(exc)})") from exc
        self._clock = clock
        self._header_lines: list[str] = []
        self._request_count = 1
        self._timings = TimingAccumulator(keep_samples=keep_samples)
        self._status_code = 0
        self._ip = ""
        self._body = bytearray()
        self._header_blocks: list[str] = []
        self._encoding = "utf-8"
        self._error: TransferError | None = None

    def __enter__(self) -> RequestSampler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def add_header(self, line: str) -> None:
        self._header_lines.append(line)

    def set_request_count(self, count: int) -> None:
        self._request_count = count

    @property
    def request_count(self) -> int:
        return self._request_count

    def get(self, url: str) -> bool:
        self._timings.reset()
        url = with_default_scheme(url)
        headers = self._build_headers()
        primary_ip = None
        for repetition in range(1, self._request_count + 1):
            try:
                timings, address = self._perform(url, headers)
            except httpx.HTTPError as exc:
                self._fail(classify_error(exc), describe_error(exc), repetition)
                return False
            except (httpx.InvalidURL, UnicodeError) as exc:
                self._fail(ErrorType.OTHER, describe_error(exc), repetition)
                return False
            self._timings.add(timings)
            primary_ip = address or primary_ip
            logger.debug(
                "repetition %d/%d: status=%d lookup=%.6f connect=%.6f start=%.6f total=%.6f",
                repetition,
                self._request_count,
                self._status_code,
                timings.name_lookup,
                timings.connect,
                timings.start_transfer,
                timings.total,
            )
        if primary_ip:
            self._ip = primary_ip
        return True

    def _build_headers(self) -> list[HeaderLine]:
        headers: list[HeaderLine] = []
        for line in self._header_lines:
            parsed = parse_header_line(line)
            if parsed is None:
                logger.debug("ignoring header line without a name separator: %r", line)
                continue
            headers.append(parsed)
        return headers

    def _perform(self, url: str, headers: list[HeaderLine]) -> tuple[RequestTimings, str | None]:
        timer = PhaseTimer(clock=self._clock)
        request = self._client.build_request(
            "GET",
            url,
            headers=[(h.name.encode("utf-8"), h.value.encode("utf-8")) for h in headers if not h.remove],
            extensions={"trace": timer},
        )
        removed = {h.name.encode("utf-8").lower() for h in headers if h.remove}
        if removed:
            request.headers = httpx.Headers([(k, v) for k, v in request.headers.raw if k.lower() not in removed])
        self._body.clear()
        self._header_blocks.clear()
        response = self._client.send(request, stream=True, follow_redirects=True)
        try:
            for hop in response.history:
                self._header_blocks.append(_header_block(hop))
            self._header_blocks.append(_header_block(response))
            for chunk in response.iter_bytes():
                self._write_body(chunk)
        finally:
            response.close()
        timings = timer.finish()
        self._status_code = response.status_code
        self._encoding = response.encoding or "utf-8"
        return timings, timer.primary_ip

    def _write_body(self, chunk: bytes) -> None:
        self._body.extend(chunk)

    def _fail(self, kind: ErrorType, message: str, repetition: int) -> None:
        self._error = TransferError(kind, message, repetition)
        logger.warning(
            "sampling aborted on repetition %d/%d (%s): %s",
            repetition,
            self._request_count,
            kind.value,
            message,
        )

    @property
    def response_data(self) -> str:
        return self._body.decode(self._encoding, errors="replace")

    @property
    def response_body(self) -> bytes:
        return bytes(self._body)

    @property
    def response_headers(self) -> str:
        return "".join(self._header_blocks)

    @property
    def last_connection_ip(self) -> str:
        return self._ip

    @property
    def error(self) -> TransferError | None:
        return self._error

    @property
    def last_error(self) -> str:
        if self._error is None:
            return ""
        return self._error.message

    @property
    def response_code(self) -> int:
        return self._status_code

    @property
    def total_name_lookup_time(self) -> float:
        return self._timings.name_lookup

    @property
    def total_connect_time(self) -> float:
        return self._timings.connect

    @property
    def total_start_time(self) -> float:
        return self._timings.start_transfer

    @property
    def total_transfer_time(self) -> float:
        return self._timings.total

    @property
    def timings(self) -> TimingAccumulator:
        return self._timings.snapshot()

    @property
    def result(self) -> SampleResult:
        return SampleResult(
            status_code=self._status_code,
            ip=self._ip,
            body=bytes(self._body),
            headers=self.response_headers,
            timings=self._timings.snapshot(),
        )


def _header_block(response: httpx.Response) -> str:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}".rstrip()]
    for name, value in response.headers.raw:
        lines.append(f"{name.decode('latin-1')}: {value.decode('latin-1')}")
    return "\r\n".join(lines) + "\r\n\r\n"
