from __future__ import annotations

import ipaddress
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import httpx

from sktest.config import DEFAULT_TIMEOUT_SEC, DEFAULT_USER_AGENT, DNS_CACHE_TIMEOUT_SEC
from sktest.metrics import ErrorType, RequestTimings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Resolver = Callable[[str, int], str]

LOOKUP_STARTED = "resolver.lookup.started"
LOOKUP_COMPLETE = "resolver.lookup.complete"
CONNECT_COMPLETE = "connection.connect_tcp.complete"
HEADERS_SUFFIX = ".receive_response_headers.complete"

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(slots=True)
class PhaseTimer:
    """Trace callback that timestamps the phases of one request.

    Passed as the ``trace`` request extension. httpcore reports connection
    and response-header events; ``ResolvingTransport`` adds the name lookup.
    Across redirect hops the latest occurrence of each phase wins, so every
    value is measured from the start of the first hop.
    """

    clock: Clock = time.perf_counter
    started: float = 0.0
    primary_ip: str | None = None
    _marks: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.started = self.clock()

    def __call__(self, event_name: str, info: Mapping[str, Any]) -> None:
        if event_name == LOOKUP_COMPLETE:
            self._marks["name_lookup"] = self.clock()
            address = info.get("address")
            if address:
                self.primary_ip = str(address)
        elif event_name == CONNECT_COMPLETE:
            self._marks["connect"] = self.clock()
        elif event_name.endswith(HEADERS_SUFFIX):
            self._marks["start_transfer"] = self.clock()

    def finish(self) -> RequestTimings:
        total = self.clock() - self.started
        # a phase that did not happen ends where the previous one ended
        lookup = self._elapsed("name_lookup", 0.0)
        connect = self._elapsed("connect", lookup)
        start_transfer = self._elapsed("start_transfer", connect)
        return RequestTimings(
            name_lookup=lookup,
            connect=connect,
            start_transfer=start_transfer,
            total=total,
        )

    def _elapsed(self, phase: str, fallback: float) -> float:
        mark = self._marks.get(phase)
        if mark is None:
            return fallback
        return mark - self.started


def system_resolver(host: str, port: int) -> str:
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    if not infos:
        raise socket.gaierror(f"no addresses for {host}")
    return str(infos[0][4][0])


class ResolvingTransport(httpx.HTTPTransport):
    """Transport that resolves host names itself and pins requests to the address.

    The original host is kept in the ``Host`` header and, for TLS, in the
    ``sni_hostname`` extension so certificate validation still applies to
    the name. Answers are cached for ``dns_cache_timeout`` seconds.
    """

    def __init__(
        self,
        resolver: Resolver | None = None,
        dns_cache_timeout: float = DNS_CACHE_TIMEOUT_SEC,
        clock: Clock = time.monotonic,
        **kwargs: Any,
    ) -> None:
        self._resolver = resolver or system_resolver
        self._dns_cache_timeout = dns_cache_timeout
        self._clock = clock
        self._dns_cache: dict[tuple[str, int], tuple[str, float]] = {}
        super().__init__(**kwargs)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        url = request.url
        if url.scheme not in _DEFAULT_PORTS or not url.host:
            return super().handle_request(request)
        port = url.port or _DEFAULT_PORTS[url.scheme]
        trace = request.extensions.get("trace")
        if trace is not None:
            trace(LOOKUP_STARTED, {"host": url.host, "port": port})
        try:
            address = self.lookup(url.host, port)
        except OSError as exc:
            raise httpx.ConnectError(f"Could not resolve host: {url.host} ({exc})", request=request) from exc
        if trace is not None:
            trace(LOOKUP_COMPLETE, {"host": url.host, "port": port, "address": address})
        if address == url.host:
            return super().handle_request(request)
        return super().handle_request(pin_request(request, address))

    def lookup(self, host: str, port: int) -> str:
        if _is_ip_literal(host):
            return host
        key = (host, port)
        now = self._clock()
        cached = self._dns_cache.get(key)
        if cached is not None and now - cached[1] < self._dns_cache_timeout:
            logger.debug("dns cache hit for %s:%d -> %s", host, port, cached[0])
            return cached[0]
        address = self._resolver(host, port)
        logger.debug("resolved %s:%d -> %s", host, port, address)
        self._dns_cache[key] = (address, now)
        return address


def pin_request(request: httpx.Request, address: str) -> httpx.Request:
    url = request.url
    extensions = dict(request.extensions)
    if url.scheme == "https" and "sni_hostname" not in extensions:
        extensions["sni_hostname"] = url.host
    return httpx.Request(
        method=request.method,
        url=url.copy_with(host=address),
        headers=request.headers,
        stream=request.stream,
        extensions=extensions,
    )


def with_default_scheme(url: str) -> str:
    """Prefix scheme-less URLs with ``http://``, as command-line transfer tools do."""
    if "://" in url:
        return url
    return f"http://{url}"


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def build_client(
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    if transport is None:
        transport = ResolvingTransport(
            socket_options=[(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)],
        )
    try:
        client = httpx.Client(
            transport=transport,
            headers={"User-Agent": DEFAULT_USER_AGENT, "Accept": "*/*"},
            follow_redirects=True,
            timeout=timeout_sec,
            trust_env=False,
        )
    except BaseException:
        transport.close()
        raise
    del client.headers["Accept-Encoding"]
    return client


@dataclass(frozen=True, slots=True)
class HeaderLine:
    name: str
    value: str
    remove: bool = False


def parse_header_line(line: str) -> HeaderLine | None:
    """Interpret one raw header line the way a transfer library would.

    ``Name: value`` is sent, ``Name;`` is sent with an empty value,
    ``Name:`` drops a default header, anything else is ignored.
    """
    name, sep, value = line.partition(":")
    if sep:
        value = value.strip()
        if not value:
            return HeaderLine(name=name.strip(), value="", remove=True)
        return HeaderLine(name=name.strip(), value=value)
    name, sep, rest = line.partition(";")
    if sep and not rest.strip():
        return HeaderLine(name=name.strip(), value="")
    return None


def classify_error(exc: httpx.HTTPError) -> ErrorType:
    if isinstance(exc, httpx.TimeoutException):
        return ErrorType.TIMEOUT
    if isinstance(exc, httpx.ConnectError):
        return ErrorType.CONNECT
    if isinstance(exc, httpx.ReadError):
        return ErrorType.READ
    return ErrorType.OTHER


def describe_error(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
