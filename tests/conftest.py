from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import httpx
import pytest

from sktest.sampler import RequestSampler, build_client


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass(frozen=True, slots=True)
class Step:
    """Durations of each phase of one scripted request, in seconds."""

    lookup: float = 0.001
    connect: float = 0.002
    first_byte: float = 0.003
    transfer: float = 0.004
    status: int = 200
    body: bytes = b"ok"
    address: str | None = "192.0.2.10"


@dataclass
class ScriptedTransport(httpx.BaseTransport):
    clock: FakeClock
    steps: list[Step | Exception]
    requests: list[httpx.Request] = field(default_factory=list)
    closed: bool = False

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self.steps) - 1)
        self.requests.append(request)
        step = self.steps[index]
        if isinstance(step, Exception):
            raise step
        trace = request.extensions.get("trace")
        self.clock.advance(step.lookup)
        if trace is not None and step.address is not None:
            trace("resolver.lookup.complete", {"address": step.address})
        self.clock.advance(step.connect)
        if trace is not None:
            trace("connection.connect_tcp.complete", {})
        self.clock.advance(step.first_byte)
        if trace is not None:
            trace("http11.receive_response_headers.complete", {})
        self.clock.advance(step.transfer)
        return httpx.Response(step.status, content=step.body, headers={"Server": "scripted"})

    def close(self) -> None:
        self.closed = True


SamplerFactory = Callable[..., tuple[RequestSampler, ScriptedTransport]]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_sampler(clock: FakeClock) -> SamplerFactory:
    def factory(*steps: Step | Exception) -> tuple[RequestSampler, ScriptedTransport]:
        transport = ScriptedTransport(clock=clock, steps=list(steps) or [Step()])
        sampler = RequestSampler(
            client_factory=lambda timeout: build_client(timeout, transport=transport),
            clock=clock,
        )
        return sampler, transport

    return factory
