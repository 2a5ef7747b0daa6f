from __future__ import annotations

from sktest.sampler.client import PhaseTimer, ResolvingTransport, build_client, parse_header_line
from sktest.sampler.runner import RequestSampler

__all__ = ["PhaseTimer", "RequestSampler", "ResolvingTransport", "build_client", "parse_header_line"]
