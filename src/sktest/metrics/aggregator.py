from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from sktest.metrics.models import RequestTimings


@dataclass(slots=True)
class TimingAccumulator:
    """Running sums of the four phase timings over one sampling run.

    The sums are raw totals. ``mean`` divides by the configured request
    count, which is what the status line reports even though the column
    has historically been described as a median. ``median`` computes the
    real thing from the per-request samples, which are only retained when
    ``keep_samples`` is set.
    """

    name_lookup: float = 0.0
    connect: float = 0.0
    start_transfer: float = 0.0
    total: float = 0.0
    keep_samples: bool = False
    samples: list[RequestTimings] = field(default_factory=list)

    def reset(self) -> None:
        self.name_lookup = 0.0
        self.connect = 0.0
        self.start_transfer = 0.0
        self.total = 0.0
        self.samples.clear()

    def add(self, timings: RequestTimings) -> None:
        self.name_lookup += timings.name_lookup
        self.connect += timings.connect
        self.start_transfer += timings.start_transfer
        self.total += timings.total
        if self.keep_samples:
            self.samples.append(timings)

    def sums(self) -> RequestTimings:
        return RequestTimings(
            name_lookup=self.name_lookup,
            connect=self.connect,
            start_transfer=self.start_transfer,
            total=self.total,
        )

    def mean(self, count: int) -> RequestTimings:
        if count <= 0:
            return RequestTimings()
        return RequestTimings(
            name_lookup=self.name_lookup / count,
            connect=self.connect / count,
            start_transfer=self.start_transfer / count,
            total=self.total / count,
        )

    def median(self) -> RequestTimings:
        if not self.keep_samples:
            raise ValueError("per-request samples were not retained")
        if not self.samples:
            return RequestTimings()
        matrix = np.array(
            [[s.name_lookup, s.connect, s.start_transfer, s.total] for s in self.samples],
            dtype=float,
        )
        lookup, connect, start, total = (float(v) for v in np.median(matrix, axis=0))
        return RequestTimings(name_lookup=lookup, connect=connect, start_transfer=start, total=total)

    def snapshot(self) -> TimingAccumulator:
        return TimingAccumulator(
            name_lookup=self.name_lookup,
            connect=self.connect,
            start_transfer=self.start_transfer,
            total=self.total,
            keep_samples=self.keep_samples,
            samples=list(self.samples),
        )
