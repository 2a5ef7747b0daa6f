from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_USER_AGENT = "libsam/1.0"
DEFAULT_TIMEOUT_SEC = 10.0
DNS_CACHE_TIMEOUT_SEC = 60.0


@dataclass(frozen=True, slots=True)
class SamplerConfig:
    url: str
    headers: tuple[str, ...] = ()
    request_count: int = 1
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    use_median: bool = False

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "url": self.url,
            "headers": list(self.headers),
            "request_count": self.request_count,
            "timeout_sec": self.timeout_sec,
            "use_median": self.use_median,
        }
