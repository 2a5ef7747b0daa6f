from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from sktest.config import DEFAULT_TIMEOUT_SEC, SamplerConfig
from sktest.errors import ConfigurationError, InitializationError
from sktest.metrics import format_abort, format_status_line
from sktest.sampler import RequestSampler

logger = logging.getLogger(__name__)

USAGE = (
    "Usage:\n"
    '-H "Header-name: Header-value": can be used multiple times, each time specifying '
    "an extra HTTP header to add to your request\n"
    "-n <integer>: number of HTTP requests to make "
    "(i.e. the number of samples you will have to take the median of)\n"
    "-u Url to connect"
)


class _EchoHeader(argparse.Action):
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: object,
        option_string: str | None = None,
    ) -> None:
        print(values)
        items = list(getattr(namespace, self.dest, None) or [])
        items.append(values)
        setattr(namespace, self.dest, items)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sktest",
        description="Sample HTTP GET latency for a URL",
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-u", dest="url", help="URL to connect")
    parser.add_argument("-n", dest="count", type=int, default=1, help="Number of HTTP requests to make")
    parser.add_argument(
        "-H",
        dest="headers",
        action=_EchoHeader,
        default=[],
        metavar="HEADER",
        help='Extra request header "Name: Value", repeatable',
    )
    parser.add_argument("-t", "--timeout", type=float, default=DEFAULT_TIMEOUT_SEC, help="Per-request timeout")
    parser.add_argument(
        "--median",
        action="store_true",
        help="Report the median of the samples instead of the mean",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def _build_config(args: argparse.Namespace) -> SamplerConfig:
    if not args.url:
        raise ConfigurationError("Error url option cant be empty!")
    return SamplerConfig(
        url=args.url,
        headers=tuple(args.headers),
        request_count=args.count,
        timeout_sec=args.timeout,
        use_median=args.median,
    )


def run(config: SamplerConfig) -> int:
    try:
        sampler = RequestSampler(timeout_sec=config.timeout_sec, keep_samples=config.use_median)
    except InitializationError as exc:
        print(exc, file=sys.stderr)
        return 1
    with sampler:
        for header in config.headers:
            sampler.add_header(header)
        sampler.set_request_count(config.request_count)
        if not sampler.get(config.url):
            # a failed run still exits 0
            print(format_abort(sampler.last_error))
            return 0
        timings = sampler.timings
        if config.use_median:
            reported = timings.median()
        else:
            reported = timings.mean(config.request_count)
        print(format_status_line(sampler.last_connection_ip, sampler.response_code, reported))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    try:
        config = _build_config(args)
    except ConfigurationError as exc:
        print(exc)
        print(USAGE)
        return 1
    logger.debug("sampler config: %s", config.to_metadata())
    return run(config)


if __name__ == "__main__":
    raise SystemExit(main())
