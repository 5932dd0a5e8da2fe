"""
Command line entry point: one URL in, one framed JSON report out.
"""

import argparse
import logging
import sys

from loadspeed import core
from loadspeed.correlator import EventCorrelator
from loadspeed.ledger import ResourceLedger
from loadspeed.models import EngineSettings, Report
from loadspeed.navigation import NavigationController

USAGE = "Usage: loadspeed URL"


def parse_viewport(value: str):
    try:
        width, height = value.lower().split("x", 1)
        return int(width), int(height)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Viewport must look like WIDTHxHEIGHT, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loadspeed", description="Measure the load timing of a single web page.")
    parser.add_argument("url", nargs="?", help="Target page URL")
    parser.add_argument("--user-agent", default=core.USER_AGENT, help="User-Agent reported by the browser")
    parser.add_argument("--viewport", type=parse_viewport,
                        default=(core.VIEWPORT_WIDTH, core.VIEWPORT_HEIGHT), help="Viewport as WIDTHxHEIGHT")
    parser.add_argument("--resource-timeout", type=int, default=core.RESOURCE_TIMEOUT_MS,
                        help="Per-resource timeout in milliseconds")
    parser.add_argument("--settle-delay", type=int, default=core.SETTLE_DELAY_MS,
                        help="Wait after load finished before the report is taken, in milliseconds")
    parser.add_argument("--browser", choices=core.SUPPORTED_BROWSERS, default=core.BROWSER)
    parser.add_argument("--log-level", default=core.LOG_LEVEL, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def settings_from_args(args) -> EngineSettings:
    width, height = args.viewport
    return EngineSettings(
        user_agent=args.user_agent,
        viewport_width=width,
        viewport_height=height,
        resource_timeout_ms=args.resource_timeout,
    )


def run(url: str, engine, settings: EngineSettings, settle_delay_ms: int = core.SETTLE_DELAY_MS, stream=None) -> Report:
    report = Report(resources=ResourceLedger())
    correlator = EventCorrelator(report)
    controller = NavigationController(
        engine,
        correlator,
        settings=settings,
        settle_delay_ms=settle_delay_ms,
        stream=stream,
    )
    return controller.run(url)


def main(argv=None, engine_factory=None) -> int:
    args = build_parser().parse_args(argv)
    if not args.url:
        print(USAGE, file=sys.stderr)
        return 0

    core.logger.setLevel(getattr(logging, args.log_level))

    if engine_factory is None:
        from loadspeed.playwright_engine import PlaywrightEngine
        engine_factory = PlaywrightEngine

    engine = engine_factory(args.browser)
    try:
        run(args.url, engine, settings_from_args(args), args.settle_delay)
    finally:
        engine.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
