"""Standalone smoke check for CI pipelines and container health probes.

Run the container, external service and end-to-end checks configured through
the environment, print a console report, and optionally write JSON, HTML or
Markdown artifacts.

Exit Codes:
    0: Every required check passed (optional services may have failed).
    1: A required check failed, or a requested report could not be written.
    2: Invalid command-line usage.

Environment Variables:
    SMOKE_CONTAINERS: JSON list of {"name", "kind", "host", "port", "image"}.
    EXTERNAL_REDIS_URL, EXTERNAL_KAFKA_URL, EXTERNAL_CASSANDRA_URL: optional.
    EXTERNAL_API_HEALTH_CHECK_URL: required HTTP health URL when set.
    SMOKE_E2E_CALLBACK: ``module:function`` end-to-end workflow.
    E2E_TIMEOUT_MS: upper bound on the end-to-end workflow (default 60000).
"""

import argparse
import sys
from typing import Callable, Optional, Sequence

from app.config import Settings, get_settings
from app.smokecheck.adapter import EnvironmentDescriptorSource
from app.smokecheck.core.errors import ReportRenderError
from app.smokecheck.core.logging_config import configure_logging, get_logger
from app.smokecheck.harness import SmokeHarness
from app.smokecheck.report import SmokeReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smokecheck",
        description="Validate containers, external services and end-to-end functionality.",
    )
    parser.add_argument("--json", metavar="PATH", help="Write a JSON report to PATH")
    parser.add_argument("--html", metavar="PATH", help="Write an HTML report to PATH")
    parser.add_argument("--markdown", metavar="PATH", help="Write a Markdown report to PATH")
    parser.add_argument(
        "--skip-end-to-end",
        action="store_true",
        help="Only check containers and external services",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the console report",
    )
    return parser


def write_artifacts(report: SmokeReport, args: argparse.Namespace) -> bool:
    """Write every requested artifact; return False if any write failed.

    A failed write does not prevent the remaining formats from being written.
    """
    logger = get_logger("healthcheck")
    renderers: list[tuple[Optional[str], Callable]] = [
        (args.json, report.render_json),
        (args.html, report.render_html),
        (args.markdown, report.render_markdown),
    ]
    ok = True
    for path, render in renderers:
        if not path:
            continue
        try:
            render(path)
        except ReportRenderError as e:
            logger.error("Report artifact not written", error=str(e))
            print(str(e), file=sys.stderr)
            ok = False
    return ok


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    """Run the smoke check and return the process exit code."""
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    configure_logging(settings)

    source = EnvironmentDescriptorSource(settings)
    harness = SmokeHarness()
    outcomes = harness.run(source, end_to_end=not args.skip_end_to_end)

    report = harness.build_report(settings.APPLICATION_NAME, settings.ENVIRONMENT, outcomes)
    if not args.quiet:
        report.render_console()

    artifacts_ok = write_artifacts(report, args)

    failed = [outcome for outcome in outcomes if not outcome.ok]
    for outcome in failed:
        print(f"{outcome.operation} failed: {outcome.message}", file=sys.stderr)

    return 0 if not failed and artifacts_ok else 1


if __name__ == "__main__":
    sys.exit(main())
