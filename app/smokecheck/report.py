"""Smoke test report generation.

Collect check results into a `SmokeReport` and render them as console text,
JSON, HTML or Markdown. Rendering never mutates the report: every render call
may be repeated, in any order, and a failed write leaves the report and all
other renderers untouched.

The JSON document uses camelCase keys expected by downstream
report consumers:

    {
      "applicationName": "...",
      "environment": "...",
      "testStartTime": "YYYY-MM-DD HH:MM:SS",
      "summary": {"total": 0, "passed": 0, "failed": 0, "totalDurationMs": 0},
      "testResults": {"<name>": {"name": "...", "passed": true,
                                 "message": null, "durationMs": 0}},
      "logs": ["..."]
    }
"""

import html
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO, Union

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.smokecheck.core.errors import ReportRenderError
from app.smokecheck.core.logging_config import get_logger
from app.smokecheck.core.types import CanonicalModel, CheckResult

logger = get_logger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
BANNER_WIDTH = 80

PathLike = Union[str, os.PathLike]


# ═══════════════════════════════════════════════════════════════════════════
# REPORT DOCUMENT (JSON schema)
# ═══════════════════════════════════════════════════════════════════════════

class _ReportModel(CanonicalModel):
    """Base for report records serialized with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportEntry(_ReportModel):
    """One named result as it appears in the report."""
    name: str
    passed: bool
    message: Optional[str] = None
    duration_ms: int = Field(default=0, ge=0)

    @property
    def status_label(self) -> str:
        return "✓ PASS" if self.passed else "✗ FAIL"

    @property
    def css_class(self) -> str:
        return "pass" if self.passed else "fail"

    @property
    def reason(self) -> Optional[str]:
        """Failure reason to display, or None for passing entries."""
        if self.passed or not self.message:
            return None
        return self.message


class ReportSummary(_ReportModel):
    """Aggregate counts over every entry in a report.

    `passed + failed == total` holds for every summary a report produces.
    """
    total: int = Field(ge=0)
    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    total_duration_ms: int = Field(ge=0)


class ReportDocument(_ReportModel):
    """The machine-consumable form of a report."""
    application_name: str
    environment: str
    test_start_time: str
    summary: ReportSummary
    test_results: dict[str, ReportEntry]
    logs: list[str]


# ═══════════════════════════════════════════════════════════════════════════
# REPORT ACCUMULATOR
# ═══════════════════════════════════════════════════════════════════════════

class SmokeReport:
    """Accumulates results and log lines for one smoke run.

    Results are kept in insertion order, keyed by name; adding a result under
    an existing name replaces it in place.
    """

    def __init__(
        self,
        application_name: str,
        environment: str,
        test_start_time: Optional[datetime] = None,
    ):
        self.application_name = application_name
        self.environment = environment
        self.test_start_time = test_start_time or datetime.now().astimezone()
        self._results: dict[str, ReportEntry] = {}
        self._logs: list[str] = []

    # --- Building ---

    def add_result(
        self,
        name: str,
        passed: bool,
        message: Optional[str] = None,
        duration_ms: int = 0,
    ) -> None:
        self._results[name] = ReportEntry(
            name=name,
            passed=passed,
            message=message,
            duration_ms=duration_ms,
        )

    def add_check_result(self, result: CheckResult) -> None:
        """Add a harness `CheckResult` under its subject name."""
        self.add_result(
            result.subject_name,
            result.healthy,
            result.message or None,
            result.elapsed_ms,
        )

    def add_log(self, line: str) -> None:
        self._logs.append(line)

    # --- Reading ---

    @property
    def results(self) -> list[ReportEntry]:
        return list(self._results.values())

    @property
    def logs(self) -> list[str]:
        return list(self._logs)

    @property
    def formatted_start_time(self) -> str:
        return self.test_start_time.strftime(TIME_FORMAT)

    def summary(self) -> ReportSummary:
        """Fold the current entries into pass/fail counts and total duration."""
        passed = sum(1 for entry in self._results.values() if entry.passed)
        return ReportSummary(
            total=len(self._results),
            passed=passed,
            failed=len(self._results) - passed,
            total_duration_ms=sum(entry.duration_ms for entry in self._results.values()),
        )

    def to_document(self) -> ReportDocument:
        return ReportDocument(
            application_name=self.application_name,
            environment=self.environment,
            test_start_time=self.formatted_start_time,
            summary=self.summary(),
            test_results=dict(self._results),
            logs=list(self._logs),
        )

    # --- Rendering ---

    def render_console(self, stream: Optional[TextIO] = None) -> str:
        """Print the report as fixed-width text and return what was printed."""
        summary = self.summary()
        lines = [
            "",
            "=" * BANNER_WIDTH,
            "SMOKE TEST REPORT",
            "=" * BANNER_WIDTH,
            f"Application: {self.application_name}",
            f"Environment: {self.environment}",
            f"Test Time: {self.formatted_start_time}",
            "-" * BANNER_WIDTH,
            (
                f"Total Tests: {summary.total} | Passed: {summary.passed} | "
                f"Failed: {summary.failed} | Duration: {summary.total_duration_ms}ms"
            ),
            "-" * BANNER_WIDTH,
        ]
        for entry in self._results.values():
            lines.append(f"[{entry.status_label}] {entry.name} ({entry.duration_ms}ms)")
            if entry.reason:
                lines.append(f"    Reason: {entry.reason}")
        lines.append("=" * BANNER_WIDTH)
        lines.append("")

        text = "\n".join(lines) + "\n"
        (stream or sys.stdout).write(text)
        return text

    def render_json(self, path: PathLike) -> Path:
        content = self.to_document().model_dump_json(indent=2, by_alias=True)
        return self._write("json", path, content + "\n")

    def render_html(self, path: PathLike) -> Path:
        return self._write("html", path, self._html())

    def render_markdown(self, path: PathLike) -> Path:
        return self._write("markdown", path, self._markdown())

    def _write(self, fmt: str, path: PathLike, content: str) -> Path:
        target = Path(path)
        try:
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to generate report", format=fmt, path=str(target), error=str(e))
            raise ReportRenderError(fmt, str(target), e) from e
        logger.info("Report generated", format=fmt, path=str(target))
        return target

    def _html(self) -> str:
        summary = self.summary()
        app_name = html.escape(self.application_name)
        out = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            f"<title>Smoke Test Report - {app_name}</title>",
            "<style>",
            "body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }",
            ".container { max-width: 1200px; margin: 0 auto; background: white; padding: 20px; "
            "box-shadow: 0 0 10px rgba(0,0,0,0.1); }",
            "h1 { color: #333; border-bottom: 3px solid #007bff; padding-bottom: 10px; }",
            ".summary { background: #e9ecef; padding: 15px; border-radius: 5px; margin: 20px 0; }",
            ".test-result { margin: 10px 0; padding: 10px; border-left: 4px solid; }",
            ".pass { border-color: #28a745; background: #d4edda; }",
            ".fail { border-color: #dc3545; background: #f8d7da; }",
            ".metric { display: inline-block; margin-right: 20px; }",
            "</style>",
            "</head>",
            "<body>",
            "<div class='container'>",
            "<h1>Smoke Test Report</h1>",
            "<div class='summary'>",
            f"<p><strong>Application:</strong> {app_name}</p>",
            f"<p><strong>Environment:</strong> {html.escape(self.environment)}</p>",
            f"<p><strong>Test Time:</strong> {self.formatted_start_time}</p>",
            "<div style='margin-top: 15px;'>",
            f"<span class='metric'><strong>Total:</strong> {summary.total}</span>",
            f"<span class='metric' style='color: #28a745;'><strong>Passed:</strong> {summary.passed}</span>",
            f"<span class='metric' style='color: #dc3545;'><strong>Failed:</strong> {summary.failed}</span>",
            f"<span class='metric'><strong>Duration:</strong> {summary.total_duration_ms}ms</span>",
            "</div>",
            "</div>",
            "<h2>Test Results</h2>",
        ]
        for entry in self._results.values():
            out.append(f"<div class='test-result {entry.css_class}'>")
            out.append(
                f"<strong>{entry.status_label}</strong> {html.escape(entry.name)} "
                f"<em>({entry.duration_ms}ms)</em>"
            )
            if entry.reason:
                out.append(f"<br><small>Reason: {html.escape(entry.reason)}</small>")
            out.append("</div>")
        if self._logs:
            out.append("<h2>Logs</h2>")
            out.append("<pre>")
            out.extend(html.escape(line) for line in self._logs)
            out.append("</pre>")
        out.extend(["</div>", "</body>", "</html>"])
        return "\n".join(out) + "\n"

    def _markdown(self) -> str:
        summary = self.summary()
        out = [
            "# Smoke Test Report",
            "",
            "## Summary",
            "",
            f"- **Application:** {self.application_name}",
            f"- **Environment:** {self.environment}",
            f"- **Test Time:** {self.formatted_start_time}",
            "",
            "### Results",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Total Tests | {summary.total} |",
            f"| Passed | {summary.passed} |",
            f"| Failed | {summary.failed} |",
            f"| Duration | {summary.total_duration_ms}ms |",
            "",
            "## Test Results",
            "",
        ]
        for entry in self._results.values():
            status = "✅ PASS" if entry.passed else "❌ FAIL"
            out.append(f"### {status} {entry.name}")
            out.append("")
            out.append(f"- **Duration:** {entry.duration_ms}ms")
            if entry.reason:
                out.append(f"- **Reason:** {entry.reason}")
            out.append("")
        if self._logs:
            out.extend(["## Logs", "", "```"])
            out.extend(self._logs)
            out.extend(["```", ""])
        return "\n".join(out)
