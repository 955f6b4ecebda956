"""Test suite for the smoke test report generator.

Validates the summary fold, JSON schema and round-trip, console/HTML/Markdown
content, non-destructive rendering, and isolation of write failures.
"""

import io
import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from app.smokecheck.core.errors import ReportRenderError
from app.smokecheck.core.types import CheckResult
from app.smokecheck.report import ReportDocument, SmokeReport


@pytest.fixture
def report() -> SmokeReport:
    """Provide a report with one passing and one failing result."""
    report = SmokeReport("demo-app", "test", test_start_time=datetime(2026, 3, 4, 5, 6, 7))
    report.add_result("Redis", True, "host=localhost port=6379 image=redis:7", 12)
    report.add_result("External API", False, "Failed to connect to <api> & co", 30)
    report.add_log("started")
    return report


# ═══════════════════════════════════════════════════════════════════════════
# SUMMARY
# ═══════════════════════════════════════════════════════════════════════════

class TestSummary:

    def test_counts_and_duration(self, report: SmokeReport) -> None:
        summary = report.summary()
        assert (summary.total, summary.passed, summary.failed) == (2, 1, 1)
        assert summary.total_duration_ms == 42

    def test_passed_plus_failed_equals_total(self) -> None:
        report = SmokeReport("app", "env")
        for i, passed in enumerate([True, False, False, True, True, False, True]):
            report.add_result(f"check-{i % 5}", passed, None if passed else "down", i)
            summary = report.summary()
            assert summary.passed + summary.failed == summary.total

    def test_summary_is_pure(self, report: SmokeReport) -> None:
        assert report.summary() == report.summary()

    def test_same_name_overwrites(self, report: SmokeReport) -> None:
        report.add_result("Redis", False, "Container is not running", 1)
        summary = report.summary()
        assert summary.total == 2
        assert summary.failed == 2
        assert [entry.name for entry in report.results] == ["Redis", "External API"]

    def test_empty_report(self) -> None:
        summary = SmokeReport("app", "env").summary()
        assert (summary.total, summary.passed, summary.failed, summary.total_duration_ms) == (0, 0, 0, 0)

    def test_add_check_result(self) -> None:
        report = SmokeReport("app", "env")
        report.add_check_result(CheckResult.failed("Kafka", "Container is not running", timedelta(milliseconds=7)))
        entry = report.results[0]
        assert (entry.name, entry.passed, entry.message, entry.duration_ms) == (
            "Kafka", False, "Container is not running", 7
        )


# ═══════════════════════════════════════════════════════════════════════════
# JSON
# ═══════════════════════════════════════════════════════════════════════════

class TestJson:

    def test_schema(self, report: SmokeReport, tmp_path: Path) -> None:
        path = report.render_json(tmp_path / "report.json")
        data = json.loads(path.read_text(encoding="utf-8"))

        assert list(data) == [
            "applicationName", "environment", "testStartTime", "summary", "testResults", "logs",
        ]
        assert data["applicationName"] == "demo-app"
        assert data["testStartTime"] == "2026-03-04 05:06:07"
        assert data["summary"] == {"total": 2, "passed": 1, "failed": 1, "totalDurationMs": 42}
        assert data["testResults"]["External API"] == {
            "name": "External API",
            "passed": False,
            "message": "Failed to connect to <api> & co",
            "durationMs": 30,
        }
        assert data["logs"] == ["started"]

    def test_round_trip_matches_live_summary(self, report: SmokeReport, tmp_path: Path) -> None:
        path = report.render_json(tmp_path / "report.json")
        parsed = ReportDocument.model_validate_json(path.read_text(encoding="utf-8"))

        live = report.summary()
        assert (parsed.summary.total, parsed.summary.passed, parsed.summary.failed) == (
            live.total, live.passed, live.failed
        )

    def test_null_message_serialized_as_null(self, tmp_path: Path) -> None:
        report = SmokeReport("app", "env")
        report.add_result("Redis", True)
        data = json.loads(report.render_json(tmp_path / "r.json").read_text(encoding="utf-8"))
        assert data["testResults"]["Redis"]["message"] is None


# ═══════════════════════════════════════════════════════════════════════════
# CONSOLE / HTML / MARKDOWN
# ═══════════════════════════════════════════════════════════════════════════

class TestConsole:

    def test_layout(self, report: SmokeReport) -> None:
        stream = io.StringIO()
        text = report.render_console(stream)

        assert stream.getvalue() == text
        lines = text.splitlines()
        assert "=" * 80 in lines
        assert "SMOKE TEST REPORT" in lines
        assert "Total Tests: 2 | Passed: 1 | Failed: 1 | Duration: 42ms" in lines
        assert "[✓ PASS] Redis (12ms)" in lines
        assert "[✗ FAIL] External API (30ms)" in lines
        assert "    Reason: Failed to connect to <api> & co" in lines

    def test_defaults_to_stdout(self, report: SmokeReport, capsys) -> None:
        report.render_console()
        assert "SMOKE TEST REPORT" in capsys.readouterr().out


class TestHtml:

    def test_classes_and_escaping(self, report: SmokeReport, tmp_path: Path) -> None:
        content = report.render_html(tmp_path / "report.html").read_text(encoding="utf-8")

        assert content.startswith("<!DOCTYPE html>")
        assert "<title>Smoke Test Report - demo-app</title>" in content
        assert "<div class='test-result pass'>" in content
        assert "<div class='test-result fail'>" in content
        assert "Reason: Failed to connect to &lt;api&gt; &amp; co" in content
        assert "<strong>Total:</strong> 2" in content


class TestMarkdown:

    def test_content(self, report: SmokeReport, tmp_path: Path) -> None:
        content = report.render_markdown(tmp_path / "report.md").read_text(encoding="utf-8")

        assert content.startswith("# Smoke Test Report")
        assert "| Total Tests | 2 |" in content
        assert "| Duration | 42ms |" in content
        assert "### ✅ PASS Redis" in content
        assert "### ❌ FAIL External API" in content
        assert "- **Reason:** Failed to connect to <api> & co" in content


# ═══════════════════════════════════════════════════════════════════════════
# RENDERING GUARANTEES
# ═══════════════════════════════════════════════════════════════════════════

class TestRenderingGuarantees:

    def test_rendering_is_repeatable_and_non_destructive(self, report: SmokeReport, tmp_path: Path) -> None:
        before = report.summary()
        first = report.render_markdown(tmp_path / "a.md").read_text(encoding="utf-8")
        report.render_html(tmp_path / "b.html")
        report.render_json(tmp_path / "c.json")
        report.render_console(io.StringIO())
        second = report.render_markdown(tmp_path / "a.md").read_text(encoding="utf-8")

        assert first == second
        assert report.summary() == before
        assert len(report.logs) == 1

    def test_write_failure_is_local(self, report: SmokeReport, tmp_path: Path) -> None:
        missing_dir = tmp_path / "missing" / "report.json"

        with pytest.raises(ReportRenderError) as exc_info:
            report.render_json(missing_dir)
        assert exc_info.value.fmt == "json"

        # Other formats and the underlying data are unaffected.
        assert report.render_html(tmp_path / "ok.html").exists()
        assert report.summary().total == 2
