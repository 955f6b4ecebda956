"""Smoke test harness.

Orchestrates three independent check operations over descriptors supplied by
the caller and accumulates one `CheckResult` per subject:

    1. Container health: every container must be running and healthy.
    2. External service connectivity: required services must be reachable,
       optional ones only warn.
    3. End-to-end functionality: a caller-supplied workflow must not raise.

Each operation returns a tagged `CheckOutcome` (`CheckOk` / `CheckErr`)
instead of raising; callers that want an exception call
`outcome.raise_for_failure()`.

Every descriptor in a list is evaluated, in order, even after a failure. The
returned `CheckErr` aggregates all failures so one run surfaces every broken
dependency at once.

A harness instance is not thread-safe: run its check operations from a single
thread. Results accumulate across operations for the lifetime of the instance.
"""

import time
from contextlib import contextmanager
from datetime import timedelta
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Optional, Protocol, Sequence

from app.smokecheck.core.logging_config import bound_contextvars, get_logger
from app.smokecheck.core.types import (
    CheckErr,
    CheckFailure,
    CheckOk,
    CheckOutcome,
    CheckResult,
    ContainerDescriptor,
    HealthSummary,
    ServiceDescriptor,
)
from app.smokecheck.report import SmokeReport

CONTAINER_CHECK = "Container Health Check"
SERVICE_CHECK = "External Services Connectivity Check"
END_TO_END_CHECK = "End-to-End Functionality Check"

END_TO_END_SUBJECT = "End-to-End Functionality"

NOT_RUNNING_MESSAGE = "Container is not running"
UNHEALTHY_MESSAGE = "Container health check failed"
UNREACHABLE_MESSAGE = "Failed to connect to external service"


class DescriptorSource(Protocol):
    """What an adapter supplies to a full smoke run."""

    def get_containers(self) -> list[ContainerDescriptor]: ...

    def get_services(self) -> list[ServiceDescriptor]: ...

    def perform_end_to_end(self) -> None: ...

    @property
    def has_end_to_end(self) -> bool: ...


class SmokeHarness:
    """Runs check operations and accumulates their results.

    Args:
        logger: Optional structlog logger; defaults to this module's logger.
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or get_logger(__name__)
        self._results: dict[str, CheckResult] = {}

    # =========================================================================
    # CHECK OPERATIONS
    # =========================================================================

    def check_containers(self, containers: Sequence[ContainerDescriptor]) -> CheckOutcome:
        """Validate that every container is running and healthy.

        Containers are always required: a single failing container fails the
        operation, and so does an empty list.
        """
        with self._operation(CONTAINER_CHECK):
            if not containers:
                message = "At least one container must be configured"
                self._logger.error(message)
                return CheckErr(
                    operation=CONTAINER_CHECK,
                    reason="no_containers",
                    message=message,
                    failures=(
                        CheckFailure(subject_name="containers", reason="no_containers", message=message),
                    ),
                )

            results: list[CheckResult] = []
            failures: list[CheckFailure] = []
            for container in containers:
                result = self._validate_container(container)
                self._record(result)
                results.append(result)
                if not result.healthy:
                    reason = "not_running" if not container.running else "unhealthy"
                    failures.append(CheckFailure(
                        subject_name=container.name,
                        reason=reason,
                        message=f"Container '{container.name}' health check failed: {result.message}",
                    ))

            self._log_summary()
            return self._outcome(CONTAINER_CHECK, results, failures)

    def check_services(self, services: Sequence[ServiceDescriptor]) -> CheckOutcome:
        """Probe every external service.

        Required services that cannot be reached fail the operation. Optional
        ones are recorded as unhealthy and logged as warnings only. An empty
        list is a successful no-op.
        """
        with self._operation(SERVICE_CHECK):
            if not services:
                self._logger.info("No external services configured for connectivity check")
                return CheckOk(operation=SERVICE_CHECK)

            results: list[CheckResult] = []
            failures: list[CheckFailure] = []
            for service in services:
                result = self._validate_service(service)
                self._record(result)
                results.append(result)
                if result.healthy:
                    continue
                if service.required:
                    failures.append(CheckFailure(
                        subject_name=service.name,
                        reason="required_service_unreachable",
                        message=(
                            f"Required external service '{service.name}' "
                            f"connectivity failed: {result.message}"
                        ),
                    ))
                else:
                    self._logger.warning(
                        "Optional external service connectivity failed",
                        service=service.name,
                        reason=result.message,
                    )

            self._log_summary()
            return self._outcome(SERVICE_CHECK, results, failures)

    def check_end_to_end(self, callback: Callable[[], Any]) -> CheckOutcome:
        """Run the caller's end-to-end workflow; any exception fails the check."""
        with self._operation(END_TO_END_CHECK):
            start = time.perf_counter()
            try:
                callback()
            except Exception as e:
                elapsed = _since(start)
                message = f"End-to-end functionality test failed: {str(e) or type(e).__name__}"
                self._logger.error("End-to-end functionality check failed", error=str(e), exc_info=True)
                result = CheckResult.failed(END_TO_END_SUBJECT, message, elapsed)
                self._record(result)
                return CheckErr(
                    operation=END_TO_END_CHECK,
                    reason="end_to_end_failure",
                    message=message,
                    failures=(
                        CheckFailure(
                            subject_name=END_TO_END_SUBJECT,
                            reason="end_to_end_failure",
                            message=message,
                        ),
                    ),
                    results=(result,),
                )

            result = CheckResult.passed(END_TO_END_SUBJECT, "Workflow completed", _since(start))
            self._record(result)
            self._logger.info("End-to-end functionality check passed")
            return CheckOk(operation=END_TO_END_CHECK, results=(result,))

    def run(self, source: DescriptorSource, end_to_end: bool = True) -> list[CheckOutcome]:
        """Run every check operation against `source`, in order.

        Each operation runs even if an earlier one failed. The end-to-end
        operation runs only when requested and `source` has a workflow; an
        unconfigured workflow is skipped, never recorded as passed.
        """
        outcomes = [
            self.check_containers(source.get_containers()),
            self.check_services(source.get_services()),
        ]
        if end_to_end and source.has_end_to_end:
            outcomes.append(self.check_end_to_end(source.perform_end_to_end))
        elif end_to_end:
            self._logger.info("No end-to-end workflow configured, skipping", check=END_TO_END_CHECK)
        return outcomes

    # =========================================================================
    # RESULTS
    # =========================================================================

    @property
    def results(self) -> Mapping[str, CheckResult]:
        """Read-only view of accumulated results, in insertion order."""
        return MappingProxyType(self._results)

    def summary(self) -> HealthSummary:
        healthy = sum(1 for result in self._results.values() if result.healthy)
        return HealthSummary(
            total=len(self._results),
            healthy=healthy,
            unhealthy=len(self._results) - healthy,
        )

    def build_report(
        self,
        application_name: str,
        environment: str,
        outcomes: Sequence[CheckOutcome] = (),
    ) -> SmokeReport:
        """Copy the accumulated results into a new `SmokeReport`.

        Each result contributes one log line; each outcome, if given, one
        more stating whether its operation passed.
        """
        report = SmokeReport(application_name, environment)
        for result in self._results.values():
            report.add_check_result(result)
            report.add_log(
                f"{result.timestamp.isoformat()} {result.subject_name}: "
                f"{result.status_label} - {result.message}"
            )
        for outcome in outcomes:
            report.add_log(f"{outcome.operation}: {'OK' if outcome.ok else 'FAILED'}")
        return report

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _validate_container(self, container: ContainerDescriptor) -> CheckResult:
        start = time.perf_counter()
        self._logger.info("Checking container", container=container.name, kind=container.kind)

        if not container.running:
            return CheckResult.failed(container.name, NOT_RUNNING_MESSAGE, _since(start))
        if not container.healthy:
            return CheckResult.failed(container.name, UNHEALTHY_MESSAGE, _since(start))

        self._logger.info("Container is healthy", container=container.name, diagnostics=container.diagnostics)
        return CheckResult.passed(container.name, container.diagnostics, _since(start))

    def _validate_service(self, service: ServiceDescriptor) -> CheckResult:
        start = time.perf_counter()
        self._logger.info("Checking external service", service=service.name, url=service.url)

        try:
            connected = bool(service.probe())
        except Exception as e:
            self._logger.error("Error checking external service", service=service.name, exc_info=True)
            return CheckResult.failed(
                service.name,
                f"Probe raised {type(e).__name__}: {e}",
                _since(start),
            )

        if not connected:
            message = f"{UNREACHABLE_MESSAGE} at {service.url}" if service.url else UNREACHABLE_MESSAGE
            return CheckResult.failed(service.name, message, _since(start))

        diagnostics = f"url={service.url} kind={service.kind}"
        self._logger.info("External service is accessible", service=service.name, diagnostics=diagnostics)
        return CheckResult.passed(service.name, diagnostics, _since(start))

    def _record(self, result: CheckResult) -> None:
        # An overwritten name keeps its original position.
        self._results[result.subject_name] = result

    def _outcome(
        self,
        operation: str,
        results: list[CheckResult],
        failures: list[CheckFailure],
    ) -> CheckOutcome:
        if not failures:
            return CheckOk(operation=operation, results=tuple(results))
        return CheckErr(
            operation=operation,
            reason=failures[0].reason,
            message="; ".join(failure.message for failure in failures),
            failures=tuple(failures),
            results=tuple(results),
        )

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Log start/end banners and tag every log line with the operation."""
        start = time.perf_counter()
        with bound_contextvars(check=name):
            self._logger.info(f"=== Starting {name} ===")
            try:
                yield
            finally:
                elapsed_ms = int((time.perf_counter() - start) * 1000)
                self._logger.info(f"=== {name} Completed in {elapsed_ms}ms ===")

    def _log_summary(self) -> None:
        summary = self.summary()
        self._logger.info(
            "Health check summary",
            total=summary.total,
            healthy=summary.healthy,
            unhealthy=summary.unhealthy,
        )
        for name, result in self._results.items():
            self._logger.info(f"  - {name}: {result.status_label} ({result.elapsed_ms}ms)")


def _since(start: float) -> timedelta:
    return timedelta(seconds=time.perf_counter() - start)
