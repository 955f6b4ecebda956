"""Result types produced by the harness.

`CheckResult` records the outcome for a single descriptor. `CheckOk` and
`CheckErr` form a tagged outcome returned by each check operation, so the
caller decides whether a failure becomes an exception, a process exit code or
a logged warning.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Literal, Union

from pydantic import Field, model_validator

from app.smokecheck.core.errors import (
    ContainerNotRunningError,
    ContainerUnhealthyError,
    EndToEndFailureError,
    NoContainersConfiguredError,
    RequiredServiceUnreachableError,
    SmokeCheckError,
)

from .base import CanonicalModel


FailureReason = Literal[
    "not_running",
    "unhealthy",
    "required_service_unreachable",
    "end_to_end_failure",
    "no_containers",
]

_ERROR_TYPES: dict[str, type[SmokeCheckError]] = {
    "not_running": ContainerNotRunningError,
    "unhealthy": ContainerUnhealthyError,
    "required_service_unreachable": RequiredServiceUnreachableError,
    "end_to_end_failure": EndToEndFailureError,
    "no_containers": NoContainersConfiguredError,
}


# ═══════════════════════════════════════════════════════════════════════════
# PER-SUBJECT RESULTS
# ═══════════════════════════════════════════════════════════════════════════

class CheckResult(CanonicalModel):
    """Outcome of validating one descriptor.

    Attributes:
        subject_name: Name of the container, service or workflow checked.
        healthy: Whether the check passed.
        message: Failure reason, or a diagnostic summary on success.
        elapsed: Wall-clock time the check took.
        timestamp: When the result was recorded (UTC).

    Raises:
        ValueError: If an unhealthy result carries an empty message.

    Example:
        >>> result = CheckResult.failed("Redis", "Container is not running", timedelta(0))
        >>> result.healthy
        False
    """
    subject_name: str = Field(min_length=1)
    healthy: bool
    message: str = ""
    elapsed: timedelta = timedelta(0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode='after')
    def validate_failure_has_message(self) -> 'CheckResult':
        """Ensure every failure explains itself."""
        if not self.healthy and not self.message:
            raise ValueError(
                f"Unhealthy result for '{self.subject_name}' must carry a message"
            )
        return self

    @classmethod
    def passed(cls, subject_name: str, message: str, elapsed: timedelta) -> 'CheckResult':
        return cls(subject_name=subject_name, healthy=True, message=message, elapsed=elapsed)

    @classmethod
    def failed(cls, subject_name: str, message: str, elapsed: timedelta) -> 'CheckResult':
        return cls(subject_name=subject_name, healthy=False, message=message, elapsed=elapsed)

    @property
    def elapsed_ms(self) -> int:
        """Elapsed time in whole milliseconds."""
        return int(self.elapsed.total_seconds() * 1000)

    @property
    def status_label(self) -> str:
        return "HEALTHY" if self.healthy else "UNHEALTHY"


class CheckFailure(CanonicalModel):
    """A single failure attributed to one subject within an operation."""
    subject_name: str
    reason: FailureReason
    message: str = Field(min_length=1)


class HealthSummary(CanonicalModel):
    """Counts over the results a harness has accumulated."""
    total: int = Field(ge=0)
    healthy: int = Field(ge=0)
    unhealthy: int = Field(ge=0)


# ═══════════════════════════════════════════════════════════════════════════
# TAGGED OUTCOMES (Discriminated Union)
# ═══════════════════════════════════════════════════════════════════════════

class CheckOk(CanonicalModel):
    """A check operation that completed without a required failure.

    Optional services that failed still appear in `results` as unhealthy.
    """
    status: Literal["ok"] = "ok"
    operation: str
    results: tuple[CheckResult, ...] = ()

    @property
    def ok(self) -> bool:
        return True

    def raise_for_failure(self) -> None:
        """No-op; present so callers can treat both outcomes uniformly."""


class CheckErr(CanonicalModel):
    """A check operation that failed.

    Attributes:
        operation: Which check produced this outcome.
        reason: Failure category of the first failure encountered.
        message: Aggregated message naming every failing subject.
        failures: Every failure, in descriptor order.
        results: Every result recorded by the operation, passing ones included.
    """
    status: Literal["err"] = "err"
    operation: str
    reason: FailureReason
    message: str = Field(min_length=1)
    failures: tuple[CheckFailure, ...] = Field(min_length=1)
    results: tuple[CheckResult, ...] = ()

    @property
    def ok(self) -> bool:
        return False

    def raise_for_failure(self) -> None:
        """Raise the `SmokeCheckError` subclass matching `reason`."""
        raise _ERROR_TYPES[self.reason](self.message, self.failures)


CheckOutcome = Annotated[
    Union[CheckOk, CheckErr],
    Field(discriminator='status')
]
