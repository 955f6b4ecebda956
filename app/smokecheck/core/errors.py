"""Exception hierarchy for smoke check failures.

Probes never raise: an unreachable service is ordinary data. The exceptions
below exist for callers that want to turn a failed `CheckOutcome` into control
flow (a test assertion, a process exit) via `raise_for_failure()`, and for the
report writers and callback loader, whose errors stay local to one call.
"""

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from app.smokecheck.core.types.results import CheckFailure


class SmokeCheckError(Exception):
    """Base class for failed check operations.

    Attributes:
        message: Human-readable reason naming the failing subject(s).
        failures: Every individual failure the operation recorded.
    """

    def __init__(self, message: str, failures: Sequence["CheckFailure"] = ()):
        super().__init__(message)
        self.message = message
        self.failures = tuple(failures)

    @property
    def subject_names(self) -> list[str]:
        return [failure.subject_name for failure in self.failures]


class NoContainersConfiguredError(SmokeCheckError):
    """The container check was handed an empty descriptor list."""


class ContainerNotRunningError(SmokeCheckError):
    """At least one container reported it is not running."""


class ContainerUnhealthyError(SmokeCheckError):
    """At least one running container failed its health check."""


class RequiredServiceUnreachableError(SmokeCheckError):
    """A service marked required could not be reached."""


class EndToEndFailureError(SmokeCheckError):
    """The end-to-end callback raised."""


class ReportRenderError(Exception):
    """A report artifact could not be written.

    Attributes:
        path: Destination that failed.
        fmt: Report format being written (json, html, markdown).
    """

    def __init__(self, fmt: str, path: str, cause: OSError):
        super().__init__(f"Failed to write {fmt} report to '{path}': {cause}")
        self.fmt = fmt
        self.path = path


class CallbackResolutionError(Exception):
    """A `module:attribute` callback path could not be imported."""
