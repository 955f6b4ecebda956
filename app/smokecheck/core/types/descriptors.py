"""Descriptors for the things a smoke run checks.

A descriptor is a plain, immutable record describing one dependency: either a
container expected to be running alongside the application, or an external
service reached over the network. Descriptors are produced fresh by an adapter
for every harness invocation and are never persisted.
"""

from typing import Callable

from pydantic import Field

from .base import CanonicalModel


# ═══════════════════════════════════════════════════════════════════════════
# CONTAINERS
# ═══════════════════════════════════════════════════════════════════════════

class ContainerEndpoint(CanonicalModel):
    """A configured container address, before its live state is known.

    Adapters turn endpoints into `ContainerDescriptor` values by probing them.

    Example:
        >>> ContainerEndpoint(name="Redis", kind="cache", host="localhost", port=6379)
        ContainerEndpoint(name='Redis', kind='cache', host='localhost', port=6379, image='')
    """
    name: str = Field(min_length=1, description="Unique, human-readable identifier")
    kind: str = Field(default="container", description="Category: cache, messaging, database, ...")
    host: str = Field(min_length=1)
    port: int = Field(ge=0, le=65535)
    image: str = Field(default="", description="Version-tagged image reference")


class ContainerDescriptor(CanonicalModel):
    """One infrastructure dependency expected to be running.

    A descriptor with `running=False` always fails its check, whatever
    `healthy` says.

    Attributes:
        name: Unique, human-readable identifier (also the result key).
        kind: Category such as cache, messaging or database.
        host: Host the container is reachable on.
        port: Mapped port.
        image: Version-tagged image reference.
        running: Whether the container process is up.
        healthy: Whether the container reports itself healthy.
    """
    name: str = Field(min_length=1)
    kind: str = "container"
    host: str = Field(min_length=1)
    port: int = Field(ge=0, le=65535)
    image: str = ""
    running: bool
    healthy: bool

    @property
    def diagnostics(self) -> str:
        """Return the one-line diagnostic recorded on a passing check."""
        return f"host={self.host} port={self.port} image={self.image}"


# ═══════════════════════════════════════════════════════════════════════════
# EXTERNAL SERVICES
# ═══════════════════════════════════════════════════════════════════════════

class ServiceDescriptor(CanonicalModel):
    """An external (non-container) service to validate connectivity against.

    `required` defaults to True: a service nobody explicitly marked optional
    fails the connectivity check when unreachable.

    Attributes:
        name: Unique, human-readable identifier.
        kind: Category such as cache, messaging, database or REST API.
        url: Address shown in diagnostics.
        required: Whether unreachability fails the whole connectivity check.
        probe: Zero-argument callable returning True when reachable.

    Example:
        >>> svc = ServiceDescriptor(name="API", kind="REST API",
        ...                         url="http://api/health", probe=lambda: True)
        >>> svc.required
        True
    """
    name: str = Field(min_length=1)
    kind: str = "service"
    url: str = ""
    required: bool = True
    probe: Callable[[], bool] = Field(exclude=True, repr=False)
