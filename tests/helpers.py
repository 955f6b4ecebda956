"""Descriptor builders and an in-memory descriptor source shared by tests."""
from typing import Any, Callable, Optional

from app.smokecheck.core.types import ContainerDescriptor, ServiceDescriptor


def make_container(name: str = "Redis", **overrides: Any) -> ContainerDescriptor:
    """Build a healthy container descriptor, overriding any field."""
    fields: dict[str, Any] = {
        "name": name,
        "kind": "cache",
        "host": "localhost",
        "port": 6379,
        "image": "redis:7-alpine",
        "running": True,
        "healthy": True,
    }
    fields.update(overrides)
    return ContainerDescriptor(**fields)


def make_service(
    name: str = "API",
    reachable: bool = True,
    required: bool = True,
    probe: Optional[Callable[[], bool]] = None,
) -> ServiceDescriptor:
    """Build a service descriptor whose probe returns `reachable`."""
    return ServiceDescriptor(
        name=name,
        kind="REST API",
        url=f"http://{name.lower()}.test/health",
        required=required,
        probe=probe or (lambda: reachable),
    )


class FakeSource:
    """In-memory descriptor source recording end-to-end invocations."""

    def __init__(
        self,
        containers: Optional[list[ContainerDescriptor]] = None,
        services: Optional[list[ServiceDescriptor]] = None,
        end_to_end_error: Optional[Exception] = None,
        has_end_to_end: bool = True,
    ):
        self.containers = containers if containers is not None else [make_container()]
        self.services = services or []
        self.end_to_end_error = end_to_end_error
        self.has_end_to_end = has_end_to_end
        self.end_to_end_calls = 0

    def get_containers(self) -> list[ContainerDescriptor]:
        return list(self.containers)

    def get_services(self) -> list[ServiceDescriptor]:
        return list(self.services)

    def perform_end_to_end(self) -> None:
        self.end_to_end_calls += 1
        if self.end_to_end_error is not None:
            raise self.end_to_end_error
