"""Environment-driven descriptor source.

Turn `Settings` into the three inputs a smoke run needs:

    - containers: each configured `ContainerEndpoint` is probed over TCP and
      reported running/healthy when it accepts a connection;
    - services: one descriptor per configured ``EXTERNAL_*`` variable, each
      paired with a retrying probe. Redis, Kafka and Cassandra are optional;
      the API health URL is required;
    - end-to-end: an injected callable, or one loaded from
      ``SMOKE_E2E_CALLBACK`` (``package.module:function``),
      bounded by ``E2E_TIMEOUT_MS``.
"""

import importlib
from datetime import timedelta
from typing import Any, Callable, Optional

from app.config import Settings
from app.smokecheck import probes
from app.smokecheck.core.errors import CallbackResolutionError
from app.smokecheck.core.logging_config import get_logger
from app.smokecheck.core.types import ContainerDescriptor, ServiceDescriptor

logger = get_logger(__name__)


def load_callback(path: str) -> Callable[[], Any]:
    """Resolve ``package.module:attribute`` to a callable.

    Raises:
        CallbackResolutionError: If the path is malformed, the module cannot be
            imported, or the attribute is missing or not callable.
    """
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise CallbackResolutionError(f"Expected 'module:function', got '{path}'")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise CallbackResolutionError(f"Cannot import '{module_name}': {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise CallbackResolutionError(f"'{path}' has no attribute '{attr}'") from e

    if not callable(target):
        raise CallbackResolutionError(f"'{path}' is not callable")
    return target


class EnvironmentDescriptorSource:
    """Descriptor source backed by application settings.

    Args:
        settings: Loaded application settings.
        end_to_end: Optional workflow callable; overrides SMOKE_E2E_CALLBACK.
    """

    def __init__(self, settings: Settings, end_to_end: Optional[Callable[[], Any]] = None):
        self.settings = settings
        self._end_to_end = end_to_end

    def get_containers(self) -> list[ContainerDescriptor]:
        containers = []
        for endpoint in self.settings.SMOKE_CONTAINERS:
            reachable = probes.check_tcp_connection(
                endpoint.host, endpoint.port, self.settings.PROBE_TIMEOUT_MS
            )
            containers.append(ContainerDescriptor(
                name=endpoint.name,
                kind=endpoint.kind,
                host=endpoint.host,
                port=endpoint.port,
                image=endpoint.image,
                running=reachable,
                # A reachable endpoint is the only health signal available here.
                healthy=reachable,
            ))
        return containers

    def get_services(self) -> list[ServiceDescriptor]:
        s = self.settings
        services = []

        tcp_services = (
            ("External Redis", "Cache", s.EXTERNAL_REDIS_URL, probes.REDIS_DEFAULT_PORT),
            ("External Kafka", "Messaging", s.EXTERNAL_KAFKA_URL, probes.KAFKA_DEFAULT_PORT),
            ("External Cassandra", "Database", s.EXTERNAL_CASSANDRA_URL, probes.CASSANDRA_DEFAULT_PORT),
        )
        for name, kind, url, default_port in tcp_services:
            if url:
                services.append(ServiceDescriptor(
                    name=name,
                    kind=kind,
                    url=url,
                    required=False,
                    probe=self._retrying(self._tcp_probe(url, default_port)),
                ))

        if s.EXTERNAL_API_HEALTH_CHECK_URL:
            services.append(ServiceDescriptor(
                name="External API",
                kind="REST API",
                url=s.EXTERNAL_API_HEALTH_CHECK_URL,
                required=True,
                probe=self._retrying(
                    probes.http_probe(s.EXTERNAL_API_HEALTH_CHECK_URL, s.PROBE_TIMEOUT_MS)
                ),
            ))

        return services

    def perform_end_to_end(self) -> None:
        callback = self._end_to_end
        if callback is None and self.settings.SMOKE_E2E_CALLBACK:
            callback = load_callback(self.settings.SMOKE_E2E_CALLBACK)
        if callback is None:
            logger.info("No end-to-end workflow configured")
            return
        probes.execute_with_timeout(callback, timedelta(milliseconds=self.settings.E2E_TIMEOUT_MS))

    @property
    def has_end_to_end(self) -> bool:
        return self._end_to_end is not None or bool(self.settings.SMOKE_E2E_CALLBACK)

    def _tcp_probe(self, url: str, default_port: int) -> probes.Probe:
        timeout_ms = self.settings.PROBE_TIMEOUT_MS

        def probe() -> bool:
            # A malformed URL raises here and is recorded as a failed probe.
            host, port = probes.parse_host_port(url, default_port)
            return probes.check_tcp_connection(host, port, timeout_ms)

        return probe

    def _retrying(self, probe: probes.Probe) -> probes.Probe:
        return probes.with_retry(
            probe,
            self.settings.PROBE_RETRY_COUNT,
            self.settings.PROBE_RETRY_DELAY_MS,
        )
