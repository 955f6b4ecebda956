"""Connectivity probes.

Stateless, composable reachability tests. Every probe degrades to a boolean
(or a `ConnectionMetrics` record) instead of raising, so the harness treats
"service down" as ordinary data. Timeouts are explicit parameters; there is no
global timeout state.

Defaults:
    DEFAULT_TIMEOUT_MS: 5000 ms connect and read timeout.
    DEFAULT_RETRY_COUNT: 3 attempts.
    DEFAULT_RETRY_DELAY_MS: 1000 ms between attempts.
"""

import concurrent.futures
import contextvars
import socket
import time
from datetime import timedelta
from typing import Callable, Optional, TypeVar
from urllib.parse import urlsplit

import httpx
from pydantic import ConfigDict

from app.smokecheck.core.logging_config import get_logger
from app.smokecheck.core.types import CanonicalModel

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY_MS = 1000

# waitForServiceAvailability polling cadence.
AVAILABILITY_ATTEMPT_TIMEOUT_MS = 1000
AVAILABILITY_POLL_INTERVAL_MS = 500

REDIS_DEFAULT_PORT = 6379
KAFKA_DEFAULT_PORT = 9092
CASSANDRA_DEFAULT_PORT = 9042

Probe = Callable[[], bool]

T = TypeVar("T")


class ConnectionMetrics(CanonicalModel):
    """Timing and outcome of a single measured probe call.

    Attributes:
        success: What the probe returned (False if it raised).
        elapsed: Wall-clock duration of the call.
        error: The exception the probe raised, if any.
    """
    model_config = ConfigDict(frozen=True, extra='forbid', arbitrary_types_allowed=True)

    success: bool
    elapsed: timedelta
    error: Optional[BaseException] = None

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed.total_seconds() * 1000)

    def __str__(self) -> str:
        error = str(self.error) if self.error is not None else "none"
        return (
            f"ConnectionMetrics(success={self.success}, "
            f"elapsed={self.elapsed_ms}ms, error={error})"
        )


# =============================================================================
# PRIMITIVE PROBES
# =============================================================================


def check_tcp_connection(host: str, port: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> bool:
    """Open a TCP connection to `host:port` within `timeout_ms`.

    Returns:
        True iff the connection completed before the timeout.
    """
    try:
        with socket.create_connection((host, port), timeout=timeout_ms / 1000):
            logger.debug("TCP connection successful", host=host, port=port)
            return True
    except (OSError, OverflowError, ValueError) as e:
        # socket.timeout and gaierror are both OSError subclasses
        logger.warning("TCP connection failed", host=host, port=port, error=str(e))
        return False


def check_http_endpoint(
    url: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    transport: Optional[httpx.BaseTransport] = None,
) -> bool:
    """Issue a GET against `url` and report whether it answered 2xx.

    Redirects are followed; the final response decides. Connect and read
    timeouts are applied separately, both set to `timeout_ms`.

    Args:
        url: Absolute http(s) URL.
        timeout_ms: Connect and read timeout in milliseconds.
        transport: Optional httpx transport (used by tests and proxies).

    Returns:
        True iff the response status is in [200, 300).
    """
    seconds = timeout_ms / 1000
    timeout = httpx.Timeout(connect=seconds, read=seconds, write=seconds, pool=seconds)
    try:
        with httpx.Client(timeout=timeout, transport=transport, follow_redirects=True) as client:
            response = client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.warning("HTTP endpoint check failed", url=url, error=str(e))
        return False

    success = 200 <= response.status_code < 300
    if success:
        logger.debug("HTTP endpoint check successful", url=url, status=response.status_code)
    else:
        logger.warning("HTTP endpoint check failed", url=url, status=response.status_code)
    return success


def verify_dns_resolution(hostname: str) -> bool:
    """Return True iff `hostname` resolves to at least one address."""
    try:
        addresses = socket.getaddrinfo(hostname, None)
    except (OSError, UnicodeError) as e:
        logger.warning("DNS resolution failed", hostname=hostname, error=str(e))
        return False
    logger.debug("DNS resolution successful", hostname=hostname, address=addresses[0][4][0])
    return True


# =============================================================================
# COMPOSITION
# =============================================================================


def check_with_retry(
    probe: Probe,
    retry_count: int = DEFAULT_RETRY_COUNT,
    delay_ms: int = DEFAULT_RETRY_DELAY_MS,
) -> bool:
    """Call `probe` up to `retry_count` times until it returns True.

    Sleeps `delay_ms` between attempts but not after the last one. An
    exception raised by `probe` counts as a failed attempt.

    Returns:
        True on the first successful attempt, False once all are exhausted.
    """
    for attempt in range(1, retry_count + 1):
        try:
            if probe():
                if attempt > 1:
                    logger.info("Connection successful", attempt=attempt, attempts=retry_count)
                return True
        except Exception as e:
            logger.warning(
                "Connection attempt failed",
                attempt=attempt,
                attempts=retry_count,
                error=str(e),
            )

        if attempt < retry_count:
            time.sleep(delay_ms / 1000)

    logger.error("All connection attempts failed", attempts=retry_count)
    return False


def wait_for_service_availability(
    host: str,
    port: int,
    timeout: timedelta = timedelta(seconds=30),
) -> bool:
    """Poll `host:port` over TCP until it accepts a connection or `timeout` elapses.

    Each attempt uses a 1 second connect timeout; attempts are 500 ms apart.

    Returns:
        True as soon as a connection succeeds, False on deadline expiry.
    """
    deadline = time.monotonic() + timeout.total_seconds()

    while time.monotonic() < deadline:
        if check_tcp_connection(host, port, AVAILABILITY_ATTEMPT_TIMEOUT_MS):
            return True
        time.sleep(AVAILABILITY_POLL_INTERVAL_MS / 1000)

    logger.error(
        "Service did not become available in time",
        host=host,
        port=port,
        timeout_ms=int(timeout.total_seconds() * 1000),
    )
    return False


def measure_connection_time(probe: Probe) -> ConnectionMetrics:
    """Time a single `probe` call, capturing (not propagating) any exception."""
    start = time.perf_counter()
    success = False
    error: Optional[BaseException] = None

    try:
        success = bool(probe())
    except Exception as e:
        error = e
        logger.error("Connection measurement failed", error=str(e), exc_info=True)

    elapsed = timedelta(seconds=time.perf_counter() - start)
    return ConnectionMetrics(success=success, elapsed=elapsed, error=error)


def execute_with_timeout(task: Callable[[], T], timeout: timedelta) -> T:
    """Run `task` on a worker thread and return its result within `timeout`.

    Unlike the probes above this propagates: exceptions raised by `task` are
    re-raised unchanged. The task runs in a copy of the caller's context, so
    bound log context carries over. A task that overruns is abandoned, not
    interrupted; its thread finishes in the background.

    Raises:
        TimeoutError: If `task` has not finished when `timeout` elapses.
    """
    timeout_ms = int(timeout.total_seconds() * 1000)
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="smokecheck-task")
    future = executor.submit(contextvars.copy_context().run, task)
    try:
        return future.result(timeout=timeout.total_seconds())
    except concurrent.futures.TimeoutError as e:
        if future.done():
            raise
        logger.error("Task timed out", timeout_ms=timeout_ms)
        raise TimeoutError(f"Timed out after {timeout_ms}ms") from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


# =============================================================================
# PROBE FACTORIES
# =============================================================================


def parse_host_port(url: str, default_port: int) -> tuple[str, int]:
    """Split `scheme://host:port/...` or `host:port` into its host and port.

    The scheme, credentials and any path are ignored; a missing port yields
    `default_port`. IPv6 hosts must be bracketed (`[::1]:9042`). For a
    comma-separated bootstrap list only the first entry is used.

    Raises:
        ValueError: If the host is empty or the port is not a valid integer.

    Example:
        >>> parse_host_port("redis://cache.internal:6380", 6379)
        ('cache.internal', 6380)
        >>> parse_host_port("h1:9092,h2:9092", 9092)
        ('h1', 9092)
    """
    first = url.split(",", 1)[0].strip()
    if "://" not in first:
        first = "//" + first
    parts = urlsplit(first)
    host = parts.hostname
    if not host:
        raise ValueError(f"No host in '{url}'")
    port = parts.port
    return host, port if port is not None else default_port


def tcp_probe(host: str, port: int, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> Probe:
    """Build a zero-argument TCP reachability probe."""
    return lambda: check_tcp_connection(host, port, timeout_ms)


def http_probe(url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> Probe:
    """Build a zero-argument HTTP 2xx probe."""
    return lambda: check_http_endpoint(url, timeout_ms)


def with_retry(
    probe: Probe,
    retry_count: int = DEFAULT_RETRY_COUNT,
    delay_ms: int = DEFAULT_RETRY_DELAY_MS,
) -> Probe:
    """Wrap `probe` so each call goes through `check_with_retry`."""
    return lambda: check_with_retry(probe, retry_count, delay_ms)


# =============================================================================
# SERVICE SHORTCUTS
# =============================================================================


def check_redis_connection(host: str, port: int = REDIS_DEFAULT_PORT) -> bool:
    return check_tcp_connection(host, port, DEFAULT_TIMEOUT_MS)


def check_kafka_connection(host: str, port: int = KAFKA_DEFAULT_PORT) -> bool:
    return check_tcp_connection(host, port, DEFAULT_TIMEOUT_MS)


def check_cassandra_connection(host: str, port: int = CASSANDRA_DEFAULT_PORT) -> bool:
    return check_tcp_connection(host, port, DEFAULT_TIMEOUT_MS)
