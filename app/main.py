"""FastAPI application exposing the smoke check harness over HTTP.

Serve liveness, readiness and report endpoints for container orchestrators and
dashboards. Readiness runs the configured container and external service
checks on every call. Confine all side effects (logging configuration) to the
lifespan context manager to ensure a predictable initialization order.
"""

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.smokecheck.adapter import EnvironmentDescriptorSource
from app.smokecheck.core.logging_config import configure_logging, get_logger
from app.smokecheck.harness import DescriptorSource, SmokeHarness


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle events.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control returns to the application after startup completes.
    """
    settings = get_settings()
    configure_logging(settings)

    logger = get_logger("lifespan")
    logger.info("🚀 Smokecheck Service Startup", env=settings.ENVIRONMENT)

    yield

    logger.info("🛑 Smokecheck Service Shutdown")


app = FastAPI(
    title=os.getenv("PROJECT_NAME", "Smokecheck"),
    version=os.getenv("VERSION", "0.1.0"),
    description="Container, external service and end-to-end smoke checks",
    lifespan=lifespan,
)


def get_descriptor_source(settings: Settings = Depends(get_settings)) -> DescriptorSource:
    """Provide the descriptor source for a smoke run (overridable in tests)."""
    return EnvironmentDescriptorSource(settings)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return a generic 500 response."""
    logger = get_logger("exception_handler")
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


@app.get("/health/live", status_code=status.HTTP_200_OK)
def liveness_probe() -> dict[str, str]:
    """Return liveness status; never touches dependencies."""
    return {"status": "alive"}


@app.get("/health/ready", status_code=status.HTTP_200_OK)
def readiness_probe(source: DescriptorSource = Depends(get_descriptor_source)) -> dict[str, str]:
    """Run container and external service checks.

    The end-to-end workflow is not run here: readiness is polled frequently
    and must not mutate business data.

    Raises:
        HTTPException: 503 Service Unavailable naming every failing dependency.
    """
    harness = SmokeHarness()
    outcomes = harness.run(source, end_to_end=False)
    failures = [outcome.message for outcome in outcomes if not outcome.ok]
    if failures:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=failures,
        )
    return {"status": "ready"}


@app.get("/health/report")
def smoke_report(
    settings: Settings = Depends(get_settings),
    source: DescriptorSource = Depends(get_descriptor_source),
) -> JSONResponse:
    """Run the full smoke check and return the JSON report document.

    Returns 200 when every required check passed, 503 otherwise; the body is
    the report in both cases.
    """
    harness = SmokeHarness()
    outcomes = harness.run(source)
    report = harness.build_report(settings.APPLICATION_NAME, settings.ENVIRONMENT, outcomes)

    body: dict[str, Any] = report.to_document().model_dump(mode="json", by_alias=True)
    all_ok = all(outcome.ok for outcome in outcomes)
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )
