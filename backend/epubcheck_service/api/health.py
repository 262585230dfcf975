"""Health check endpoint."""

import shutil
import time
from fastapi import APIRouter, Request

from epubcheck_service import __version__
from epubcheck_service.engine.errors import EngineInvocationError
from epubcheck_service.models.responses import HealthResponse, HealthDependency

router = APIRouter()

_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """System health check with dependency status."""
    dependencies = {}
    invoker = request.app.state.invoker

    # Check the engine can be located
    try:
        executable = invoker.resolve_executable_path()
        dependencies["epubcheck"] = HealthDependency(status="healthy", message=str(executable))
    except EngineInvocationError as e:
        executable = None
        dependencies["epubcheck"] = HealthDependency(status="unhealthy", message=e.diagnostic)

    # Check the Java runtime when the engine is a jar
    if executable is not None and executable.suffix.lower() == ".jar":
        java = shutil.which(invoker.settings.JAVA_BINARY)
        if java:
            dependencies["java"] = HealthDependency(status="healthy", message=java)
        else:
            dependencies["java"] = HealthDependency(
                status="unhealthy",
                message=f"'{invoker.settings.JAVA_BINARY}' not found on PATH",
            )

    # Overall status
    all_healthy = all(d.status == "healthy" for d in dependencies.values())

    return HealthResponse(
        status="healthy" if all_healthy else "unhealthy",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        dependencies=dependencies,
    )
