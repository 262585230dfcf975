"""Version endpoint."""

from fastapi import APIRouter, Request

from epubcheck_service import __version__
from epubcheck_service.models.responses import VersionResponse
from epubcheck_service.services.update_checker import is_update_available

router = APIRouter()


@router.get("/version", response_model=VersionResponse)
async def get_version(request: Request):
    """Version of the EPUBCheck engine behind this service."""
    engine_version = await request.app.state.version_resolver.get_current_version()
    checker = request.app.state.update_checker

    latest = checker.latest_version if checker is not None else None
    return VersionResponse(
        engine_version=engine_version,
        service_version=__version__,
        latest_version=latest,
        update_available=is_update_available(engine_version, latest),
        update_notice=checker.get_update_notification(engine_version) if checker is not None else None,
    )
