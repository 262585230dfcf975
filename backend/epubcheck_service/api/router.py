"""Main API router: combines all endpoint routers."""

from fastapi import APIRouter

from epubcheck_service.api.health import router as health_router
from epubcheck_service.api.validation import router as validation_router
from epubcheck_service.api.version import router as version_router

api_router = APIRouter()

# Health check
api_router.include_router(health_router, tags=["Health"])

# Validation runs
api_router.include_router(validation_router, tags=["Validation"])

# Engine version
api_router.include_router(version_router, tags=["Version"])
