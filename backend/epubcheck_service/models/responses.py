"""API response models."""

from pydantic import BaseModel
from typing import Optional, Literal

from epubcheck_service.engine.models import (
    CheckerInfo,
    EpubCheckResult,
    ItemInfo,
    Message,
    PublicationInfo,
)


class ValidationResponse(BaseModel):
    """Engine report plus service-level verdict."""

    valid: bool
    report: EpubCheckResult
    update_notice: Optional[str] = None


class AccessibilityResponse(BaseModel):
    """Accessibility (ACC*) findings of a full validation run."""

    filename: str
    issue_count: int
    messages: list[Message]
    update_notice: Optional[str] = None


class MetadataResponse(BaseModel):
    """Publication metadata and manifest extracted by the engine."""

    checker: CheckerInfo
    publication: PublicationInfo
    items: list[ItemInfo] = []


class VersionResponse(BaseModel):
    """Engine and service versions with update advice."""

    engine_version: str
    service_version: str
    latest_version: Optional[str] = None
    update_available: bool = False
    update_notice: Optional[str] = None


class HealthDependency(BaseModel):
    """Health status of a single dependency."""

    status: Literal["healthy", "unhealthy", "degraded"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """System health check response."""

    status: Literal["healthy", "unhealthy", "degraded"]
    version: str
    uptime_seconds: float
    dependencies: dict[str, HealthDependency]
