"""API request models."""

from pydantic import BaseModel, Field

from epubcheck_service.engine.models import TargetVersion, ValidateProfile


class ValidatePackageRequest(BaseModel):
    """Validate a complete EPUB publication."""

    path: str = Field(
        ...,
        min_length=1,
        description="Absolute path to the EPUB file",
        examples=["/srv/books/moby-dick.epub"],
    )
    profile: ValidateProfile = Field(
        default=ValidateProfile.DEFAULT,
        description="Validation profile",
    )


class ValidateDocumentRequest(BaseModel):
    """Validate a single document (OPF, XHTML or SVG) outside its package."""

    path: str = Field(..., min_length=1, description="Absolute path to the document")
    version: TargetVersion = Field(
        default=TargetVersion.EPUB3,
        description="EPUB version the document targets",
    )


class PathRequest(BaseModel):
    """Request carrying only a target path."""

    path: str = Field(..., min_length=1, description="Absolute path to the file")
