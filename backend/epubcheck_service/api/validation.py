"""Validation API: full-package, single-document, accessibility and metadata runs."""

from typing import Optional

from fastapi import APIRouter, Request

import structlog

from epubcheck_service.engine.models import (
    InvocationRequest,
    TargetVersion,
    ValidateMode,
)
from epubcheck_service.engine.runner import ProcessInvoker
from epubcheck_service.models.requests import (
    PathRequest,
    ValidateDocumentRequest,
    ValidatePackageRequest,
)
from epubcheck_service.models.responses import (
    AccessibilityResponse,
    MetadataResponse,
    ValidationResponse,
)

logger = structlog.get_logger()

router = APIRouter()

ACCESSIBILITY_PREFIX = "ACC"


def _invoker(request: Request) -> ProcessInvoker:
    return request.app.state.invoker


def update_notice(request: Request) -> Optional[str]:
    """Update advice for the memoized engine version, if both are known."""
    checker = request.app.state.update_checker
    current = request.app.state.version_resolver.current_version
    if checker is None or current is None:
        return None
    return checker.get_update_notification(current)


async def _validate(request: Request, invocation: InvocationRequest) -> ValidationResponse:
    report = await _invoker(request).run(invocation)
    return ValidationResponse(
        valid=report.valid,
        report=report,
        update_notice=update_notice(request),
    )


# ─── Endpoints ───


@router.post("/validate", response_model=ValidationResponse)
async def validate_package(body: ValidatePackageRequest, request: Request):
    """Validate an EPUB file and return all errors, warnings and usage suggestions."""
    return await _validate(request, InvocationRequest(path=body.path, profile=body.profile))


@router.post("/validate/opf", response_model=ValidationResponse)
async def validate_opf(body: ValidateDocumentRequest, request: Request):
    """Validate a single package document without the rest of the publication."""
    return await _validate(
        request,
        InvocationRequest(path=body.path, mode=ValidateMode.OPF, version=body.version),
    )


@router.post("/validate/xhtml", response_model=ValidationResponse)
async def validate_xhtml(body: ValidateDocumentRequest, request: Request):
    """Validate a single XHTML content document."""
    return await _validate(
        request,
        InvocationRequest(path=body.path, mode=ValidateMode.XHTML, version=body.version),
    )


@router.post("/validate/svg", response_model=ValidationResponse)
async def validate_svg(body: ValidateDocumentRequest, request: Request):
    """Validate an SVG document for EPUB conformance."""
    return await _validate(
        request,
        InvocationRequest(path=body.path, mode=ValidateMode.SVG, version=body.version),
    )


@router.post("/validate/nav", response_model=ValidationResponse)
async def validate_nav(body: PathRequest, request: Request):
    """Validate an EPUB 3 navigation document."""
    # Navigation documents only exist in EPUB 3
    return await _validate(
        request,
        InvocationRequest(path=body.path, mode=ValidateMode.NAV, version=TargetVersion.EPUB3),
    )


@router.post("/accessibility", response_model=AccessibilityResponse)
async def check_accessibility(body: PathRequest, request: Request):
    """Run a full validation and keep only accessibility (ACC*) findings."""
    report = await _invoker(request).run(InvocationRequest(path=body.path))
    messages = report.messages_with_prefix(ACCESSIBILITY_PREFIX)

    logger.info("accessibility_checked", path=body.path, issues=len(messages))

    return AccessibilityResponse(
        filename=report.checker.filename,
        issue_count=len(messages),
        messages=messages,
        update_notice=update_notice(request),
    )


@router.post("/metadata", response_model=MetadataResponse)
async def get_metadata(body: PathRequest, request: Request):
    """Extract publication metadata and manifest structure from an EPUB."""
    report = await _invoker(request).run(InvocationRequest(path=body.path))
    return MetadataResponse(
        checker=report.checker,
        publication=report.publication,
        items=report.items,
    )
