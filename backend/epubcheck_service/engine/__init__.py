"""Engine wrapper: runs EPUBCheck and resolves its version.

Usage:
    from epubcheck_service.engine import ProcessInvoker, InvocationRequest

    result = await ProcessInvoker().invoke(InvocationRequest(path="/books/a.epub"))
    if not result.ok:
        # result.reason, result.diagnostic
"""

from epubcheck_service.engine.errors import EngineError, EngineInvocationError, MalformedOutputError
from epubcheck_service.engine.models import (
    EpubCheckResult,
    FailureReason,
    InvocationFailure,
    InvocationRequest,
    InvocationResult,
    InvocationSuccess,
    Severity,
    TargetVersion,
    ValidateMode,
    ValidateProfile,
    VersionCacheRecord,
)
from epubcheck_service.engine.runner import ProcessInvoker
from epubcheck_service.engine.version import VersionResolver

__all__ = [
    "EngineError",
    "EngineInvocationError",
    "MalformedOutputError",
    "EpubCheckResult",
    "FailureReason",
    "InvocationFailure",
    "InvocationRequest",
    "InvocationResult",
    "InvocationSuccess",
    "Severity",
    "TargetVersion",
    "ValidateMode",
    "ValidateProfile",
    "VersionCacheRecord",
    "ProcessInvoker",
    "VersionResolver",
]
