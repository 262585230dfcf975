"""Engine exceptions."""

from epubcheck_service.engine.models import FailureReason


class EngineError(Exception):
    """Base class for failures of the external validation engine."""


class EngineInvocationError(EngineError):
    """The engine could not be run, or ran without producing a report."""

    def __init__(self, reason: FailureReason, diagnostic: str):
        self.reason = FailureReason(reason)
        self.diagnostic = diagnostic
        super().__init__(f"{self.reason.value}: {diagnostic}")


class MalformedOutputError(EngineError):
    """The engine wrote a report that does not decode as EPUBCheck JSON."""

    def __init__(self, artifact_path: str, detail: str):
        self.artifact_path = artifact_path
        self.detail = detail
        super().__init__(f"Malformed EPUBCheck output in {artifact_path}: {detail}")
