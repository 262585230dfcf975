"""Process invoker: runs EPUBCheck as a subprocess and collects its JSON report.

The engine exits non-zero whenever it reports an ERROR or FATAL finding, even
though the run itself succeeded. Success is therefore decided by the presence
of the JSON artifact after the process terminates, never by the exit code.

Usage:
    invoker = ProcessInvoker()
    result = await invoker.invoke(InvocationRequest(path="/books/moby.epub"))
    if result.ok:
        print(result.document.checker.n_error)
"""

import asyncio
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from epubcheck_service.config import Settings, get_settings
from epubcheck_service.engine.errors import EngineInvocationError, MalformedOutputError
from epubcheck_service.engine.models import (
    EpubCheckResult,
    FailureReason,
    InvocationFailure,
    InvocationRequest,
    InvocationResult,
    InvocationSuccess,
    ValidateMode,
    ValidateProfile,
)

logger = structlog.get_logger()

PACKAGE_DIR = Path(__file__).resolve().parent.parent
JAR_NAME = "epubcheck.jar"


def default_search_paths() -> list[Path]:
    """Install locations tried when no explicit jar path is configured."""
    return [
        PACKAGE_DIR.parent / "bin" / JAR_NAME,
        PACKAGE_DIR / "bin" / JAR_NAME,
        Path.cwd() / "bin" / JAR_NAME,
    ]


class ProcessInvoker:
    """Builds engine command lines, spawns the engine and classifies the outcome.

    Holds no per-invocation state: every call gets its own uniquely named
    artifact, so concurrent invocations need no locking.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        search_paths: Optional[list[Path]] = None,
        scratch_dir: Optional[Path] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self.search_paths = search_paths if search_paths is not None else default_search_paths()
        self.scratch_dir = scratch_dir or Path(self.settings.SCRATCH_DIR or tempfile.gettempdir())
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else self.settings.PROCESS_TIMEOUT_SECONDS
        )

    # ── Executable resolution ──

    def candidate_paths(self) -> list[Path]:
        """Ordered candidate locations, explicit override first."""
        candidates = []
        if self.settings.EPUBCHECK_JAR_PATH:
            candidates.append(Path(self.settings.EPUBCHECK_JAR_PATH).expanduser())
        candidates.extend(self.search_paths)
        return candidates

    def resolve_executable_path(self) -> Path:
        """Return the first candidate that exists.

        Raises:
            EngineInvocationError: reason EXECUTABLE_NOT_FOUND, listing every path tried.
        """
        candidates = self.candidate_paths()
        for candidate in candidates:
            if candidate.exists():
                return candidate

        searched = ", ".join(str(c) for c in candidates)
        raise EngineInvocationError(
            FailureReason.EXECUTABLE_NOT_FOUND,
            f"EPUBCheck not found. Searched in: {searched}. "
            f"Set EPUBCHECK_JAR_PATH or install bin/{JAR_NAME}.",
        )

    def launch_command(self, executable: Path) -> list[str]:
        """Command prefix for the engine: ``java -jar`` for a jar, direct exec otherwise."""
        if executable.suffix.lower() == ".jar":
            return [self.settings.JAVA_BINARY, *self.settings.JAVA_OPTIONS, "-jar", str(executable)]
        return [str(executable)]

    # ── Arguments ──

    def new_output_path(self) -> Path:
        """Fresh artifact path; the uuid keeps concurrent runs from colliding."""
        return self.scratch_dir / f"epubcheck-{uuid.uuid4()}.json"

    @staticmethod
    def build_arguments(request: InvocationRequest, output_path: Path) -> list[str]:
        """Build the engine argument vector.

        Order is part of the engine's contract: the JSON flag first, optional
        flags next, the target path always last.
        """
        args = ["--json", str(output_path)]

        if request.mode != ValidateMode.EPUB:
            args += ["--mode", request.mode.value]

        if request.profile != ValidateProfile.DEFAULT:
            args += ["--profile", request.profile.value]

        # Version selection only applies to single-document modes
        if request.version is not None and request.mode != ValidateMode.EPUB:
            args += ["-v", request.version.value]

        args.append(request.path)
        return args

    # ── Execution ──

    async def invoke(self, request: InvocationRequest) -> InvocationResult:
        """Run the engine once and classify the outcome.

        Returns:
            InvocationSuccess when the report artifact exists after termination,
            whatever the exit code; InvocationFailure otherwise.

        Raises:
            MalformedOutputError: the artifact exists but is not a valid report.
        """
        try:
            executable = self.resolve_executable_path()
        except EngineInvocationError as e:
            logger.error("engine_not_found", diagnostic=e.diagnostic)
            return InvocationFailure(reason=e.reason, diagnostic=e.diagnostic)

        output_path = self.new_output_path()
        command = self.launch_command(executable) + self.build_arguments(request, output_path)
        start_time = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(executable.parent),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("engine_spawn_failed", executable=str(executable), error=str(e))
            return InvocationFailure(
                reason=FailureReason.SPAWN_FAILED,
                diagnostic=f"Failed to run EPUBCheck: {e}",
            )

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self._kill(process)
            await process.wait()
            self._discard(output_path)
            logger.error(
                "engine_timed_out",
                path=request.path,
                timeout_seconds=self.timeout_seconds,
            )
            return InvocationFailure(
                reason=FailureReason.TIMED_OUT,
                diagnostic=f"EPUBCheck did not finish within {self.timeout_seconds:g}s",
            )
        except asyncio.CancelledError:
            self._kill(process)
            self._discard(output_path)
            logger.info("engine_invocation_cancelled", path=request.path)
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        stderr_text = stderr.decode("utf-8", errors="replace").strip() if stderr else ""

        if not output_path.exists():
            logger.warning(
                "engine_no_output",
                path=request.path,
                exit_code=process.returncode,
                duration_ms=duration_ms,
            )
            return InvocationFailure(
                reason=FailureReason.NO_OUTPUT_PRODUCED,
                diagnostic=stderr_text or f"exit code {process.returncode}",
            )

        try:
            document = self._parse(output_path)
        finally:
            self._discard(output_path)

        logger.info(
            "engine_invocation_complete",
            path=request.path,
            mode=request.mode.value,
            exit_code=process.returncode,
            n_fatal=document.checker.n_fatal,
            n_error=document.checker.n_error,
            n_warning=document.checker.n_warning,
            duration_ms=duration_ms,
        )
        return InvocationSuccess(document=document)

    async def run(self, request: InvocationRequest) -> EpubCheckResult:
        """Like invoke(), but raise EngineInvocationError on failure."""
        result = await self.invoke(request)
        if isinstance(result, InvocationFailure):
            raise EngineInvocationError(result.reason, result.diagnostic)
        return result.document

    async def query_version_output(self) -> str:
        """Run the engine with ``--version`` and return its standard output."""
        executable = self.resolve_executable_path()
        command = self.launch_command(executable) + ["--version"]

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(executable.parent),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise EngineInvocationError(
                FailureReason.SPAWN_FAILED,
                f"Failed to get EPUBCheck version: {e}",
            ) from e

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            self._kill(process)
            await process.wait()
            raise EngineInvocationError(
                FailureReason.TIMED_OUT,
                f"EPUBCheck --version did not finish within {self.timeout_seconds:g}s",
            ) from e
        except asyncio.CancelledError:
            self._kill(process)
            raise

        return stdout.decode("utf-8", errors="replace") if stdout else ""

    # ── Helpers ──

    @staticmethod
    def _parse(output_path: Path) -> EpubCheckResult:
        try:
            raw = output_path.read_bytes().decode("utf-8")
            return EpubCheckResult.model_validate_json(raw)
        except (OSError, UnicodeDecodeError, PydanticValidationError) as e:
            logger.error("engine_output_malformed", artifact=str(output_path), error=str(e))
            raise MalformedOutputError(str(output_path), str(e)) from e

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        # The process may exit on its own between the timeout and the kill
        try:
            process.kill()
        except ProcessLookupError:
            pass

    @staticmethod
    def _discard(output_path: Path) -> None:
        """Best-effort artifact removal."""
        try:
            os.unlink(output_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("engine_artifact_cleanup_failed", artifact=str(output_path), error=str(e))
