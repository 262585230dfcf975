"""Engine version resolution with per-instance memoization."""

import re
from typing import Optional

import structlog

from epubcheck_service.engine.runner import ProcessInvoker
from epubcheck_service.services.update_checker import UpdateChecker

logger = structlog.get_logger()

VERSION_PATTERN = re.compile(r"EPUBCheck v([\d.]+)")


class VersionResolver:
    """Resolves the engine's version once and kicks off the update check."""

    def __init__(self, invoker: ProcessInvoker, update_checker: Optional[UpdateChecker] = None):
        self.invoker = invoker
        self.update_checker = update_checker
        self._current_version: Optional[str] = None

    @property
    def current_version(self) -> Optional[str]:
        """Memoized version, or None before the first successful query."""
        return self._current_version

    async def get_current_version(self) -> str:
        """Return the engine version, spawning the engine only on first use.

        A version line that does not match falls back to the raw output (or
        "unknown") and is not memoized.

        Raises:
            EngineInvocationError: the engine cannot be found or spawned.
        """
        if self._current_version is not None:
            return self._current_version

        output = await self.invoker.query_version_output()
        match = VERSION_PATTERN.search(output)
        if not match:
            logger.warning("engine_version_unparsed", output=output.strip()[:200])
            return output.strip() or "unknown"

        self._current_version = match.group(1)
        logger.info("engine_version_resolved", version=self._current_version)

        if self.update_checker is not None:
            self.update_checker.trigger(self._current_version)

        return self._current_version
