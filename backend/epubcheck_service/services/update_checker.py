"""Update checker: background, TTL-gated lookup of the latest EPUBCheck release.

The check is advisory. It never blocks a caller and never raises: cache and
network problems degrade to "no update information".

States:
    Idle     → trigger() may load the cache and start a fetch
    Checking → trigger() is a no-op until the running fetch concludes
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, Protocol

import structlog

from epubcheck_service.config import get_settings
from epubcheck_service.engine.models import VersionCacheRecord
from epubcheck_service.services.release_feed import ReleaseFeed
from epubcheck_service.services.version_cache_store import VersionCacheStore

logger = structlog.get_logger()


class LatestVersionSource(Protocol):
    def fetch_latest(self) -> Awaitable[Optional[str]]: ...


class VersionRecordStore(Protocol):
    def load(self) -> Optional[VersionCacheRecord]: ...

    def save(self, record: VersionCacheRecord) -> bool: ...


def _version_parts(version: str) -> list[int]:
    parts = []
    for component in version.strip().split("."):
        try:
            parts.append(int(component))
        except ValueError:
            # Pre-release suffixes and the like are not understood; count as 0
            parts.append(0)
    return parts


def is_update_available(current_version: str, latest_version: Optional[str]) -> bool:
    """Dotted numeric comparison; missing trailing components count as 0."""
    if not latest_version:
        return False

    current = _version_parts(current_version)
    latest = _version_parts(latest_version)

    for i in range(max(len(current), len(latest))):
        cur = current[i] if i < len(current) else 0
        new = latest[i] if i < len(latest) else 0
        if new > cur:
            return True
        if new < cur:
            return False

    return False


class UpdateChecker:
    """Single-flight background refresh of the latest known release."""

    def __init__(
        self,
        store: Optional[VersionRecordStore] = None,
        feed: Optional[LatestVersionSource] = None,
        clock: Callable[[], float] = time.time,
        ttl_seconds: Optional[int] = None,
        releases_page_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.store = store or VersionCacheStore()
        self.feed = feed or ReleaseFeed()
        self.clock = clock
        self.ttl_ms = (ttl_seconds if ttl_seconds is not None else settings.VERSION_CHECK_TTL_SECONDS) * 1000
        self.releases_page_url = releases_page_url or settings.RELEASES_PAGE_URL
        self._latest_version: Optional[str] = None
        self._in_flight = False
        self._task: Optional[asyncio.Task] = None

    @property
    def latest_version(self) -> Optional[str]:
        return self._latest_version

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def trigger(self, current_version: str) -> Optional[asyncio.Task]:
        """Start a background check unless one is running or the cache is fresh.

        Must be called from a running event loop. Returns the scheduled task,
        or None when nothing was started.
        """
        if self._in_flight:
            return None

        record = self.store.load()
        if record is not None:
            # Serve the cached answer right away, even if it is stale
            self._latest_version = record.latest_version
            if self._now_ms() - record.last_checked_at_ms < self.ttl_ms:
                logger.debug("version_check_cache_fresh", latest_version=record.latest_version)
                return None

        self._in_flight = True
        self._task = asyncio.get_running_loop().create_task(self._check(current_version))
        return self._task

    async def _check(self, current_version: str) -> None:
        try:
            latest = await self.feed.fetch_latest()
            if not latest:
                logger.info("version_check_failed", current_version=current_version)
                return

            self._latest_version = latest
            saved = self.store.save(
                VersionCacheRecord(
                    last_checked_at_ms=self._now_ms(),
                    latest_version=latest,
                    current_version=current_version,
                )
            )
            logger.info(
                "version_check_complete",
                current_version=current_version,
                latest_version=latest,
                cached=saved,
            )
        except Exception as e:
            # Advisory only: never let the check escape into the event loop
            logger.warning("version_check_crashed", error=str(e), error_type=type(e).__name__)
        finally:
            self._in_flight = False
            self._task = None

    async def drain(self) -> None:
        """Wait for the in-flight check, if any."""
        task = self._task
        if task is not None:
            await task

    def get_update_notification(self, current_version: str) -> Optional[str]:
        """Advisory text when a newer release is known; never fetches."""
        latest = self._latest_version
        if not is_update_available(current_version, latest):
            return None
        return (
            f"Note: EPUBCheck {latest} is available (current: {current_version}). "
            f"Visit {self.releases_page_url} for details."
        )
