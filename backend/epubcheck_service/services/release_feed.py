"""Release feed: asks the upstream release listing for the latest EPUBCheck tag."""

from typing import Optional

import httpx
import structlog

from epubcheck_service.config import get_settings

logger = structlog.get_logger()

REQUEST_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
    "User-Agent": "epubcheck-mcp",
}


class ReleaseFeed:
    """GitHub "latest release" endpoint client."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.url = url or settings.RELEASES_URL
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.VERSION_FETCH_TIMEOUT_SECONDS
        )
        self._transport = transport

    async def fetch_latest(self) -> Optional[str]:
        """Latest release version without its ``v`` prefix, or None on any failure."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                resp = await client.get(self.url, headers=REQUEST_HEADERS)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.debug("release_fetch_rejected", url=self.url, status=e.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("release_fetch_failed", url=self.url, error=str(e))
            return None

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag:
            logger.debug("release_fetch_no_tag", url=self.url)
            return None

        version = tag[1:] if tag.startswith("v") else tag
        return version or None
