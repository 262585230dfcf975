"""Version cache store: the on-disk record of the last release lookup."""

from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from epubcheck_service.config import get_settings
from epubcheck_service.engine.models import VersionCacheRecord

logger = structlog.get_logger()

CACHE_FILE_NAME = "version-check.json"


class VersionCacheStore:
    """Single JSON file under a per-user cache directory.

    Both operations report failure through their return value; a missing or
    unreadable file simply means "no record".
    """

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = cache_dir or Path(get_settings().CACHE_DIR).expanduser()
        self.path = self.cache_dir / CACHE_FILE_NAME

    def load(self) -> Optional[VersionCacheRecord]:
        if not self.path.exists():
            return None
        try:
            return VersionCacheRecord.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, PydanticValidationError) as e:
            logger.debug("version_cache_unreadable", path=str(self.path), error=str(e))
            return None

    def save(self, record: VersionCacheRecord) -> bool:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.path.write_text(record.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as e:
            logger.debug("version_cache_write_failed", path=str(self.path), error=str(e))
            return False
        return True
