"""
Report cache.

Key/value store for computed reports, keyed by (project, report type,
period). The calculation engine never touches it; callers look up a key
before computing and store the result afterwards. Because reports are pure
functions of the project records, an entry stays correct until the project
changes, at which point the project's entries are invalidated.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from app.config import get_settings

logger = logging.getLogger(__name__)


def cache_key(project_id: str, report_type: str, period: Optional[str] = None) -> str:
    """Build a cache key, e.g. ``calc:<project>:monthly:2025-03``."""
    key = f"calc:{project_id}:{report_type}"
    if period:
        key = f"{key}:{period}"
    return key


class ReportCache:
    """Interface for report caches. Swap in a Redis-backed one for production."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def invalidate_project(self, project_id: str) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryReportCache(ReportCache):
    """Process-local cache with per-entry expiry."""

    def __init__(
        self,
        default_ttl_seconds: int = 3600,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict()
            self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_project(self, project_id: str) -> int:
        prefix = cache_key(project_id, "")
        with self._lock:
            stale = [key for key in self._entries if key.startswith(prefix)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached reports for project {project_id}")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> None:
        """Drop expired entries, then the entry closest to expiry if still full."""
        now = self._clock()
        for key in [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[key]
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]

    def __len__(self) -> int:
        return len(self._entries)


# Singleton instance
_report_cache: Optional[ReportCache] = None


def get_report_cache() -> ReportCache:
    """Get the report cache singleton."""
    global _report_cache
    if _report_cache is None:
        settings = get_settings()
        _report_cache = InMemoryReportCache(
            default_ttl_seconds=settings.report_cache_ttl_seconds,
            max_entries=settings.report_cache_max_entries,
        )
    return _report_cache
