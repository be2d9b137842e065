"""
Shared Cache Management for TikTok Analytics
Owns the cache directory layout and a small in-memory TTL cache
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional
from datetime import datetime, timedelta

from tiktok_analytics.app.config import get_config

logger = logging.getLogger(__name__)


class SharedCache:
    """
    Manages cache directories and short-lived cached values
    """

    def __init__(self, cache_root: Optional[str] = None):
        """
        Initialize shared cache

        Args:
            cache_root: Root directory for cache (defaults to CACHE_CACHE_ROOT)
        """
        if cache_root is None:
            cache_root = get_config().cache.cache_root

        self.cache_root = str(Path(cache_root).resolve())
        self._memory_cache: Dict[str, Dict[str, Any]] = {}
        self.app_dirs: Dict[str, str] = {}

        self._create_directories()
        logger.info(f"✅ SharedCache initialized: {self.cache_root}")

    def _create_directories(self) -> None:
        """Create application-specific cache directories"""
        export_subdir = get_config().storage.export_subdir
        self.app_dirs = {
            "CACHE_ROOT": self.cache_root,
            "EXPORTS": f"{self.cache_root}/{export_subdir}",
            "SESSIONS": f"{self.cache_root}/sessions",
        }

        for dir_path in self.app_dirs.values():
            Path(dir_path).mkdir(parents=True, exist_ok=True)

    def get_path(self, key: str) -> Path:
        """
        Get directory path by key

        Args:
            key: Directory key (e.g., 'EXPORTS', 'SESSIONS')

        Raises:
            KeyError: If key not found
        """
        if key not in self.app_dirs:
            raise KeyError(f"Unknown cache directory: {key}")
        return Path(self.app_dirs[key])

    # ========================================================================
    # Memory Cache Operations
    # ========================================================================

    def set_cache_item(
        self, key: str, value: Any, ttl_seconds: Optional[int] = None
    ) -> None:
        """
        Set item in memory cache with optional TTL

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time to live in seconds (None = no expiration)
        """
        self._memory_cache[key] = {
            "value": value,
            "created_at": datetime.now(),
            "expires_at": (
                datetime.now() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
            ),
        }

    def get_cache_item(self, key: str, default: Any = None) -> Any:
        """
        Get item from memory cache

        Returns:
            Cached value, or default if missing or expired
        """
        cache_item = self._memory_cache.get(key)
        if cache_item is None:
            return default

        if cache_item["expires_at"] and datetime.now() > cache_item["expires_at"]:
            del self._memory_cache[key]
            return default

        return cache_item["value"]

    def delete_cache_item(self, key: str) -> None:
        self._memory_cache.pop(key, None)

    def clear_memory_cache(self) -> None:
        """Clear all items from memory cache"""
        self._memory_cache.clear()

    def get_summary(self) -> Dict[str, Any]:
        """Get cache summary information"""
        return {
            "cache_root": self.cache_root,
            "directories": list(self.app_dirs.keys()),
            "memory_cache_items": len(self._memory_cache),
        }


# ============================================================================
# Global Singleton Instance
# ============================================================================

_shared_cache: Optional[SharedCache] = None


def get_shared_cache(cache_root: Optional[str] = None) -> SharedCache:
    """
    Get or create shared cache instance (Singleton)

    Args:
        cache_root: Optional cache root directory

    Returns:
        SharedCache instance
    """
    global _shared_cache

    if _shared_cache is None:
        _shared_cache = SharedCache(cache_root)

    return _shared_cache


def reset_cache() -> None:
    """Reset global cache instance (useful for testing)"""
    global _shared_cache
    _shared_cache = None
