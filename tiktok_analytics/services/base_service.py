"""
Base Service
Shared logging, validation, caching and error-wrapping helpers
"""

import logging
from typing import Any, Dict, Optional

from tiktok_analytics.services.exceptions import ServiceError, ValidationError


class BaseService:
    """
    Base class for all services

    Provides:
    - Prefixed logging
    - Input validation helpers
    - Optional SharedCache access
    - Conversion of unexpected errors into ServiceError
    """

    def __init__(self, cache=None, config=None):
        """
        Args:
            cache: SharedCache instance (caching disabled when None)
            config: Config instance
        """
        self.cache = cache
        self.config = config
        self.logger = logging.getLogger(f"{__name__}.{self.get_service_name()}")

    def get_service_name(self) -> str:
        return "base"

    # ========================================================================
    # Logging
    # ========================================================================

    def log_info(self, message: str) -> None:
        self.logger.info(f"[{self.get_service_name()}] {message}")

    def log_debug(self, message: str) -> None:
        self.logger.debug(f"[{self.get_service_name()}] {message}")

    def log_warning(self, message: str) -> None:
        self.logger.warning(f"⚠️ [{self.get_service_name()}] {message}")

    def log_error(self, message: str, error: Optional[Exception] = None) -> None:
        suffix = f": {error}" if error else ""
        self.logger.error(f"❌ [{self.get_service_name()}] {message}{suffix}")

    # ========================================================================
    # Error Handling
    # ========================================================================

    def handle_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> ServiceError:
        """
        Wrap an exception for re-raising

        ServiceErrors pass through unchanged; anything else becomes a generic
        ServiceError carrying the operation name and context.
        """
        if isinstance(error, ServiceError):
            return error

        self.log_error(f"{operation} failed", error=error)
        return ServiceError(
            f"{operation} failed: {error}",
            {"operation": operation, **(context or {})},
        )

    # ========================================================================
    # Validation
    # ========================================================================

    def validate_required(self, value: Any, field: str) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field} is required", field=field)

    def validate_positive(self, value: float, field: str) -> None:
        if value is None or value <= 0:
            raise ValidationError(f"{field} must be positive", field=field)

    # ========================================================================
    # Caching
    # ========================================================================

    def get_cache_key(self, *parts: Any) -> str:
        return ":".join([self.get_service_name(), *(str(p) for p in parts)])

    def get_from_cache(self, key: str) -> Any:
        if self.cache is None:
            return None
        return self.cache.get_cache_item(key)

    def set_in_cache(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if self.cache is not None:
            self.cache.set_cache_item(key, value, ttl_seconds=ttl_seconds)
