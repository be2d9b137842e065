"""
Service Exceptions
Error hierarchy shared by services, clients and API routers
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for all service-layer errors"""

    error_code = "service_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error for API responses"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Resource Errors
# ============================================================================


class ResourceNotFoundError(ServiceError):
    """Requested entity does not exist"""

    error_code = "not_found"

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(ServiceError):
    """Invalid input supplied by the caller"""

    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class SupersededRequestError(ServiceError):
    """A newer request for the same view started before this one finished"""

    error_code = "superseded"

    def __init__(self, view: str):
        super().__init__(
            f"Request for '{view}' was superseded by a newer one", {"view": view}
        )
        self.view = view


# ============================================================================
# External Service Errors
# ============================================================================


class ExternalServiceError(ServiceError):
    """Upstream service failed"""

    error_code = "external_service_error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, {"code": code, "status_code": status_code})
        self.code = code
        self.status_code = status_code


class TikTokAPIError(ExternalServiceError):
    """TikTok Open API request failed"""

    error_code = "tiktok_api_error"


class RateLimitExceededError(TikTokAPIError):
    """TikTok kept answering 429 after all retries"""

    error_code = "rate_limited"

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message, code="rate_limit_exceeded", status_code=429)
        self.retry_after = retry_after


class TikTokOAuthError(ExternalServiceError):
    """OAuth code exchange, refresh or user lookup failed"""

    error_code = "tiktok_oauth_error"


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(ServiceError):
    """Required configuration is missing or invalid"""

    error_code = "configuration_error"


# ============================================================================
# Utility Functions
# ============================================================================


def error_to_http_status(error: ServiceError) -> int:
    """Map a service error to an HTTP status code"""
    if isinstance(error, ResourceNotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, SupersededRequestError):
        return 409
    if isinstance(error, RateLimitExceededError):
        return 429
    if isinstance(error, TikTokOAuthError):
        return 401
    if isinstance(error, ExternalServiceError):
        return 502
    return 500
