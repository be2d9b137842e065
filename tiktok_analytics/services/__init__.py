"""
Services Package
Business logic layer for TikTok Analytics

AnalyticsService and AccountService depend on the API clients and are
imported from their own modules.
"""

from .base_service import BaseService
from .comparison import (
    FixedSummary,
    OmitComparison,
    ProportionalEstimate,
    compare,
    compare_with_fallback,
    describe_change,
    previous_window,
    summarize,
)
from .date_ranges import PRESET_DAYS, make_date_range, resolve_date_range
from .exceptions import (
    # Base
    ServiceError,

    # Resource Errors
    ResourceNotFoundError,
    ValidationError,
    SupersededRequestError,

    # External Service Errors
    ExternalServiceError,
    TikTokAPIError,
    RateLimitExceededError,
    TikTokOAuthError,

    # Configuration Errors
    ConfigurationError,

    # Utility Functions
    error_to_http_status,
)
from .export_service import export_csv, write_csv
from .session_service import DashboardSettings, SessionStore, UserSession

__all__ = [
    "BaseService",
    # Comparison engine
    "FixedSummary",
    "OmitComparison",
    "ProportionalEstimate",
    "compare",
    "compare_with_fallback",
    "describe_change",
    "previous_window",
    "summarize",
    # Date ranges
    "PRESET_DAYS",
    "make_date_range",
    "resolve_date_range",
    # Exceptions
    "ServiceError",
    "ResourceNotFoundError",
    "ValidationError",
    "SupersededRequestError",
    "ExternalServiceError",
    "TikTokAPIError",
    "RateLimitExceededError",
    "TikTokOAuthError",
    "ConfigurationError",
    "error_to_http_status",
    # Export / session
    "export_csv",
    "write_csv",
    "DashboardSettings",
    "SessionStore",
    "UserSession",
]

__version__ = "0.1.0"
