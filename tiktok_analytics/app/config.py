"""
Configuration Management for TikTok Analytics
Standalone configuration system with environment variable overrides
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional, Literal, List
from functools import lru_cache

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# Client keys shipped in sample env files; treated as "not configured"
PLACEHOLDER_CLIENT_KEYS = frozenset(
    {"your-client-key", "test-key", "changeme", "<client-key>"}
)


# ============================================================================
# Core Configuration Classes
# ============================================================================


class APIConfig(BaseSettings):
    """API Server Configuration"""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=8000, description="API port")
    prefix: str = Field(default="/api/v1", description="API prefix")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="CORS allowed origins (comma-separated)",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into list"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class DatabaseConfig(BaseSettings):
    """Database Configuration (linked TikTok accounts)"""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = Field(
        default="sqlite:///./tiktok_analytics.db", description="Database URL"
    )
    echo: bool = Field(default=False, description="Echo SQL queries")


class CacheConfig(BaseSettings):
    """Cache Configuration"""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    cache_root: str = Field(
        default="./.cache/tiktok_analytics", description="Root directory for cache"
    )
    default_ttl_seconds: int = Field(
        default=300, description="TTL for cached API lookups (user profile)"
    )


class LoggingConfig(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file_path: Optional[str] = Field(
        default=None, description="Log file path (console only when unset)"
    )


class TikTokAPISettings(BaseSettings):
    """TikTok Developer API specific settings"""

    model_config = SettingsConfigDict(env_prefix="TIKTOK_")

    client_key: str = Field(default="", description="TikTok app client key")
    client_secret: str = Field(default="", description="TikTok app client secret")
    redirect_uri: str = Field(
        default="http://localhost:5173/auth/tiktok/callback",
        description="OAuth redirect URI",
    )
    access_token: str = Field(
        default="", description="Access token used when no session token is stored"
    )
    base_url: str = Field(
        default="https://open.tiktokapis.com", description="Open API base URL"
    )
    api_version: str = Field(default="v2", description="Open API version")
    scopes: str = Field(
        default="user.info.basic,user.info.profile,video.list",
        description="OAuth scopes (comma-separated)",
    )

    # Request Settings
    max_retries: int = Field(
        default=3, description="Maximum retry attempts for failed requests"
    )
    request_timeout: int = Field(default=30, description="Request timeout in seconds")
    requests_per_second: float = Field(
        default=5.0, description="Maximum API requests per second"
    )
    default_retry_after: int = Field(
        default=5, description="Seconds to wait on 429 without Retry-After"
    )

    # Fetching
    page_size: int = Field(default=20, description="Videos per video/list call")
    max_videos: int = Field(
        default=50, description="Maximum videos collected per fetch cycle"
    )
    research_region_code: str = Field(
        default="JP", description="Region filter for the research query"
    )

    # OAuth bookkeeping
    token_refresh_margin_seconds: int = Field(
        default=300, description="Refresh tokens expiring within this window"
    )

    # Development mode
    mock_seed: int = Field(default=42, description="Seed for the synthetic client")

    @property
    def scope_list(self) -> List[str]:
        """Parse scopes into list"""
        return [scope.strip() for scope in self.scopes.split(",") if scope.strip()]

    @property
    def is_configured(self) -> bool:
        """True when a real client key is set"""
        key = self.client_key.strip()
        return bool(key) and key not in PLACEHOLDER_CLIENT_KEYS

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        """Validate retry count"""
        if v < 1:
            raise ValueError("max_retries must be at least 1")
        return v

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """TikTok caps video/list at 20 per page"""
        if not 1 <= v <= 20:
            raise ValueError("page_size must be between 1 and 20")
        return v


class AnalyticsSettings(BaseSettings):
    """Period comparison configuration"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    default_preset: Literal["7days", "14days", "21days"] = Field(
        default="7days", description="Preset used when no range is given"
    )
    enable_comparison: bool = Field(
        default=True, description="Fetch the previous window for comparison"
    )
    previous_period_fallback: Literal["omit", "proportional"] = Field(
        default="omit",
        description="What to show when previous-period data is unavailable",
    )
    fallback_factor: float = Field(
        default=0.8, description="Scale factor for the proportional fallback"
    )

    @field_validator("fallback_factor")
    @classmethod
    def validate_factor(cls, v: float) -> float:
        """Validate fallback factor"""
        if v <= 0:
            raise ValueError("fallback_factor must be positive")
        return v


class StorageSettings(BaseSettings):
    """Export configuration"""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    export_subdir: str = Field(default="exports", description="Export directory")
    csv_filename: str = Field(
        default="tiktok_data.csv", description="Default CSV export filename"
    )
    session_filename: str = Field(
        default="session.json", description="Persisted session filename"
    )


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config:
    """
    Main Application Configuration
    Aggregates all configuration modules with unified access
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize application configuration

        Args:
            config_path: Optional YAML config file path
        """
        self.config_path = config_path or "configs/app.yaml"
        self.yaml_config = self._load_yaml_config()

        self.api = APIConfig()
        self.database = DatabaseConfig()
        self.cache = CacheConfig()
        self.logging = LoggingConfig()

        self.tiktok = TikTokAPISettings()
        self.analytics = AnalyticsSettings()
        self.storage = StorageSettings()

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load YAML configuration file"""
        config_file = Path(self.config_path)

        if not config_file.exists():
            logger.debug(f"Config file not found: {config_file}, using defaults")
            return {}

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config: {e}")
            return {}

    def get_cache_dir(self, subdir: str = "") -> Path:
        """Get (and create) a directory under the cache root"""
        cache_path = Path(self.cache.cache_root)
        if subdir:
            cache_path = cache_path / subdir
        cache_path.mkdir(parents=True, exist_ok=True)
        return cache_path

    def get_export_dir(self) -> Path:
        """Get export directory for CSV files"""
        return self.get_cache_dir(self.storage.export_subdir)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot notation key"""
        keys = key.split(".")
        value = self.yaml_config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def to_dict(self) -> Dict[str, Any]:
        """Export full configuration as dictionary (secrets excluded)"""
        return {
            "api": self.api.model_dump(),
            "database": self.database.model_dump(),
            "cache": self.cache.model_dump(),
            "logging": self.logging.model_dump(),
            "tiktok": self.tiktok.model_dump(
                exclude={"client_secret", "access_token"}
            ),
            "analytics": self.analytics.model_dump(),
            "storage": self.storage.model_dump(),
        }

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary"""
        return {
            "app": self.yaml_config.get("app", {}),
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "prefix": self.api.prefix,
                "debug": self.api.debug,
            },
            "database": {
                "url": self.database.url,
            },
            "cache": {
                "cache_root": self.cache.cache_root,
            },
            "tiktok": {
                "mode": "production" if self.tiktok.is_configured else "development",
                "client_key_set": bool(self.tiktok.client_key),
                "access_token_set": bool(self.tiktok.access_token),
                "requests_per_second": self.tiktok.requests_per_second,
                "max_videos": self.tiktok.max_videos,
            },
            "analytics": {
                "default_preset": self.analytics.default_preset,
                "comparison": self.analytics.enable_comparison,
                "fallback": self.analytics.previous_period_fallback,
            },
        }


# ============================================================================
# Global Configuration Instance (Singleton)
# ============================================================================

_config: Optional[Config] = None
_config_lock = threading.Lock()


@lru_cache()
def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get or create global configuration instance (Thread-safe singleton)

    Args:
        config_path: Optional path to config file

    Returns:
        Config instance
    """
    global _config

    if _config is None:
        with _config_lock:
            if _config is None:
                _config = Config(config_path)
                logger.info("✅ Configuration initialized")

    return _config


def reload_config(config_path: Optional[str] = None) -> Config:
    """
    Force reload configuration

    Args:
        config_path: Optional new config path

    Returns:
        New Config instance
    """
    global _config

    with _config_lock:
        get_config.cache_clear()
        _config = Config(config_path)
        logger.info("🔄 Configuration reloaded")

    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)"""
    global _config

    with _config_lock:
        get_config.cache_clear()
        _config = None
        logger.info("🗑️ Configuration reset")


# ============================================================================
# Configuration Validation
# ============================================================================


def validate_config(config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Validate configuration

    Args:
        config: Config instance (uses global if None)

    Returns:
        Validation result with errors and warnings
    """
    if config is None:
        config = get_config()

    errors = []
    warnings = []

    # Check cache root
    cache_root = Path(config.cache.cache_root)
    if not cache_root.exists():
        try:
            cache_root.mkdir(parents=True, exist_ok=True)
            warnings.append(f"Created cache root: {cache_root}")
        except OSError as e:
            errors.append(f"Cannot create cache root: {e}")

    # Check log path
    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        if not log_path.parent.exists():
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create log directory: {e}")

    # Check TikTok credentials
    if not config.tiktok.is_configured:
        warnings.append("TikTok client key not set - using synthetic data")
    elif not config.tiktok.client_secret:
        warnings.append("TikTok client secret not set - OAuth flows will fail")

    # Check database URL
    if not config.database.url:
        errors.append("Database URL not configured")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


# ============================================================================
# Convenience Functions
# ============================================================================


def get_tiktok_settings() -> TikTokAPISettings:
    """Get TikTok API settings (shortcut)"""
    return get_config().tiktok


def setup_logging(config: Optional[Config] = None) -> None:
    """
    Setup logging based on configuration

    Args:
        config: Config instance (uses global if None)
    """
    import logging.handlers

    if config is None:
        config = get_config()

    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)
    formatter = logging.Formatter(config.logging.format)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Replace handlers installed by a previous call
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logger.info(f"📝 Logging configured: level={config.logging.level}")
