from pydantic_settings import BaseSettings
from typing import List, Dict, Any, Optional
import json
from pathlib import Path


def parse_list(v: Any) -> List[str]:
    """Parse a list setting from JSON or comma-separated string"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


def parse_feature_flags(v: str) -> Dict[str, bool]:
    """Parse feature flag defaults from format: flagOne:on,flagTwo:off"""
    if not v:
        return {}
    flags = {}
    for item in v.split(','):
        if ':' in item:
            name, state = item.strip().split(':', 1)
            flags[name.strip()] = state.strip().lower() in ('on', 'true', '1')
    return flags


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Check in with your probation officer"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    ENVIRONMENT_NAME: str = ""  # Phase banner label, e.g. PRE-PRODUCTION
    DEBUG: bool = False
    SECRET_KEY: str

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 3000

    BASE_DIR: Path = Path(__file__).resolve().parent.parent

    SUPPORT_EMAIL: str = "esupervision@justice.gov.uk"
    FEEDBACK_FORM_URL: str = "/feedback"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # ==========================================
    # Session
    # ==========================================
    SESSION_COOKIE_NAME: str = "checkin.session"
    SESSION_HTTPS_ONLY: bool = False
    SESSION_TIMEOUT_MINUTES: int = 30  # Inactivity before the warning modal
    SESSION_WARNING_SECONDS: int = 300  # Countdown shown in the warning modal

    # Redis (server side session data; the cookie only carries a signed id)
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_KEY_PREFIX: str = "checkin:session:"

    # ==========================================
    # eSupervision API
    # ==========================================
    ESUPERVISION_API_URL: str = "http://localhost:8080"
    ESUPERVISION_API_TIMEOUT: float = 20.0  # seconds
    ESUPERVISION_API_CONNECT_TIMEOUT: float = 5.0  # seconds
    ESUPERVISION_API_MAX_RETRIES: int = 2
    ESUPERVISION_API_RETRY_BASE_DELAY: float = 0.5  # seconds
    ESUPERVISION_API_RETRY_MAX_DELAY: float = 5.0  # seconds

    # ==========================================
    # HMPPS Auth (system token)
    # ==========================================
    HMPPS_AUTH_URL: str = "http://localhost:9090/auth"
    API_CLIENT_ID: str = "clientid"
    API_CLIENT_SECRET: str = "clientsecret"
    SYSTEM_TOKEN_EXPIRY_BUFFER_SECONDS: int = 60

    # ==========================================
    # Audit (SQS)
    # ==========================================
    AUDIT_ENABLED: bool = False
    AUDIT_SQS_QUEUE_URL: str = ""
    AUDIT_SQS_REGION: str = "eu-west-2"
    AUDIT_SERVICE_NAME: str = "hmpps-esupervision-ui"

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    VERIFY_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # ==========================================
    # Country Restriction
    # ==========================================
    GEO_RESTRICTION_ENABLED: bool = False
    # GeoLite2 Country database; the header is only used when this is unset or has no answer
    GEOIP_DB_PATH: Optional[str] = None
    GEOIP_CACHE_SIZE: int = 10_000
    GEO_COUNTRY_HEADER: str = "CloudFront-Viewer-Country"
    ALLOWED_COUNTRY: str = "GB"
    GEO_BYPASS_PATHS_STR: str = "/health,/ping,/assets,/info"

    # ==========================================
    # Request Limits
    # ==========================================
    MAX_REQUEST_SIZE: int = 1 * 1024 * 1024  # 1MB, only form posts reach the app

    # ==========================================
    # Feature Flags
    # ==========================================
    FEATURE_FLAGS_COOKIE_NAME: str = "es-feature-flags"
    FEATURE_FLAGS_COOKIE_MAX_AGE: int = 7 * 24 * 60 * 60  # 7 days
    FEATURE_FLAG_DEFAULTS_STR: str = "debugMode:off"

    # ==========================================
    # Language
    # ==========================================
    LANGUAGE_COOKIE_NAME: str = "lang"
    LANGUAGE_COOKIE_MAX_AGE: int = 365 * 24 * 60 * 60  # 1 year

    # ==========================================
    # Video Capture (milliseconds)
    # ==========================================
    VIDEO_COUNTDOWN_MS: int = 3000
    VIDEO_SCREENSHOT_MS: int = 2000
    VIDEO_DURATION_MS: int = 5000
    VIDEO_LOADING_DELAY_MS: int = 3000

    # ==========================================
    # Submission
    # ==========================================
    SURVEY_VERSION: str = "2025-07-10@pilot"
    FEEDBACK_VERSION: int = 1

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def GEO_BYPASS_PATHS(self) -> List[str]:
        return parse_list(self.GEO_BYPASS_PATHS_STR)

    @property
    def FEATURE_FLAG_DEFAULTS(self) -> Dict[str, bool]:
        return parse_feature_flags(self.FEATURE_FLAG_DEFAULTS_STR)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def session_max_age(self) -> int:
        """Session cookie lifetime covers inactivity plus the warning countdown"""
        return self.SESSION_TIMEOUT_MINUTES * 60 + self.SESSION_WARNING_SECONDS

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    def get_video_config(self) -> Dict[str, int]:
        """Timings handed to the recorder script"""
        return {
            "countdown": self.VIDEO_COUNTDOWN_MS,
            "screenshot": self.VIDEO_SCREENSHOT_MS,
            "duration": self.VIDEO_DURATION_MS,
            "loadingDelay": self.VIDEO_LOADING_DELAY_MS,
        }

    def get_session_timeout_config(self) -> Dict[str, int]:
        """Timings handed to the timeout modal script"""
        return {
            "timeoutMinutes": self.SESSION_TIMEOUT_MINUTES,
            "warningSeconds": self.SESSION_WARNING_SECONDS,
        }


# Create settings instance
settings = Settings()
