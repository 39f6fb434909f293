"""Configuration management for the Marketplace Integration Gateway"""

import os
import math
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


# Every environment key the integration layer reads. Request input never
# overrides any of these.
PROVIDER_ENV_KEYS: Dict[str, Tuple[str, ...]] = {
    "stripe": (
        "STRIPE_SECRET_KEY",
        "STRIPE_API_URL",
        "STRIPE_SUCCESS_URL",
        "STRIPE_CANCEL_URL",
        "PUBLIC_SITE_URL",
    ),
    "easypaisa": ("EASYPAISA_API_URL", "EASYPAISA_USERNAME", "EASYPAISA_PASSWORD"),
    "jazzcash": (
        "JAZZCASH_API_URL",
        "JAZZCASH_MERCHANT_ID",
        "JAZZCASH_PASSWORD",
        "JAZZCASH_API_KEY",
    ),
    "tcs": ("TCS_API_URL", "TCS_API_KEY"),
    "leopards": ("LEOPARDS_API_URL", "LEOPARDS_API_KEY"),
    "mnp": ("MNP_API_URL", "MNP_API_KEY"),
}

STORAGE_ENV_KEYS: Tuple[str, ...] = (
    "AWS_REGION",
    "AWS_S3_BUCKET",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_S3_ENDPOINT_URL",
    "AWS_S3_PUBLIC_URL",
    "AWS_S3_CACHE_CONTROL",
    "AWS_S3_OBJECT_ACL",
)

DEFAULT_OBJECT_ACL = "public-read"

# Outbound provider calls: single attempt, bounded wait
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 20.0


class Config:
    """Application configuration"""

    # Environment detection: ENVIRONMENT takes priority, then deployment heuristics
    ENVIRONMENT = os.getenv("ENVIRONMENT", "").lower().strip()
    if ENVIRONMENT:
        IS_PRODUCTION = ENVIRONMENT == "production"
    else:
        IS_PRODUCTION = bool(os.getenv("RAILWAY_PUBLIC_DOMAIN")) or os.getenv(
            "REPLIT_DEPLOYMENT"
        ) == "1"
    CURRENT_ENVIRONMENT = "production" if IS_PRODUCTION else "development"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    PORT = int(os.getenv("PORT", "5000"))
    API_PREFIX = os.getenv("API_PREFIX", "/api").rstrip("/")
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    @staticmethod
    def load_settings() -> "IntegrationSettings":
        """Snapshot the integration environment once at process startup"""
        return IntegrationSettings.from_env()

    @staticmethod
    def log_integration_config(settings: "IntegrationSettings"):
        """Log which integrations are configured without revealing any value"""
        from utils.data_sanitizer import mask_api_key_safe

        logger.info("🔧 Integration Gateway Configuration:")
        logger.info(f"   Environment: {Config.CURRENT_ENVIRONMENT.upper()}")
        logger.info(f"   Provider timeout: {settings.provider_timeout_seconds}s")

        for provider, keys in PROVIDER_ENV_KEYS.items():
            configured = [key for key in keys if settings.get(key)]
            if configured:
                logger.info(f"   {provider}: ✅ {', '.join(configured)}")
            else:
                logger.warning(f"   {provider}: ⚠️ not configured")

        storage = settings.storage()
        if storage.bucket and storage.region:
            logger.info(f"   S3 bucket: {storage.bucket} ({storage.region})")
        else:
            logger.warning("   S3 storage: ⚠️ AWS_REGION / AWS_S3_BUCKET not configured")
        if storage.access_key_id:
            logger.info(f"   S3 access key: {mask_api_key_safe(storage.access_key_id)}")


@dataclass(frozen=True)
class StorageSettings:
    """Object storage backend configuration"""

    region: Optional[str] = None
    bucket: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    public_url: Optional[str] = None
    cache_control: Optional[str] = None
    object_acl: Optional[str] = DEFAULT_OBJECT_ACL


@dataclass(frozen=True)
class IntegrationSettings:
    """Immutable snapshot of the integration environment.

    Built once at startup and passed explicitly to dispatchers, adapters and
    the media service, so tests can inject fake credentials with a plain dict.
    """

    values: Mapping[str, str] = field(default_factory=dict)
    provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "IntegrationSettings":
        environ = os.environ if environ is None else environ
        keys = [key for group in PROVIDER_ENV_KEYS.values() for key in group]
        keys.extend(STORAGE_ENV_KEYS)
        snapshot = {key: environ[key] for key in keys if key in environ}

        timeout = float(
            str(environ.get("PROVIDER_HTTP_TIMEOUT_SECONDS") or "").strip()
            or DEFAULT_PROVIDER_TIMEOUT_SECONDS
        )
        if not math.isfinite(timeout) or timeout <= 0:
            logger.warning(
                f"PROVIDER_HTTP_TIMEOUT_SECONDS must be positive; using {DEFAULT_PROVIDER_TIMEOUT_SECONDS}s"
            )
            timeout = DEFAULT_PROVIDER_TIMEOUT_SECONDS
        return cls(values=snapshot, provider_timeout_seconds=timeout)

    def get(self, key: str) -> Optional[str]:
        """Return the trimmed value for key, or None when absent or blank"""
        value = self.values.get(key)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def storage(self) -> StorageSettings:
        # An explicitly empty AWS_S3_OBJECT_ACL disables the ACL directive
        if "AWS_S3_OBJECT_ACL" in self.values:
            object_acl = self.get("AWS_S3_OBJECT_ACL")
        else:
            object_acl = DEFAULT_OBJECT_ACL

        return StorageSettings(
            region=self.get("AWS_REGION"),
            bucket=self.get("AWS_S3_BUCKET"),
            access_key_id=self.get("AWS_ACCESS_KEY_ID"),
            secret_access_key=self.get("AWS_SECRET_ACCESS_KEY"),
            endpoint_url=self.get("AWS_S3_ENDPOINT_URL"),
            public_url=self.get("AWS_S3_PUBLIC_URL"),
            cache_control=self.get("AWS_S3_CACHE_CONTROL"),
            object_acl=object_acl,
        )
