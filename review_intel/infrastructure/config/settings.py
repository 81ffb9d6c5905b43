"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses for safety and clarity
- Single source of truth for all configurable values

EXTENSIBILITY:
- To add a notifier provider: add its credentials to NotifierSettings
- To switch store backend: set STORE_BACKEND=memory|sqlite
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ...domain.spam import SpamRules

# Load .env file if present (development convenience)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    return int(raw) if raw.strip() else default


@dataclass(frozen=True)
class StoreSettings:
    """Where reviews, properties and accounts are kept."""

    backend: str = field(default_factory=lambda: os.getenv("STORE_BACKEND", "sqlite").lower())
    database_file: Path = field(
        default_factory=lambda: Path(os.getenv("DATABASE_FILE", "review_intel.db"))
    )
    # Memory backend only: JSON file rewritten after every mutation
    snapshot_file: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["SNAPSHOT_FILE"]) if os.getenv("SNAPSHOT_FILE") else None
    )


@dataclass(frozen=True)
class NotifierSettings:
    """Guest alert provider selection and credentials."""

    # demo | twilio | whatsapp_cloud
    provider: str = field(default_factory=lambda: os.getenv("NOTIFIER_PROVIDER", "demo").lower())

    # Twilio (SMS and/or WhatsApp sender numbers)
    twilio_sid: str = field(default_factory=lambda: os.getenv("TWILIO_SID", ""))
    twilio_auth: str = field(default_factory=lambda: os.getenv("TWILIO_AUTH", ""))
    twilio_from: str = field(default_factory=lambda: os.getenv("TWILIO_FROM", ""))
    twilio_whatsapp_from: str = field(default_factory=lambda: os.getenv("TWILIO_WA_FROM", ""))

    # Meta WhatsApp Business Cloud API
    whatsapp_token: str = field(default_factory=lambda: os.getenv("WA_TOKEN", ""))
    whatsapp_phone_id: str = field(default_factory=lambda: os.getenv("WA_PHONE_ID", ""))
    whatsapp_api_url: str = field(
        default_factory=lambda: os.getenv("WA_API_URL", "https://graph.facebook.com/v19.0")
    )
    whatsapp_verify_token: str = field(
        default_factory=lambda: os.getenv("WA_VERIFY_TOKEN", "review_intel_verify")
    )

    # Phone numbers without a country code get this prefix
    default_country_code: str = field(default_factory=lambda: os.getenv("DEFAULT_COUNTRY_CODE", "91"))

    # Message signature / support contacts
    brand_name: str = field(default_factory=lambda: os.getenv("BRAND_NAME", "Guest Relations"))
    support_phone: str = field(default_factory=lambda: os.getenv("GUEST_RELATIONS_PHONE", ""))
    support_email: str = field(default_factory=lambda: os.getenv("GUEST_RELATIONS_EMAIL", ""))

    timeout_seconds: int = 15

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_sid and self.twilio_auth and (self.twilio_from or self.twilio_whatsapp_from))

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_token and self.whatsapp_phone_id)


@dataclass(frozen=True)
class SpamSettings:
    """Overrides for the spam classifier thresholds."""

    min_length: int = field(default_factory=lambda: _env_int("SPAM_MIN_LENGTH", 10))
    url_min_length: int = field(default_factory=lambda: _env_int("SPAM_URL_MIN_LENGTH", 15))
    mismatch_threshold: int = field(default_factory=lambda: _env_int("SPAM_MISMATCH_THRESHOLD", 3))

    def to_rules(self) -> SpamRules:
        return SpamRules(
            min_length=self.min_length,
            url_min_length=self.url_min_length,
            mismatch_threshold=self.mismatch_threshold,
        )


@dataclass(frozen=True)
class ApiSettings:
    """HTTP surface settings."""

    # Empty disables the X-API-Key guard on review routes
    api_key: str = field(default_factory=lambda: os.getenv("API_KEY", ""))
    password_salt: str = field(default_factory=lambda: os.getenv("PASSWORD_SALT", "review_intel_salt"))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from review_intel.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.notifier.provider)
    """

    store: StoreSettings = field(default_factory=StoreSettings)
    notifier: NotifierSettings = field(default_factory=NotifierSettings)
    spam: SpamSettings = field(default_factory=SpamSettings)
    api: ApiSettings = field(default_factory=ApiSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings.
        Returns empty list if all settings are valid.
        """
        issues = []

        provider = self.notifier.provider
        if provider == "twilio" and not self.notifier.twilio_configured:
            issues.append(
                "WARNING: NOTIFIER_PROVIDER=twilio but TWILIO_SID/TWILIO_AUTH/TWILIO_FROM "
                "are not set. Guest alerts will only be logged (demo mode)."
            )
        elif provider == "whatsapp_cloud" and not self.notifier.whatsapp_configured:
            issues.append(
                "WARNING: NOTIFIER_PROVIDER=whatsapp_cloud but WA_TOKEN/WA_PHONE_ID "
                "are not set. Guest alerts will only be logged (demo mode)."
            )
        elif provider not in ("demo", "twilio", "whatsapp_cloud"):
            issues.append(f"WARNING: Unknown NOTIFIER_PROVIDER '{provider}'. Using demo mode.")

        if self.store.backend not in ("sqlite", "memory"):
            issues.append(f"WARNING: Unknown STORE_BACKEND '{self.store.backend}'. Using sqlite.")

        if not self.api.api_key:
            issues.append("WARNING: API_KEY not set. Review routes are open.")

        if self.api.password_salt == "review_intel_salt":
            issues.append("WARNING: PASSWORD_SALT uses the default value. Set your own.")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
