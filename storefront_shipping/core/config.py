"""
Application configuration

Defaults are safe for production:
- DEBUG defaults to False
- Shipping rules come from the in-memory store unless configured otherwise
- Runtime validation catches inconsistent production configurations
"""
import json
import logging
from decimal import Decimal
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Default CORS origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

RULE_STORE_BACKENDS = ("memory", "file", "firestore")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # App - defaults are PRODUCTION safe
    APP_NAME: str = "Storefront Shipping"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # CORS - accepts JSON array or comma-separated string
    CORS_ORIGINS: List[str] = DEFAULT_CORS_ORIGINS

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            if not v or v.strip() == "":
                return DEFAULT_CORS_ORIGINS
            # Try JSON first
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Fallback to comma-separated
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_SHIPPING: str = "30/minute"

    # Shipping rule source: memory | file | firestore
    SHIPPING_RULE_STORE: str = "memory"
    SHIPPING_RULES_FILE: str = ""

    # Firestore REST access (rule documents live in the storefront's document store)
    FIRESTORE_PROJECT_ID: str = ""
    FIRESTORE_DATABASE: str = "(default)"
    FIRESTORE_RULES_COLLECTION: str = "zonas_envio"
    FIRESTORE_API_KEY: str = ""
    FIRESTORE_TIMEOUT_SECONDS: float = 15.0

    # Checkout shipping behaviour
    SHIPPING_RULE_CACHE_TTL_SECONDS: int = 1800
    SHIPPING_RULE_CACHE_MAX_SESSIONS: int = 10000
    SHIPPING_FREE_THRESHOLD: Optional[Decimal] = None
    SHIPPING_CURRENCY: str = "MXN"

    @field_validator("SHIPPING_RULE_STORE")
    @classmethod
    def validate_rule_store(cls, v):
        v = (v or "memory").strip().lower()
        if v not in RULE_STORE_BACKENDS:
            raise ValueError(
                f"SHIPPING_RULE_STORE must be one of {', '.join(RULE_STORE_BACKENDS)}"
            )
        return v

    @field_validator("SHIPPING_FREE_THRESHOLD", mode="before")
    @classmethod
    def blank_threshold_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_production_config(self):
        """Runtime validation to catch inconsistent production configurations."""
        if self.SHIPPING_RULE_STORE == "file" and not self.SHIPPING_RULES_FILE:
            raise ValueError("SHIPPING_RULES_FILE is required when SHIPPING_RULE_STORE=file")

        if self.ENVIRONMENT == "production":
            errors = []

            if self.DEBUG:
                errors.append(
                    "DEBUG=True is forbidden in production. "
                    "Set DEBUG=false or ENVIRONMENT=development"
                )

            if self.SHIPPING_RULE_STORE == "firestore" and not self.FIRESTORE_PROJECT_ID:
                errors.append("FIRESTORE_PROJECT_ID is required for the firestore rule store")

            cors_warnings = []
            for origin in self.CORS_ORIGINS:
                if origin == "*":
                    cors_warnings.append("Wildcard '*' CORS origin is insecure in production")
                elif "localhost" in origin or "127.0.0.1" in origin:
                    cors_warnings.append(f"Localhost CORS origin '{origin}' should be removed in production")

            if cors_warnings:
                logger.warning(
                    "CORS WARNINGS in production:\n" +
                    "\n".join(f"  - {w}" for w in cors_warnings)
                )

            if errors:
                raise ValueError(
                    "PRODUCTION CONFIGURATION VIOLATIONS:\n" + "\n".join(f"  - {e}" for e in errors)
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
