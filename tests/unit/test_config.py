"""
Tests for application settings.
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront_shipping.core.config import Settings


def make_settings(**overrides) -> Settings:
    values = {"ENVIRONMENT": "development"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    """Defaults, parsing and production checks."""

    def test_defaults(self):
        settings = make_settings()
        assert settings.SHIPPING_RULE_STORE == "memory"
        assert settings.FIRESTORE_RULES_COLLECTION == "zonas_envio"
        assert settings.SHIPPING_FREE_THRESHOLD is None

    def test_cors_comma_separated(self):
        settings = make_settings(CORS_ORIGINS="https://a.mx, https://b.mx")
        assert settings.CORS_ORIGINS == ["https://a.mx", "https://b.mx"]

    def test_cors_json(self):
        settings = make_settings(CORS_ORIGINS='["https://a.mx"]')
        assert settings.CORS_ORIGINS == ["https://a.mx"]

    def test_store_backend_normalized(self):
        assert make_settings(SHIPPING_RULE_STORE=" Memory ").SHIPPING_RULE_STORE == "memory"

    def test_unknown_store_backend_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(SHIPPING_RULE_STORE="redis")

    def test_file_store_requires_path(self):
        with pytest.raises(ValidationError):
            make_settings(SHIPPING_RULE_STORE="file")

    def test_free_threshold(self):
        assert make_settings(SHIPPING_FREE_THRESHOLD="999.00").SHIPPING_FREE_THRESHOLD == Decimal("999.00")
        assert make_settings(SHIPPING_FREE_THRESHOLD="").SHIPPING_FREE_THRESHOLD is None

    def test_debug_forbidden_in_production(self):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(ENVIRONMENT="production", DEBUG=True)
        assert "DEBUG=True is forbidden" in str(exc_info.value)

    def test_firestore_needs_project_in_production(self):
        with pytest.raises(ValidationError):
            make_settings(ENVIRONMENT="production", SHIPPING_RULE_STORE="firestore")
        settings = make_settings(
            ENVIRONMENT="production",
            SHIPPING_RULE_STORE="firestore",
            FIRESTORE_PROJECT_ID="tienda-prod",
            CORS_ORIGINS="https://tienda.mx",
        )
        assert settings.FIRESTORE_PROJECT_ID == "tienda-prod"
