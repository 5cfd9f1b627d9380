"""
Tests for the storefront exception hierarchy and error responses.
"""
import json

from storefront_shipping.core.error_handler import (
    GENERIC_MESSAGE,
    sanitize_error_message,
    status_for_error,
    storefront_error_response,
)
from storefront_shipping.core.exceptions import (
    RuleStoreError,
    ShippingError,
    ShippingOptionUnavailableError,
    StorefrontBaseError,
)


class TestExceptionHierarchy:
    """Codes, severities and details."""

    def test_defaults(self):
        error = ShippingError("boom")
        assert isinstance(error, StorefrontBaseError)
        assert error.code == "SHIPPING_ERROR"
        assert error.severity == "P1"
        assert error.details == {}

    def test_unavailable_option_carries_rule_id(self):
        error = ShippingOptionUnavailableError("no disponible", rule_id="express")
        assert error.code == "SHIPPING_OPTION_UNAVAILABLE"
        assert error.details["rule_id"] == "express"
        assert error.to_dict()["error_type"] == "ShippingOptionUnavailableError"

    def test_rule_store_error_status(self):
        error = RuleStoreError("down", status_code=503)
        assert error.code == "RULE_STORE_UNAVAILABLE"
        assert error.details == {"status_code": 503}

    def test_repr(self):
        assert repr(ShippingError("x")) == "ShippingError(code='SHIPPING_ERROR', message='x')"


class TestErrorResponses:
    """HTTP rendering of storefront errors."""

    def test_status_codes(self):
        assert status_for_error(ShippingOptionUnavailableError("x")) == 404
        assert status_for_error(RuleStoreError("x")) == 503
        assert status_for_error(ShippingError("x")) == 400

    def test_response_body(self):
        response = storefront_error_response(ShippingOptionUnavailableError("No disponible"))
        assert response.status_code == 404
        assert json.loads(response.body) == {
            "error": "shipping_error",
            "code": "SHIPPING_OPTION_UNAVAILABLE",
            "message": "No disponible",
        }

    def test_sensitive_messages_hidden(self):
        assert sanitize_error_message("invalid api key abc") == GENERIC_MESSAGE
        assert sanitize_error_message("invalid api key abc", debug=True) == "invalid api key abc"

    def test_long_messages_truncated(self):
        assert sanitize_error_message("x" * 300).endswith("...")
