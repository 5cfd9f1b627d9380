"""
Storefront Shipping Exception Hierarchy

All exceptions carry code, message and details so they can be logged and
returned to clients in a structured way.

Exception Hierarchy:
    StorefrontBaseError
    └── ShippingError
        ├── ShippingOptionUnavailableError
        └── RuleStoreError

The allocation and pricing core never raises for bad rule data; these
errors belong to the service and storage layers.
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class StorefrontBaseError(Exception):
    """
    Base exception for all storefront custom errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        severity: P0-P3 severity level
    """

    default_code: str = "STOREFRONT_ERROR"
    default_severity: str = "P2"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# SHIPPING ERRORS
# =============================================================================

class ShippingError(StorefrontBaseError):
    """Base exception for shipping-related errors."""
    default_code = "SHIPPING_ERROR"
    default_severity = "P1"


class ShippingOptionUnavailableError(ShippingError):
    """The requested shipping rule produced no option for this cart and address."""
    default_code = "SHIPPING_OPTION_UNAVAILABLE"
    default_severity = "P3"

    def __init__(self, message: str, rule_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["rule_id"] = rule_id
        super().__init__(message, details=details, **kwargs)


class RuleStoreError(ShippingError):
    """Shipping rules could not be read from the document store."""
    default_code = "RULE_STORE_UNAVAILABLE"

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        details = kwargs.pop("details", {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details, **kwargs)
