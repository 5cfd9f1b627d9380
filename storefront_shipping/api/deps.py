"""
API dependencies.
"""
from fastapi import Request

from storefront_shipping.services.shipping_service import ShippingService


def get_shipping_service(request: Request) -> ShippingService:
    """The ShippingService created by the application lifespan."""
    return request.app.state.shipping_service
