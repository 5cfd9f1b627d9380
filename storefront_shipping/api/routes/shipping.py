"""
Shipping API Routes

Provides endpoints for:
- Shipping options for a cart and destination
- Order totals once a shipping rule is chosen
- Dropping a checkout session's cached rules

Storefront errors raised by the service are rendered by the application's
exception handler (404 for an unavailable option, 503 when rules cannot be
loaded).
"""
import logging

from fastapi import APIRouter, Depends, Request, Response, status

from storefront_shipping.api.deps import get_shipping_service
from storefront_shipping.core.rate_limit import limiter, shipping_limit
from storefront_shipping.schemas.shipping import (
    OrderTotalsRequest,
    OrderTotalsResponse,
    ShippingOptionsRequest,
    ShippingQuoteResponse,
)
from storefront_shipping.services.shipping_service import ShippingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipping", tags=["shipping"])


@router.post("/options", response_model=ShippingQuoteResponse)
@limiter.limit(shipping_limit)
async def get_shipping_options(
    request: Request,
    payload: ShippingOptionsRequest,
    service: ShippingService = Depends(get_shipping_service),
):
    """
    Get every shipping option for the cart, best first.

    An empty cart or an address without postal code and state returns an
    empty option list rather than an error.
    """
    quote = await service.get_shipping_options(
        payload.domain_items(),
        payload.domain_address(),
        session_id=payload.session_id,
    )
    return ShippingQuoteResponse.from_domain(quote)


@router.post("/totals", response_model=OrderTotalsResponse)
@limiter.limit(shipping_limit)
async def get_order_totals(
    request: Request,
    payload: OrderTotalsRequest,
    service: ShippingService = Depends(get_shipping_service),
):
    """Subtotal, shipping cost and total for the chosen shipping rule."""
    totals = await service.compute_order_totals(
        payload.domain_items(),
        payload.domain_address(),
        payload.rule_id,
        session_id=payload.session_id,
    )
    return OrderTotalsResponse.from_domain(totals)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_session(
    session_id: str,
    service: ShippingService = Depends(get_shipping_service),
):
    """Drop cached rules for a checkout session (e.g. after the address changes)."""
    service.invalidate_session(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
