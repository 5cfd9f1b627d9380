"""
Storefront Shipping API
FastAPI application entry point

- Rule store and ShippingService created in the lifespan, kept on app.state
- Rate limiting with SlowAPI
- Error sanitization middleware
- Structured JSON bodies for storefront errors
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from storefront_shipping import __version__
from storefront_shipping.api.routes import shipping
from storefront_shipping.core.config import Settings, get_settings
from storefront_shipping.core.error_handler import (
    ErrorSanitizationMiddleware,
    storefront_error_response,
)
from storefront_shipping.core.exceptions import StorefrontBaseError
from storefront_shipping.core.logging_config import configure_logging
from storefront_shipping.core.rate_limit import configure_limiter, rate_limit_exceeded_handler
from storefront_shipping.services.rule_store import BaseRuleStore, create_rule_store
from storefront_shipping.services.shipping_service import ShippingService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    rule_store: Optional[BaseRuleStore] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        settings: Defaults to the cached environment settings
        rule_store: Overrides the store selected by SHIPPING_RULE_STORE
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = rule_store if rule_store is not None else create_rule_store(settings)
        app.state.rule_store = store
        app.state.shipping_service = ShippingService.from_settings(store, settings)
        logger.info(
            f"{settings.APP_NAME} started (environment={settings.ENVIRONMENT}, "
            f"rule store={store.name})"
        )

        yield

        # Close HTTP clients to prevent connection leaks
        await app.state.shipping_service.close()
        logger.info("Shipping rule store closed")

    app = FastAPI(
        lifespan=lifespan,
        title=f"{settings.APP_NAME} API",
        version=__version__,
        debug=settings.DEBUG,
    )

    # Rate limiting
    app.state.limiter = configure_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    async def handle_storefront_error(request: Request, exc: StorefrontBaseError):
        return storefront_error_response(exc, debug=settings.DEBUG)

    app.add_exception_handler(StorefrontBaseError, handle_storefront_error)

    app.add_middleware(ErrorSanitizationMiddleware, debug=settings.DEBUG)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(shipping.router, prefix="/api", tags=["Shipping"])

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "message": f"{settings.APP_NAME} API",
            "version": __version__,
            "status": "operational",
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        service: Optional[ShippingService] = getattr(request.app.state, "shipping_service", None)
        return {
            "status": "healthy" if service is not None else "starting",
            "rule_store": service.rule_store.name if service is not None else None,
            "cached_sessions": len(service.cache) if service is not None else 0,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
