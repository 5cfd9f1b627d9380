"""
Shipping Service

Checkout-facing facade over the pure shipping pipeline. Loads rule
documents from the configured store, normalizes them once per checkout
session and answers two questions:

- which shipping options does this cart have for this address?
- what does the order cost once the customer picks one?

Built once at application start and injected into the routes.
"""
import logging
from typing import List, Optional, Sequence

from storefront_shipping.core.config import Settings
from storefront_shipping.core.exceptions import ShippingOptionUnavailableError
from storefront_shipping.models.shipping import (
    Address,
    CartItem,
    OrderTotals,
    ShippingQuote,
    ShippingRule,
)
from storefront_shipping.modules.shipping.constants import DEFAULT_PRIORITIES
from storefront_shipping.modules.shipping.normalizer import normalize_rules
from storefront_shipping.modules.shipping.options import build_shipping_options
from storefront_shipping.modules.shipping.pricing import ShippingConfig, to_money
from storefront_shipping.services.rule_store import BaseRuleStore, RuleCache

logger = logging.getLogger(__name__)


def shipping_config_from_settings(settings: Settings) -> ShippingConfig:
    return ShippingConfig(
        free_shipping_threshold=settings.SHIPPING_FREE_THRESHOLD,
        priorities=dict(DEFAULT_PRIORITIES),
        currency=settings.SHIPPING_CURRENCY,
    )


class ShippingService:
    """Shipping quotes and order totals for checkout sessions."""

    def __init__(
        self,
        rule_store: BaseRuleStore,
        config: Optional[ShippingConfig] = None,
        cache: Optional[RuleCache] = None,
    ):
        self.rule_store = rule_store
        self.config = config or ShippingConfig()
        self.cache = cache if cache is not None else RuleCache()

    @classmethod
    def from_settings(cls, rule_store: BaseRuleStore, settings: Settings) -> "ShippingService":
        return cls(
            rule_store=rule_store,
            config=shipping_config_from_settings(settings),
            cache=RuleCache(
                ttl_seconds=settings.SHIPPING_RULE_CACHE_TTL_SECONDS,
                max_entries=settings.SHIPPING_RULE_CACHE_MAX_SESSIONS,
            ),
        )

    async def load_rules(self, session_id: Optional[str] = None) -> List[ShippingRule]:
        """
        Normalized rules for a session, from cache when fresh.

        Raises:
            RuleStoreError: The store could not be read
        """
        rules = self.cache.get(session_id)
        if rules is not None:
            return rules

        documents = await self.rule_store.fetch_rule_documents()
        rules = normalize_rules(documents)
        skipped = len(documents) - len(rules)
        if skipped:
            logger.warning(f"Skipped {skipped} unusable shipping rule document(s)")
        logger.info(f"Loaded {len(rules)} shipping rule(s) for session {session_id or '-'}")

        self.cache.set(session_id, rules)
        return rules

    async def get_shipping_options(
        self,
        items: Sequence[CartItem],
        address: Optional[Address],
        session_id: Optional[str] = None,
    ) -> ShippingQuote:
        """
        Every shipping option available for the cart at the address.

        An empty cart or an incomplete address yields an empty quote without
        touching the rule store.
        """
        if not items or address is None or not address.is_complete:
            return build_shipping_options(items, address, [], self.config)

        rules = await self.load_rules(session_id)
        quote = build_shipping_options(items, address, rules, self.config)

        if quote.unshippable_product_ids:
            logger.info(
                f"Products without shipping coverage: {', '.join(quote.unshippable_product_ids)}"
            )
        return quote

    async def compute_order_totals(
        self,
        items: Sequence[CartItem],
        address: Optional[Address],
        rule_id: str,
        session_id: Optional[str] = None,
    ) -> OrderTotals:
        """
        Subtotal, shipping and total for the chosen rule.

        Raises:
            ShippingOptionUnavailableError: The rule yields no option for this
                cart and address
        """
        quote = await self.get_shipping_options(items, address, session_id)
        option = next((o for o in quote.options if o.rule.id == rule_id), None)
        if option is None:
            raise ShippingOptionUnavailableError(
                "Selected shipping option is not available for this cart and address",
                rule_id=rule_id,
            )

        subtotal = to_money(quote.subtotal)
        shipping_cost = to_money(option.total_shipping_cost)
        return OrderTotals(
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=to_money(subtotal + shipping_cost),
            rule_id=rule_id,
            package_count=option.package_count,
        )

    def invalidate_session(self, session_id: Optional[str]) -> bool:
        """Forget a session's cached rules so the next quote reloads them."""
        dropped = self.cache.invalidate(session_id)
        if dropped:
            logger.debug(f"Dropped cached shipping rules for session {session_id}")
        return dropped

    async def close(self) -> None:
        self.cache.clear()
        await self.rule_store.close()
