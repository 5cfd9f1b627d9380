"""
Shipping option pipeline.

cart items + address -> matched rules -> packages per rule -> priced,
ranked ShippingQuote. Pure and synchronous; callers fetch the rules.
"""
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from storefront_shipping.models.shipping import (
    ZERO,
    Address,
    CartItem,
    ShippingOption,
    ShippingQuote,
    ShippingRule,
)
from storefront_shipping.modules.shipping.allocator import allocate_packages
from storefront_shipping.modules.shipping.constants import UNKNOWN_PRIORITY
from storefront_shipping.modules.shipping.delivery import clamp_window, delivery_label
from storefront_shipping.modules.shipping.matcher import (
    match_rules,
    rule_accepts_items,
    unshippable_items,
)
from storefront_shipping.modules.shipping.pricing import (
    ShippingConfig,
    aggregate_cost,
    describe_option,
    free_shipping_reason,
    rank_options,
)

logger = logging.getLogger(__name__)


def option_id_for(rule: ShippingRule) -> str:
    return f"ship_{rule.id}"


def cart_subtotal(items: Iterable[CartItem]) -> Decimal:
    return sum((item.line_total for item in items), ZERO)


def build_option(
    rule: ShippingRule,
    items: Sequence[CartItem],
    config: ShippingConfig,
    subtotal: Optional[Decimal] = None,
) -> ShippingOption:
    """Allocate and price the cart for a single rule."""
    if subtotal is None:
        subtotal = cart_subtotal(items)

    packages = allocate_packages(rule, items)
    reason = free_shipping_reason(rule, subtotal, config.free_shipping_threshold)
    total, priced = aggregate_cost(rule, packages, free=reason is not None)
    min_days, max_days = clamp_window(rule.min_days, rule.max_days)

    option = ShippingOption(
        id=option_id_for(rule),
        rule=rule,
        packages=tuple(priced),
        total_shipping_cost=total,
        is_free=reason is not None or total == ZERO,
        free_reason=reason,
        priority=config.priorities.get(rule.zone_type.value, UNKNOWN_PRIORITY),
        min_days=min_days,
        max_days=max_days,
        delivery_label=delivery_label(min_days, max_days),
    )
    return replace(option, description=describe_option(option, config.currency))


def build_shipping_options(
    items: Sequence[CartItem],
    address: Optional[Address],
    rules: Iterable[ShippingRule],
    config: Optional[ShippingConfig] = None,
) -> ShippingQuote:
    """
    Compute every shipping option for a cart and destination.

    An empty cart, an incomplete address, or no matching rule all produce a
    quote without options; nothing here raises for bad rule data.
    """
    config = config or ShippingConfig()
    items = list(items)
    subtotal = cart_subtotal(items)

    if not items:
        return ShippingQuote(subtotal=subtotal)
    if address is None or not address.is_complete:
        logger.info("Shipping quote requested with an incomplete address")
        return ShippingQuote(subtotal=subtotal)

    matched = match_rules(address, rules)
    blocked = unshippable_items(matched, items)
    if not matched:
        logger.info(f"No shipping rules cover postal code {address.postal_code!r}")

    options = [
        build_option(rule, items, config, subtotal)
        for rule in matched
        if rule_accepts_items(rule, items)
    ]
    ranked = rank_options(options, config.priorities)

    selected = next((o.id for o in ranked if o.rule.is_default), None)
    if selected is None and ranked:
        selected = ranked[0].id

    return ShippingQuote(
        options=tuple(ranked),
        unshippable_product_ids=tuple(item.product_id for item in blocked),
        selected_option_id=selected,
        subtotal=subtotal,
    )
