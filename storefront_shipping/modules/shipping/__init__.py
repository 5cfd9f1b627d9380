"""
Shipping Module

Pure, synchronous shipping pipeline:
- matcher: active rules whose zone covers the address
- allocator: cart items -> packages under per-package limits
- pricing: package costs, free shipping, option ranking
- normalizer: stored rule documents -> ShippingRule
"""
from storefront_shipping.modules.shipping.allocator import allocate_packages
from storefront_shipping.modules.shipping.matcher import match_rules
from storefront_shipping.modules.shipping.normalizer import normalize_rule, normalize_rules
from storefront_shipping.modules.shipping.options import build_shipping_options
from storefront_shipping.modules.shipping.pricing import (
    ShippingConfig,
    aggregate_cost,
    rank_options,
)

__all__ = [
    "ShippingConfig",
    "aggregate_cost",
    "allocate_packages",
    "build_shipping_options",
    "match_rules",
    "normalize_rule",
    "normalize_rules",
    "rank_options",
]
