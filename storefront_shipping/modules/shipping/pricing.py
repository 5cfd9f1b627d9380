"""
Cost Aggregator

Prices each package of an allocation, sums the packages into the rule's
total, applies free-shipping conditions and ranks the resulting options.

Package price, in order of precedence:
1. Free shipping (rule flag or cart subtotal at/above the threshold) -> 0
2. Weight bracket table, when a bracket applies -> bracket price verbatim
3. Base price + extra-weight surcharge + extra-item surcharge
"""
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from storefront_shipping.models.shipping import (
    ZERO,
    Package,
    PackageCost,
    ShippingOption,
    ShippingRule,
    ZoneType,
)
from storefront_shipping.modules.shipping.constants import (
    DEFAULT_PRIORITIES,
    UNKNOWN_PRIORITY,
    ZONE_LABELS,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
FREE_PACKAGE_COST = PackageCost()


@dataclass(frozen=True)
class ShippingConfig:
    """Store-wide knobs for the shipping pipeline."""
    free_shipping_threshold: Optional[Decimal] = None
    priorities: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_PRIORITIES))
    currency: str = "MXN"


def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def price_package(rule: ShippingRule, package: Package) -> PackageCost:
    """Cost breakdown for one package under a rule (free shipping not applied)."""
    if rule.weight_brackets:
        applicable = [b for b in rule.weight_brackets if package.weight >= b.min_weight]
        if applicable:
            bracket = max(applicable, key=lambda b: b.min_weight)
            price = to_money(bracket.price)
            return PackageCost(base=price, total=price, from_table=True)

    constraints = rule.constraints
    base = to_money(rule.base_price)

    extra_weight = ZERO
    if (
        constraints.max_weight
        and constraints.extra_weight_cost
        and package.weight > constraints.max_weight
    ):
        extra_kg = (package.weight - constraints.max_weight).to_integral_value(rounding=ROUND_CEILING)
        extra_weight = to_money(extra_kg * constraints.extra_weight_cost)

    extra_items = ZERO
    if constraints.extra_item_cost:
        extra_count = max(0, package.item_count - constraints.included_items)
        extra_items = to_money(extra_count * constraints.extra_item_cost)

    return PackageCost(
        base=base,
        extra_weight=extra_weight,
        extra_items=extra_items,
        total=base + extra_weight + extra_items,
    )


def free_shipping_reason(
    rule: ShippingRule,
    subtotal: Decimal,
    default_threshold: Optional[Decimal] = None,
) -> Optional[str]:
    """Why shipping is free for this cart under the rule, or None."""
    if rule.free_shipping:
        return "Envío gratuito en esta zona"

    threshold = rule.free_shipping_threshold
    if threshold is None:
        threshold = default_threshold
    if threshold is not None and threshold > 0 and subtotal >= threshold:
        return f"Envío gratuito en compras mayores a ${to_money(threshold)}"
    return None


def aggregate_cost(
    rule: ShippingRule,
    packages: Sequence[Package],
    free: bool = False,
) -> Tuple[Decimal, List[Package]]:
    """
    Price every package and sum them.

    Returns:
        (total cost, packages carrying their PackageCost)
    """
    priced = [
        replace(package, cost=FREE_PACKAGE_COST if free else price_package(rule, package))
        for package in packages
    ]
    total = sum((package.cost.total for package in priced), ZERO)
    return to_money(total), priced


def option_priority(option: ShippingOption, priorities: Mapping[str, int]) -> int:
    return priorities.get(option.rule.zone_type.value, UNKNOWN_PRIORITY)


def rank_options(
    options: Iterable[ShippingOption],
    priorities: Optional[Mapping[str, int]] = None,
) -> List[ShippingOption]:
    """Sort by zone priority (lower first), then ascending cost, then rule id."""
    priorities = DEFAULT_PRIORITIES if priorities is None else priorities
    return sorted(
        options,
        key=lambda o: (option_priority(o, priorities), o.total_shipping_cost, o.rule.id),
    )


def format_price(amount: Decimal, currency: str = "MXN") -> str:
    return f"${to_money(amount):,} {currency}"


def describe_option(option: ShippingOption, currency: str = "MXN") -> str:
    """Customer-facing summary of an option."""
    rule = option.rule
    parts = [ZONE_LABELS.get(rule.zone_type, ZONE_LABELS[ZoneType.STANDARD])]
    if option.delivery_label:
        parts.append(option.delivery_label)
    parts.append("GRATIS" if option.is_free else format_price(option.total_shipping_cost, currency))
    lines = [" - ".join(parts)]

    if option.package_count > 1:
        lines.append(
            f"Se dividirá en {option.package_count} paquetes debido a restricciones de tamaño o peso"
        )
    if rule.constraints.max_items:
        lines.append(f"Máximo {rule.constraints.max_items} productos por paquete")
    if rule.constraints.max_weight:
        lines.append(f"Peso máximo de {rule.constraints.max_weight}kg por paquete")
    if rule.carrier:
        lines.append(f"Transportista: {rule.carrier}")
    return "\n".join(lines)

