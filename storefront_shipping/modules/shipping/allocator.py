"""
Package Allocator

Partitions cart items into packages under a rule's per-package constraints.

Items are walked in input order and greedily added to the current package
until the next one would break the item-count or weight limit, at which point
a new package is opened. A single item that alone exceeds the weight limit
still ships, alone in its own package.
"""
import logging
from decimal import Decimal
from typing import List, Sequence

from storefront_shipping.models.shipping import (
    ZERO,
    CartItem,
    Package,
    PackageConstraints,
    ShippingRule,
)

logger = logging.getLogger(__name__)


def can_add_item(
    items: Sequence[CartItem],
    weight: Decimal,
    item: CartItem,
    constraints: PackageConstraints,
) -> bool:
    """True when item fits into a package currently holding items/weight."""
    if constraints.max_items and len(items) + 1 > constraints.max_items:
        return False
    if constraints.max_weight and weight + item.line_weight > constraints.max_weight:
        return False
    return True


def allocate_packages(rule: ShippingRule, items: Sequence[CartItem]) -> List[Package]:
    """
    Split cart items into packages for one rule.

    Every item lands in exactly one package and no package is empty.
    """
    if not items:
        return []

    constraints = rule.constraints

    if constraints.max_items == 1:
        return [Package(items=(item,), weight=item.line_weight) for item in items]

    packages: List[Package] = []
    current: List[CartItem] = []
    current_weight = ZERO

    for item in items:
        if current and not can_add_item(current, current_weight, item, constraints):
            packages.append(Package(items=tuple(current), weight=current_weight))
            current = []
            current_weight = ZERO

        current.append(item)
        current_weight += item.line_weight

    if current:
        packages.append(Package(items=tuple(current), weight=current_weight))

    if constraints.max_weight:
        oversized = [p for p in packages if p.weight > constraints.max_weight]
        if oversized:
            logger.info(
                f"Rule {rule.id}: {len(oversized)} single-item package(s) exceed "
                f"max weight {constraints.max_weight}kg"
            )

    return packages
