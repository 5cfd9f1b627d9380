"""
Tests for the package allocator.
"""
from collections import Counter
from decimal import Decimal

import pytest

from storefront_shipping.models.shipping import PackageConstraints
from storefront_shipping.modules.shipping.allocator import allocate_packages, can_add_item


def limited_rule(rule_factory, max_items=None, max_weight=None):
    return rule_factory(
        "limited",
        constraints=PackageConstraints(
            max_items=max_items,
            max_weight=Decimal(max_weight) if max_weight is not None else None,
        ),
    )


class TestAllocatePackages:
    """Greedy in-order allocation."""

    def test_empty_cart_has_no_packages(self, rule_factory):
        assert allocate_packages(rule_factory(), []) == []

    def test_no_limits_single_package(self, rule_factory, cart_items):
        packages = allocate_packages(rule_factory(), cart_items)
        assert len(packages) == 1
        assert packages[0].items == tuple(cart_items)
        # 2 + 3x2 + 0.5
        assert packages[0].weight == Decimal("8.5")

    def test_weight_limit_splits_in_order(self, rule_factory, item_factory):
        items = [item_factory(f"sku-{n}", weight="5") for n in range(1, 4)]
        packages = allocate_packages(limited_rule(rule_factory, max_weight="10"), items)

        assert [[i.product_id for i in p.items] for p in packages] == [
            ["sku-1", "sku-2"],
            ["sku-3"],
        ]
        assert [p.weight for p in packages] == [Decimal("10"), Decimal("5")]

    def test_single_item_per_package(self, rule_factory, cart_items):
        packages = allocate_packages(limited_rule(rule_factory, max_items=1), cart_items)
        assert len(packages) == len(cart_items)
        assert all(p.item_count == 1 for p in packages)

    def test_item_count_limit(self, rule_factory, item_factory):
        items = [item_factory(f"sku-{n}") for n in range(5)]
        packages = allocate_packages(limited_rule(rule_factory, max_items=2), items)
        assert [p.item_count for p in packages] == [2, 2, 1]

    def test_oversized_item_ships_alone(self, rule_factory, item_factory):
        heavy = item_factory("heavy", weight="50")
        packages = allocate_packages(limited_rule(rule_factory, max_weight="10"), [heavy])
        assert len(packages) == 1
        assert packages[0].items == (heavy,)
        assert packages[0].weight == Decimal("50")

    def test_oversized_item_not_combined(self, rule_factory, item_factory):
        items = [
            item_factory("light", weight="2"),
            item_factory("heavy", weight="50"),
            item_factory("light-2", weight="2"),
        ]
        packages = allocate_packages(limited_rule(rule_factory, max_weight="10"), items)
        assert [[i.product_id for i in p.items] for p in packages] == [
            ["light"],
            ["heavy"],
            ["light-2"],
        ]

    def test_quantity_counts_toward_line_weight(self, rule_factory, item_factory):
        items = [item_factory("a", weight="4", quantity=2), item_factory("b", weight="3")]
        packages = allocate_packages(limited_rule(rule_factory, max_weight="10"), items)
        assert [p.weight for p in packages] == [Decimal("8"), Decimal("3")]

    @pytest.mark.parametrize("max_items,max_weight", [
        (None, None),
        (1, None),
        (2, None),
        (None, "4"),
        (3, "6"),
    ])
    def test_every_item_lands_in_exactly_one_package(
        self, rule_factory, item_factory, max_items, max_weight
    ):
        items = [item_factory(f"sku-{n}", weight=str(n)) for n in range(1, 7)]
        packages = allocate_packages(limited_rule(rule_factory, max_items, max_weight), items)

        allocated = Counter(i.product_id for p in packages for i in p.items)
        assert allocated == Counter(i.product_id for i in items)
        assert all(p.items for p in packages)

    def test_multi_item_packages_respect_limits(self, rule_factory, item_factory):
        items = [item_factory(f"sku-{n}", weight=str(n)) for n in range(1, 7)]
        packages = allocate_packages(limited_rule(rule_factory, 3, "6"), items)
        for package in packages:
            assert package.item_count <= 3
            if package.item_count > 1:
                assert package.weight <= Decimal("6")


class TestCanAddItem:
    """Limit checks for adding one more item."""

    def test_within_limits(self, item_factory):
        constraints = PackageConstraints(max_items=3, max_weight=Decimal("10"))
        assert can_add_item([item_factory("a")], Decimal("1"), item_factory("b"), constraints)

    def test_weight_exactly_at_limit_fits(self, item_factory):
        constraints = PackageConstraints(max_weight=Decimal("10"))
        assert can_add_item([item_factory("a")], Decimal("5"), item_factory("b", weight="5"), constraints)

    def test_over_item_limit(self, item_factory):
        constraints = PackageConstraints(max_items=1)
        assert not can_add_item([item_factory("a")], Decimal("1"), item_factory("b"), constraints)
