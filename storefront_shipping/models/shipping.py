"""
Shipping domain objects.

Carrier-agnostic, immutable dataclasses shared by the matcher, the package
allocator and the cost aggregator. Money and weights are Decimal; weights
are kilograms.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

ZERO = Decimal("0")


class ZoneType(str, Enum):
    """Kind of shipping offering, used for ranking options."""
    EXPRESS = "express"
    LOCAL = "local"
    NATIONAL = "national"
    INTERNATIONAL = "international"
    STANDARD = "standard"


# =============================================================================
# Checkout inputs
# =============================================================================

@dataclass(frozen=True)
class CartItem:
    """Snapshot of a cart line taken when checkout starts."""
    product_id: str
    unit_price: Decimal = ZERO
    quantity: int = 1
    unit_weight: Decimal = ZERO
    name: str = ""
    stock: Optional[int] = None
    # Non-empty means the product may only ship with these rules
    shipping_rule_ids: Tuple[str, ...] = ()

    @property
    def line_weight(self) -> Decimal:
        return self.unit_weight * self.quantity

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Address:
    """Destination address; matched against zones, never geocoded."""
    postal_code: str = ""
    state: str = ""
    city: str = ""
    street: str = ""
    number_ext: str = ""
    number_int: str = ""
    neighborhood: str = ""
    recipient_name: str = ""
    country_code: str = "MX"

    @property
    def is_complete(self) -> bool:
        return bool(self.postal_code.strip()) and bool(self.state.strip())


# =============================================================================
# Rule configuration
# =============================================================================

@dataclass(frozen=True)
class Zone:
    """Geographic coverage of a rule."""
    national: bool = False
    states: Tuple[str, ...] = ()
    cities: Tuple[str, ...] = ()
    # fnmatch-style patterns, e.g. "44100" or "44*"
    postal_codes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PackageConstraints:
    """Per-package limits and surcharges. None means unlimited."""
    max_items: Optional[int] = None
    max_weight: Optional[Decimal] = None
    extra_weight_cost: Decimal = ZERO
    extra_item_cost: Decimal = ZERO
    included_items: int = 1


@dataclass(frozen=True)
class WeightBracket:
    """Flat package price once the package weighs at least min_weight."""
    min_weight: Decimal
    price: Decimal


@dataclass(frozen=True)
class ShippingRule:
    """A configured shipping offering tied to a zone and a carrier."""
    id: str
    name: str = ""
    carrier: str = ""
    zone: Zone = field(default_factory=Zone)
    zone_type: ZoneType = ZoneType.STANDARD
    base_price: Decimal = ZERO
    min_days: Optional[int] = None
    max_days: Optional[int] = None
    constraints: PackageConstraints = field(default_factory=PackageConstraints)
    weight_brackets: Tuple[WeightBracket, ...] = ()
    free_shipping: bool = False
    free_shipping_threshold: Optional[Decimal] = None
    restricted_product_ids: Tuple[str, ...] = ()
    active: bool = True
    is_default: bool = False


# =============================================================================
# Allocation and pricing results
# =============================================================================

@dataclass(frozen=True)
class PackageCost:
    """Cost breakdown of one package."""
    base: Decimal = ZERO
    extra_weight: Decimal = ZERO
    extra_items: Decimal = ZERO
    total: Decimal = ZERO
    from_table: bool = False


@dataclass(frozen=True)
class Package:
    """A physical parcel produced by the allocator."""
    items: Tuple[CartItem, ...]
    weight: Decimal = ZERO
    cost: Optional[PackageCost] = None

    @property
    def item_count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ShippingOption:
    """A rule paired with its packages and total cost."""
    id: str
    rule: ShippingRule
    packages: Tuple[Package, ...]
    total_shipping_cost: Decimal
    is_free: bool = False
    free_reason: Optional[str] = None
    priority: int = 100
    min_days: Optional[int] = None
    max_days: Optional[int] = None
    delivery_label: str = ""
    description: str = ""

    @property
    def package_count(self) -> int:
        return len(self.packages)


@dataclass(frozen=True)
class ShippingQuote:
    """Everything the checkout needs to render shipping choices."""
    options: Tuple[ShippingOption, ...] = ()
    unshippable_product_ids: Tuple[str, ...] = ()
    selected_option_id: Optional[str] = None
    subtotal: Decimal = ZERO

    @property
    def is_shippable(self) -> bool:
        return bool(self.options)

    def get_option(self, option_id: str) -> Optional[ShippingOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


@dataclass(frozen=True)
class OrderTotals:
    """Order amounts once a shipping option is chosen."""
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal
    rule_id: str
    package_count: int
