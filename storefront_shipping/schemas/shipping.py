"""
Shipping Schemas

Pydantic models for the shipping API and their conversion to and from the
shipping domain objects. Money and weights come in as decimals and go out
as floats rounded to cents.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront_shipping.models.shipping import (
    Address,
    CartItem,
    OrderTotals,
    Package,
    ShippingOption,
    ShippingQuote,
)


# ==================== Request Schemas ====================


class CartItemIn(BaseModel):
    """A cart line as sent by the checkout."""
    product_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field("", max_length=200)
    unit_price: Decimal = Field(Decimal("0"), ge=0, le=10_000_000)
    quantity: int = Field(1, ge=1, le=999)
    unit_weight: Decimal = Field(Decimal("0"), ge=0, le=100_000, description="Weight in kg")
    stock: Optional[int] = Field(None, ge=0)
    shipping_rule_ids: List[str] = Field(
        default_factory=list,
        description="When set, the product may only ship with these rules",
    )

    def to_domain(self) -> CartItem:
        return CartItem(
            product_id=self.product_id,
            unit_price=self.unit_price,
            quantity=self.quantity,
            unit_weight=self.unit_weight,
            name=self.name,
            stock=self.stock,
            shipping_rule_ids=tuple(self.shipping_rule_ids),
        )


class AddressIn(BaseModel):
    """Destination address. Only postal code and state are needed to quote."""
    postal_code: str = Field("", max_length=20)
    state: str = Field("", max_length=100)
    city: str = Field("", max_length=100)
    street: str = Field("", max_length=200)
    number_ext: str = Field("", max_length=20)
    number_int: str = Field("", max_length=20)
    neighborhood: str = Field("", max_length=100)
    recipient_name: str = Field("", max_length=100)
    country_code: str = Field("MX", min_length=2, max_length=2)

    @field_validator("country_code")
    @classmethod
    def validate_country_code(cls, v):
        return v.upper()

    @field_validator("postal_code", "state", "city")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip()

    def to_domain(self) -> Address:
        return Address(**self.model_dump())


class ShippingOptionsRequest(BaseModel):
    """Request the shipping options for a cart."""
    items: List[CartItemIn] = Field(default_factory=list, max_length=200)
    address: Optional[AddressIn] = None
    session_id: Optional[str] = Field(None, max_length=128, description="Checkout session id")

    def domain_items(self) -> List[CartItem]:
        return [item.to_domain() for item in self.items]

    def domain_address(self) -> Optional[Address]:
        return self.address.to_domain() if self.address else None


class OrderTotalsRequest(ShippingOptionsRequest):
    """Compute order totals for the chosen shipping rule."""
    rule_id: str = Field(..., min_length=1, max_length=128)


# ==================== Response Schemas ====================


class PackageItemResponse(BaseModel):
    product_id: str
    name: str
    quantity: int
    weight: float


class PackageResponse(BaseModel):
    """A parcel and its cost breakdown."""
    items: List[PackageItemResponse]
    item_count: int
    weight: float
    base_cost: float
    extra_weight_cost: float
    extra_item_cost: float
    total_cost: float
    priced_from_table: bool = False

    @classmethod
    def from_domain(cls, package: Package) -> "PackageResponse":
        cost = package.cost
        return cls(
            items=[
                PackageItemResponse(
                    product_id=item.product_id,
                    name=item.name,
                    quantity=item.quantity,
                    weight=float(item.line_weight),
                )
                for item in package.items
            ],
            item_count=package.item_count,
            weight=float(package.weight),
            base_cost=float(cost.base) if cost else 0.0,
            extra_weight_cost=float(cost.extra_weight) if cost else 0.0,
            extra_item_cost=float(cost.extra_items) if cost else 0.0,
            total_cost=float(cost.total) if cost else 0.0,
            priced_from_table=cost.from_table if cost else False,
        )


class ShippingOptionResponse(BaseModel):
    """One shippable option."""
    id: str
    rule_id: str
    name: str
    carrier: str
    zone_type: str
    total_shipping_cost: float
    is_free: bool
    free_reason: Optional[str] = None
    priority: int
    package_count: int
    min_days: Optional[int] = None
    max_days: Optional[int] = None
    delivery_label: str = ""
    description: str = ""
    is_default: bool = False
    packages: List[PackageResponse] = []

    @classmethod
    def from_domain(cls, option: ShippingOption) -> "ShippingOptionResponse":
        rule = option.rule
        return cls(
            id=option.id,
            rule_id=rule.id,
            name=rule.name,
            carrier=rule.carrier,
            zone_type=rule.zone_type.value,
            total_shipping_cost=float(option.total_shipping_cost),
            is_free=option.is_free,
            free_reason=option.free_reason,
            priority=option.priority,
            package_count=option.package_count,
            min_days=option.min_days,
            max_days=option.max_days,
            delivery_label=option.delivery_label,
            description=option.description,
            is_default=rule.is_default,
            packages=[PackageResponse.from_domain(p) for p in option.packages],
        )


class ShippingQuoteResponse(BaseModel):
    """All shipping options for a cart, best first."""
    options: List[ShippingOptionResponse] = []
    selected_option_id: Optional[str] = None
    unshippable_product_ids: List[str] = []
    is_shippable: bool = False
    subtotal: float = 0.0

    @classmethod
    def from_domain(cls, quote: ShippingQuote) -> "ShippingQuoteResponse":
        return cls(
            options=[ShippingOptionResponse.from_domain(o) for o in quote.options],
            selected_option_id=quote.selected_option_id,
            unshippable_product_ids=list(quote.unshippable_product_ids),
            is_shippable=quote.is_shippable,
            subtotal=float(quote.subtotal),
        )


class OrderTotalsResponse(BaseModel):
    """Order amounts for the chosen shipping rule."""
    rule_id: str
    subtotal: float
    shipping_cost: float
    total: float
    package_count: int

    @classmethod
    def from_domain(cls, totals: OrderTotals) -> "OrderTotalsResponse":
        return cls(
            rule_id=totals.rule_id,
            subtotal=float(totals.subtotal),
            shipping_cost=float(totals.shipping_cost),
            total=float(totals.total),
            package_count=totals.package_count,
        )
