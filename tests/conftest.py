"""
Pytest configuration and fixtures for storefront shipping tests.
"""
import os
from decimal import Decimal
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SHIPPING_RULE_STORE"] = "memory"

from storefront_shipping.models.shipping import (  # noqa: E402
    Address,
    CartItem,
    PackageConstraints,
    ShippingRule,
    Zone,
    ZoneType,
)
from storefront_shipping.modules.shipping.normalizer import normalize_rules  # noqa: E402
from storefront_shipping.services.rule_store import BaseRuleStore  # noqa: E402


def make_item(product_id: str, weight: str = "1", price: str = "100", quantity: int = 1, **kwargs) -> CartItem:
    return CartItem(
        product_id=product_id,
        unit_price=Decimal(price),
        quantity=quantity,
        unit_weight=Decimal(weight),
        name=kwargs.pop("name", f"Producto {product_id}"),
        **kwargs,
    )


def make_rule(rule_id: str = "rule", **kwargs) -> ShippingRule:
    kwargs.setdefault("zone", Zone(national=True))
    kwargs.setdefault("base_price", Decimal("100"))
    return ShippingRule(id=rule_id, name=kwargs.pop("name", rule_id), **kwargs)


@pytest.fixture
def guadalajara_address() -> Address:
    return Address(
        postal_code="44100",
        state="Jalisco",
        city="Guadalajara",
        street="Av. Juárez",
        number_ext="123",
        neighborhood="Centro",
        recipient_name="Cliente Prueba",
    )


@pytest.fixture
def monterrey_address() -> Address:
    return Address(postal_code="64000", state="Nuevo León", city="Monterrey")


@pytest.fixture
def cart_items() -> List[CartItem]:
    return [
        make_item("sku-1", weight="2", price="350"),
        make_item("sku-2", weight="3", price="120", quantity=2),
        make_item("sku-3", weight="0.5", price="80"),
    ]


@pytest.fixture
def rule_documents() -> List[Dict[str, Any]]:
    """Rule documents as the admin panel stores them."""
    return [
        {
            "id": "gdl_local",
            "nombre": "Envío Local Guadalajara",
            "zona": "Local",
            "zipcodes": ["44*", "45100"],
            "precio_base": 60,
            "tiempo_entrega": "1-2 días",
            "configuracion_paquetes": {
                "maximo_productos_por_paquete": 5,
                "peso_maximo_paquete": 10,
                "costo_por_kg_extra": 15,
            },
            "activo": True,
        },
        {
            "id": "nacional_estandar",
            "nombre": "Envío Nacional",
            "zipcodes": ["nacional"],
            "precio_base": "150.00",
            "opciones_mensajeria": [
                {"nombre": "Estafeta", "precio": 150, "tiempo_entrega": "3-5 días"},
            ],
            "configuracion_paquetes": {"peso_maximo_paquete": 20},
            "envio_gratis_monto_minimo": 2000,
            "default": True,
        },
        {
            "id": "express_jalisco",
            "nombre": "Express 24h Jalisco",
            "zipcodes": ["estado_JAL"],
            "precio_base": 250,
            "tiempo_minimo": 1,
            "tiempo_maximo": 1,
        },
        {
            "id": "cdmx_local",
            "nombre": "Local CDMX",
            "zipcodes": ["estado_CDMX"],
            "precio_base": 50,
            "activo": False,
        },
    ]


@pytest.fixture
def rules(rule_documents) -> List[ShippingRule]:
    return normalize_rules(rule_documents)


@pytest.fixture
def national_rule() -> ShippingRule:
    return make_rule(
        "nacional",
        zone_type=ZoneType.NATIONAL,
        base_price=Decimal("150"),
        constraints=PackageConstraints(max_weight=Decimal("10"), extra_weight_cost=Decimal("20")),
    )


@pytest.fixture
def mock_rule_store(rule_documents) -> AsyncMock:
    """Create mock rule store returning the sample documents."""
    store = AsyncMock(spec=BaseRuleStore)
    store.name = "mock"
    store.fetch_rule_documents = AsyncMock(return_value=rule_documents)
    store.close = AsyncMock()
    return store


@pytest.fixture
def item_factory():
    """Build CartItem objects from short string amounts."""
    return make_item


@pytest.fixture
def rule_factory():
    """Build ShippingRule objects; national coverage and base price 100 by default."""
    return make_rule
