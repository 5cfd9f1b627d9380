"""
Rule document normalizer.

Shipping rules are edited in the admin panel and stored as loosely typed,
Spanish-keyed documents (``zonas_envio``). Fields drifted over time: numbers
arrive as strings, delivery times live either on the rule or on its first
courier option, and coverage is encoded in three different ways. This
module turns one such document into a ShippingRule, or skips it.

Coverage encodings understood:
- ``zipcodes``: postal codes / patterns, ``estado_<abbr>`` entries and the
  ``nacional`` keyword
- ``cobertura_estados`` / ``cobertura_cp`` / ``cobertura_ciudades`` lists
- ``coverage_type`` + ``coverage_values`` (already-normalized documents)
"""
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from storefront_shipping.models.shipping import (
    ZERO,
    PackageConstraints,
    ShippingRule,
    WeightBracket,
    Zone,
    ZoneType,
)
from storefront_shipping.modules.shipping.constants import (
    EXPRESS_TERMS,
    LOCAL_TERMS,
    NATIONAL_KEYWORD,
    STATE_PREFIX,
    WILDCARD,
)
from storefront_shipping.modules.shipping.delivery import parse_delivery_window
from storefront_shipping.modules.shipping.matcher import normalize_text

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "1", "si", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off"}

_ZONE_TYPE_NAMES = {
    "express": ZoneType.EXPRESS,
    "local": ZoneType.LOCAL,
    "national": ZoneType.NATIONAL,
    "nacional": ZoneType.NATIONAL,
    "international": ZoneType.INTERNATIONAL,
    "internacional": ZoneType.INTERNATIONAL,
    "standard": ZoneType.STANDARD,
    "estandar": ZoneType.STANDARD,
}

_POSTAL_COVERAGE = {"zip", "zipcode", "postal_code", "por_codigo_postal", "cp"}
_STATE_COVERAGE = {"state", "estado", "por_estado"}
_CITY_COVERAGE = {"city", "ciudad", "por_ciudad"}
_NATIONAL_COVERAGE = {"national", "nacional"}

_THOUSANDS_PATTERN = re.compile(r"^-?\d{1,3}(,\d{3})+$")

# Prices and weights beyond this are data-entry errors, not amounts
MAX_AMOUNT = Decimal("1000000000")


# =============================================================================
# Lenient scalar parsing
# =============================================================================

def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a number stored as int, float or text ("$1,250.50", "2,000", "99,5").

    A comma followed by groups of three digits separates thousands; any other
    lone comma is a decimal point. Returns None for blanks, booleans, anything
    unparseable and amounts whose magnitude exceeds MAX_AMOUNT.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        text = str(value)
    elif isinstance(value, (int, float)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip().replace("$", "").replace(" ", "")
    else:
        return None

    if not text:
        return None
    if "," in text and "." in text:
        text = text.replace(",", "")
    elif _THOUSANDS_PATTERN.match(text):
        text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")

    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite() or abs(number) > MAX_AMOUNT:
        return None
    return number


def parse_int(value: Any) -> Optional[int]:
    number = parse_decimal(value)
    if number is None:
        return None
    return int(number)


def parse_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    text = normalize_text(str(value))
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return default


def _first_present(sources: Iterable[Mapping[str, Any]], *keys: str) -> Any:
    """First non-blank value for any of keys, searching sources in order."""
    for source in sources:
        for key in keys:
            value = source.get(key)
            if value is not None and value != "":
                return value
    return None


def _as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    if isinstance(value, str):
        return [part for part in (p.strip() for p in value.split(",")) if part]
    return [value]


def _positive_decimal(value: Any) -> Optional[Decimal]:
    number = parse_decimal(value)
    if number is None or number <= 0:
        return None
    return number


def _positive_int(value: Any) -> Optional[int]:
    number = parse_int(value)
    if number is None or number <= 0:
        return None
    return number


# =============================================================================
# Document sections
# =============================================================================

def _first_courier(doc: Mapping[str, Any]) -> Dict[str, Any]:
    couriers = doc.get("opciones_mensajeria")
    if isinstance(couriers, list):
        for courier in couriers:
            if isinstance(courier, dict):
                return courier
    return {}


def parse_zone(doc: Mapping[str, Any]) -> Zone:
    """Build the coverage zone of a rule document."""
    national = normalize_text(doc.get("zona") or "") == NATIONAL_KEYWORD
    states: List[str] = []
    postal_codes: List[str] = []
    cities: List[str] = []

    for entry in _as_list(doc.get("zipcodes")) + _as_list(doc.get("zipcode")):
        text = str(entry).strip()
        lowered = text.lower()
        if not text:
            continue
        if lowered == NATIONAL_KEYWORD:
            national = True
        elif lowered.startswith(STATE_PREFIX):
            states.append(text[len(STATE_PREFIX):])
        else:
            postal_codes.append(text)

    states.extend(str(s) for s in _as_list(doc.get("cobertura_estados")))
    postal_codes.extend(str(p) for p in _as_list(doc.get("cobertura_cp")))
    cities.extend(str(c) for c in _as_list(doc.get("cobertura_ciudades")))

    coverage_type = normalize_text(doc.get("coverage_type") or "").replace(" ", "_")
    coverage_values = [str(v) for v in _as_list(doc.get("coverage_values"))]
    if coverage_type in _NATIONAL_COVERAGE:
        national = True
    elif coverage_type in _POSTAL_COVERAGE:
        postal_codes.extend(coverage_values)
    elif coverage_type in _STATE_COVERAGE:
        states.extend(coverage_values)
    elif coverage_type in _CITY_COVERAGE:
        cities.extend(coverage_values)

    if not (national or states or postal_codes or cities):
        if normalize_text(doc.get("zona") or "") == "local":
            postal_codes.append(WILDCARD)
        else:
            logger.warning(
                f"Shipping rule {doc.get('id')!r} has no coverage data, treating it as national"
            )
            national = True

    return Zone(
        national=national,
        states=tuple(dict.fromkeys(s.strip() for s in states if s.strip())),
        cities=tuple(dict.fromkeys(c.strip() for c in cities if c.strip())),
        postal_codes=tuple(dict.fromkeys(p.strip() for p in postal_codes if p.strip())),
    )


def parse_constraints(doc: Mapping[str, Any], courier: Mapping[str, Any]) -> PackageConstraints:
    packages = doc.get("configuracion_paquetes") or courier.get("configuracion_paquetes") or {}
    variable = doc.get("envio_variable") or {}
    if not isinstance(packages, dict):
        packages = {}
    if not isinstance(variable, dict):
        variable = {}

    sources = (packages, doc, courier, variable)
    return PackageConstraints(
        max_items=_positive_int(_first_present(sources, "maximo_productos_por_paquete")),
        max_weight=_positive_decimal(
            _first_present(sources, "peso_maximo_paquete", "peso_maximo")
        ),
        extra_weight_cost=_positive_decimal(
            _first_present(sources, "costo_por_kg_extra")
        ) or ZERO,
        extra_item_cost=_positive_decimal(
            _first_present(sources, "costo_por_producto_extra")
        ) or ZERO,
        included_items=_positive_int(_first_present(sources, "productos_base")) or 1,
    )


def parse_weight_brackets(doc: Mapping[str, Any]) -> Tuple[WeightBracket, ...]:
    variable = doc.get("envio_variable")
    if not isinstance(variable, dict):
        return ()

    brackets = []
    for entry in _as_list(variable.get("reglas_peso")):
        if not isinstance(entry, dict):
            continue
        weight = parse_decimal(entry.get("peso"))
        price = parse_decimal(entry.get("precio"))
        if weight is None or price is None or weight < 0 or price < 0:
            logger.debug(f"Skipping malformed weight bracket in rule {doc.get('id')!r}: {entry}")
            continue
        brackets.append(WeightBracket(min_weight=weight, price=price))
    return tuple(sorted(brackets, key=lambda b: b.min_weight))


def parse_free_shipping_threshold(doc: Mapping[str, Any]) -> Optional[Decimal]:
    """
    Cart subtotal above which the rule ships free.

    The admin panel saves it inside ``envio_variable`` and only honours it
    while ``envio_variable.aplica`` is on; a top-level value always applies.
    """
    threshold = _positive_decimal(
        _first_present((doc,), "envio_gratis_monto_minimo", "free_shipping_threshold")
    )
    if threshold is not None:
        return threshold

    variable = doc.get("envio_variable")
    if not isinstance(variable, dict) or not parse_bool(variable.get("aplica"), False):
        return None
    return _positive_decimal(variable.get("envio_gratis_monto_minimo"))


def parse_delivery_days(
    doc: Mapping[str, Any], courier: Mapping[str, Any]
) -> Tuple[Optional[int], Optional[int]]:
    sources = (doc, courier)
    min_days = parse_int(_first_present(sources, "tiempo_minimo", "min_days", "minDays"))
    max_days = parse_int(_first_present(sources, "tiempo_maximo", "max_days", "maxDays"))

    if min_days is None or max_days is None:
        text = _first_present(sources, "tiempo_entrega", "tiempo")
        parsed_min, parsed_max = parse_delivery_window(str(text) if text is not None else None)
        min_days = parsed_min if min_days is None else min_days
        max_days = parsed_max if max_days is None else max_days

    if min_days is not None and min_days < 0:
        min_days = None
    if max_days is not None and max_days < 0:
        max_days = None
    return min_days, max_days


def parse_zone_type(doc: Mapping[str, Any], zone: Zone, carrier: str) -> ZoneType:
    explicit = normalize_text(_first_present((doc,), "tipo", "zone_type", "tipo_envio") or "")
    if explicit in _ZONE_TYPE_NAMES:
        return _ZONE_TYPE_NAMES[explicit]

    text = normalize_text(" ".join(str(doc.get(k) or "") for k in ("nombre", "zona")) + " " + carrier)
    if any(term in text for term in EXPRESS_TERMS):
        return ZoneType.EXPRESS
    if any(term in text for term in LOCAL_TERMS):
        return ZoneType.LOCAL
    if zone.national:
        return ZoneType.NATIONAL
    return ZoneType.STANDARD


def _restricted_ids(value: Any) -> Tuple[str, ...]:
    ids = []
    for entry in _as_list(value):
        if isinstance(entry, dict):
            entry = entry.get("id") or entry.get("productId")
        if entry:
            ids.append(str(entry))
    return tuple(ids)


# =============================================================================
# Public API
# =============================================================================

def normalize_rule(doc: Mapping[str, Any]) -> Optional[ShippingRule]:
    """
    Convert one stored rule document into a ShippingRule.

    Returns None when the document has no id. Unparseable numeric fields
    fall back to their defaults instead of failing the whole rule.
    """
    if not isinstance(doc, Mapping):
        logger.warning(f"Ignoring shipping rule that is not an object: {type(doc).__name__}")
        return None

    rule_id = doc.get("id")
    if rule_id is None or str(rule_id).strip() == "":
        logger.warning("Ignoring shipping rule document without an id")
        return None
    rule_id = str(rule_id).strip()

    courier = _first_courier(doc)
    zone = parse_zone(doc)
    carrier = str(_first_present((doc, courier), "carrier", "mensajeria", "nombre_mensajeria") or "")
    if not carrier and courier:
        carrier = str(courier.get("nombre") or "")

    base_price = parse_decimal(_first_present((doc,), "precio_base", "base_price"))
    if base_price is None or base_price == 0:
        # the admin form always writes precio_base 0 and prices the courier
        base_price = parse_decimal(courier.get("precio")) or base_price
    if base_price is None or base_price < 0:
        base_price = ZERO

    min_days, max_days = parse_delivery_days(doc, courier)

    return ShippingRule(
        id=rule_id,
        name=str(_first_present((doc,), "nombre", "zona", "name") or rule_id),
        carrier=carrier,
        zone=zone,
        zone_type=parse_zone_type(doc, zone, carrier),
        base_price=base_price,
        min_days=min_days,
        max_days=max_days,
        constraints=parse_constraints(doc, courier),
        weight_brackets=parse_weight_brackets(doc),
        free_shipping=parse_bool(_first_present((doc,), "envio_gratis", "free_shipping"), False),
        free_shipping_threshold=parse_free_shipping_threshold(doc),
        restricted_product_ids=_restricted_ids(
            _first_present((doc,), "productos_restringidos", "restricted_products")
        ),
        active=parse_bool(_first_present((doc,), "activo", "active"), True),
        is_default=parse_bool(_first_present((doc,), "default", "es_default", "is_default"), False),
    )


def normalize_rules(docs: Iterable[Mapping[str, Any]]) -> List[ShippingRule]:
    """Normalize a batch of documents, dropping the ones that cannot be used."""
    rules = []
    for doc in docs:
        rule = normalize_rule(doc)
        if rule is not None:
            rules.append(rule)
    return rules
