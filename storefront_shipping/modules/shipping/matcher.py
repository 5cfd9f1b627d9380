"""
Rule Matcher

Filters configured shipping rules down to the active rules whose zone covers
a destination address, and checks whether a rule may carry every cart item.
Incomplete addresses and empty rule lists simply produce no matches.
"""
import logging
import unicodedata
from fnmatch import fnmatchcase
from typing import Iterable, List, Sequence

from storefront_shipping.models.shipping import Address, CartItem, ShippingRule, Zone
from storefront_shipping.modules.shipping.constants import STATE_ALIASES, STATE_CODES

logger = logging.getLogger(__name__)

_KNOWN_CODES = set(STATE_CODES.values())


def normalize_text(value: str) -> str:
    """Lower-case, accent-free, single-spaced text."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.replace(".", " ").lower().split())


def canonical_state(value: str) -> str:
    """
    Map a state name or abbreviation to its ISO code.

    Unknown values come back as normalized text so free-form rule data can
    still match free-form addresses.
    """
    text = normalize_text(value)
    if not text:
        return ""
    if text.upper() in _KNOWN_CODES:
        return text.upper()
    return STATE_CODES.get(text) or STATE_ALIASES.get(text) or text


def normalize_postal_code(value: str) -> str:
    return "".join(str(value or "").split()).replace("-", "")


def zone_matches(zone: Zone, address: Address) -> bool:
    """True when the zone covers the address."""
    if zone.national:
        return True

    postal_code = normalize_postal_code(address.postal_code)
    if postal_code and any(
        fnmatchcase(postal_code, normalize_postal_code(pattern))
        for pattern in zone.postal_codes
    ):
        return True

    state = canonical_state(address.state)
    if state and any(canonical_state(s) == state for s in zone.states):
        return True

    city = normalize_text(address.city)
    if city and any(normalize_text(c) == city for c in zone.cities):
        return True

    return False


def match_rules(address: Address, rules: Iterable[ShippingRule]) -> List[ShippingRule]:
    """
    Active rules whose zone covers the address, in input order.

    Returns an empty list for an incomplete address.
    """
    if address is None or not address.is_complete:
        logger.debug("Address incomplete, no shipping rules matched")
        return []

    matched = [rule for rule in rules if rule.active is True and zone_matches(rule.zone, address)]
    logger.debug(
        f"Matched {len(matched)} rule(s) for postal code {address.postal_code!r}, "
        f"state {address.state!r}"
    )
    return matched


def item_allowed(rule: ShippingRule, item: CartItem) -> bool:
    """True when the rule may carry this cart item."""
    if item.product_id in rule.restricted_product_ids:
        return False
    if item.shipping_rule_ids and rule.id not in item.shipping_rule_ids:
        return False
    return True


def rule_accepts_items(rule: ShippingRule, items: Sequence[CartItem]) -> bool:
    """True when the rule may carry the whole cart."""
    return all(item_allowed(rule, item) for item in items)


def unshippable_items(rules: Sequence[ShippingRule], items: Sequence[CartItem]) -> List[CartItem]:
    """Cart items that none of the rules may carry."""
    return [item for item in items if not any(item_allowed(rule, item) for rule in rules)]
