"""
Tests for the rule matcher.
"""
from storefront_shipping.models.shipping import Address, Zone
from storefront_shipping.modules.shipping.matcher import (
    canonical_state,
    match_rules,
    normalize_postal_code,
    normalize_text,
    rule_accepts_items,
    unshippable_items,
    zone_matches,
)


class TestNormalization:
    """Text, state and postal code normalization."""

    def test_normalize_text_strips_accents_and_case(self):
        assert normalize_text("  Nuevo  LEÓN ") == "nuevo leon"

    def test_canonical_state_from_name(self):
        assert canonical_state("Jalisco") == "JAL"
        assert canonical_state("Querétaro") == "QUE"

    def test_canonical_state_from_code_and_alias(self):
        assert canonical_state("jal") == "JAL"
        assert canonical_state("CDMX") == "CMX"
        assert canonical_state("Ciudad de México") == "CMX"
        assert canonical_state("Edo. Méx.") == "MEX"

    def test_unknown_state_stays_comparable(self):
        assert canonical_state("Provincia X") == "provincia x"

    def test_postal_code_ignores_spaces_and_dashes(self):
        assert normalize_postal_code(" 44-100 ") == "44100"


class TestZoneMatches:
    """Zone coverage checks against an address."""

    def test_national_zone_covers_everything(self, monterrey_address):
        assert zone_matches(Zone(national=True), monterrey_address)

    def test_exact_postal_code(self, guadalajara_address):
        assert zone_matches(Zone(postal_codes=("44100",)), guadalajara_address)
        assert not zone_matches(Zone(postal_codes=("44101",)), guadalajara_address)

    def test_postal_code_pattern(self, guadalajara_address, monterrey_address):
        zone = Zone(postal_codes=("44*",))
        assert zone_matches(zone, guadalajara_address)
        assert not zone_matches(zone, monterrey_address)

    def test_wildcard_pattern_matches_any_postal_code(self, monterrey_address):
        assert zone_matches(Zone(postal_codes=("*",)), monterrey_address)

    def test_state_by_code_matches_state_by_name(self, guadalajara_address):
        assert zone_matches(Zone(states=("JAL",)), guadalajara_address)
        assert zone_matches(Zone(states=("jalisco",)), guadalajara_address)
        assert not zone_matches(Zone(states=("NLE",)), guadalajara_address)

    def test_city_match_is_accent_insensitive(self):
        address = Address(postal_code="76000", state="Querétaro", city="Querétaro")
        assert zone_matches(Zone(cities=("queretaro",)), address)

    def test_empty_zone_matches_nothing(self, guadalajara_address):
        assert not zone_matches(Zone(), guadalajara_address)


class TestMatchRules:
    """Active rule filtering."""

    def test_matches_only_covering_active_rules(self, rules, guadalajara_address):
        matched = match_rules(guadalajara_address, rules)
        assert [r.id for r in matched] == ["gdl_local", "nacional_estandar", "express_jalisco"]

    def test_inactive_rule_never_matches(self, rules):
        address = Address(postal_code="06600", state="CDMX", city="Ciudad de México")
        matched = match_rules(address, rules)
        assert "cdmx_local" not in [r.id for r in matched]
        assert [r.id for r in matched] == ["nacional_estandar"]

    def test_incomplete_address_matches_nothing(self, rules):
        assert match_rules(Address(postal_code="44100"), rules) == []
        assert match_rules(Address(state="Jalisco"), rules) == []
        assert match_rules(None, rules) == []

    def test_no_rules(self, guadalajara_address):
        assert match_rules(guadalajara_address, []) == []


class TestProductRestrictions:
    """Per-product shipping restrictions."""

    def test_restricted_product_blocks_rule(self, rule_factory, item_factory):
        rule = rule_factory("express", restricted_product_ids=("sku-2",))
        assert rule_accepts_items(rule, [item_factory("sku-1")])
        assert not rule_accepts_items(rule, [item_factory("sku-1"), item_factory("sku-2")])

    def test_product_limited_to_listed_rules(self, rule_factory, item_factory):
        item = item_factory("fragil", shipping_rule_ids=("especial",))
        assert rule_accepts_items(rule_factory("especial"), [item])
        assert not rule_accepts_items(rule_factory("nacional"), [item])

    def test_unshippable_items(self, rule_factory, item_factory):
        rules = [rule_factory("a", restricted_product_ids=("sku-2",))]
        items = [item_factory("sku-1"), item_factory("sku-2")]
        assert [i.product_id for i in unshippable_items(rules, items)] == ["sku-2"]
