"""
Tests for capacity accounting, composition validity and the catalog.
"""

import pytest

from ..catalog import CardCatalog, CardCategory, CardDefinition
from ..engine_core.capacity import (
    attached_cost,
    can_add_modifier,
    capacity_remaining,
    modifier_capacity_used,
)
from ..engine_core.composition import build_deck_ids, default_composition, validate_composition
from ..engine_core.rules import BuildRules, CapacityPolicy
from ..engine_core.state import Composition


class TestCapacity:

    def test_cost_weighted_usage(self, collapse_catalog):
        counts = {"empower": 2, "cleave": 1, "echo": 1}

        assert modifier_capacity_used(counts, collapse_catalog, CapacityPolicy.COST_WEIGHTED) == 9
        assert modifier_capacity_used(counts, collapse_catalog, CapacityPolicy.SLOT_COUNTED) == 4

    def test_remaining_never_negative(self, small_catalog):
        composition = Composition(mod_counts={"M1": 10}, modifier_capacity=4)

        assert capacity_remaining(composition, small_catalog, CapacityPolicy.COST_WEIGHTED) == 0

    def test_expensive_card_unaddable_on_empty_budget(self, collapse_catalog, rules):
        composition = Composition(mod_counts={}, modifier_capacity=3)

        assert can_add_modifier(composition, "cleave", collapse_catalog, rules)
        assert not can_add_modifier(composition, "echo", collapse_catalog, rules)

    def test_slot_counted_ignores_cost(self, collapse_catalog):
        rules = BuildRules(capacity_policy=CapacityPolicy.SLOT_COUNTED)
        composition = Composition(mod_counts={"echo": 2}, modifier_capacity=3)

        assert can_add_modifier(composition, "echo", collapse_catalog, rules)
        full = composition.with_mod_count("echo", 3)
        assert not can_add_modifier(full, "empower", collapse_catalog, rules)

    def test_attached_cost(self, collapse_catalog):
        assert attached_cost(("empower", "surge", "echo"), collapse_catalog) == 7
        assert attached_cost((), collapse_catalog) == 0


class TestValidateComposition:

    def test_default_composition_is_invalid(self, small_catalog, rules):
        validity = validate_composition(default_composition(small_catalog, rules), rules, small_catalog)

        assert not validity.base_valid
        assert validity.null_valid
        assert validity.mod_valid
        assert not validity.overall

    def test_over_capacity(self, small_catalog, rules):
        composition = Composition({"B1": 26}, {"M1": 6}, null_count=5, modifier_capacity=10)

        validity = validate_composition(composition, rules, small_catalog)

        assert validity.base_valid
        assert not validity.mod_valid

    def test_too_few_nulls(self, small_catalog, rules):
        composition = Composition({"B1": 26}, {"M1": 0}, null_count=4, modifier_capacity=10)

        assert not validate_composition(composition, rules, small_catalog).null_valid

    def test_simple_counters_skip_base_target(self, small_catalog):
        rules = BuildRules(simple_counters=True)
        composition = Composition({"B1": 3}, {"M1": 0}, null_count=5, modifier_capacity=10)

        assert validate_composition(composition, rules, small_catalog).overall


class TestBuildDeck:

    def test_order_and_counts(self, small_catalog):
        composition = Composition({"B1": 2}, {"M1": 1}, null_count=2, modifier_capacity=10)

        assert build_deck_ids(composition, small_catalog) == ["B1", "B1", "M1", "N", "N"]

    def test_no_null_card_in_catalog(self):
        catalog = CardCatalog([CardDefinition(id="B1", name="B", category=CardCategory.BASE)])
        composition = Composition({"B1": 1}, {}, null_count=5)

        assert build_deck_ids(composition, catalog) == ["B1"]


class TestCatalog:

    def test_collapse_catalog(self, collapse_catalog):
        assert [c.id for c in collapse_catalog.list_base_cards()] == ["strike", "guard", "dash"]
        assert len(collapse_catalog.list_modifier_cards()) == 6
        assert collapse_catalog.get_null_card().id == "static"
        assert collapse_catalog.cost_of("unknown") == 0

    def test_duplicate_ids_rejected(self):
        card = CardDefinition(id="x", name="X", category=CardCategory.BASE)

        with pytest.raises(ValueError):
            CardCatalog([card, card])

    def test_from_dict(self):
        card = CardDefinition.from_dict({
            "id": "zap",
            "name": "Zap",
            "type": "Modifier",
            "cost": 3,
            "details": [{"label": "Effect", "value": "+1"}],
        })

        assert card.is_modifier
        assert card.cost == 3
        assert card.details[0].label == "Effect"
