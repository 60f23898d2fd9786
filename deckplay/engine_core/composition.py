"""
Composition - Deck-build validity and deck materialization.

Validates that:
1. Base cards add up to the target (strict mode only)
2. There are enough null cards
3. Modifier usage fits in the modifier capacity
"""

from __future__ import annotations
from dataclasses import dataclass

from ..catalog import CardCatalog
from .capacity import modifier_capacity_used
from .rules import BuildRules
from .state import Composition


@dataclass(frozen=True)
class CompositionValidity:
    """Result of validating a composition, one flag per rule."""
    base_valid: bool
    null_valid: bool
    mod_valid: bool

    @property
    def overall(self) -> bool:
        return self.base_valid and self.null_valid and self.mod_valid


def validate_composition(
    composition: Composition,
    rules: BuildRules,
    catalog: CardCatalog,
) -> CompositionValidity:
    """Check a composition against the build rules. Pure."""
    base_valid = rules.simple_counters or composition.base_total == rules.base_target
    null_valid = composition.null_count >= rules.min_nulls
    if rules.unbounded_modifiers:
        mod_valid = True
    else:
        used = modifier_capacity_used(composition.mod_counts, catalog, rules.capacity_policy)
        mod_valid = used <= composition.modifier_capacity
    return CompositionValidity(base_valid=base_valid, null_valid=null_valid, mod_valid=mod_valid)


def build_deck_ids(composition: Composition, catalog: CardCatalog) -> list[str]:
    """
    Expand counts into a flat, unshuffled list of card ids.

    Order: base cards, then modifiers, then nulls. Nulls are skipped
    when the catalog has no null card.
    """
    out: list[str] = []
    for card_id, qty in composition.base_counts.items():
        out.extend([card_id] * qty)
    for card_id, qty in composition.mod_counts.items():
        out.extend([card_id] * qty)
    null_id = catalog.null_id
    if null_id and composition.null_count:
        out.extend([null_id] * composition.null_count)
    return out


def default_composition(catalog: CardCatalog, rules: BuildRules) -> Composition:
    """Zeroed counts for every catalog card, plus simple-counter seeding."""
    composition = Composition(
        base_counts={c.id: 0 for c in catalog.list_base_cards()},
        mod_counts={c.id: 0 for c in catalog.list_modifier_cards()},
        null_count=rules.min_nulls,
        modifier_capacity=rules.default_modifier_capacity,
    )
    return apply_initial_counts(composition, catalog, rules)


def apply_initial_counts(
    composition: Composition,
    catalog: CardCatalog,
    rules: BuildRules,
) -> Composition:
    """
    Seed the primary base/modifier card in simple-counters mode.

    Only applies to an empty map; existing counts are left alone.
    """
    if not rules.simple_counters:
        return composition

    bases = catalog.list_base_cards()
    mods = catalog.list_modifier_cards()
    if bases and composition.base_total == 0:
        initial = rules.base_initial_count
        composition = composition.with_base_count(
            bases[0].id, rules.base_target if initial is None else initial
        )
    if mods and composition.mod_total == 0:
        initial = rules.mod_initial_count
        composition = composition.with_mod_count(
            mods[0].id, rules.default_modifier_capacity if initial is None else initial
        )
    return composition
