"""
Capacity Accounting - Modifier capacity usage under either policy.

All functions take values, never live references, so the same check
serves the builder (can this modifier be added to the deck?) and the
play flow (what do the attached modifiers cost?).
"""

from __future__ import annotations
from typing import Iterable, Mapping

from ..catalog import CardCatalog
from .rules import BuildRules, CapacityPolicy
from .state import Composition


def modifier_capacity_used(
    mod_counts: Mapping[str, int],
    catalog: CardCatalog,
    policy: CapacityPolicy,
) -> int:
    """
    Capacity consumed by a set of modifier counts.

    Cost-weighted: sum of count * cost. Slot-counted: sum of counts.
    """
    if policy == CapacityPolicy.SLOT_COUNTED:
        return sum(mod_counts.values())
    return sum(qty * catalog.cost_of(card_id) for card_id, qty in mod_counts.items())


def capacity_remaining(
    composition: Composition,
    catalog: CardCatalog,
    policy: CapacityPolicy,
) -> int:
    used = modifier_capacity_used(composition.mod_counts, catalog, policy)
    return max(composition.modifier_capacity - used, 0)


def can_add_modifier(
    composition: Composition,
    card_id: str,
    catalog: CardCatalog,
    rules: BuildRules,
) -> bool:
    """
    Whether one more copy of `card_id` fits in the composition's capacity.

    Under the cost-weighted policy a single expensive card can be
    un-addable even when nothing is used yet.
    """
    if rules.unbounded_modifiers:
        return True
    used = modifier_capacity_used(composition.mod_counts, catalog, rules.capacity_policy)
    if rules.capacity_as_count:
        return used < composition.modifier_capacity
    return used + catalog.cost_of(card_id) <= composition.modifier_capacity


def attached_cost(mods: Iterable[str], catalog: CardCatalog) -> int:
    return sum(catalog.cost_of(card_id) for card_id in mods)
