"""
Engine Core - Deterministic deck state management.

The engine is the runtime that:
1. Takes a CardCatalog and BuildRules
2. Manages DeckState (composition, lifecycle, zones)
3. Validates compositions and modifier capacity
4. Applies actions via the reducer
5. Runs the play selection flow over the hand
"""

from .rules import BuildRules, CapacityPolicy
from .state import (
    ActivePlay,
    Composition,
    DeckHealth,
    DeckState,
    DiscardEntry,
    DiscardOrigin,
    HandEntry,
    HandState,
    Lifecycle,
    SavedDeck,
)
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .capacity import (
    attached_cost,
    can_add_modifier,
    capacity_remaining,
    modifier_capacity_used,
)
from .composition import CompositionValidity, validate_composition, build_deck_ids
from .reducer import Reducer, apply_action, new_deck_state

__all__ = [
    "BuildRules",
    "CapacityPolicy",
    "ActivePlay",
    "Composition",
    "DeckHealth",
    "DeckState",
    "DiscardEntry",
    "DiscardOrigin",
    "HandEntry",
    "HandState",
    "Lifecycle",
    "SavedDeck",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "attached_cost",
    "can_add_modifier",
    "capacity_remaining",
    "modifier_capacity_used",
    "CompositionValidity",
    "validate_composition",
    "build_deck_ids",
    "Reducer",
    "apply_action",
    "new_deck_state",
]
