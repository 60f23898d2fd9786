"""
Reducer - Applies actions to deck state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state
- Validates before applying
- Returns ActionResult with success/failure
- A rejected action hands back no state; the caller keeps the old one
- Every shuffle is an in-place Fisher-Yates over a copy (random.Random.shuffle)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import random

from ..catalog import CardCatalog
from .action import Action, ActionResult, ActionType, ErrorCode
from .capacity import can_add_modifier
from .composition import build_deck_ids, default_composition
from .play_flow import cancel_play, finalize_play, start_play, toggle_attach
from .rules import BuildRules
from .state import DeckState, DiscardEntry, DiscardOrigin, Lifecycle, SavedDeck
from .zones import (
    move_hand_to_discard,
    take_from_discard,
    take_latest_from_discard,
    take_top,
    to_hand_entries,
)

logger = logging.getLogger(__name__)

SHUFFLE_BEFORE_DRAWING = "Shuffle the deck before drawing."
DECK_DEPLETED = "Deck depleted. Refill or rebuild to continue drawing."
HARD_SHUFFLE_PROMPT = "Commit a Hard Shuffle? This will randomize the remaining cards."

# Checked in this order: lock, then build, then shuffle
_DRAW_PRECONDITIONS = [
    (lambda lc: lc.is_locked, "Lock the deck before drawing."),
    (lambda lc: lc.is_built, "Build the deck before drawing."),
    (lambda lc: lc.is_shuffled, SHUFFLE_BEFORE_DRAWING),
]

_COMPOSITION_EDITS = {
    ActionType.ADJUST_BASE_COUNT,
    ActionType.ADJUST_MOD_COUNT,
    ActionType.ADJUST_NULL_COUNT,
    ActionType.ADJUST_MODIFIER_CAPACITY,
}


def new_deck_state(catalog: CardCatalog, rules: BuildRules) -> DeckState:
    """A builder at its defaults: unlocked, empty zones, default counts."""
    return DeckState(
        composition=default_composition(catalog, rules),
        hand_limit=rules.clamp_hand_limit(rules.default_hand_limit),
    )


@dataclass
class Reducer:
    """
    Reducer applies actions to deck state.

    Stateless apart from the random source - all state is in DeckState.
    Catalog and rules decide validity.
    """
    catalog: CardCatalog
    rules: BuildRules = field(default_factory=BuildRules)
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, state: DeckState, action: Action) -> ActionResult:
        """
        Apply an action to the deck state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return self._rejected(action, ActionResult.failure(validation_error, ErrorCode.DECK_LOCKED))

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                ErrorCode.NO_HANDLER,
            )

        try:
            result = handler(state, action)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), ErrorCode.HANDLER_ERROR)

        if not result.success:
            return self._rejected(action, result)
        return result

    def _validate_action(self, state: DeckState, action: Action) -> str | None:
        """
        Validate that an action is legal in the current lifecycle.

        Returns error message if invalid, None if valid.
        """
        if action.action_type in _COMPOSITION_EDITS and state.is_locked:
            return "Unlock the deck before editing it."
        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.ADJUST_BASE_COUNT: self._handle_adjust_base_count,
            ActionType.ADJUST_MOD_COUNT: self._handle_adjust_mod_count,
            ActionType.ADJUST_NULL_COUNT: self._handle_adjust_null_count,
            ActionType.ADJUST_MODIFIER_CAPACITY: self._handle_adjust_modifier_capacity,
            ActionType.SET_HAND_LIMIT: self._handle_set_hand_limit,
            ActionType.RESET_BUILDER: self._handle_reset_builder,
            ActionType.TOGGLE_LOCK: self._handle_toggle_lock,
            ActionType.SHUFFLE: self._handle_shuffle,
            ActionType.RESET_DECK: self._handle_reset_deck,
            ActionType.DRAW: self._handle_draw,
            ActionType.DISCARD_FROM_DECK: self._handle_discard_from_deck,
            ActionType.RETURN_DISCARD_TO_DECK: self._handle_return_discard_to_deck,
            ActionType.RETURN_DISCARD_GROUP_TO_DECK: self._handle_return_discard_group_to_deck,
            ActionType.RETURN_DISCARD_GROUP_TO_HAND: self._handle_return_discard_group_to_hand,
            ActionType.DISCARD_FROM_HAND: self._handle_discard_from_hand,
            ActionType.START_PLAY: lambda s, a: start_play(s, a.payload.card_id, self.catalog),
            ActionType.TOGGLE_ATTACH: lambda s, a: toggle_attach(s, a.payload.card_id, self.catalog),
            ActionType.FINALIZE_PLAY: lambda s, a: finalize_play(s),
            ActionType.CANCEL_PLAY: lambda s, a: cancel_play(s),
            ActionType.SAVE_DECK: self._handle_save_deck,
            ActionType.LOAD_SAVED_DECK: self._handle_load_saved_deck,
            ActionType.DELETE_SAVED_DECK: self._handle_delete_saved_deck,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Builder edits
    # =========================================================================

    def _handle_adjust_base_count(self, state: DeckState, action: Action) -> ActionResult:
        """Adjust a base count; silently refused past the base target."""
        card_id = action.payload.card_id
        card = self.catalog.get_card(card_id)
        if not card or not card.is_base:
            return ActionResult.failure(f"Unknown base card: {card_id}", ErrorCode.NOT_FOUND)

        composition = state.composition
        current = composition.base_counts.get(card_id, 0)
        next_count = max(current + action.payload.delta, 0)
        new_total = composition.base_total - current + next_count
        if not self.rules.simple_counters and new_total > self.rules.base_target:
            return ActionResult.failure(None, ErrorCode.CAPACITY_EXCEEDED)

        new_state = state._copy_with(composition=composition.with_base_count(card_id, next_count))
        return ActionResult.success_with_state(
            new_state, changes=[f"{card.name}: {current} -> {next_count}"]
        )

    def _handle_adjust_mod_count(self, state: DeckState, action: Action) -> ActionResult:
        """Adjust a modifier count; every added copy must fit capacity."""
        card_id = action.payload.card_id
        card = self.catalog.get_card(card_id)
        if not card or not card.is_modifier:
            return ActionResult.failure(f"Unknown modifier card: {card_id}", ErrorCode.NOT_FOUND)

        composition = state.composition
        current = composition.mod_counts.get(card_id, 0)
        delta = action.payload.delta
        if delta > 0:
            snapshot = composition
            for _ in range(delta):
                if not can_add_modifier(snapshot, card_id, self.catalog, self.rules):
                    return ActionResult.failure(None, ErrorCode.CAPACITY_EXCEEDED)
                snapshot = snapshot.with_mod_count(card_id, snapshot.mod_counts.get(card_id, 0) + 1)

        next_count = max(current + delta, 0)
        new_state = state._copy_with(composition=composition.with_mod_count(card_id, next_count))
        return ActionResult.success_with_state(
            new_state, changes=[f"{card.name}: {current} -> {next_count}"]
        )

    def _handle_adjust_null_count(self, state: DeckState, action: Action) -> ActionResult:
        composition = state.composition
        next_count = max(composition.null_count + action.payload.delta, self.rules.min_nulls)
        new_state = state._copy_with(composition=composition._copy_with(null_count=next_count))
        return ActionResult.success_with_state(new_state, changes=[f"Null cards: {next_count}"])

    def _handle_adjust_modifier_capacity(self, state: DeckState, action: Action) -> ActionResult:
        composition = state.composition
        capacity = max(composition.modifier_capacity + action.payload.delta, 0)
        new_state = state._copy_with(composition=composition._copy_with(modifier_capacity=capacity))
        return ActionResult.success_with_state(new_state, changes=[f"Modifier capacity: {capacity}"])

    def _handle_set_hand_limit(self, state: DeckState, action: Action) -> ActionResult:
        """Clamp to 0..max, and never below the cards already held."""
        value = action.payload.value
        if value is None:
            return ActionResult.failure("Hand limit must be a number.", ErrorCode.INVALID_ACTION)
        limit = max(self.rules.clamp_hand_limit(value), len(state.hand))
        return ActionResult.success_with_state(
            state._copy_with(hand_limit=limit), changes=[f"Hand limit: {limit}"]
        )

    def _handle_reset_builder(self, state: DeckState, action: Action) -> ActionResult:
        return ActionResult.success_with_state(
            new_deck_state(self.catalog, self.rules), changes=["Builder reset"]
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _handle_toggle_lock(self, state: DeckState, action: Action) -> ActionResult:
        """Lock builds and shuffles a fresh deck; locking again unlocks."""
        if state.is_locked:
            new_state = state._copy_with(lifecycle=Lifecycle.UNLOCKED, active_play=None)
            return ActionResult.success_with_state(new_state, changes=["Deck unlocked"])

        deck = self._shuffled(build_deck_ids(state.composition, self.catalog))
        new_state = state._copy_with(
            lifecycle=Lifecycle.LOCKED_BUILT,
            deck=tuple(deck),
            hand=(),
            discard=(),
            active_play=None,
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Deck locked and built ({len(deck)} cards)"],
            notice=SHUFFLE_BEFORE_DRAWING,
        )

    def _handle_shuffle(self, state: DeckState, action: Action) -> ActionResult:
        """
        Shuffle the remaining deck.

        Re-shuffling a primed deck needs confirmation. Hand and discard
        never go back into the deck.
        """
        if not state.is_locked:
            return ActionResult.failure("Lock the deck before shuffling.", ErrorCode.PRECONDITION_NOT_MET)
        if not state.has_built_deck:
            return ActionResult.failure("Build the deck before shuffling.", ErrorCode.PRECONDITION_NOT_MET)
        if state.has_shuffled_deck and not action.payload.confirmed:
            return ActionResult.failure(HARD_SHUFFLE_PROMPT, ErrorCode.CONFIRMATION_REQUIRED)

        new_state = state._copy_with(
            deck=tuple(self._shuffled(state.deck)),
            lifecycle=Lifecycle.LOCKED_READY,
        )
        return ActionResult.success_with_state(new_state, changes=["Deck shuffled"])

    def _handle_reset_deck(self, state: DeckState, action: Action) -> ActionResult:
        """Rebuild and shuffle from the composition, clearing hand and discard."""
        if not state.is_locked:
            return ActionResult.failure("Lock the deck before resetting it.", ErrorCode.PRECONDITION_NOT_MET)

        deck = self._shuffled(build_deck_ids(state.composition, self.catalog))
        new_state = state._copy_with(
            lifecycle=Lifecycle.LOCKED_READY,
            deck=tuple(deck),
            hand=(),
            discard=(),
            active_play=None,
        )
        return ActionResult.success_with_state(new_state, changes=[f"Deck reset ({len(deck)} cards)"])

    # =========================================================================
    # Zone moves
    # =========================================================================

    def _handle_draw(self, state: DeckState, action: Action) -> ActionResult:
        """Draw the top card into hand."""
        for satisfied, message in _DRAW_PRECONDITIONS:
            if not satisfied(state.lifecycle):
                return ActionResult.failure(message, ErrorCode.PRECONDITION_NOT_MET)

        if len(state.hand) >= state.hand_limit:
            return ActionResult.failure("Hand limit reached.", ErrorCode.HAND_FULL)
        if not state.deck:
            return ActionResult.failure(DECK_DEPLETED, ErrorCode.DECK_DEPLETED)

        deck, drawn = take_top(state.deck, 1)
        new_state = state._copy_with(deck=deck, hand=state.hand + to_hand_entries(drawn))
        return ActionResult.success_with_state(new_state, changes=[f"Drew {drawn[0]}"])

    def _handle_discard_from_deck(self, state: DeckState, action: Action) -> ActionResult:
        """Mill up to `count` cards off the top; stops when the deck runs out."""
        deck, taken = take_top(state.deck, action.payload.count)
        discard = state.discard + tuple(DiscardEntry(c, DiscardOrigin.DISCARDED) for c in taken)
        new_state = state._copy_with(deck=deck, discard=discard)
        return ActionResult.success_with_state(
            new_state, changes=[f"Discarded {len(taken)} card(s) from the deck"]
        )

    def _handle_return_discard_to_deck(self, state: DeckState, action: Action) -> ActionResult:
        """Put the whole discard pile back into the deck."""
        ids = [entry.card_id for entry in state.discard]
        if action.payload.shuffle:
            ids = self._shuffled(ids)

        deck = list(state.deck) + ids if action.payload.to_top else ids + list(state.deck)
        if action.payload.shuffle:
            deck = self._shuffled(deck)

        new_state = state._copy_with(deck=tuple(deck), discard=())
        return ActionResult.success_with_state(
            new_state, changes=[f"Returned {len(ids)} card(s) to the deck"]
        )

    def _handle_return_discard_group_to_deck(self, state: DeckState, action: Action) -> ActionResult:
        """Return one (or every) discarded copy of a card to the top of the deck."""
        discard, moved = take_from_discard(state.discard, action.payload.card_id, all=action.payload.all)
        if not moved:
            return ActionResult.failure(None, ErrorCode.NOT_FOUND)

        new_state = state._copy_with(deck=state.deck + tuple(moved), discard=discard)
        return ActionResult.success_with_state(
            new_state, changes=[f"Returned {len(moved)} x {action.payload.card_id} to the deck"]
        )

    def _handle_return_discard_group_to_hand(self, state: DeckState, action: Action) -> ActionResult:
        """Return discarded copies to hand, most recent first, as far as hand space allows."""
        space = state.hand_space
        if space <= 0:
            return ActionResult.failure(None, ErrorCode.HAND_FULL)

        discard, moved = take_latest_from_discard(
            state.discard, action.payload.card_id, limit=space, all=action.payload.all
        )
        if not moved:
            return ActionResult.failure(None, ErrorCode.NOT_FOUND)

        new_state = state._copy_with(hand=state.hand + to_hand_entries(moved), discard=discard)
        return ActionResult.success_with_state(
            new_state, changes=[f"Returned {len(moved)} x {action.payload.card_id} to hand"]
        )

    def _handle_discard_from_hand(self, state: DeckState, action: Action) -> ActionResult:
        payload = action.payload
        hand, discard, moved = move_hand_to_discard(
            state.hand, state.discard, payload.card_id, all=payload.all, origin=payload.origin
        )
        if not moved:
            return ActionResult.failure(None, ErrorCode.NOT_FOUND)

        new_state = state._copy_with(hand=hand, discard=discard)
        return ActionResult.success_with_state(
            new_state, changes=[f"Discarded {moved} x {payload.card_id} from hand"]
        )

    # =========================================================================
    # Saved decks
    # =========================================================================

    def _handle_save_deck(self, state: DeckState, action: Action) -> ActionResult:
        name = (action.payload.name or "").strip()
        if not name:
            return ActionResult.failure("Deck name is required.", ErrorCode.INVALID_ACTION)

        saved = SavedDeck(
            name=name,
            deck=state.deck,
            composition=state.composition,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        new_state = state._copy_with(
            deck_name=name,
            saved_decks={**state.saved_decks, name: saved},
        )
        return ActionResult.success_with_state(new_state, changes=[f"Saved deck {name}"])

    def _handle_load_saved_deck(self, state: DeckState, action: Action) -> ActionResult:
        """Restore a saved deck; the builder comes back unlocked with empty hand and discard."""
        saved = state.saved_decks.get(action.payload.name or "")
        if not saved:
            return ActionResult.failure(f"No saved deck named {action.payload.name}", ErrorCode.NOT_FOUND)

        new_state = state._copy_with(
            composition=saved.composition,
            deck=saved.deck,
            hand=(),
            discard=(),
            deck_name=saved.name,
            lifecycle=Lifecycle.UNLOCKED,
            active_play=None,
        )
        return ActionResult.success_with_state(new_state, changes=[f"Loaded deck {saved.name}"])

    def _handle_delete_saved_deck(self, state: DeckState, action: Action) -> ActionResult:
        name = action.payload.name or ""
        if name not in state.saved_decks:
            return ActionResult.failure(f"No saved deck named {name}", ErrorCode.NOT_FOUND)

        remaining = {k: v for k, v in state.saved_decks.items() if k != name}
        return ActionResult.success_with_state(
            state._copy_with(saved_decks=remaining), changes=[f"Deleted deck {name}"]
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _shuffled(self, ids) -> list[str]:
        """Uniform Fisher-Yates permutation of a copy of `ids`."""
        out = list(ids)
        self.rng.shuffle(out)
        return out

    def _rejected(self, action: Action, result: ActionResult) -> ActionResult:
        logger.debug(
            "Rejected %s: %s (%s)",
            action.action_type.value,
            result.error or "silent",
            result.error_code.value if result.error_code else "-",
        )
        return result


def apply_action(
    catalog: CardCatalog,
    state: DeckState,
    action: Action,
    rules: BuildRules | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(catalog=catalog, rules=rules or BuildRules())
    return reducer.apply(state, action)
