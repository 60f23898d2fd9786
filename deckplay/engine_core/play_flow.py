"""
Play Flow - Selecting one base card and attaching modifiers.

A play is a marker over the hand:
- start_play picks a base (replacing any unfinished play)
- toggle_attach adds or removes a modifier, within capacity
- finalize_play moves the base and its modifiers to discard as played
- cancel_play drops the selection

Only finalize touches the zones.
"""

from __future__ import annotations
import logging

from ..catalog import CardCatalog
from .action import ActionResult, ErrorCode
from .capacity import attached_cost
from .state import ActivePlay, DeckState, DiscardOrigin
from .zones import move_hand_to_discard

logger = logging.getLogger(__name__)

NULL_NOT_PLAYABLE = "Null cards can only be discarded."
BASE_REQUIRED_FOR_PLAY = "Select a base before playing modifiers."
BASE_REQUIRED_FOR_ATTACH = "Select a base before attaching modifiers."
BASE_NOT_IN_HAND = "That base card is not in your hand."


def start_play(state: DeckState, base_id: str, catalog: CardCatalog) -> ActionResult:
    """Begin a new play with `base_id`; any unfinished play is discarded."""
    if catalog.is_null(base_id):
        return ActionResult.failure(NULL_NOT_PLAYABLE, ErrorCode.INVALID_PLAY_TARGET)
    card = catalog.get_card(base_id)
    if card is None or not card.is_base:
        return ActionResult.failure(BASE_REQUIRED_FOR_PLAY, ErrorCode.INVALID_PLAY_TARGET)
    if state.hand_counts()[base_id] == 0:
        return ActionResult.failure(BASE_NOT_IN_HAND, ErrorCode.NOT_FOUND)

    if state.active_play is not None:
        logger.debug("Replacing unfinished play on %s", state.active_play.base_id)
    new_state = state._copy_with(active_play=ActivePlay(base_id=base_id))
    return ActionResult.success_with_state(new_state, changes=[f"Selected base {base_id}"])


def toggle_attach(state: DeckState, mod_id: str, catalog: CardCatalog) -> ActionResult:
    """
    Attach `mod_id` to the active play, or detach it if already attached.

    Attaching needs a copy in hand. The summed cost of the attached
    modifiers may not exceed the deck's modifier capacity, whichever
    capacity policy the builder uses.
    """
    if catalog.is_null(mod_id):
        return ActionResult.failure(NULL_NOT_PLAYABLE, ErrorCode.INVALID_PLAY_TARGET)
    play = state.active_play
    if play is None:
        return ActionResult.failure(
            BASE_REQUIRED_FOR_ATTACH,
            ErrorCode.INVALID_PLAY_TARGET,
            warning_card_id=mod_id,
        )
    if not catalog.is_modifier(mod_id):
        return ActionResult.failure(None, ErrorCode.NOT_A_MODIFIER)

    if mod_id in play.mods:
        mods = tuple(m for m in play.mods if m != mod_id)
        new_state = state._copy_with(active_play=ActivePlay(play.base_id, mods))
        return ActionResult.success_with_state(new_state, changes=[f"Detached {mod_id}"])

    if state.hand_counts()[mod_id] == 0:
        return ActionResult.failure(None, ErrorCode.CAPACITY_EXCEEDED)

    cost = attached_cost(play.mods, catalog) + catalog.cost_of(mod_id)
    if cost > state.composition.modifier_capacity:
        return ActionResult.failure(None, ErrorCode.CAPACITY_EXCEEDED)

    new_state = state._copy_with(active_play=ActivePlay(play.base_id, play.mods + (mod_id,)))
    return ActionResult.success_with_state(new_state, changes=[f"Attached {mod_id}"])


def finalize_play(state: DeckState) -> ActionResult:
    """Move one base and one of each attached modifier from hand to discard."""
    play = state.active_play
    if play is None:
        return ActionResult.failure(None, ErrorCode.NO_ACTIVE_PLAY)

    hand, discard = state.hand, state.discard
    for card_id in (play.base_id, *play.mods):
        hand, discard, _ = move_hand_to_discard(
            hand, discard, card_id, all=False, origin=DiscardOrigin.PLAYED
        )

    new_state = state._copy_with(hand=hand, discard=discard, active_play=None)
    played = ", ".join((play.base_id, *play.mods))
    return ActionResult.success_with_state(new_state, changes=[f"Played {played}"])


def cancel_play(state: DeckState) -> ActionResult:
    """Drop the active play. Calling it again is a no-op."""
    if state.active_play is None:
        return ActionResult.success_with_state(state)
    return ActionResult.success_with_state(
        state._copy_with(active_play=None),
        changes=["Cancelled play"],
    )
