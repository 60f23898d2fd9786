"""
Action System - Actions, payloads, and results.

Actions represent:
1. Builder edits (adjust counts, capacity, hand limit)
2. Deck lifecycle commands (lock/unlock, shuffle, reset)
3. Zone moves (draw, discard, return)
4. Play selection (start, attach, finalize, cancel)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import DiscardOrigin


class ActionType(Enum):
    """Types of actions in the system."""
    # Builder edits
    ADJUST_BASE_COUNT = "adjust_base_count"
    ADJUST_MOD_COUNT = "adjust_mod_count"
    ADJUST_NULL_COUNT = "adjust_null_count"
    ADJUST_MODIFIER_CAPACITY = "adjust_modifier_capacity"
    SET_HAND_LIMIT = "set_hand_limit"
    RESET_BUILDER = "reset_builder"

    # Lifecycle
    TOGGLE_LOCK = "toggle_lock"
    SHUFFLE = "shuffle"
    RESET_DECK = "reset_deck"

    # Zone moves
    DRAW = "draw"
    DISCARD_FROM_DECK = "discard_from_deck"
    RETURN_DISCARD_TO_DECK = "return_discard_to_deck"
    RETURN_DISCARD_GROUP_TO_DECK = "return_discard_group_to_deck"
    RETURN_DISCARD_GROUP_TO_HAND = "return_discard_group_to_hand"
    DISCARD_FROM_HAND = "discard_from_hand"

    # Play selection
    START_PLAY = "start_play"
    TOGGLE_ATTACH = "toggle_attach"
    FINALIZE_PLAY = "finalize_play"
    CANCEL_PLAY = "cancel_play"

    # Saved decks
    SAVE_DECK = "save_deck"
    LOAD_SAVED_DECK = "load_saved_deck"
    DELETE_SAVED_DECK = "delete_saved_deck"


class ErrorCode(str, Enum):
    """Structured failure reasons returned to the caller."""
    PRECONDITION_NOT_MET = "PRECONDITION_NOT_MET"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    DECK_LOCKED = "DECK_LOCKED"
    INVALID_PLAY_TARGET = "INVALID_PLAY_TARGET"
    NO_ACTIVE_PLAY = "NO_ACTIVE_PLAY"
    NOT_A_MODIFIER = "NOT_A_MODIFIER"
    HAND_FULL = "HAND_FULL"
    DECK_DEPLETED = "DECK_DEPLETED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    This is a generic container; validation happens in the reducer.
    """
    card_id: str | None = None
    delta: int = 0
    count: int = 1
    all: bool = False
    origin: DiscardOrigin = DiscardOrigin.DISCARDED
    confirmed: bool = False
    shuffle: bool = True
    to_top: bool = True
    value: int | None = None
    name: str | None = None


@dataclass
class Action:
    """
    A complete action to be applied to the deck state.

    Actions are validated before application and applied
    atomically by the reducer.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def adjust_base_count(cls, card_id: str, delta: int) -> Action:
        return cls(ActionType.ADJUST_BASE_COUNT, ActionPayload(card_id=card_id, delta=delta))

    @classmethod
    def adjust_mod_count(cls, card_id: str, delta: int) -> Action:
        return cls(ActionType.ADJUST_MOD_COUNT, ActionPayload(card_id=card_id, delta=delta))

    @classmethod
    def adjust_null_count(cls, delta: int) -> Action:
        return cls(ActionType.ADJUST_NULL_COUNT, ActionPayload(delta=delta))

    @classmethod
    def adjust_modifier_capacity(cls, delta: int) -> Action:
        return cls(ActionType.ADJUST_MODIFIER_CAPACITY, ActionPayload(delta=delta))

    @classmethod
    def set_hand_limit(cls, value: int) -> Action:
        return cls(ActionType.SET_HAND_LIMIT, ActionPayload(value=value))

    @classmethod
    def toggle_lock(cls) -> Action:
        return cls(ActionType.TOGGLE_LOCK)

    @classmethod
    def shuffle(cls, confirmed: bool = False) -> Action:
        """Factory for shuffle. A re-shuffle needs `confirmed=True`."""
        return cls(ActionType.SHUFFLE, ActionPayload(confirmed=confirmed))

    @classmethod
    def draw(cls) -> Action:
        return cls(ActionType.DRAW)

    @classmethod
    def discard_from_deck(cls, count: int = 1) -> Action:
        return cls(ActionType.DISCARD_FROM_DECK, ActionPayload(count=count))

    @classmethod
    def return_discard_to_deck(cls, shuffle: bool = True, to_top: bool = True) -> Action:
        return cls(
            ActionType.RETURN_DISCARD_TO_DECK,
            ActionPayload(shuffle=shuffle, to_top=to_top),
        )

    @classmethod
    def return_discard_group_to_deck(cls, card_id: str, all: bool = False) -> Action:
        return cls(
            ActionType.RETURN_DISCARD_GROUP_TO_DECK,
            ActionPayload(card_id=card_id, all=all),
        )

    @classmethod
    def return_discard_group_to_hand(cls, card_id: str, all: bool = False) -> Action:
        return cls(
            ActionType.RETURN_DISCARD_GROUP_TO_HAND,
            ActionPayload(card_id=card_id, all=all),
        )

    @classmethod
    def discard_from_hand(
        cls,
        card_id: str,
        all: bool = False,
        origin: DiscardOrigin = DiscardOrigin.DISCARDED,
    ) -> Action:
        return cls(
            ActionType.DISCARD_FROM_HAND,
            ActionPayload(card_id=card_id, all=all, origin=origin),
        )

    @classmethod
    def reset_deck(cls) -> Action:
        return cls(ActionType.RESET_DECK)

    @classmethod
    def reset_builder(cls) -> Action:
        return cls(ActionType.RESET_BUILDER)

    @classmethod
    def start_play(cls, base_id: str) -> Action:
        return cls(ActionType.START_PLAY, ActionPayload(card_id=base_id))

    @classmethod
    def toggle_attach(cls, mod_id: str) -> Action:
        return cls(ActionType.TOGGLE_ATTACH, ActionPayload(card_id=mod_id))

    @classmethod
    def finalize_play(cls) -> Action:
        return cls(ActionType.FINALIZE_PLAY)

    @classmethod
    def cancel_play(cls) -> Action:
        return cls(ActionType.CANCEL_PLAY)

    @classmethod
    def save_deck(cls, name: str) -> Action:
        return cls(ActionType.SAVE_DECK, ActionPayload(name=name))

    @classmethod
    def load_saved_deck(cls, name: str) -> Action:
        return cls(ActionType.LOAD_SAVED_DECK, ActionPayload(name=name))

    @classmethod
    def delete_saved_deck(cls, name: str) -> Action:
        return cls(ActionType.DELETE_SAVED_DECK, ActionPayload(name=name))


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error message and code (if failed)
    - A notice and a warning marker for the UI
    """
    success: bool
    new_state: Any | None = None  # DeckState
    error: str | None = None
    error_code: ErrorCode | None = None

    # For UI/presentation
    notice: str | None = None  # e.g. "Shuffle the deck before drawing."
    warning_card_id: str | None = None  # hand card to flag after a bad attach
    state_changes: list[str] = field(default_factory=list)  # Human-readable changes

    @classmethod
    def failure(
        cls,
        error: str | None,
        error_code: ErrorCode | None = None,
        warning_card_id: str | None = None,
    ) -> ActionResult:
        """Create a failure result. `error=None` marks a silent rejection."""
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            warning_card_id=warning_card_id,
        )

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        notice: str | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            notice=notice,
        )
