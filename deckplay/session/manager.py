"""
Session Manager - Creates and manages deck builder sessions.

LIFECYCLE:
1. Caller creates a session for a storage key
   → saved state is loaded from the store (or defaults)
2. Each command:
   - is turned into an Action
   - is applied by the reducer to the current DeckState
   - on success the new state replaces the old one and is persisted
   - on failure the old state is kept and the error is remembered
3. Session ends → removed from memory; the stored record stays

PERSISTENCE RULES:
- The store is the only persistence
- Persistence is best-effort: a storage failure is logged, never
  returned to the caller
- The active play is never persisted
- One live session per storage key
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
import uuid

from ..catalog import CardCatalog
from ..engine_core.action import Action, ActionResult, ErrorCode
from ..engine_core.capacity import attached_cost, modifier_capacity_used
from ..engine_core.composition import CompositionValidity, validate_composition
from ..engine_core.reducer import Reducer
from ..engine_core.rules import BuildRules
from ..engine_core.state import DeckHealth, DeckState, DiscardOrigin
from ..games.collapse import STORAGE_KEY, create_collapse_catalog
from ..storage import DeckStore, StorageError, deserialize, serialize

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a builder session."""
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class Session:
    """
    One deck builder bound to one storage key.

    Contains:
    - The reducer (catalog, rules, random source)
    - The current DeckState
    - The store it persists to (optional)
    - Feedback from the last command for the presentation layer
    """
    session_id: str
    storage_key: str
    reducer: Reducer
    deck_state: DeckState
    created_at: float
    store: DeckStore | None = None

    state: SessionState = SessionState.ACTIVE

    # Feedback from the last command
    last_error: str | None = None
    last_notice: str | None = None
    attach_warning_id: str | None = None
    history: list[str] = field(default_factory=list)

    @property
    def catalog(self) -> CardCatalog:
        return self.reducer.catalog

    @property
    def rules(self) -> BuildRules:
        return self.reducer.rules

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    # =========================================================================
    # Builder commands
    # =========================================================================

    def adjust_base_count(self, card_id: str, delta: int) -> ActionResult:
        return self._dispatch(Action.adjust_base_count(card_id, delta))

    def adjust_mod_count(self, card_id: str, delta: int) -> ActionResult:
        return self._dispatch(Action.adjust_mod_count(card_id, delta))

    def adjust_null_count(self, delta: int) -> ActionResult:
        return self._dispatch(Action.adjust_null_count(delta))

    def adjust_modifier_capacity(self, delta: int) -> ActionResult:
        return self._dispatch(Action.adjust_modifier_capacity(delta))

    def set_hand_limit(self, value: int) -> ActionResult:
        return self._dispatch(Action.set_hand_limit(value))

    def reset_builder(self) -> ActionResult:
        return self._dispatch(Action.reset_builder())

    # =========================================================================
    # Lifecycle commands
    # =========================================================================

    def toggle_lock(self) -> ActionResult:
        return self._dispatch(Action.toggle_lock())

    def shuffle(self, confirmed: bool = False) -> ActionResult:
        return self._dispatch(Action.shuffle(confirmed=confirmed))

    def reset_deck(self) -> ActionResult:
        return self._dispatch(Action.reset_deck())

    # =========================================================================
    # Zone commands
    # =========================================================================

    def draw(self) -> ActionResult:
        return self._dispatch(Action.draw())

    def discard_from_deck(self, count: int = 1) -> ActionResult:
        return self._dispatch(Action.discard_from_deck(count))

    def return_discard_to_deck(self, shuffle: bool = True, to_top: bool = True) -> ActionResult:
        return self._dispatch(Action.return_discard_to_deck(shuffle=shuffle, to_top=to_top))

    def return_discard_group_to_deck(self, card_id: str, all: bool = False) -> ActionResult:
        return self._dispatch(Action.return_discard_group_to_deck(card_id, all=all))

    def return_discard_group_to_hand(self, card_id: str, all: bool = False) -> ActionResult:
        return self._dispatch(Action.return_discard_group_to_hand(card_id, all=all))

    def discard_from_hand(
        self,
        card_id: str,
        all: bool = False,
        origin: DiscardOrigin | str = DiscardOrigin.DISCARDED,
    ) -> ActionResult:
        try:
            origin = DiscardOrigin(origin)
        except ValueError:
            result = ActionResult.failure(f"Unknown discard origin: {origin}", ErrorCode.INVALID_ACTION)
            self.last_error = result.error
            return result
        return self._dispatch(Action.discard_from_hand(card_id, all=all, origin=origin))

    # =========================================================================
    # Play commands
    # =========================================================================

    def start_play(self, base_id: str) -> ActionResult:
        return self._dispatch(Action.start_play(base_id))

    def toggle_attach(self, mod_id: str) -> ActionResult:
        return self._dispatch(Action.toggle_attach(mod_id))

    def finalize_play(self) -> ActionResult:
        return self._dispatch(Action.finalize_play())

    def cancel_play(self) -> ActionResult:
        return self._dispatch(Action.cancel_play())

    # =========================================================================
    # Saved decks
    # =========================================================================

    def save_deck(self, name: str) -> ActionResult:
        return self._dispatch(Action.save_deck(name))

    def load_saved_deck(self, name: str) -> ActionResult:
        return self._dispatch(Action.load_saved_deck(name))

    def delete_saved_deck(self, name: str) -> ActionResult:
        return self._dispatch(Action.delete_saved_deck(name))

    # =========================================================================
    # Derived views
    # =========================================================================

    def validity(self) -> CompositionValidity:
        return validate_composition(self.deck_state.composition, self.rules, self.catalog)

    def capacity_used(self) -> int:
        return modifier_capacity_used(
            self.deck_state.composition.mod_counts, self.catalog, self.rules.capacity_policy
        )

    def attached_cost(self) -> int:
        play = self.deck_state.active_play
        return attached_cost(play.mods, self.catalog) if play else 0

    def health(self) -> DeckHealth:
        return self.deck_state.health()

    def reload(self) -> DeckState:
        """Re-read the stored record, dropping any in-memory play."""
        self.deck_state = _load_state(self.store, self.storage_key, self.catalog, self.rules)
        self.last_error = None
        self.last_notice = None
        self.attach_warning_id = None
        return self.deck_state

    # =========================================================================
    # Internals
    # =========================================================================

    def _dispatch(self, action: Action) -> ActionResult:
        result = self.reducer.apply(self.deck_state, action)
        self.attach_warning_id = result.warning_card_id

        if not result.success:
            self.last_error = result.error
            return result

        self.last_error = None
        self.last_notice = result.notice
        self.deck_state = result.new_state
        self.history.extend(result.state_changes)
        self._persist()
        return result

    def _persist(self):
        if self.store is None:
            return
        try:
            self.store.put(self.storage_key, serialize(self.deck_state))
        except (StorageError, OSError) as e:
            logger.warning("Could not persist %s: %s", self.storage_key, e)


def _load_state(
    store: DeckStore | None,
    key: str,
    catalog: CardCatalog,
    rules: BuildRules,
) -> DeckState:
    raw = None
    if store is not None:
        try:
            raw = store.get(key)
        except StorageError as e:
            logger.warning("Could not load %s, starting from defaults: %s", key, e)
    return deserialize(raw, catalog, rules)


class SessionManager:
    """
    Manages builder sessions.

    Responsibilities:
    - Create sessions, loading their saved state
    - Track active sessions (one per storage key)
    - End sessions
    """

    def __init__(
        self,
        store: DeckStore | None = None,
        catalog: CardCatalog | None = None,
        rules: BuildRules | None = None,
    ):
        self.store = store
        self.catalog = catalog or create_collapse_catalog()
        self.rules = rules or BuildRules()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        storage_key: str = STORAGE_KEY,
        rng: random.Random | None = None,
    ) -> Session:
        """
        Create a session for `storage_key`.

        If a live session already holds that key it is returned as is.
        """
        existing = self.session_for_key(storage_key)
        if existing:
            return existing

        reducer = Reducer(catalog=self.catalog, rules=self.rules, rng=rng or random.Random())
        session = Session(
            session_id=str(uuid.uuid4()),
            storage_key=storage_key,
            reducer=reducer,
            deck_state=_load_state(self.store, storage_key, self.catalog, self.rules),
            created_at=time.time(),
            store=self.store,
        )
        self._sessions[session.session_id] = session
        logger.info("Created session %s for %s", session.session_id, storage_key)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def session_for_key(self, storage_key: str) -> Session | None:
        for session in self._sessions.values():
            if session.storage_key == storage_key and session.is_active():
                return session
        return None

    def end_session(self, session_id: str) -> bool:
        """Remove a session from memory. Its stored record is kept."""
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        session.state = SessionState.ENDED
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def reload_all(self):
        """Re-read every live session from the store (after an import)."""
        for session in self._sessions.values():
            session.reload()
