"""
Deck State - The state container the engine operates on.

Design principles:
- Immutable-friendly: all mutations return new state
- Serializable: can be saved/loaded (see deckplay.storage)
- One tagged lifecycle instead of independent lock/built/shuffled flags
- Zones hold card ids; definitions live in the CardCatalog
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum

from .rules import DEFAULT_HAND_LIMIT


class Lifecycle(Enum):
    """
    Deck lifecycle.

    UNLOCKED -> (lock) -> LOCKED_BUILT -> (shuffle) -> LOCKED_READY.
    LOCKED_UNBUILT is only reachable from persisted data.
    """
    UNLOCKED = "unlocked"
    LOCKED_UNBUILT = "locked_unbuilt"
    LOCKED_BUILT = "locked_built"
    LOCKED_READY = "locked_ready"

    @property
    def is_locked(self) -> bool:
        return self != Lifecycle.UNLOCKED

    @property
    def is_built(self) -> bool:
        return self in {Lifecycle.LOCKED_BUILT, Lifecycle.LOCKED_READY}

    @property
    def is_shuffled(self) -> bool:
        return self == Lifecycle.LOCKED_READY

    @classmethod
    def from_flags(cls, is_locked: bool, has_built: bool, has_shuffled: bool) -> Lifecycle:
        """Collapse the legacy three-flag encoding; impossible combinations normalize down."""
        if not is_locked:
            return cls.UNLOCKED
        if not has_built:
            return cls.LOCKED_UNBUILT
        if not has_shuffled:
            return cls.LOCKED_BUILT
        return cls.LOCKED_READY


class HandState(Enum):
    UNSPENT = "unspent"
    PLAYED = "played"


class DiscardOrigin(Enum):
    PLAYED = "played"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class HandEntry:
    card_id: str
    state: HandState = HandState.UNSPENT


@dataclass(frozen=True)
class DiscardEntry:
    card_id: str
    origin: DiscardOrigin = DiscardOrigin.DISCARDED


@dataclass(frozen=True)
class ActivePlay:
    """
    A play under construction: one base plus attached modifiers.

    A marker over hand entries only; nothing leaves the hand until
    the play is finalized.
    """
    base_id: str
    mods: tuple[str, ...] = ()


@dataclass(frozen=True)
class Composition:
    """
    What the deck is made of.

    Counts are keyed by card id. Modifier capacity is adjusted
    independently of the modifier counts.
    """
    base_counts: dict[str, int] = field(default_factory=dict)
    mod_counts: dict[str, int] = field(default_factory=dict)
    null_count: int = 0
    modifier_capacity: int = 0

    @property
    def base_total(self) -> int:
        return sum(self.base_counts.values())

    @property
    def mod_total(self) -> int:
        return sum(self.mod_counts.values())

    def with_base_count(self, card_id: str, count: int) -> Composition:
        return replace(self, base_counts={**self.base_counts, card_id: count})

    def with_mod_count(self, card_id: str, count: int) -> Composition:
        return replace(self, mod_counts={**self.mod_counts, card_id: count})

    def _copy_with(self, **kwargs) -> Composition:
        return replace(self, **kwargs)


@dataclass(frozen=True)
class SavedDeck:
    """A named snapshot of a composition and its built deck."""
    name: str
    deck: tuple[str, ...]
    composition: Composition
    created_at: str


@dataclass(frozen=True)
class DeckHealth:
    """How much of the deck is left to draw."""
    cards_remaining: int
    total_cards: int
    percent: int
    variant: str

    @property
    def label(self) -> str:
        if self.total_cards == 0:
            return "Deck empty"
        return f"{self.percent}% deck remaining"


# (lower bound, variant), checked top-down
_HEALTH_BANDS = [
    (0.9, "healthy"),
    (0.7, "ready"),
    (0.5, "caution"),
    (0.3, "warning"),
    (0.1, "critical"),
]


@dataclass
class DeckState:
    """
    Complete builder state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer, which returns a new
    DeckState and leaves the previous one untouched.
    """
    composition: Composition
    lifecycle: Lifecycle = Lifecycle.UNLOCKED

    # Zones; the tail of `deck` is the top
    deck: tuple[str, ...] = ()
    hand: tuple[HandEntry, ...] = ()
    discard: tuple[DiscardEntry, ...] = ()
    hand_limit: int = DEFAULT_HAND_LIMIT

    # Transient, never persisted
    active_play: ActivePlay | None = None

    deck_name: str = ""
    saved_decks: dict[str, SavedDeck] = field(default_factory=dict)

    @property
    def is_locked(self) -> bool:
        return self.lifecycle.is_locked

    @property
    def has_built_deck(self) -> bool:
        return self.lifecycle.is_built

    @property
    def has_shuffled_deck(self) -> bool:
        return self.lifecycle.is_shuffled

    @property
    def hand_space(self) -> int:
        return max(self.hand_limit - len(self.hand), 0)

    @property
    def total_cards(self) -> int:
        return len(self.deck) + len(self.hand) + len(self.discard)

    @property
    def lock_label(self) -> str:
        if self.lifecycle == Lifecycle.LOCKED_READY:
            return "Deck Locked + Primed"
        if self.is_locked:
            return "Deck Locked"
        return "Deck Unlocked"

    def hand_counts(self) -> Counter[str]:
        """Copies of each card id currently in hand."""
        return Counter(entry.card_id for entry in self.hand)

    def zone_multiset(self) -> Counter[str]:
        """Every card id across deck, hand and discard."""
        counts = Counter(self.deck)
        counts.update(entry.card_id for entry in self.hand)
        counts.update(entry.card_id for entry in self.discard)
        return counts

    def health(self) -> DeckHealth:
        remaining = len(self.deck)
        total = self.total_cards
        ratio = remaining / total if total > 0 else 0.0
        variant = "depleted"
        for lower, name in _HEALTH_BANDS:
            if ratio >= lower:
                variant = name
                break
        return DeckHealth(
            cards_remaining=remaining,
            total_cards=total,
            percent=round(ratio * 100),
            variant=variant,
        )

    def _copy_with(self, **kwargs) -> DeckState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
