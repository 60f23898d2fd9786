"""
Pytest fixtures for Deckplay tests.
"""

import random

import pytest

from ..catalog import CardCatalog, CardCategory, CardDefinition
from ..engine_core.action import Action
from ..engine_core.reducer import Reducer, new_deck_state
from ..engine_core.rules import BuildRules
from ..engine_core.state import Composition, DeckState, HandEntry, Lifecycle
from ..games.collapse import create_collapse_catalog
from ..storage import DeckStore


@pytest.fixture
def collapse_catalog() -> CardCatalog:
    """The bundled handbook catalog."""
    return create_collapse_catalog()


@pytest.fixture
def small_catalog() -> CardCatalog:
    """One base (B1), one cost-2 modifier (M1) and a null card (N)."""
    return CardCatalog([
        CardDefinition(id="B1", name="Base One", category=CardCategory.BASE),
        CardDefinition(id="M1", name="Mod One", category=CardCategory.MODIFIER, cost=2),
        CardDefinition(id="N", name="Null", category=CardCategory.NULL),
    ])


@pytest.fixture
def rules() -> BuildRules:
    """Strict rules: 26 bases, 5 nulls, capacity 10, cost-weighted."""
    return BuildRules()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def reducer(small_catalog, rules, rng) -> Reducer:
    return Reducer(catalog=small_catalog, rules=rules, rng=rng)


@pytest.fixture
def collapse_reducer(collapse_catalog, rules, rng) -> Reducer:
    return Reducer(catalog=collapse_catalog, rules=rules, rng=rng)


@pytest.fixture
def empty_state(small_catalog, rules) -> DeckState:
    return new_deck_state(small_catalog, rules)


@pytest.fixture
def valid_state(empty_state) -> DeckState:
    """26 x B1, 5 x M1 (capacity 10 used exactly), 5 nulls; unlocked."""
    return empty_state._copy_with(
        composition=Composition(
            base_counts={"B1": 26},
            mod_counts={"M1": 5},
            null_count=5,
            modifier_capacity=10,
        )
    )


@pytest.fixture
def ready_state(reducer, valid_state) -> DeckState:
    """valid_state locked, built and shuffled; 36 cards in the deck."""
    locked = reducer.apply(valid_state, Action.toggle_lock()).new_state
    return reducer.apply(locked, Action.shuffle()).new_state


@pytest.fixture
def play_state(valid_state) -> DeckState:
    """Ready deck with B1, M1 and the null card in hand."""
    return valid_state._copy_with(
        lifecycle=Lifecycle.LOCKED_READY,
        deck=tuple(["B1"] * 24 + ["M1"] * 4 + ["N"] * 5),
        hand=(HandEntry("B1"), HandEntry("M1"), HandEntry("N")),
    )


@pytest.fixture
def store(tmp_path) -> DeckStore:
    return DeckStore(tmp_path / "store")

