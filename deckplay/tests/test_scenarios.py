"""
End-to-end builder scenarios.

Each scenario runs through a Session the way a presentation layer
would: build a composition, lock, shuffle, draw and play.
"""

import random

import pytest

from ..engine_core.action import ErrorCode
from ..engine_core.capacity import modifier_capacity_used
from ..engine_core.rules import CapacityPolicy
from ..engine_core.state import DiscardEntry, DiscardOrigin, HandEntry, Lifecycle
from ..session import SessionManager


@pytest.fixture
def session(small_catalog, rules):
    manager = SessionManager(catalog=small_catalog, rules=rules)
    return manager.create_session(rng=random.Random(7))


@pytest.fixture
def built_session(session):
    """Scenario A composition: 26 x B1, 5 x M1, 5 nulls."""
    assert session.adjust_base_count("B1", 26).success
    assert session.adjust_mod_count("M1", 5).success
    return session


class TestScenarioA:
    """Composition validity and capacity rejection."""

    def test_composition_is_valid(self, built_session):
        validity = built_session.validity()

        assert validity.base_valid
        assert validity.null_valid
        assert validity.mod_valid
        assert validity.overall
        assert built_session.capacity_used() == 10

    def test_extra_modifier_is_rejected_silently(self, built_session):
        before = built_session.deck_state

        result = built_session.adjust_mod_count("M1", 1)

        assert not result.success
        assert result.error is None
        assert result.error_code == ErrorCode.CAPACITY_EXCEEDED
        assert built_session.deck_state is before
        assert built_session.capacity_used() == 10
        assert built_session.deck_state.composition.mod_counts["M1"] == 5


class TestScenarioB:
    """Lock builds the deck but drawing needs a shuffle."""

    def test_lock_builds_36_cards(self, built_session):
        result = built_session.toggle_lock()
        state = built_session.deck_state

        assert result.success
        assert result.notice == "Shuffle the deck before drawing."
        assert len(state.deck) == 36
        assert state.hand == ()
        assert state.discard == ()
        assert state.has_built_deck
        assert not state.has_shuffled_deck
        assert state.zone_multiset() == {"B1": 26, "M1": 5, "N": 5}

    def test_draw_before_shuffle_is_rejected(self, built_session):
        built_session.toggle_lock()

        result = built_session.draw()

        assert not result.success
        assert result.error_code == ErrorCode.PRECONDITION_NOT_MET
        assert result.error == "Shuffle the deck before drawing."
        assert built_session.deck_state.hand == ()


class TestScenarioC:
    """Drawing up to the hand limit."""

    def test_five_draws_then_hand_full(self, built_session):
        built_session.toggle_lock()
        built_session.shuffle()

        for _ in range(5):
            assert built_session.draw().success

        state = built_session.deck_state
        assert len(state.hand) == 5
        assert len(state.deck) == 31

        result = built_session.draw()
        assert not result.success
        assert result.error_code == ErrorCode.HAND_FULL
        assert len(built_session.deck_state.deck) == 31

    def test_drawn_cards_come_off_the_top(self, built_session):
        built_session.toggle_lock()
        built_session.shuffle()
        top = built_session.deck_state.deck[-1]

        built_session.draw()

        assert built_session.deck_state.hand == (HandEntry(top),)


class TestScenarioD:
    """Start a play, attach a modifier, finalize."""

    def test_attach_and_finalize(self, session, play_state):
        session.deck_state = play_state

        assert session.start_play("B1").success
        result = session.toggle_attach("M1")

        assert result.success
        assert session.deck_state.active_play.mods == ("M1",)
        assert session.attached_cost() == 2

        assert session.finalize_play().success
        state = session.deck_state
        assert state.active_play is None
        assert state.hand == (HandEntry("N"),)
        assert state.discard == (
            DiscardEntry("B1", DiscardOrigin.PLAYED),
            DiscardEntry("M1", DiscardOrigin.PLAYED),
        )


class TestScenarioE:
    """Returning discards to a full hand does nothing."""

    def test_return_to_full_hand_is_noop(self, session, play_state):
        discard = (DiscardEntry("M1"), DiscardEntry("M1", DiscardOrigin.PLAYED))
        full = play_state._copy_with(
            hand=tuple(HandEntry("B1") for _ in range(5)),
            discard=discard,
        )
        session.deck_state = full

        result = session.return_discard_group_to_hand("M1", all=True)

        assert not result.success
        assert session.deck_state is full
        assert session.deck_state.discard == discard


class TestSimpleCounters:
    """Relaxed builder mode with slot-counted capacity."""

    def test_initial_counts_and_unbounded_modifiers(self, small_catalog):
        from ..engine_core.rules import BuildRules

        rules = BuildRules(simple_counters=True, capacity_policy=CapacityPolicy.SLOT_COUNTED)
        session = SessionManager(catalog=small_catalog, rules=rules).create_session()
        composition = session.deck_state.composition

        assert composition.base_counts["B1"] == 26
        assert composition.mod_counts["M1"] == 10

        assert session.adjust_mod_count("M1", 15).success
        assert session.adjust_base_count("B1", 4).success
        assert session.validity().overall
        assert modifier_capacity_used(
            session.deck_state.composition.mod_counts, small_catalog, rules.capacity_policy
        ) == 25


class TestLockToggle:
    """Locking twice unlocks and re-opens the builder."""

    def test_lock_unlock_round_trip(self, built_session):
        built_session.toggle_lock()
        built_session.shuffle()
        assert built_session.deck_state.lifecycle == Lifecycle.LOCKED_READY
        assert built_session.deck_state.lock_label == "Deck Locked + Primed"

        built_session.toggle_lock()

        assert built_session.deck_state.lifecycle == Lifecycle.UNLOCKED
        assert built_session.deck_state.lock_label == "Deck Unlocked"
        assert built_session.adjust_base_count("B1", -1).success
