"""
Tests for the reducer (state transitions).

Tests:
- Builder edits and their limits
- Deck lifecycle (lock, shuffle, reset)
- Zone moves and card conservation
- Hand limit
- Saved decks
- Error handling
"""

import copy
import random
from collections import Counter

import pytest

from ..engine_core.action import Action, ActionPayload, ActionType, ErrorCode
from ..engine_core.reducer import Reducer, apply_action, new_deck_state
from ..engine_core.state import DiscardEntry, DiscardOrigin, HandEntry, HandState, Lifecycle


def _apply_all(reducer, state, *actions):
    for action in actions:
        result = reducer.apply(state, action)
        assert result.success, result.error
        state = result.new_state
    return state


class TestBuilderEdits:
    """Tests for composition edits."""

    def test_base_count_stops_at_target(self, reducer, empty_state):
        state = _apply_all(reducer, empty_state, Action.adjust_base_count("B1", 26))

        result = reducer.apply(state, Action.adjust_base_count("B1", 1))

        assert not result.success
        assert result.error is None
        assert result.error_code == ErrorCode.CAPACITY_EXCEEDED
        assert state.composition.base_counts["B1"] == 26

    def test_base_count_never_negative(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.adjust_base_count("B1", -3))

        assert result.success
        assert result.new_state.composition.base_counts["B1"] == 0

    def test_unknown_base_card(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.adjust_base_count("M1", 1))

        assert not result.success
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_modifier_capacity_is_cost_weighted(self, reducer, empty_state):
        state = _apply_all(reducer, empty_state, Action.adjust_mod_count("M1", 4))

        assert reducer.apply(state, Action.adjust_mod_count("M1", 1)).success
        assert not reducer.apply(state, Action.adjust_mod_count("M1", 2)).success

    def test_modifier_decrease_always_allowed(self, reducer, valid_state):
        state = _apply_all(reducer, valid_state, Action.adjust_modifier_capacity(-6))

        result = reducer.apply(state, Action.adjust_mod_count("M1", -1))

        assert result.success
        assert result.new_state.composition.mod_counts["M1"] == 4

    def test_null_count_clamped_to_minimum(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.adjust_null_count(-10))

        assert result.success
        assert result.new_state.composition.null_count == 5

    def test_capacity_never_negative(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.adjust_modifier_capacity(-50))

        assert result.new_state.composition.modifier_capacity == 0

    @pytest.mark.parametrize("action", [
        Action.adjust_base_count("B1", 1),
        Action.adjust_mod_count("M1", 1),
        Action.adjust_null_count(1),
        Action.adjust_modifier_capacity(1),
    ])
    def test_edits_rejected_while_locked(self, reducer, ready_state, action):
        result = reducer.apply(ready_state, action)

        assert not result.success
        assert result.error_code == ErrorCode.DECK_LOCKED

    def test_reset_builder_restores_defaults(self, reducer, ready_state, small_catalog, rules):
        state = _apply_all(reducer, ready_state, Action.draw(), Action.save_deck("Mine"))

        result = reducer.apply(state, Action.reset_builder())

        assert result.new_state == new_deck_state(small_catalog, rules)


class TestLifecycle:
    """Tests for lock, shuffle and reset."""

    def test_lock_clears_zones(self, reducer, ready_state):
        state = _apply_all(reducer, ready_state, Action.draw(), Action.discard_from_deck(2))
        state = _apply_all(reducer, state, Action.toggle_lock(), Action.toggle_lock())

        assert state.lifecycle == Lifecycle.LOCKED_BUILT
        assert state.hand == ()
        assert state.discard == ()
        assert len(state.deck) == 36

    def test_unlock_keeps_zones(self, reducer, ready_state):
        deck = list(ready_state.deck)
        deck.remove("B1")
        in_hand = ready_state._copy_with(deck=tuple(deck), hand=(HandEntry("B1"),))
        state = _apply_all(reducer, in_hand, Action.start_play("B1"))

        state = _apply_all(reducer, state, Action.toggle_lock())

        assert state.lifecycle == Lifecycle.UNLOCKED
        assert len(state.hand) == 1
        assert state.active_play is None

    def test_shuffle_requires_lock(self, reducer, valid_state):
        result = reducer.apply(valid_state, Action.shuffle())

        assert not result.success
        assert result.error_code == ErrorCode.PRECONDITION_NOT_MET

    def test_shuffle_requires_built_deck(self, reducer, valid_state):
        state = valid_state._copy_with(lifecycle=Lifecycle.LOCKED_UNBUILT)

        result = reducer.apply(state, Action.shuffle())

        assert not result.success
        assert "Build" in result.error

    def test_reshuffle_needs_confirmation(self, reducer, ready_state):
        result = reducer.apply(ready_state, Action.shuffle())

        assert not result.success
        assert result.error_code == ErrorCode.CONFIRMATION_REQUIRED

        confirmed = reducer.apply(ready_state, Action.shuffle(confirmed=True))
        assert confirmed.success
        assert Counter(confirmed.new_state.deck) == Counter(ready_state.deck)

    def test_shuffle_leaves_hand_and_discard(self, reducer, ready_state):
        state = _apply_all(reducer, ready_state, Action.draw(), Action.discard_from_deck(1))

        result = reducer.apply(state, Action.shuffle(confirmed=True))

        assert result.new_state.hand == state.hand
        assert result.new_state.discard == state.discard

    def test_reset_deck(self, reducer, ready_state):
        state = _apply_all(reducer, ready_state, Action.draw(), Action.discard_from_deck(3))

        state = _apply_all(reducer, state, Action.reset_deck())

        assert state.lifecycle == Lifecycle.LOCKED_READY
        assert len(state.deck) == 36
        assert state.hand == ()
        assert state.discard == ()

    def test_reset_deck_requires_lock(self, reducer, valid_state):
        result = reducer.apply(valid_state, Action.reset_deck())

        assert result.error_code == ErrorCode.PRECONDITION_NOT_MET


class TestDraw:
    """Tests for draw preconditions."""

    @pytest.mark.parametrize("lifecycle, message", [
        (Lifecycle.UNLOCKED, "Lock the deck before drawing."),
        (Lifecycle.LOCKED_UNBUILT, "Build the deck before drawing."),
        (Lifecycle.LOCKED_BUILT, "Shuffle the deck before drawing."),
    ])
    def test_precondition_order(self, reducer, valid_state, lifecycle, message):
        state = valid_state._copy_with(lifecycle=lifecycle, deck=("B1",))

        result = reducer.apply(state, Action.draw())

        assert result.error == message
        assert result.error_code == ErrorCode.PRECONDITION_NOT_MET

    def test_empty_deck(self, reducer, ready_state):
        state = ready_state._copy_with(deck=())

        result = reducer.apply(state, Action.draw())

        assert result.error_code == ErrorCode.DECK_DEPLETED
        assert result.error.startswith("Deck depleted")

    def test_zero_hand_limit(self, reducer, ready_state):
        state = ready_state._copy_with(hand_limit=0)

        result = reducer.apply(state, Action.draw())

        assert result.error_code == ErrorCode.HAND_FULL

    def test_drawn_cards_are_unspent(self, reducer, ready_state):
        state = _apply_all(reducer, ready_state, Action.draw())

        assert state.hand[0].state == HandState.UNSPENT


class TestZoneMoves:
    """Tests for moves between deck, hand and discard."""

    def test_discard_from_deck_takes_top(self, reducer, ready_state):
        top_two = ready_state.deck[-2:]

        state = _apply_all(reducer, ready_state, Action.discard_from_deck(2))

        assert [d.card_id for d in state.discard] == [top_two[1], top_two[0]]
        assert all(d.origin == DiscardOrigin.DISCARDED for d in state.discard)

    def test_discard_from_deck_stops_when_empty(self, reducer, ready_state):
        state = ready_state._copy_with(deck=("B1", "N"))

        state = _apply_all(reducer, state, Action.discard_from_deck(5))

        assert state.deck == ()
        assert len(state.discard) == 2

    def test_return_discard_to_top_without_shuffle(self, reducer, ready_state):
        state = ready_state._copy_with(
            deck=("B1",),
            discard=(DiscardEntry("M1"), DiscardEntry("N")),
        )

        state = _apply_all(reducer, state, Action.return_discard_to_deck(shuffle=False, to_top=True))

        assert state.deck == ("B1", "M1", "N")
        assert state.discard == ()

    def test_return_discard_to_bottom_without_shuffle(self, reducer, ready_state):
        state = ready_state._copy_with(
            deck=("B1",),
            discard=(DiscardEntry("M1"), DiscardEntry("N")),
        )

        state = _apply_all(reducer, state, Action.return_discard_to_deck(shuffle=False, to_top=False))

        assert state.deck == ("M1", "N", "B1")

    def test_return_discard_with_shuffle_conserves_cards(self, reducer, ready_state):
        state = _apply_all(reducer, ready_state, Action.discard_from_deck(10))
        before = state.zone_multiset()

        state = _apply_all(reducer, state, Action.return_discard_to_deck())

        assert state.discard == ()
        assert len(state.deck) == 36
        assert state.zone_multiset() == before

    def test_group_to_deck_first_match(self, reducer, ready_state):
        state = ready_state._copy_with(
            deck=("B1",),
            discard=(DiscardEntry("N"), DiscardEntry("M1"), DiscardEntry("N")),
        )

        state = _apply_all(reducer, state, Action.return_discard_group_to_deck("N"))

        assert state.deck == ("B1", "N")
        assert state.discard == (DiscardEntry("M1"), DiscardEntry("N"))

    def test_group_to_deck_all(self, reducer, ready_state):
        state = ready_state._copy_with(
            deck=(),
            discard=(DiscardEntry("N"), DiscardEntry("M1"), DiscardEntry("N")),
        )

        state = _apply_all(reducer, state, Action.return_discard_group_to_deck("N", all=True))

        assert state.deck == ("N", "N")
        assert state.discard == (DiscardEntry("M1"),)

    def test_group_to_deck_no_match(self, reducer, ready_state):
        result = reducer.apply(ready_state, Action.return_discard_group_to_deck("M1"))

        assert not result.success
        assert result.error is None

    def test_group_to_hand_respects_space(self, reducer, ready_state):
        state = ready_state._copy_with(
            hand=(HandEntry("B1"),) * 3,
            discard=(
                DiscardEntry("M1", DiscardOrigin.PLAYED),
                DiscardEntry("N"),
                DiscardEntry("M1"),
                DiscardEntry("M1"),
            ),
        )

        state = _apply_all(reducer, state, Action.return_discard_group_to_hand("M1", all=True))

        assert len(state.hand) == 5
        assert state.hand[-2:] == (HandEntry("M1"), HandEntry("M1"))
        assert state.discard == (DiscardEntry("M1", DiscardOrigin.PLAYED), DiscardEntry("N"))

    def test_group_to_hand_single(self, reducer, ready_state):
        state = ready_state._copy_with(discard=(DiscardEntry("M1"), DiscardEntry("M1")))

        state = _apply_all(reducer, state, Action.return_discard_group_to_hand("M1"))

        assert state.hand == (HandEntry("M1"),)
        assert len(state.discard) == 1

    def test_discard_from_hand_one(self, reducer, play_state):
        state = play_state._copy_with(hand=(HandEntry("N"), HandEntry("B1"), HandEntry("N")))

        state = _apply_all(reducer, state, Action.discard_from_hand("N"))

        assert state.hand == (HandEntry("B1"), HandEntry("N"))
        assert state.discard == (DiscardEntry("N", DiscardOrigin.DISCARDED),)

    def test_discard_from_hand_all_with_origin(self, reducer, play_state):
        state = play_state._copy_with(hand=(HandEntry("N"), HandEntry("B1"), HandEntry("N")))

        state = _apply_all(
            reducer, state, Action.discard_from_hand("N", all=True, origin=DiscardOrigin.PLAYED)
        )

        assert state.hand == (HandEntry("B1"),)
        assert state.discard == (DiscardEntry("N", DiscardOrigin.PLAYED),) * 2

    def test_discard_from_hand_missing_card(self, reducer, play_state):
        result = reducer.apply(play_state, Action.discard_from_hand("missing"))

        assert not result.success
        assert result.error_code == ErrorCode.NOT_FOUND


class TestConservation:
    """The deck/hand/discard multiset only changes on lock or reset."""

    def test_random_walk_conserves_cards(self, reducer, ready_state):
        walker = random.Random(99)
        actions = [
            lambda: Action.draw(),
            lambda: Action.discard_from_deck(walker.randint(1, 3)),
            lambda: Action.return_discard_to_deck(walker.random() < 0.5, walker.random() < 0.5),
            lambda: Action.return_discard_group_to_deck(walker.choice(["B1", "M1", "N"]), walker.random() < 0.5),
            lambda: Action.return_discard_group_to_hand(walker.choice(["B1", "M1", "N"]), walker.random() < 0.5),
            lambda: Action.discard_from_hand(walker.choice(["B1", "M1", "N"]), walker.random() < 0.5),
            lambda: Action.start_play("B1"),
            lambda: Action.toggle_attach("M1"),
            lambda: Action.finalize_play(),
            lambda: Action.cancel_play(),
            lambda: Action.shuffle(confirmed=True),
        ]
        expected = ready_state.zone_multiset()
        state = ready_state

        for _ in range(500):
            result = reducer.apply(state, walker.choice(actions)())
            if result.success:
                state = result.new_state
            assert state.zone_multiset() == expected
            assert len(state.hand) <= state.hand_limit


class TestShuffleUniformity:
    """Shuffles are uniform permutations."""

    def test_every_permutation_is_equally_likely(self, small_catalog, rules, valid_state):
        reducer = Reducer(catalog=small_catalog, rules=rules, rng=random.Random(2024))
        state = valid_state._copy_with(lifecycle=Lifecycle.LOCKED_BUILT, deck=("a", "b", "c"))
        trials = 6000

        counts = Counter(reducer.apply(state, Action.shuffle()).new_state.deck for _ in range(trials))

        assert len(counts) == 6
        expected = trials / 6
        chi_square = sum((n - expected) ** 2 / expected for n in counts.values())
        # 5 degrees of freedom, p = 0.001
        assert chi_square < 20.52


class TestHandLimit:
    """Tests for set_hand_limit."""

    @pytest.mark.parametrize("value, expected", [(-3, 0), (0, 0), (7, 7), (20, 20), (99, 20)])
    def test_clamped(self, reducer, empty_state, value, expected):
        result = reducer.apply(empty_state, Action.set_hand_limit(value))

        assert result.new_state.hand_limit == expected

    def test_never_below_hand_size(self, reducer, play_state):
        result = reducer.apply(play_state, Action.set_hand_limit(1))

        assert result.new_state.hand_limit == 3

    def test_missing_value(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action(ActionType.SET_HAND_LIMIT, ActionPayload()))

        assert result.error_code == ErrorCode.INVALID_ACTION


class TestSavedDecks:
    """Tests for save/load/delete of named decks."""

    def test_save_and_load(self, reducer, ready_state):
        state = _apply_all(reducer, ready_state, Action.save_deck("  Aggro "), Action.draw())

        state = _apply_all(reducer, state, Action.load_saved_deck("Aggro"))

        assert state.lifecycle == Lifecycle.UNLOCKED
        assert state.deck_name == "Aggro"
        assert state.hand == ()
        assert state.discard == ()
        assert len(state.deck) == 36
        assert state.composition == ready_state.composition

    def test_save_requires_name(self, reducer, valid_state):
        result = reducer.apply(valid_state, Action.save_deck("   "))

        assert result.error_code == ErrorCode.INVALID_ACTION

    def test_delete(self, reducer, valid_state):
        state = _apply_all(reducer, valid_state, Action.save_deck("A"), Action.delete_saved_deck("A"))

        assert state.saved_decks == {}
        assert reducer.apply(state, Action.load_saved_deck("A")).error_code == ErrorCode.NOT_FOUND


class TestErrorHandling:
    """Tests for reducer-level failures."""

    def test_handler_exception_becomes_result(self, small_catalog, rules, valid_state):
        class ExplodingRandom(random.Random):
            def shuffle(self, x):
                raise RuntimeError("boom")

        reducer = Reducer(catalog=small_catalog, rules=rules, rng=ExplodingRandom())

        result = reducer.apply(valid_state, Action.toggle_lock())

        assert not result.success
        assert result.error_code == ErrorCode.HANDLER_ERROR
        assert "boom" in result.error

    def test_rejection_leaves_input_untouched(self, reducer, ready_state):
        snapshot = copy.deepcopy(ready_state)

        reducer.apply(ready_state, Action.shuffle())

        assert ready_state == snapshot

    def test_apply_action_convenience(self, small_catalog, valid_state, rules):
        result = apply_action(small_catalog, valid_state, Action.toggle_lock(), rules)

        assert result.success
        assert result.new_state.lifecycle == Lifecycle.LOCKED_BUILT
