"""
Tests for the play selection flow.
"""

import pytest

from ..engine_core.action import Action, ErrorCode
from ..engine_core.play_flow import (
    BASE_NOT_IN_HAND,
    BASE_REQUIRED_FOR_ATTACH,
    BASE_REQUIRED_FOR_PLAY,
    NULL_NOT_PLAYABLE,
    cancel_play,
    finalize_play,
    start_play,
    toggle_attach,
)
from ..engine_core.reducer import Reducer, new_deck_state
from ..engine_core.rules import BuildRules, CapacityPolicy
from ..engine_core.state import ActivePlay, Composition, DiscardOrigin, HandEntry, Lifecycle


class TestStartPlay:

    def test_base_starts_play(self, play_state, small_catalog):
        result = start_play(play_state, "B1", small_catalog)

        assert result.success
        assert result.new_state.active_play == ActivePlay("B1", ())

    def test_null_card_rejected(self, play_state, small_catalog):
        result = start_play(play_state, "N", small_catalog)

        assert result.error == NULL_NOT_PLAYABLE
        assert result.error_code == ErrorCode.INVALID_PLAY_TARGET

    def test_modifier_rejected(self, play_state, small_catalog):
        result = start_play(play_state, "M1", small_catalog)

        assert result.error == BASE_REQUIRED_FOR_PLAY

    def test_unknown_card_rejected(self, play_state, small_catalog):
        result = start_play(play_state, "no-such-card", small_catalog)

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_PLAY_TARGET

    def test_base_must_be_in_hand(self, play_state, small_catalog):
        state = play_state._copy_with(hand=(HandEntry("M1"),))

        result = start_play(state, "B1", small_catalog)

        assert not result.success
        assert result.error == BASE_NOT_IN_HAND
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_no_play_of_modifiers_without_base(self, reducer, play_state):
        state = play_state._copy_with(hand=(HandEntry("M1"),))

        for action in (Action.start_play("B1"), Action.toggle_attach("M1"), Action.finalize_play()):
            result = reducer.apply(state, action)
            if result.success:
                state = result.new_state

        assert state.hand == (HandEntry("M1"),)
        assert state.discard == ()

    def test_replaces_unfinished_play(self, play_state, small_catalog):
        state = play_state._copy_with(active_play=ActivePlay("B1", ("M1",)))

        result = start_play(state, "B1", small_catalog)

        assert result.new_state.active_play.mods == ()

    def test_zones_untouched(self, play_state, small_catalog):
        result = start_play(play_state, "B1", small_catalog)

        assert result.new_state.hand == play_state.hand
        assert result.new_state.discard == play_state.discard


class TestToggleAttach:

    def test_attach_without_base_warns(self, play_state, small_catalog):
        result = toggle_attach(play_state, "M1", small_catalog)

        assert result.error == BASE_REQUIRED_FOR_ATTACH
        assert result.error_code == ErrorCode.INVALID_PLAY_TARGET
        assert result.warning_card_id == "M1"

    def test_null_checked_before_base(self, play_state, small_catalog):
        result = toggle_attach(play_state, "N", small_catalog)

        assert result.error == NULL_NOT_PLAYABLE
        assert result.warning_card_id is None

    def test_base_is_not_a_modifier(self, play_state, small_catalog):
        state = play_state._copy_with(active_play=ActivePlay("B1"))

        result = toggle_attach(state, "B1", small_catalog)

        assert not result.success
        assert result.error is None
        assert result.error_code == ErrorCode.NOT_A_MODIFIER

    def test_toggle_detaches(self, play_state, small_catalog):
        state = play_state._copy_with(active_play=ActivePlay("B1", ("M1",)))

        result = toggle_attach(state, "M1", small_catalog)

        assert result.success
        assert result.new_state.active_play.mods == ()

    def test_modifier_must_be_in_hand(self, play_state, small_catalog):
        state = play_state._copy_with(
            hand=(HandEntry("B1"),),
            active_play=ActivePlay("B1"),
        )

        result = toggle_attach(state, "M1", small_catalog)

        assert not result.success
        assert result.error_code == ErrorCode.CAPACITY_EXCEEDED

    def test_attach_respects_deck_capacity(self, play_state, small_catalog):
        composition = Composition(
            base_counts={"B1": 26}, mod_counts={"M1": 1}, null_count=5, modifier_capacity=1
        )
        state = play_state._copy_with(composition=composition, active_play=ActivePlay("B1"))

        result = toggle_attach(state, "M1", small_catalog)

        assert not result.success
        assert result.error is None
        assert result.error_code == ErrorCode.CAPACITY_EXCEEDED

    @pytest.mark.parametrize("rules", [
        BuildRules(capacity_policy=CapacityPolicy.SLOT_COUNTED),
        BuildRules(simple_counters=True, capacity_policy=CapacityPolicy.SLOT_COUNTED),
    ])
    def test_attach_cost_capped_under_any_policy(self, play_state, small_catalog, rules):
        composition = play_state.composition._copy_with(modifier_capacity=1)
        state = play_state._copy_with(composition=composition, active_play=ActivePlay("B1"))
        reducer = Reducer(catalog=small_catalog, rules=rules)

        result = reducer.apply(state, Action.toggle_attach("M1"))

        assert not result.success
        assert result.error_code == ErrorCode.CAPACITY_EXCEEDED
        assert result.new_state is None

    def test_attached_costs_add_up(self, collapse_catalog):
        hand = tuple(HandEntry(card_id) for card_id in ("strike", "fortify", "surge", "empower"))
        state = new_deck_state(collapse_catalog, BuildRules())._copy_with(
            lifecycle=Lifecycle.LOCKED_READY,
            hand=hand,
            composition=Composition({"strike": 26}, {}, null_count=5, modifier_capacity=4),
            active_play=ActivePlay("strike", ("fortify",)),
        )

        fits = toggle_attach(state, "surge", collapse_catalog)
        over = toggle_attach(fits.new_state, "empower", collapse_catalog)

        assert fits.new_state.active_play.mods == ("fortify", "surge")
        assert not over.success
        assert over.error_code == ErrorCode.CAPACITY_EXCEEDED


class TestFinalizeAndCancel:

    def test_finalize_without_play(self, play_state):
        result = finalize_play(play_state)

        assert not result.success
        assert result.error_code == ErrorCode.NO_ACTIVE_PLAY

    def test_finalize_moves_one_copy_each(self, play_state):
        state = play_state._copy_with(
            hand=(HandEntry("B1"), HandEntry("B1"), HandEntry("M1"), HandEntry("M1")),
            active_play=ActivePlay("B1", ("M1",)),
        )

        result = finalize_play(state)

        assert result.new_state.hand == (HandEntry("B1"), HandEntry("M1"))
        assert [d.origin for d in result.new_state.discard] == [DiscardOrigin.PLAYED] * 2

    def test_cancel_is_idempotent(self, play_state):
        state = play_state._copy_with(active_play=ActivePlay("B1", ("M1",)))

        once = cancel_play(state).new_state
        twice = cancel_play(once)

        assert once.active_play is None
        assert twice.success
        assert twice.new_state is once
        assert once.hand == state.hand
