"""
Persisted Record - DeckState <-> plain JSON-compatible dict.

The record keeps the builder's established key names (baseCounts,
isLocked, ...) so saved data written by earlier builders still loads.

deserialize() never raises: each field falls back to its default on
its own when it is missing or malformed, and input that is not a JSON
object at all yields the default state.
"""

from __future__ import annotations
import json
import logging
from typing import Any

from ..catalog import CardCatalog
from ..engine_core.reducer import new_deck_state
from ..engine_core.rules import BuildRules
from ..engine_core.state import (
    Composition,
    DeckState,
    DiscardEntry,
    DiscardOrigin,
    HandEntry,
    HandState,
    Lifecycle,
    SavedDeck,
)

logger = logging.getLogger(__name__)


def serialize(state: DeckState) -> dict[str, Any]:
    """Persisted form of a state. The active play is not persisted."""
    record = _composition_fields(state.composition)
    record.update({
        "hasBuiltDeck": state.has_built_deck,
        "hasShuffledDeck": state.has_shuffled_deck,
        "deck": list(state.deck),
        "hand": [{"id": h.card_id, "state": h.state.value} for h in state.hand],
        "discard": [{"id": d.card_id, "origin": d.origin.value} for d in state.discard],
        "isLocked": state.is_locked,
        "deckName": state.deck_name,
        "savedDecks": {
            name: {
                "name": saved.name,
                "deck": list(saved.deck),
                **_composition_fields(saved.composition),
                "createdAt": saved.created_at,
            }
            for name, saved in state.saved_decks.items()
        },
        "handLimit": state.hand_limit,
    })
    return record


def deserialize(raw: Any, catalog: CardCatalog, rules: BuildRules) -> DeckState:
    """
    Rebuild a DeckState from persisted data.

    `raw` may be a JSON string/bytes or an already-parsed mapping.
    """
    default = new_deck_state(catalog, rules)
    data = _parse(raw)
    if data is None:
        return default

    composition = _read_composition(data, default.composition, catalog, rules)
    lifecycle = Lifecycle.from_flags(
        _read_bool(data, "isLocked"),
        _read_bool(data, "hasBuiltDeck"),
        _read_bool(data, "hasShuffledDeck"),
    )
    hand = _read_entries(data.get("hand"), _hand_entry)
    discard = _read_entries(data.get("discard"), _discard_entry)
    hand_limit = _read_int(data, "handLimit", rules.default_hand_limit, minimum=None)
    hand_limit = rules.clamp_hand_limit(hand_limit)
    if len(hand) > hand_limit:
        logger.warning("Persisted hand exceeds hand limit %d; raising limit", hand_limit)
        hand_limit = min(len(hand), rules.max_hand_limit)
    if len(hand) > hand_limit:
        # newest overflow entries go to discard first
        overflow = hand[hand_limit:]
        logger.warning("Moving %d overflow hand card(s) to discard", len(overflow))
        hand = hand[:hand_limit]
        discard = discard + tuple(
            DiscardEntry(entry.card_id, DiscardOrigin.DISCARDED) for entry in reversed(overflow)
        )

    return DeckState(
        composition=composition,
        lifecycle=lifecycle,
        deck=tuple(_read_id_list(data.get("deck"))),
        hand=hand,
        discard=discard,
        hand_limit=hand_limit,
        deck_name=data.get("deckName") if isinstance(data.get("deckName"), str) else "",
        saved_decks=_read_saved_decks(data.get("savedDecks"), default.composition, catalog, rules),
    )


# =============================================================================
# Field readers
# =============================================================================

def _parse(raw: Any) -> dict[str, Any] | None:
    if raw is None:
        return None
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except (ValueError, TypeError):
            logger.warning("Persisted deck state is not valid JSON; using defaults")
            return None
    if not isinstance(raw, dict):
        logger.warning("Persisted deck state is not an object; using defaults")
        return None
    return raw


def _composition_fields(composition: Composition) -> dict[str, Any]:
    return {
        "baseCounts": dict(composition.base_counts),
        "modCounts": dict(composition.mod_counts),
        "nullCount": composition.null_count,
        "modifierCapacity": composition.modifier_capacity,
    }


def _read_composition(
    data: dict[str, Any],
    default: Composition,
    catalog: CardCatalog,
    rules: BuildRules,
) -> Composition:
    base_ids = {c.id for c in catalog.list_base_cards()}
    mod_ids = {c.id for c in catalog.list_modifier_cards()}
    return Composition(
        base_counts=_read_counts(data.get("baseCounts"), default.base_counts, base_ids),
        mod_counts=_read_counts(data.get("modCounts"), default.mod_counts, mod_ids),
        null_count=_read_int(data, "nullCount", rules.min_nulls, minimum=rules.min_nulls),
        modifier_capacity=_read_int(data, "modifierCapacity", rules.default_modifier_capacity),
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _read_int(data: dict[str, Any], key: str, default: int, minimum: int | None = 0) -> int:
    value = data.get(key)
    if not _is_int(value):
        return default
    if minimum is not None and value < minimum:
        return minimum
    return value


def _read_bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else False


def _read_counts(value: Any, zeroed: dict[str, int], known_ids: set[str]) -> dict[str, int]:
    """Merge persisted counts over a zeroed map; unknown ids and bad values are dropped."""
    counts = dict(zeroed)
    if not isinstance(value, dict):
        return counts
    for card_id, qty in value.items():
        if card_id not in known_ids:
            logger.warning("Dropping count for unknown card %r", card_id)
            continue
        if _is_int(qty) and qty >= 0:
            counts[card_id] = qty
    return counts


def _read_id_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _hand_entry(item: Any) -> HandEntry | None:
    if not isinstance(item, dict) or not isinstance(item.get("id"), str):
        return None
    try:
        state = HandState(item.get("state", HandState.UNSPENT.value))
    except ValueError:
        state = HandState.UNSPENT
    return HandEntry(item["id"], state)


def _discard_entry(item: Any) -> DiscardEntry | None:
    if not isinstance(item, dict) or not isinstance(item.get("id"), str):
        return None
    try:
        origin = DiscardOrigin(item.get("origin", DiscardOrigin.DISCARDED.value))
    except ValueError:
        origin = DiscardOrigin.DISCARDED
    return DiscardEntry(item["id"], origin)


def _read_entries(value: Any, reader) -> tuple:
    if not isinstance(value, list):
        return ()
    entries = (reader(item) for item in value)
    return tuple(e for e in entries if e is not None)


def _read_saved_decks(
    value: Any,
    default: Composition,
    catalog: CardCatalog,
    rules: BuildRules,
) -> dict[str, SavedDeck]:
    if not isinstance(value, dict):
        return {}
    saved: dict[str, SavedDeck] = {}
    for name, item in value.items():
        if not isinstance(item, dict):
            continue
        saved[name] = SavedDeck(
            name=item.get("name") if isinstance(item.get("name"), str) else name,
            deck=tuple(_read_id_list(item.get("deck"))),
            composition=_read_composition(item, default, catalog, rules),
            created_at=item.get("createdAt") if isinstance(item.get("createdAt"), str) else "",
        )
    return saved
