"""
Zone primitives - Pure moves over deck/hand/discard tuples.

Each function takes zone tuples and returns new tuples plus whatever
was moved. Nothing here knows about lifecycle or rules.
"""

from __future__ import annotations

from .state import DiscardEntry, DiscardOrigin, HandEntry, HandState


def take_top(deck: tuple[str, ...], count: int) -> tuple[tuple[str, ...], list[str]]:
    """Pop up to `count` ids off the top (tail) of the deck, top first."""
    count = min(max(count, 0), len(deck))
    if count == 0:
        return deck, []
    taken = list(reversed(deck[len(deck) - count:]))
    return deck[:len(deck) - count], taken


def take_from_hand(
    hand: tuple[HandEntry, ...],
    card_id: str,
    all: bool = False,
) -> tuple[tuple[HandEntry, ...], list[HandEntry]]:
    """
    Remove the first matching hand entry, or every matching entry.

    When taking all, entries come out last-to-first.
    """
    entries = list(hand)
    removed: list[HandEntry] = []
    if all:
        for i in range(len(entries) - 1, -1, -1):
            if entries[i].card_id == card_id:
                removed.append(entries.pop(i))
    else:
        for i, entry in enumerate(entries):
            if entry.card_id == card_id:
                removed.append(entries.pop(i))
                break
    return tuple(entries), removed


def move_hand_to_discard(
    hand: tuple[HandEntry, ...],
    discard: tuple[DiscardEntry, ...],
    card_id: str,
    all: bool,
    origin: DiscardOrigin,
) -> tuple[tuple[HandEntry, ...], tuple[DiscardEntry, ...], int]:
    """Move matching hand entries onto the discard pile tagged with `origin`."""
    new_hand, removed = take_from_hand(hand, card_id, all=all)
    if not removed:
        return hand, discard, 0
    new_discard = discard + tuple(DiscardEntry(r.card_id, origin) for r in removed)
    return new_hand, new_discard, len(removed)


def take_from_discard(
    discard: tuple[DiscardEntry, ...],
    card_id: str,
    all: bool = False,
) -> tuple[tuple[DiscardEntry, ...], list[str]]:
    """Remove the first matching discard entry, or every matching entry, in pile order."""
    if all:
        moved = [d.card_id for d in discard if d.card_id == card_id]
        remaining = tuple(d for d in discard if d.card_id != card_id)
        return remaining, moved
    for i, entry in enumerate(discard):
        if entry.card_id == card_id:
            return discard[:i] + discard[i + 1:], [entry.card_id]
    return discard, []


def take_latest_from_discard(
    discard: tuple[DiscardEntry, ...],
    card_id: str,
    limit: int,
    all: bool = False,
) -> tuple[tuple[DiscardEntry, ...], list[str]]:
    """
    Remove matching entries starting from the most recent discard.

    Stops after one entry unless `all`, and never takes more than `limit`.
    """
    entries = list(discard)
    moved: list[str] = []
    for i in range(len(entries) - 1, -1, -1):
        if len(moved) >= limit:
            break
        if entries[i].card_id == card_id:
            moved.append(entries.pop(i).card_id)
            if not all:
                break
    return tuple(entries), moved


def to_hand_entries(card_ids: list[str]) -> tuple[HandEntry, ...]:
    return tuple(HandEntry(card_id, HandState.UNSPENT) for card_id in card_ids)
